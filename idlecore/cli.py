from __future__ import annotations

import argparse
import logging
import sys

from idlecore.catalog import define_game
from idlecore.clock import ManualScheduler, wall_clock_ms
from idlecore.currency import Resource
from idlecore.definition import EngineConfig, GameDefinition
from idlecore.formatting import (
    format_number,
    format_relative_time,
    format_resource,
    format_status_report,
    format_time,
)
from idlecore.offline import (
    apply_offline_progress,
    calculate_offline_progress,
    preview_offline_earnings,
)
from idlecore.persistence import FileStorage, SaveManager
from idlecore.runtime import GameRuntime
from idlecore.tick import TickEngine

DEFAULT_SAVE_DIR = "saves"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="idlecore",
        description="idlecore: Hacker Incremental economy CLI",
    )
    parser.add_argument(
        "--save-dir", default=DEFAULT_SAVE_DIR, help="Directory holding save slots"
    )
    parser.add_argument("--config", default=None, help="TOML file with an [engine] table")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    new = sub.add_parser("new", help="Start a new game in a slot")
    new.add_argument("--slot", type=int, default=0)
    new.add_argument("--name", default="", help="Player name")

    status = sub.add_parser("status", help="Show a slot's resources and upgrades")
    status.add_argument("--slot", type=int, default=0)

    offline = sub.add_parser("offline", help="Preview offline earnings")
    offline.add_argument("--slot", type=int, default=0)
    offline.add_argument(
        "--seconds", type=float, default=None,
        help="Hypothetical absence; defaults to the time since the slot was played",
    )
    offline.add_argument(
        "--apply", action="store_true", help="Credit the earnings and save the slot"
    )

    run = sub.add_parser("run", help="Advance simulated play time")
    run.add_argument("--slot", type=int, default=0)
    run.add_argument("--seconds", type=float, default=60.0)
    run.add_argument(
        "--score", nargs=2, action="append", default=[], metavar=("MINIGAME", "SCORE"),
        help="Report a minigame score before running (repeatable)",
    )
    run.add_argument(
        "--buy", action="append", default=[], metavar="UPGRADE",
        help="Buy one level of an upgrade before running (repeatable)",
    )

    export = sub.add_parser("export", help="Print a slot as an export string")
    export.add_argument("--slot", type=int, default=0)

    imp = sub.add_parser("import", help="Import an export string into a slot")
    imp.add_argument("text", help="Export string, or - to read stdin")
    imp.add_argument("--slot", type=int, default=None, help="Target slot (default: first empty)")

    sub.add_parser("slots", help="List save slots")

    upgrades = sub.add_parser("upgrades", help="List upgrades with levels and costs")
    upgrades.add_argument("--slot", type=int, default=0)
    upgrades.add_argument("--minigame", default=None, help="Minigame whose upgrades to list")

    return parser


def load_definition(config_path: str | None) -> GameDefinition:
    config = EngineConfig.from_toml(config_path) if config_path else None
    return define_game(config)


def open_manager(args: argparse.Namespace, scheduler: ManualScheduler | None = None) -> SaveManager:
    definition = load_definition(args.config)
    runtime = GameRuntime(definition)
    manager = SaveManager(runtime, FileStorage(args.save_dir), scheduler)
    manager.init()
    return manager


def _load_or_exit(manager: SaveManager, slot: int) -> None:
    result = manager.load(slot)
    if not result.success:
        print(f"Error: cannot load slot {slot}: {result.error}", file=sys.stderr)
        sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "new":
        manager = open_manager(args)
        result = manager.start_new_game(args.slot, args.name)
        if not result.success:
            print(f"Error: {result.error}", file=sys.stderr)
            sys.exit(1)
        print(f"New game started in slot {args.slot}")

    elif args.command == "status":
        manager = open_manager(args)
        _load_or_exit(manager, args.slot)
        print(format_status_report(manager.runtime))

    elif args.command == "offline":
        _run_offline(args)

    elif args.command == "run":
        _run_play(args)

    elif args.command == "export":
        manager = open_manager(args)
        _load_or_exit(manager, args.slot)
        print(manager.export_save())

    elif args.command == "import":
        manager = open_manager(args)
        text = sys.stdin.read() if args.text == "-" else args.text
        result = manager.import_save(text, args.slot)
        if not result.success:
            print(f"Error: {result.error}", file=sys.stderr)
            sys.exit(1)
        print(f"Imported into slot {result.slot_index}")

    elif args.command == "slots":
        manager = open_manager(args)
        now = wall_clock_ms()
        for meta in manager.get_all_slot_metadata():
            if meta.is_empty:
                line = "(empty)"
            elif meta.is_corrupt:
                line = "(corrupt)"
            else:
                name = meta.player_name or "Anonymous"
                line = (
                    f"{name}  {format_resource(Resource.MONEY, meta.money)}  "
                    f"played {format_time(meta.total_play_time_ms / 1000)}  "
                    f"last {format_relative_time(meta.last_played, now)}"
                )
            print(f"Slot {meta.slot_index}: {line}")

    elif args.command == "upgrades":
        manager = open_manager(args)
        _load_or_exit(manager, args.slot)
        for status in manager.runtime.get_all_display_info(args.minigame):
            level = f"{status.level}/{status.max_level}" if status.max_level else str(status.level)
            if status.is_maxed:
                cost = "MAX"
            else:
                cost = " + ".join(format_resource(r, a) for r, a in status.next_cost.items())
            mark = "*" if status.can_afford else " "
            print(f"{mark} {status.id:<20} lv {level:<6} {cost:<20} {status.effect_description}")


def _run_offline(args: argparse.Namespace) -> None:
    manager = open_manager(args)
    _load_or_exit(manager, args.slot)
    runtime = manager.runtime

    if args.seconds is not None:
        preview = preview_offline_earnings(runtime, args.seconds)
        print(f"Offline preview for {format_time(args.seconds)}:")
        for resource, (raw, adjusted) in preview.items():
            print(
                f"  {resource.value:<10} {format_resource(resource, adjusted)}"
                f"  (raw {format_number(raw)})"
            )
        return

    result = calculate_offline_progress(runtime)
    if not result.was_calculated:
        print("No offline progress to award")
        return
    print(f"Away for {result.formatted_time_away}" + (" (capped)" if result.was_capped else ""))
    for resource, amount in result.earnings.items():
        print(f"  +{format_resource(resource, amount)}")
    for automation_id, runs in result.automation_triggers.items():
        if runs:
            print(f"  {automation_id}: {runs} run(s)")
    if args.apply:
        apply_offline_progress(runtime, result)
        manager.save(args.slot)
        print(f"Applied and saved slot {args.slot}")


def _run_play(args: argparse.Namespace) -> None:
    scheduler = ManualScheduler(wall_start_ms=wall_clock_ms())
    manager = open_manager(args, scheduler)
    _load_or_exit(manager, args.slot)
    runtime = manager.runtime

    for minigame_id, score in args.score:
        if not runtime.report_score(minigame_id, score):
            print(f"Warning: score for {minigame_id!r} was not recorded", file=sys.stderr)
    for upgrade_id in args.buy:
        result = runtime.try_purchase(upgrade_id)
        if not result.success:
            print(f"Warning: could not buy {upgrade_id}: {result.reason}", file=sys.stderr)

    engine = TickEngine(runtime, scheduler)
    engine.start()
    scheduler.advance(args.seconds * 1000)
    engine.destroy()

    manager.save(args.slot)
    print(f"Ran {format_time(args.seconds)} of play")
    print(format_status_report(runtime))
