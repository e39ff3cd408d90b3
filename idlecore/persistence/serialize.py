"""Save snapshot <-> JSON-compatible dict.

Decimals travel as canonical strings. Loading checks every field's type
before any of it reaches a ``GameState``; anything unexpected raises
``SaveFormatError``.
"""

from __future__ import annotations

import json
from typing import Any

from idlecore.automation import AutomationState
from idlecore.bignum import BigNum
from idlecore.currency import Resource
from idlecore.errors import InvalidNumberError, SaveFormatError
from idlecore.minigame import MinigameRecord
from idlecore.persistence.migrations import migrate
from idlecore.state import SAVE_VERSION, GameState


def to_dict(state: GameState) -> dict[str, Any]:
    return {
        "version": SAVE_VERSION,
        "lastSaved": state.last_saved,
        "lastPlayed": state.last_played,
        "playerName": state.player_name,
        "resources": {r.value: str(state.ledger.get(r)) for r in Resource},
        "minigames": {
            mid: {
                "unlocked": rec.unlocked,
                "topScores": [str(s) for s in rec.top_scores],
                "playCount": rec.play_count,
                "upgrades": dict(rec.upgrades),
            }
            for mid, rec in state.minigames.items()
        },
        "upgrades": dict(state.upgrades),
        "automations": {
            aid: {"enabled": auto.enabled, "lastTriggered": auto.last_triggered}
            for aid, auto in state.automations.items()
        },
        "settings": {
            "offlineProgressEnabled": state.settings.offline_progress_enabled,
        },
        "stats": {
            "totalPlayTime": state.stats.total_play_time_ms,
            "totalOfflineTime": state.stats.total_offline_time_ms,
            "totalResourcesEarned": {
                r.value: str(state.ledger.lifetime(r)) for r in Resource
            },
        },
    }


def from_dict(data: Any) -> GameState:
    """Validate, migrate and build a GameState. Raises SaveFormatError."""
    if not isinstance(data, dict):
        raise SaveFormatError("save must be an object")
    data = migrate(data)

    state = GameState()
    state.version = SAVE_VERSION
    state.last_saved = _number(data, "lastSaved")
    state.last_played = _number(data, "lastPlayed")
    state.player_name = _string(data, "playerName")

    resources = _object(data, "resources")
    stats = _object(data, "stats")
    earned = _object(stats, "totalResourcesEarned", "stats.")
    for r in Resource:
        current = _decimal(resources, r.value, "resources.")
        lifetime = (
            _decimal(earned, r.value, "stats.totalResourcesEarned.")
            if r.value in earned
            else current
        )
        state.ledger.restore(r, current, lifetime)

    for mid, raw in _object(data, "minigames").items():
        path = f"minigames.{mid}."
        if not isinstance(raw, dict):
            raise SaveFormatError(f"{path[:-1]} must be an object")
        scores = raw.get("topScores")
        if not isinstance(scores, list):
            raise SaveFormatError(f"{path}topScores must be a list")
        top = [_parse_decimal(s, f"{path}topScores") for s in scores]
        state.minigames[mid] = MinigameRecord(
            unlocked=_bool(raw, "unlocked", path),
            top_scores=sorted(top, reverse=True),
            play_count=_int(raw, "playCount", path),
            upgrades=_levels(_object(raw, "upgrades", path), f"{path}upgrades."),
        )

    state.upgrades = _levels(_object(data, "upgrades"), "upgrades.")

    for aid, raw in _object(data, "automations").items():
        path = f"automations.{aid}."
        if not isinstance(raw, dict):
            raise SaveFormatError(f"{path[:-1]} must be an object")
        state.automations[aid] = AutomationState(
            enabled=_bool(raw, "enabled", path),
            last_triggered=_number(raw, "lastTriggered", path),
        )

    settings = _object(data, "settings")
    state.settings.offline_progress_enabled = _bool(
        settings, "offlineProgressEnabled", "settings."
    )
    state.stats.total_play_time_ms = _number(stats, "totalPlayTime", "stats.")
    state.stats.total_offline_time_ms = _number(stats, "totalOfflineTime", "stats.")
    return state


def dumps(state: GameState) -> str:
    return json.dumps(to_dict(state), separators=(",", ":"))


def loads(text: str) -> GameState:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise SaveFormatError(f"save is not valid JSON: {exc}") from exc
    return from_dict(data)


# ── Field checks ─────────────────────────────────────────────────────


def _object(obj: dict, key: str, path: str = "") -> dict:
    value = obj.get(key)
    if not isinstance(value, dict):
        raise SaveFormatError(f"{path}{key} must be an object")
    return value


def _string(obj: dict, key: str, path: str = "") -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise SaveFormatError(f"{path}{key} must be a string")
    return value


def _bool(obj: dict, key: str, path: str = "") -> bool:
    value = obj.get(key)
    if not isinstance(value, bool):
        raise SaveFormatError(f"{path}{key} must be a boolean")
    return value


def _number(obj: dict, key: str, path: str = "") -> float:
    value = obj.get(key)
    # bool is an int subclass; JSON true/false must not pass as numbers.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SaveFormatError(f"{path}{key} must be a number")
    try:
        as_float = float(value)
    except OverflowError:
        raise SaveFormatError(f"{path}{key} is out of range") from None
    if as_float != as_float or as_float in (float("inf"), float("-inf")) or as_float < 0:
        raise SaveFormatError(f"{path}{key} must be a finite non-negative number")
    return value


def _int(obj: dict, key: str, path: str = "") -> int:
    value = _number(obj, key, path)
    if isinstance(value, float):
        if not value.is_integer():
            raise SaveFormatError(f"{path}{key} must be a whole number")
        value = int(value)
    return value


def _levels(obj: dict, path: str) -> dict[str, int]:
    return {key: _int(obj, key, path) for key in obj}


def _decimal(obj: dict, key: str, path: str = "") -> BigNum:
    value = obj.get(key)
    return _parse_decimal(value, f"{path}{key}")


def _parse_decimal(value: Any, where: str) -> BigNum:
    if not isinstance(value, str):
        raise SaveFormatError(f"{where} must be a decimal string")
    try:
        n = BigNum(value)
    except InvalidNumberError as exc:
        raise SaveFormatError(f"{where} is not a valid number: {value!r}") from exc
    if n.is_negative():
        raise SaveFormatError(f"{where} must not be negative")
    return n
