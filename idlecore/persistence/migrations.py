"""Upgrade raw save dicts from older versions to the current layout.

Each step takes a dict in one version and returns it in the next; steps run
in order until the data reaches ``SAVE_VERSION``.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable

from idlecore.errors import SaveFormatError
from idlecore.state import SAVE_VERSION

logger = logging.getLogger(__name__)

Migration = Callable[[dict[str, Any]], dict[str, Any]]


def _add_player_name_and_offline_time(data: dict[str, Any]) -> dict[str, Any]:
    data.setdefault("playerName", "")
    stats = data.get("stats")
    if isinstance(stats, dict):
        stats.setdefault("totalOfflineTime", 0)
    return data


def _add_automations(data: dict[str, Any]) -> dict[str, Any]:
    data.setdefault("automations", {})
    return data


def _flatten_upgrades(data: dict[str, Any]) -> dict[str, Any]:
    upgrades = data.get("upgrades")
    if not isinstance(upgrades, dict):
        raise SaveFormatError("upgrades must be an object")
    equipment = upgrades.get("equipment", {})
    apartment = upgrades.get("apartment", {})
    if not isinstance(equipment, dict) or not isinstance(apartment, dict):
        raise SaveFormatError("legacy upgrades.equipment and upgrades.apartment must be objects")

    flat: dict[str, Any] = {}
    for upgrade_id, level in equipment.items():
        flat[upgrade_id] = level
    for upgrade_id, owned in apartment.items():
        if not isinstance(owned, bool):
            raise SaveFormatError(f"upgrades.apartment.{upgrade_id} must be a boolean")
        flat[upgrade_id] = 1 if owned else 0
    data["upgrades"] = flat
    return data


# version -> (next version, step)
MIGRATIONS: dict[str, tuple[str, Migration]] = {
    "1.0.0": ("2.0.0", _add_player_name_and_offline_time),
    "1.1.0": ("2.0.0", _add_player_name_and_offline_time),
    "2.0.0": ("2.1.0", _add_automations),
    "2.1.0": ("3.0.0", _flatten_upgrades),
}


def migrate(data: dict[str, Any]) -> dict[str, Any]:
    """Return a migrated copy of *data*; the input is left untouched."""
    version = data.get("version")
    if not isinstance(version, str):
        raise SaveFormatError("version must be a string")
    if version == SAVE_VERSION:
        return data

    migrated = copy.deepcopy(data)
    while version != SAVE_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            raise SaveFormatError(f"Unsupported save version: {version!r}")
        next_version, fn = step
        migrated = fn(migrated)
        migrated["version"] = next_version
        logger.debug("Migrated save from %s to %s", version, next_version)
        version = next_version
    return migrated
