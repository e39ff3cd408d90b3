from __future__ import annotations

import base64
import binascii
import json
from pathlib import Path

from idlecore.errors import SaveFormatError
from idlecore.persistence.serialize import dumps, from_dict, loads, to_dict
from idlecore.state import GameState


def export_save(state: GameState) -> str:
    """Portable save string: base64 of the save JSON."""
    return base64.b64encode(dumps(state).encode("utf-8")).decode("ascii")


def import_save(text: str) -> GameState:
    """Decode an exported save string. Raises SaveFormatError."""
    try:
        raw = base64.b64decode(text.strip().encode("ascii"), validate=True)
        decoded = raw.decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise SaveFormatError(f"export string is not valid base64: {exc}") from exc
    return loads(decoded)


def export_json(state: GameState, path: str | Path) -> None:
    """Write the save as indented JSON, for inspection."""
    with open(str(path), "w") as f:
        json.dump(to_dict(state), f, indent=2)


def import_json(path: str | Path) -> GameState:
    with open(str(path)) as f:
        try:
            data = json.load(f)
        except ValueError as exc:
            raise SaveFormatError(f"{path} is not valid JSON: {exc}") from exc
    return from_dict(data)
