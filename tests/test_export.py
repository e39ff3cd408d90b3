"""Tests for export module."""
import base64
import json

import pytest

from idlecore.catalog import define_game
from idlecore.currency import Resource
from idlecore.errors import SaveFormatError
from idlecore.export import export_json, export_save, import_json, import_save
from idlecore.runtime import GameRuntime


def test_export_string_is_base64_json():
    runtime = GameRuntime(define_game())
    runtime.state.player_name = "neo"
    text = export_save(runtime.state)
    data = json.loads(base64.b64decode(text))
    assert data["playerName"] == "neo"


def test_import_restores_state():
    runtime = GameRuntime(define_game())
    runtime.state.ledger.add(Resource.TECHNIQUE, 7)
    state = import_save(export_save(runtime.state))
    assert state.ledger.get(Resource.TECHNIQUE) == 7


def test_import_tolerates_surrounding_whitespace():
    text = export_save(GameRuntime(define_game()).state)
    assert import_save(f"  {text}\n").player_name == ""


@pytest.mark.parametrize("text", ["not base64!", base64.b64encode(b"{}").decode(), "é"])
def test_import_rejects_bad_strings(text):
    with pytest.raises(SaveFormatError):
        import_save(text)


def test_json_file_round_trip(tmp_path):
    runtime = GameRuntime(define_game())
    runtime.report_score("code-breaker", 250)
    path = tmp_path / "save.json"
    export_json(runtime.state, path)
    assert json.loads(path.read_text())["minigames"]["code-breaker"]["topScores"] == ["250"]
    assert import_json(path).minigames["code-breaker"].top_scores == [250]


def test_import_json_rejects_garbage(tmp_path):
    path = tmp_path / "save.json"
    path.write_text("nope")
    with pytest.raises(SaveFormatError):
        import_json(path)
