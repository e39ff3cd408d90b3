import pytest


def _legacy_save(version: str = "1.0.0") -> dict:
    """A save as written by the oldest supported release."""
    return {
        "version": version,
        "lastSaved": 1_000,
        "lastPlayed": 1_000,
        "resources": {"money": "500", "technique": "3", "renown": "0"},
        "minigames": {
            "code-breaker": {
                "unlocked": True,
                "topScores": ["100", "200"],
                "playCount": 2,
                "upgrades": {},
            }
        },
        "upgrades": {
            "equipment": {"auto-typer": 2},
            "apartment": {"coffee-machine": True, "plant": False},
        },
        "settings": {"offlineProgressEnabled": True},
        "stats": {
            "totalPlayTime": 5_000,
            "totalResourcesEarned": {"money": "800", "technique": "3", "renown": "0"},
        },
    }


@pytest.fixture
def legacy_save():
    return _legacy_save
