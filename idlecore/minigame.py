from __future__ import annotations

from dataclasses import dataclass, field

from idlecore.bignum import BigNum, NumberLike
from idlecore.currency import Resource

DEFAULT_MAX_TOP_SCORES = 5


@dataclass
class MinigameDef:
    """Static definition of a minigame the economy listens to."""

    id: str
    display_name: str = ""
    primary_resource: Resource = Resource.MONEY
    unlocked_by_default: bool = True

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.id


@dataclass
class MinigameRecord:
    """Mutable per-minigame progress."""

    unlocked: bool = False
    top_scores: list[BigNum] = field(default_factory=list)
    play_count: int = 0
    upgrades: dict[str, int] = field(default_factory=dict)

    @property
    def best_score(self) -> BigNum | None:
        return self.top_scores[0] if self.top_scores else None


def insert_score(
    scores: list[BigNum],
    new_score: NumberLike,
    cap: int = DEFAULT_MAX_TOP_SCORES,
) -> list[BigNum]:
    """Return a new descending list with *new_score* inserted.

    The score goes before the first strictly smaller entry, so ties keep the
    earlier submission first. The result is truncated to *cap* entries.
    """
    score = BigNum(new_score)
    result = list(scores)
    index = len(result)
    for i, existing in enumerate(result):
        if score > existing:
            index = i
            break
    result.insert(index, score)
    return result[:cap]
