from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from idlecore.state import GameState


class Subsystem(ABC):
    """Extension point for mechanics that run on the tick loop."""

    @abstractmethod
    def tick(self, state: GameState, now_ms: float) -> None:
        """Advance against wall-clock time *now_ms* (epoch milliseconds)."""
