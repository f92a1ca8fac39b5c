from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from seedfarm.numeric import ZERO


@dataclass(frozen=True)
class PrestigeResult:
    """Outcome of a prestige attempt. Truthy when the season was closed."""

    success: bool
    points_awarded: Decimal = ZERO
    season: int = 0
    reason: str = ""

    def __bool__(self) -> bool:
        return self.success
