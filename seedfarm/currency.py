from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from seedfarm.numeric import ZERO


@dataclass
class ResourceState:
    """Balance of the terminal resource (seeds)."""

    current: Decimal = field(default_factory=lambda: ZERO)
    total_earned: Decimal = field(default_factory=lambda: ZERO)

    def add(self, amount: Decimal) -> None:
        self.current += amount
        if amount > 0:
            self.total_earned += amount

    def try_spend(self, amount: Decimal) -> bool:
        """Debit *amount* if affordable. Returns False and changes nothing otherwise."""
        if self.current < amount:
            return False
        self.current -= amount
        return True

    def reset(self, starting: Decimal) -> None:
        self.current = starting
        self.total_earned = starting
