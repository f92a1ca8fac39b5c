from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from seedfarm.numeric import ONE, ZERO


@dataclass
class EffectContext:
    """Aggregate of every upgrade effect, rebuilt from scratch on each recompute.

    Producer multipliers are kept per layer so the producer ledger can
    combine them as ``machine * prestige``.
    """

    machine_multipliers: dict[int, Decimal] = field(default_factory=dict)
    prestige_multipliers: dict[int, Decimal] = field(default_factory=dict)
    cost_divisors: dict[int, Decimal] = field(default_factory=dict)
    auto_buy_rates: dict[int, int] = field(default_factory=dict)
    requirement_reductions: dict[int, Decimal] = field(default_factory=dict)
    milestone_requirement_multiplier: Decimal = ONE
    milestone_points_bonus: Decimal = ZERO
    milestone_points_multiplier: Decimal = ONE
    starting_resource: Decimal = ZERO
    step_duration_reduction: float = 0.0
    step_duration_multiplier: float = 1.0

    @classmethod
    def fresh(cls, producer_ids: Iterable[int], unit_ids: Iterable[int]) -> EffectContext:
        """Neutral context: every multiplier 1, every auto-buy rate 0."""
        producer_ids = list(producer_ids)
        return cls(
            machine_multipliers={pid: ONE for pid in producer_ids},
            prestige_multipliers={pid: ONE for pid in producer_ids},
            cost_divisors={pid: ONE for pid in producer_ids},
            auto_buy_rates={pid: 0 for pid in producer_ids},
            requirement_reductions={uid: ONE for uid in unit_ids},
        )

    def producer_multiplier(self, producer_id: int) -> Decimal:
        return self.machine_multipliers.get(producer_id, ONE) * self.prestige_multipliers.get(
            producer_id, ONE
        )

    def step_duration(self, base: float, minimum: float) -> float:
        return max(minimum, (base - self.step_duration_reduction) * self.step_duration_multiplier)
