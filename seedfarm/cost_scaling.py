from __future__ import annotations

from decimal import Decimal
from typing import Callable

from seedfarm.numeric import D, DecimalLike, ONE, ZERO, power


class CostScaling:
    """Determines how a price changes with purchase count."""

    def __init__(self, fn: Callable[[Decimal, int], Decimal]) -> None:
        self._fn = fn

    def compute(self, base_cost: DecimalLike, current_count: int) -> Decimal:
        return self._fn(D(base_cost), current_count)

    @classmethod
    def fixed(cls) -> CostScaling:
        """Cost never changes."""
        return cls(lambda base, _count: base)

    @classmethod
    def exponential(cls, growth_rate: DecimalLike = "1.15") -> CostScaling:
        """Cost = base * growth_rate^count."""
        gr = D(growth_rate)

        def _compute(base: Decimal, count: int) -> Decimal:
            return base * power(gr, count)

        return cls(_compute)

    @classmethod
    def threshold(
        cls,
        multiplier: DecimalLike,
        base: DecimalLike,
        linear: DecimalLike,
        threshold: int,
        divisor: DecimalLike,
    ) -> CostScaling:
        """Escalating producer curve.

        For ``n == 0`` the flat base cost is charged. Otherwise::

            scaling  = 1 + max(n - threshold, 0) / divisor
            cost     = multiplier * (base + linear * n) ^ (n * scaling)

        so past ``threshold`` purchases the exponent itself starts to grow.
        """
        mult = D(multiplier)
        cb = D(base)
        cl = D(linear)
        div = D(divisor)

        def _compute(base_cost: Decimal, count: int) -> Decimal:
            if count == 0:
                return base_cost
            n = D(count)
            scaling = ONE + max(n - threshold, ZERO) / div
            return mult * power(cb + cl * n, n * scaling)

        return cls(_compute)

    @classmethod
    def custom(cls, fn: Callable[[Decimal, int], Decimal]) -> CostScaling:
        """Arbitrary cost function."""
        return cls(fn)
