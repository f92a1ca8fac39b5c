from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, auto
from typing import Callable

from seedfarm.context import EffectContext
from seedfarm.numeric import D, DecimalLike, ONE, power


class EffectType(Enum):
    PRODUCER_MULT = auto()
    PRODUCER_COST_DIVISOR = auto()
    AUTO_BUY = auto()
    UNIT_REQUIREMENT_MULT = auto()
    MILESTONE_REQUIREMENT_MULT = auto()
    MILESTONE_POINTS_ADD = auto()
    MILESTONE_POINTS_MULT = auto()
    STARTING_RESOURCE = auto()
    STEP_DURATION_REDUCTION = auto()
    STEP_DURATION_MULT = auto()


class EffectLayer(Enum):
    """Which ledger an upgrade belongs to."""

    MACHINE = auto()
    PRESTIGE = auto()


# Effect kinds whose target is a producer id / an automation unit id.
PRODUCER_TARGETED = frozenset(
    {EffectType.PRODUCER_MULT, EffectType.PRODUCER_COST_DIVISOR, EffectType.AUTO_BUY}
)
UNIT_TARGETED = frozenset({EffectType.UNIT_REQUIREMENT_MULT})

# (upgrade level, owner level) -> magnitude
Magnitude = Callable[[int, int], Decimal]


@dataclass(frozen=True)
class EffectDef:
    """One effect carried by an upgrade.

    ``value`` maps the upgrade level and the owning machine's level (1 for
    meta-upgrades) to a magnitude; ``apply`` folds that magnitude into the
    context according to the effect type. Every kind composes onto what is
    already there, so re-running a full recompute never double counts.
    """

    type: EffectType
    value: Magnitude
    target: int | None = None
    describe: Callable[[int, int], str] | None = None

    def magnitude(self, level: int, owner_level: int = 1) -> Decimal:
        return D(self.value(level, owner_level))

    def description(self, level: int, owner_level: int = 1) -> str:
        if self.describe is not None:
            return self.describe(level, owner_level)
        return f"{self.type.name.lower()} x{self.magnitude(level, owner_level)}"

    def apply(
        self,
        level: int,
        context: EffectContext,
        owner_level: int = 1,
        layer: EffectLayer = EffectLayer.PRESTIGE,
    ) -> None:
        if level <= 0:
            return
        value = self.magnitude(level, owner_level)
        t = self.type
        if t is EffectType.PRODUCER_MULT:
            layer_map = (
                context.machine_multipliers
                if layer is EffectLayer.MACHINE
                else context.prestige_multipliers
            )
            layer_map[self.target] = layer_map.get(self.target, ONE) * value
        elif t is EffectType.PRODUCER_COST_DIVISOR:
            context.cost_divisors[self.target] = context.cost_divisors.get(self.target, ONE) * value
        elif t is EffectType.AUTO_BUY:
            context.auto_buy_rates[self.target] = context.auto_buy_rates.get(self.target, 0) + int(value)
        elif t is EffectType.UNIT_REQUIREMENT_MULT:
            context.requirement_reductions[self.target] = (
                context.requirement_reductions.get(self.target, ONE) * value
            )
        elif t is EffectType.MILESTONE_REQUIREMENT_MULT:
            context.milestone_requirement_multiplier *= value
        elif t is EffectType.MILESTONE_POINTS_ADD:
            context.milestone_points_bonus += value
        elif t is EffectType.MILESTONE_POINTS_MULT:
            context.milestone_points_multiplier *= value
        elif t is EffectType.STARTING_RESOURCE:
            context.starting_resource += value
        elif t is EffectType.STEP_DURATION_REDUCTION:
            context.step_duration_reduction += float(value)
        elif t is EffectType.STEP_DURATION_MULT:
            context.step_duration_multiplier *= float(value)
        else:
            raise AssertionError(f"Unhandled effect type: {t}")


class Effect:
    """Convenience constructors for common effect patterns."""

    @staticmethod
    def producer_boost(
        producer_id: int,
        per_level: DecimalLike,
        per_owner_level: bool = True,
        label: str = "",
    ) -> EffectDef:
        """Multiplier ``1 + level * per_level`` (times the machine level if scaled)."""
        pct = D(per_level)
        name = label or f"producer {producer_id}"

        def _value(level: int, owner_level: int) -> Decimal:
            scale = owner_level if per_owner_level else 1
            return ONE + level * pct * scale

        def _describe(level: int, owner_level: int) -> str:
            bonus = (_value(level, owner_level) - ONE) * 100
            return f"+{bonus.normalize():f}% to {name}"

        return EffectDef(EffectType.PRODUCER_MULT, _value, producer_id, _describe)

    @staticmethod
    def cost_reduction(producer_id: int, per_level: DecimalLike, label: str = "") -> EffectDef:
        """Costs of *producer_id* are divided by ``(1 + per_level)^level``."""
        step = ONE + D(per_level)
        name = label or f"producer {producer_id}"

        def _value(level: int, _owner: int) -> Decimal:
            return power(step, level)

        return EffectDef(
            EffectType.PRODUCER_COST_DIVISOR,
            _value,
            producer_id,
            lambda level, o: f"{name} costs divided by {_value(level, o):.4g}",
        )

    @staticmethod
    def auto_buy(producer_id: int, label: str = "") -> EffectDef:
        """Buy *producer_id* once per level every step."""
        name = label or f"producer {producer_id}"
        return EffectDef(
            EffectType.AUTO_BUY,
            lambda level, _o: D(level),
            producer_id,
            lambda level, _o: f"Auto-buys {level} {name} per step",
        )

    @staticmethod
    def requirement_reduction(unit_id: int, per_level: DecimalLike, label: str = "") -> EffectDef:
        """Leveling requirement of *unit_id* shrinks by ``per_level`` per level."""
        pct = D(per_level)
        name = label or f"machine {unit_id}"

        def _value(level: int, _owner: int) -> Decimal:
            return ONE - level * pct

        return EffectDef(
            EffectType.UNIT_REQUIREMENT_MULT,
            _value,
            unit_id,
            lambda level, o: f"-{level * pct * 100:f}% {name} level requirement",
        )

    @staticmethod
    def static(type: EffectType, value: DecimalLike, target: int | None = None) -> EffectDef:
        """Constant magnitude regardless of level."""
        v = D(value)
        return EffectDef(type=type, value=lambda _level, _o: v, target=target)

    @staticmethod
    def custom(
        type: EffectType,
        fn: Callable[[int, int], DecimalLike],
        target: int | None = None,
        describe: Callable[[int, int], str] | None = None,
    ) -> EffectDef:
        """Arbitrary magnitude function of (level, owner level)."""
        return EffectDef(type=type, value=lambda level, o: D(fn(level, o)), target=target, describe=describe)
