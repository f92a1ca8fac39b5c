from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from seedfarm.cost_scaling import CostScaling
from seedfarm.effect import EffectDef
from seedfarm.numeric import D, DecimalLike, floor
from seedfarm.requirement import LevelMap, Requirement


@dataclass
class UpgradeDef:
    """A levelled purchase carrying one or more effects.

    Machine upgrades always cost one machine point; milestone (meta)
    upgrades cost prestige points priced by ``cost_scaling``.
    """

    id: int
    name: str = ""
    description: str = ""
    effects: list[EffectDef] = field(default_factory=list)
    max_level: int | None = None
    unlock: Requirement | None = None
    base_cost: DecimalLike = 1
    cost_scaling: CostScaling = field(default_factory=CostScaling.fixed)
    category: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"Upgrade {self.id}"

    def is_maxed(self, level: int) -> bool:
        return self.max_level is not None and level >= self.max_level

    def is_unlocked(self, sibling_levels: LevelMap) -> bool:
        if self.unlock is None:
            return True
        return self.unlock.evaluate(sibling_levels)

    def cost(self, level: int) -> Decimal:
        """Price of the next level when already at *level*."""
        return floor(self.cost_scaling.compute(D(self.base_cost), level))

    def effect_display(self, level: int, owner_level: int = 1) -> str:
        if level <= 0:
            return "No effect yet"
        return ", ".join(e.description(level, owner_level) for e in self.effects)
