from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterator

from seedfarm.context import EffectContext
from seedfarm.currency import ResourceState
from seedfarm.effect import EffectLayer
from seedfarm.numeric import D, DecimalLike, ONE, floor, power
from seedfarm.upgrade import UpgradeDef
from seedfarm.views import ActiveUpgrade, CounterView, UpgradeSource

logger = logging.getLogger(__name__)


class LevelingMode(Enum):
    STEPS = "steps"
    PURCHASES = "purchases"


@dataclass
class MachineDef:
    """Static definition of an automation unit.

    ``base_requirement`` is the amount (steps or purchases) needed for the
    first level; by-step units multiply it by ``scaling_factor`` for every
    level already gained. A unit without ``unlock_cost`` starts unlocked.
    """

    id: int
    name: str = ""
    description: str = ""
    leveling: LevelingMode = LevelingMode.STEPS
    base_requirement: DecimalLike = 10
    scaling_factor: DecimalLike = 1
    unlock_cost: DecimalLike | None = None
    upgrades: list[UpgradeDef] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"Machine {self.id}"

    def get_upgrade(self, upgrade_id: int) -> UpgradeDef | None:
        for u in self.upgrades:
            if u.id == upgrade_id:
                return u
        return None


@dataclass
class MachineState:
    """Mutable runtime state for an automation unit."""

    level: int = 1
    points: int = 0
    progress: int = 0
    unlocked: bool = False
    upgrade_levels: dict[int, int] = field(default_factory=dict)

    @classmethod
    def initial(cls, mdef: MachineDef) -> MachineState:
        return cls(
            unlocked=mdef.unlock_cost is None,
            upgrade_levels={u.id: 0 for u in mdef.upgrades},
        )


class AutomationLedger(UpgradeSource):
    """Levels automation units and sells their upgrades for points."""

    def __init__(
        self,
        machines: list[MachineDef],
        wallet: ResourceState,
        counter: CounterView,
        min_requirement_multiplier: DecimalLike = "0.1",
    ) -> None:
        self.definitions = sorted(machines, key=lambda m: m.id)
        self._by_id = {m.id: m for m in self.definitions}
        self.wallet = wallet
        self.counter = counter
        self.min_requirement_multiplier = D(min_requirement_multiplier)
        self.states: dict[int, MachineState] = {
            m.id: MachineState.initial(m) for m in self.definitions
        }
        self.auto_buy_enabled: dict[int, bool] = {}
        self._auto_buy_rates: dict[int, int] = {}
        self._reductions: dict[int, Decimal] = {}

    # ── Queries ──────────────────────────────────────────────────────

    def definition(self, unit_id: int) -> MachineDef | None:
        return self._by_id.get(unit_id)

    def requirement_reduction(self, unit_id: int) -> Decimal:
        """Prestige-sourced multiplier on this unit's requirement, clamped to its floor."""
        r = self._reductions.get(unit_id, ONE)
        return min(ONE, max(self.min_requirement_multiplier, r))

    def required_for_next_level(self, unit_id: int) -> Decimal:
        """Steps needed at the current level, or purchases needed per level."""
        mdef = self._by_id[unit_id]
        ms = self.states[unit_id]
        if mdef.leveling is LevelingMode.PURCHASES:
            nominal = D(mdef.base_requirement)
        else:
            nominal = floor(D(mdef.base_requirement) * power(mdef.scaling_factor, ms.level - 1))
        reduction = self.requirement_reduction(unit_id)
        if reduction < ONE:
            return max(ONE, floor(nominal * reduction))
        return max(ONE, nominal)

    def progress_to_next_level(self, unit_id: int) -> float:
        mdef = self._by_id[unit_id]
        ms = self.states[unit_id]
        required = self.required_for_next_level(unit_id)
        if mdef.leveling is LevelingMode.PURCHASES:
            done = D(self.counter.total_purchases()) - required * (ms.level - 1)
        else:
            done = D(ms.progress)
        return min(1.0, max(0.0, float(done / required)))

    def is_upgrade_unlocked(self, unit_id: int, upgrade_id: int) -> bool:
        mdef = self._by_id.get(unit_id)
        if mdef is None:
            return False
        udef = mdef.get_upgrade(upgrade_id)
        if udef is None:
            return False
        return udef.is_unlocked(self.states[unit_id].upgrade_levels)

    def auto_purchases(self) -> list[tuple[int, int]]:
        """(producer id, purchases per step) for every enabled auto-buyer."""
        return [
            (pid, rate)
            for pid, rate in sorted(self._auto_buy_rates.items())
            if rate > 0 and self.auto_buy_enabled.get(pid, True)
        ]

    def active_upgrades(self) -> Iterator[ActiveUpgrade]:
        for mdef in self.definitions:
            ms = self.states[mdef.id]
            for udef in mdef.upgrades:
                level = ms.upgrade_levels.get(udef.id, 0)
                if level > 0:
                    yield ActiveUpgrade(
                        order=(0, mdef.id, udef.id),
                        definition=udef,
                        level=level,
                        owner_level=ms.level,
                        layer=EffectLayer.MACHINE,
                    )

    # ── Mutations ────────────────────────────────────────────────────

    def apply_context(self, context: EffectContext) -> None:
        self._reductions = dict(context.requirement_reductions)
        self._auto_buy_rates = dict(context.auto_buy_rates)

    def set_auto_buyer_enabled(self, producer_id: int, enabled: bool) -> None:
        self.auto_buy_enabled[producer_id] = bool(enabled)

    def settle_steps(self) -> int:
        """Advance every unlocked by-step unit by one step. Returns levels gained."""
        gained = 0
        for mdef in self.definitions:
            ms = self.states[mdef.id]
            if not ms.unlocked or mdef.leveling is not LevelingMode.STEPS:
                continue
            ms.progress += 1
            if ms.progress >= self.required_for_next_level(mdef.id):
                ms.progress = 0
                ms.level += 1
                ms.points += 1
                gained += 1
                logger.debug("%s reached level %d", mdef.name, ms.level)
        return gained

    def sync_purchases(self) -> int:
        """Re-derive by-purchase levels from the global counter. Returns levels gained."""
        gained = 0
        for mdef in self.definitions:
            ms = self.states[mdef.id]
            if ms.unlocked and mdef.leveling is LevelingMode.PURCHASES:
                gained += self._sync_unit(mdef, ms)
        return gained

    def _sync_unit(self, mdef: MachineDef, ms: MachineState) -> int:
        per_level = self.required_for_next_level(mdef.id)
        new_level = int(floor(D(self.counter.total_purchases()) / per_level)) + 1
        if new_level <= ms.level:
            return 0
        gained = new_level - ms.level
        ms.points += gained
        ms.level = new_level
        logger.debug("%s reached level %d (+%d points)", mdef.name, ms.level, gained)
        return gained

    def unlock(self, unit_id: int) -> bool:
        """Pay the unlock cost. By-purchase units back-fill levels already earned."""
        mdef = self._by_id.get(unit_id)
        if mdef is None or mdef.unlock_cost is None:
            return False
        ms = self.states[unit_id]
        if ms.unlocked:
            return False
        if not self.wallet.try_spend(D(mdef.unlock_cost)):
            return False
        ms.unlocked = True
        if mdef.leveling is LevelingMode.PURCHASES:
            self._sync_unit(mdef, ms)
        logger.debug("Unlocked %s at level %d", mdef.name, ms.level)
        return True

    def buy_upgrade(self, unit_id: int, upgrade_id: int) -> bool:
        """Spend one point on *upgrade_id*. Returns False when not allowed."""
        mdef = self._by_id.get(unit_id)
        if mdef is None:
            return False
        udef = mdef.get_upgrade(upgrade_id)
        if udef is None:
            return False
        ms = self.states[unit_id]
        level = ms.upgrade_levels.get(upgrade_id, 0)
        if udef.is_maxed(level):
            return False
        if not udef.is_unlocked(ms.upgrade_levels):
            return False
        if ms.points < 1:
            return False
        ms.points -= 1
        ms.upgrade_levels[upgrade_id] = level + 1
        return True

    def reset(self) -> None:
        """Back to the configured locked / level-1 state with no upgrades."""
        self.states = {m.id: MachineState.initial(m) for m in self.definitions}

    def restore(self, states: dict[int, MachineState], enabled: dict[int, bool]) -> None:
        for uid, ms in states.items():
            if uid in self.states:
                base = MachineState.initial(self._by_id[uid])
                base.upgrade_levels.update(
                    {k: v for k, v in ms.upgrade_levels.items() if k in base.upgrade_levels}
                )
                ms.upgrade_levels = base.upgrade_levels
                self.states[uid] = ms
        self.auto_buy_enabled = dict(enabled)
