from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterator

from seedfarm.context import EffectContext
from seedfarm.currency import ResourceState
from seedfarm.effect import EffectLayer
from seedfarm.numeric import D, DecimalLike, ONE, ZERO, ceil, floor, power
from seedfarm.upgrade import UpgradeDef
from seedfarm.views import ActiveUpgrade, UpgradeSource

logger = logging.getLogger(__name__)

# (last season offset covered, milestones added per season in that segment)
_COMPLETION_SEGMENTS: tuple[tuple[int | None, Decimal], ...] = (
    (100, Decimal("0.95")),
    (150, Decimal("1.35")),
    (200, Decimal("1.95")),
    (250, Decimal("2.55")),
    (300, Decimal("3.25")),
    (None, Decimal("4.05")),
)
_COMPLETION_BASE = Decimal(3)
_SEASON_GROWTH = Decimal(2)
_MILESTONE_GROWTH = Decimal("1.5")


def season_completion_requirement(season: int) -> int:
    """Milestones needed in *season* before prestige is allowed."""
    offset = max(0, season - 1)
    required = _COMPLETION_BASE
    lower = 0
    for upper, per_season in _COMPLETION_SEGMENTS:
        span = offset - lower if upper is None else min(offset, upper) - lower
        if span <= 0:
            break
        required += span * per_season
        if upper is None:
            break
        lower = upper
    return int(ceil(required))


@dataclass(frozen=True)
class MilestoneRecord:
    """One completed milestone (a harvest)."""

    id: int
    requirement: Decimal
    points: Decimal
    season: int


@dataclass
class MilestoneState:
    season: int = 1
    prestige_points: Decimal = field(default_factory=lambda: ZERO)
    total_prestige_points: Decimal = field(default_factory=lambda: ZERO)
    total_completed: int = 0
    completed_this_season: int = 0
    season_counter: int = 0
    history: list[MilestoneRecord] = field(default_factory=list)
    upgrade_levels: dict[int, int] = field(default_factory=dict)


class MilestoneLedger(UpgradeSource):
    """Tracks harvests, seasons and the meta-upgrades bought with prestige points."""

    def __init__(
        self,
        upgrades: list[UpgradeDef],
        wallet: ResourceState,
        base_requirement: DecimalLike = 1000,
        base_points: DecimalLike = 1,
        min_requirement_multiplier: DecimalLike = "0.03125",
        history_limit: int | None = None,
    ) -> None:
        self.definitions = sorted(upgrades, key=lambda u: u.id)
        self._by_id = {u.id: u for u in self.definitions}
        self.wallet = wallet
        self.base_requirement = D(base_requirement)
        self.base_points = D(base_points)
        self.min_requirement_multiplier = D(min_requirement_multiplier)
        self.history_limit = history_limit
        self.state = MilestoneState(upgrade_levels={u.id: 0 for u in self.definitions})
        self._requirement_multiplier = ONE
        self._points_bonus = ZERO
        self._points_multiplier = ONE
        self._starting_resource = ZERO

    # ── Queries ──────────────────────────────────────────────────────

    def definition(self, upgrade_id: int) -> UpgradeDef | None:
        return self._by_id.get(upgrade_id)

    def level(self, upgrade_id: int) -> int:
        return self.state.upgrade_levels.get(upgrade_id, 0)

    @property
    def starting_resource(self) -> Decimal:
        return self._starting_resource

    def requirement_multiplier(self) -> Decimal:
        return max(self.min_requirement_multiplier, self._requirement_multiplier)

    def requirement(self) -> Decimal:
        """Resource needed for the next milestone of the current season."""
        s = self.state
        season_base = self.base_requirement * power(_SEASON_GROWTH, s.season - 1)
        return (
            season_base
            * power(_MILESTONE_GROWTH, s.season_counter)
            * self.requirement_multiplier()
        )

    def points_per_milestone(self) -> Decimal:
        return floor(self.base_points * (ONE + self._points_bonus) * self._points_multiplier)

    def completion_requirement(self) -> int:
        return season_completion_requirement(self.state.season)

    def can_prestige(self) -> bool:
        return self.state.completed_this_season >= self.completion_requirement()

    def pending_points(self) -> Decimal:
        """Points a prestige right now would award."""
        return self.state.completed_this_season * self.points_per_milestone()

    def upgrade_cost(self, upgrade_id: int) -> Decimal | None:
        udef = self._by_id.get(upgrade_id)
        if udef is None:
            return None
        return udef.cost(self.level(upgrade_id))

    def is_upgrade_unlocked(self, upgrade_id: int) -> bool:
        udef = self._by_id.get(upgrade_id)
        if udef is None:
            return False
        return udef.is_unlocked(self.state.upgrade_levels)

    def active_upgrades(self) -> Iterator[ActiveUpgrade]:
        for udef in self.definitions:
            level = self.level(udef.id)
            if level > 0:
                yield ActiveUpgrade(
                    order=(1, 0, udef.id),
                    definition=udef,
                    level=level,
                    owner_level=1,
                    layer=EffectLayer.PRESTIGE,
                )

    # ── Mutations ────────────────────────────────────────────────────

    def apply_context(self, context: EffectContext) -> None:
        self._requirement_multiplier = context.milestone_requirement_multiplier
        self._points_bonus = context.milestone_points_bonus
        self._points_multiplier = context.milestone_points_multiplier
        self._starting_resource = context.starting_resource

    def settle(self) -> MilestoneRecord | None:
        """Complete at most one milestone if the balance has reached the requirement."""
        requirement = self.requirement()
        if self.wallet.current < requirement:
            return None
        s = self.state
        record = MilestoneRecord(
            id=s.total_completed,
            requirement=requirement,
            points=self.points_per_milestone(),
            season=s.season,
        )
        s.history.append(record)
        if self.history_limit is not None and len(s.history) > self.history_limit:
            del s.history[: len(s.history) - self.history_limit]
        s.total_completed += 1
        s.completed_this_season += 1
        s.season_counter += 1
        logger.debug(
            "Milestone %d completed in season %d (requirement %s)",
            record.id, record.season, requirement,
        )
        return record

    def buy_upgrade(self, upgrade_id: int) -> bool:
        """Spend prestige points on the next level of *upgrade_id*."""
        udef = self._by_id.get(upgrade_id)
        if udef is None:
            return False
        level = self.level(upgrade_id)
        if udef.is_maxed(level):
            return False
        if not udef.is_unlocked(self.state.upgrade_levels):
            return False
        cost = udef.cost(level)
        if self.state.prestige_points < cost:
            return False
        self.state.prestige_points -= cost
        self.state.upgrade_levels[upgrade_id] = level + 1
        return True

    def close_season(self) -> Decimal:
        """Award the season's points and move to the next season.

        Per-season counters and history are cleared; lifetime totals and
        meta-upgrade levels are kept.
        """
        s = self.state
        awarded = self.pending_points()
        s.prestige_points += awarded
        s.total_prestige_points += awarded
        s.season += 1
        s.completed_this_season = 0
        s.season_counter = 0
        s.history = []
        return awarded
