from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from seedfarm.automation import AutomationLedger
from seedfarm.catchup import CatchUpProcessor
from seedfarm.composer import EffectComposer
from seedfarm.context import EffectContext
from seedfarm.currency import ResourceState
from seedfarm.definition import GameDefinition
from seedfarm.errors import ConfigurationError
from seedfarm.milestone import MilestoneLedger, MilestoneRecord
from seedfarm.numeric import ZERO, exact
from seedfarm.prestige import PrestigeResult
from seedfarm.producer import ProducerLedger

logger = logging.getLogger(__name__)


class GameRuntime:
    """Owns every ledger and advances the economy one step at a time."""

    def __init__(self, definition: GameDefinition) -> None:
        errors = definition.validate()
        if errors:
            raise ConfigurationError(errors)

        self.definition = definition
        cfg = definition.config
        self.wallet = ResourceState()
        self.producers = ProducerLedger(definition.producers, self.wallet)
        self.automation = AutomationLedger(
            definition.machines,
            self.wallet,
            self.producers,
            cfg.min_unit_requirement_multiplier,
        )
        self.milestones = MilestoneLedger(
            definition.milestone_upgrades,
            self.wallet,
            base_requirement=cfg.base_milestone_requirement,
            base_points=cfg.milestone_base_points,
            min_requirement_multiplier=cfg.min_milestone_requirement_multiplier,
            history_limit=cfg.history_limit,
        )
        self.composer = EffectComposer(
            [p.id for p in definition.producers],
            [m.id for m in definition.machines],
            [self.automation, self.milestones],
        )
        self.context = EffectContext()
        self.step_count = 0
        self.replaying = False
        self.recompute()

    # ── Core loop ────────────────────────────────────────────────────

    @exact
    def advance(self) -> Decimal:
        """Run one step. Returns the terminal resource produced."""
        self.step_count += 1
        if self.automation.settle_steps():
            self.recompute()
        self._run_auto_buyers()
        produced = self.producers.settle()
        self.milestones.settle()
        return produced

    def force_step(self) -> bool:
        """Manually advance one step. Rejected while a catch-up is replaying."""
        if self.replaying:
            return False
        self.advance()
        return True

    def run(self, steps: int) -> Decimal:
        """Advance *steps* steps synchronously. Returns the resource produced."""
        produced = ZERO
        for _ in range(steps):
            produced += self.advance()
        return produced

    def catch_up(self, elapsed_seconds: float, batch_size: int | None = None) -> CatchUpProcessor:
        """Prepare an offline replay covering *elapsed_seconds* of real time."""
        if batch_size is None:
            batch_size = self.definition.config.catch_up_batch_size
        return CatchUpProcessor(self, elapsed_seconds, batch_size)

    @exact
    def recompute(self) -> EffectContext:
        """Rebuild the effect context from purchased levels and push it to every ledger."""
        context = self.composer.compose()
        self.producers.apply_context(context)
        self.automation.apply_context(context)
        self.milestones.apply_context(context)
        self.context = context
        return context

    # ── Player actions ───────────────────────────────────────────────

    @exact
    def buy_producer(self, producer_id: int) -> bool:
        """Buy one unit of *producer_id*. Returns True on success."""
        return self._buy(producer_id)

    @exact
    def unlock_machine(self, unit_id: int) -> bool:
        if not self.automation.unlock(unit_id):
            return False
        self.recompute()
        return True

    @exact
    def buy_machine_upgrade(self, unit_id: int, upgrade_id: int) -> bool:
        if not self.automation.buy_upgrade(unit_id, upgrade_id):
            return False
        self.recompute()
        return True

    @exact
    def buy_milestone_upgrade(self, upgrade_id: int) -> bool:
        if not self.milestones.buy_upgrade(upgrade_id):
            return False
        self.recompute()
        return True

    def set_auto_buyer_enabled(self, producer_id: int, enabled: bool) -> bool:
        if self.producers.definition(producer_id) is None:
            return False
        self.automation.set_auto_buyer_enabled(producer_id, enabled)
        return True

    @exact
    def prestige(self) -> PrestigeResult:
        """Close the season and start the next one from a fresh run."""
        if self.replaying:
            return PrestigeResult(success=False, reason="Catch-up in progress")
        if not self.milestones.can_prestige():
            return PrestigeResult(
                success=False,
                season=self.milestones.state.season,
                reason=(
                    f"Need {self.milestones.completion_requirement()} harvests this season, "
                    f"have {self.milestones.state.completed_this_season}"
                ),
            )

        awarded = self.milestones.close_season()
        self.wallet.reset(self.milestones.starting_resource)
        self.step_count = 0
        self.producers.reset()
        self.automation.reset()
        self.recompute()
        if self.automation.sync_purchases():
            self.recompute()
        season = self.milestones.state.season
        logger.info("Prestige: +%s points, now season %d", awarded, season)
        return PrestigeResult(success=True, points_awarded=awarded, season=season)

    # ── Queries ──────────────────────────────────────────────────────

    @property
    def resource(self) -> Decimal:
        return self.wallet.current

    def total_purchases(self) -> int:
        return self.producers.total_purchases()

    @exact
    def producer_cost(self, producer_id: int) -> Decimal | None:
        if self.producers.definition(producer_id) is None:
            return None
        return self.producers.cost(producer_id)

    @exact
    def production_per_step(self) -> Decimal:
        return self.producers.production_per_step()

    @exact
    def milestone_requirement(self) -> Decimal:
        return self.milestones.requirement()

    def season_completion_requirement(self) -> int:
        return self.milestones.completion_requirement()

    def can_prestige(self) -> bool:
        return self.milestones.can_prestige()

    @exact
    def progress_to_next_level(self, unit_id: int) -> float | None:
        if self.automation.definition(unit_id) is None:
            return None
        return self.automation.progress_to_next_level(unit_id)

    def is_upgrade_unlocked(self, upgrade_id: int, unit_id: int | None = None) -> bool:
        """Unlock condition of a machine upgrade (with *unit_id*) or a meta-upgrade."""
        if unit_id is None:
            return self.milestones.is_upgrade_unlocked(upgrade_id)
        return self.automation.is_upgrade_unlocked(unit_id, upgrade_id)

    @exact
    def effect_descriptions(self) -> list[tuple[str, str]]:
        return self.composer.descriptions()

    def step_duration(self) -> float:
        cfg = self.definition.config
        return self.context.step_duration(cfg.base_step_duration, cfg.min_step_duration)

    def milestone_history(self) -> list[MilestoneRecord]:
        return list(self.milestones.state.history)

    # ── Checkpoints ──────────────────────────────────────────────────

    def serialize(self) -> dict[str, Any]:
        from seedfarm.checkpoint import serialize

        return serialize(self)

    def load(self, data: dict[str, Any]) -> None:
        """Replace the current state with a checkpoint. Raises CheckpointError."""
        from seedfarm.checkpoint import restore

        restore(self, data)

    # ── Private helpers ──────────────────────────────────────────────

    def _buy(self, producer_id: int) -> bool:
        if not self.producers.buy(producer_id):
            return False
        if self.automation.sync_purchases():
            self.recompute()
        return True

    def _run_auto_buyers(self) -> None:
        for producer_id, rate in self.automation.auto_purchases():
            for _ in range(rate):
                # a failed buy leaves cost and balance unchanged
                if not self._buy(producer_id):
                    break
