"""Offline progress: replaying the steps that elapsed while the host was away."""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from seedfarm.numeric import ZERO, exact

if TYPE_CHECKING:
    from seedfarm.runtime import GameRuntime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatchUpReport:
    """Summary of a finished (or cancelled) replay."""

    steps_total: int
    steps_done: int
    resource_gained: Decimal
    cancelled: bool = False

    @property
    def fraction_done(self) -> float:
        if self.steps_total == 0:
            return 1.0
        return self.steps_done / self.steps_total


class CatchUpProcessor:
    """Replays ``floor(elapsed / step_duration)`` steps in fixed-size batches.

    Batching only decides how the replay is scheduled: every batch calls
    ``GameRuntime.advance`` exactly as the live loop would, so the final
    state does not depend on the batch size. While a replay is in progress
    the runtime's ``replaying`` flag is set and manual steps are rejected.

    Drive it synchronously with :meth:`step_batch` / :meth:`skip`, or
    cooperatively with ``await processor.run()``, which yields to the event
    loop between batches. :meth:`cancel` restores the state captured when
    the replay started.
    """

    def __init__(self, runtime: GameRuntime, elapsed_seconds: float, batch_size: int = 100) -> None:
        if elapsed_seconds < 0:
            raise ValueError(f"elapsed_seconds must not be negative, got {elapsed_seconds}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.runtime = runtime
        self.batch_size = batch_size
        self.step_duration = runtime.step_duration()
        self.steps_total = math.floor(elapsed_seconds / self.step_duration)
        self.steps_done = 0
        self.resource_gained = ZERO
        self.cancelled = False
        self._checkpoint: dict[str, Any] | None = None
        self._finished = False

    # ── Progress ─────────────────────────────────────────────────────

    @property
    def started(self) -> bool:
        return self._checkpoint is not None

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def steps_remaining(self) -> int:
        return self.steps_total - self.steps_done

    @property
    def fraction_done(self) -> float:
        if self.steps_total == 0:
            return 1.0
        return self.steps_done / self.steps_total

    def report(self) -> CatchUpReport:
        return CatchUpReport(
            steps_total=self.steps_total,
            steps_done=self.steps_done,
            resource_gained=self.resource_gained,
            cancelled=self.cancelled,
        )

    # ── Driving the replay ───────────────────────────────────────────

    def start(self) -> None:
        if self.started:
            return
        if self.runtime.replaying:
            raise RuntimeError("Another catch-up is already replaying on this runtime")
        self._checkpoint = self.runtime.serialize()
        self.runtime.replaying = True
        logger.info(
            "Catch-up started: %d steps of %.2fs", self.steps_total, self.step_duration
        )
        if self.steps_total == 0:
            self._finish()

    @exact
    def step_batch(self) -> int:
        """Replay the next batch synchronously. Returns the number of steps run."""
        self.start()
        if self._finished:
            return 0
        count = min(self.batch_size, self.steps_remaining)
        for _ in range(count):
            self.resource_gained += self.runtime.advance()
        self.steps_done += count
        if self.steps_remaining == 0:
            self._finish()
        return count

    def skip(self) -> CatchUpReport:
        """Replay every remaining step now."""
        while not self._finished:
            self.step_batch()
        return self.report()

    def cancel(self) -> CatchUpReport:
        """Discard the replayed steps and restore the state from before the replay."""
        if self._finished:
            return self.report()
        if self._checkpoint is not None:
            self.runtime.replaying = False
            self.runtime.load(self._checkpoint)
        self.cancelled = True
        self.steps_done = 0
        self.resource_gained = ZERO
        self._finish()
        logger.info("Catch-up cancelled; state restored")
        return self.report()

    async def run(self) -> CatchUpReport:
        """Replay batch by batch, yielding to the event loop in between."""
        self.start()
        while not self._finished:
            self.step_batch()
            if not self._finished:
                await asyncio.sleep(0)
        return self.report()

    def _finish(self) -> None:
        self._finished = True
        self.runtime.replaying = False
        if not self.cancelled:
            logger.info(
                "Catch-up finished: %d steps, +%s", self.steps_done, self.resource_gained
            )
