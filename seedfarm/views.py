from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator

from seedfarm.effect import EffectLayer
from seedfarm.upgrade import UpgradeDef


class CounterView(ABC):
    """Read-only access to the lifetime purchase counter."""

    @abstractmethod
    def total_purchases(self) -> int: ...


@dataclass(frozen=True)
class ActiveUpgrade:
    """An upgrade level as seen by the effect composer."""

    order: tuple[int, int, int]
    definition: UpgradeDef
    level: int
    owner_level: int
    layer: EffectLayer


class UpgradeSource(ABC):
    """A ledger that owns purchased upgrade levels."""

    @abstractmethod
    def active_upgrades(self) -> Iterator[ActiveUpgrade]: ...
