from __future__ import annotations

from typing import Iterable

from seedfarm.context import EffectContext
from seedfarm.views import ActiveUpgrade, UpgradeSource


class EffectComposer:
    """Folds every purchased upgrade level into a brand-new EffectContext.

    The composer keeps no state between calls: each ``compose`` starts from a
    neutral context, walks upgrades in ascending ``order`` and lets every
    effect compose onto it. Cost is bounded by the number of upgrades.
    """

    def __init__(
        self,
        producer_ids: Iterable[int],
        unit_ids: Iterable[int],
        sources: list[UpgradeSource],
    ) -> None:
        self._producer_ids = list(producer_ids)
        self._unit_ids = list(unit_ids)
        self._sources = list(sources)

    def active_upgrades(self) -> list[ActiveUpgrade]:
        upgrades = [u for src in self._sources for u in src.active_upgrades()]
        upgrades.sort(key=lambda u: u.order)
        return upgrades

    def compose(self) -> EffectContext:
        context = EffectContext.fresh(self._producer_ids, self._unit_ids)
        for active in self.active_upgrades():
            if active.level <= 0:
                continue
            for effect in active.definition.effects:
                effect.apply(active.level, context, active.owner_level, active.layer)
        return context

    def descriptions(self) -> list[tuple[str, str]]:
        """(upgrade name, effect text) for every purchased level, in apply order."""
        return [
            (a.definition.name, a.definition.effect_display(a.level, a.owner_level))
            for a in self.active_upgrades()
            if a.level > 0
        ]
