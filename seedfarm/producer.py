from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from seedfarm.context import EffectContext
from seedfarm.cost_scaling import CostScaling
from seedfarm.currency import ResourceState
from seedfarm.numeric import D, DecimalLike, ONE, ZERO
from seedfarm.views import CounterView


@dataclass
class ProducerDef:
    """Static definition of one tier in the production chain.

    ``feeds`` is the id of the tier this one produces, or ``None`` when it
    produces the terminal resource directly.
    """

    id: int
    name: str = ""
    base_cost: DecimalLike = 1
    base_production: DecimalLike = 1
    cost_multiplier: DecimalLike = 1
    cost_base: DecimalLike = "1.1"
    cost_linear: DecimalLike = 0
    cost_threshold: int = 100
    cost_divisor: DecimalLike = 100
    feeds: int | None = None
    initial_owned: int = 0

    _curve: CostScaling | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"Farm {self.id + 1}"

    @property
    def cost_curve(self) -> CostScaling:
        if self._curve is None:
            self._curve = CostScaling.threshold(
                self.cost_multiplier,
                self.cost_base,
                self.cost_linear,
                self.cost_threshold,
                self.cost_divisor,
            )
        return self._curve

    @property
    def is_terminal(self) -> bool:
        return self.feeds is None


@dataclass
class ProducerState:
    """Mutable runtime state for a producer. ``multiplier`` is derived, never saved."""

    manually_purchased: int = 0
    total_owned: Decimal = field(default_factory=lambda: ZERO)
    unlocked: bool = False
    multiplier: Decimal = field(default_factory=lambda: ONE)

    @classmethod
    def initial(cls, pdef: ProducerDef) -> ProducerState:
        return cls(
            manually_purchased=pdef.initial_owned,
            total_owned=D(pdef.initial_owned),
            unlocked=pdef.initial_owned > 0,
        )


class ProducerLedger(CounterView):
    """Owns every tier, prices purchases and settles one step of production."""

    def __init__(self, producers: list[ProducerDef], wallet: ResourceState) -> None:
        self.definitions = sorted(producers, key=lambda p: p.id)
        self._by_id = {p.id: p for p in self.definitions}
        self.wallet = wallet
        self.states: dict[int, ProducerState] = {
            p.id: ProducerState.initial(p) for p in self.definitions
        }
        self._cost_divisors: dict[int, Decimal] = {}
        self._purchases = 0

    # ── Queries ──────────────────────────────────────────────────────

    def definition(self, producer_id: int) -> ProducerDef | None:
        return self._by_id.get(producer_id)

    def total_purchases(self) -> int:
        return self._purchases

    def cost(self, producer_id: int) -> Decimal:
        """Price of the next purchase of *producer_id*."""
        pdef = self._by_id[producer_id]
        ps = self.states[producer_id]
        cost = pdef.cost_curve.compute(pdef.base_cost, ps.manually_purchased)
        divisor = self._cost_divisors.get(producer_id, ONE)
        if divisor > ONE:
            cost = cost / divisor
        return cost

    def production(self, producer_id: int) -> Decimal:
        pdef = self._by_id[producer_id]
        ps = self.states[producer_id]
        return D(pdef.base_production) * ps.total_owned * ps.multiplier

    def production_per_step(self) -> Decimal:
        """Terminal resource produced by the next settle, ignoring feed-ins."""
        total = ZERO
        for pdef in self.definitions:
            ps = self.states[pdef.id]
            if pdef.is_terminal and ps.unlocked and ps.total_owned > 0:
                total += self.production(pdef.id)
        return total

    # ── Mutations ────────────────────────────────────────────────────

    def apply_context(self, context: EffectContext) -> None:
        for pdef in self.definitions:
            self.states[pdef.id].multiplier = context.producer_multiplier(pdef.id)
        self._cost_divisors = dict(context.cost_divisors)

    def buy(self, producer_id: int) -> bool:
        """Buy one unit. Returns False without side effects when unaffordable."""
        if producer_id not in self._by_id:
            return False
        if not self.wallet.try_spend(self.cost(producer_id)):
            return False
        ps = self.states[producer_id]
        ps.manually_purchased += 1
        ps.total_owned += 1
        ps.unlocked = True
        self._purchases += 1
        return True

    def settle(self) -> Decimal:
        """Distribute one step of production, highest tier first.

        Output fed into a lower tier is visible to that tier later in the
        same pass. Returns the terminal resource credited.
        """
        credited = ZERO
        for pdef in reversed(self.definitions):
            ps = self.states[pdef.id]
            if not ps.unlocked or ps.total_owned <= 0:
                continue
            produced = self.production(pdef.id)
            if pdef.feeds is None:
                self.wallet.add(produced)
                credited += produced
            else:
                self.states[pdef.feeds].total_owned += produced
        return credited

    def reset(self) -> None:
        """Return every tier to its initial state (tier 0 keeps its starting stock)."""
        for pdef in self.definitions:
            multiplier = self.states[pdef.id].multiplier
            self.states[pdef.id] = ProducerState.initial(pdef)
            self.states[pdef.id].multiplier = multiplier

    def restore(self, purchases: int, states: dict[int, ProducerState]) -> None:
        self._purchases = purchases
        for pid, ps in states.items():
            if pid in self.states:
                ps.multiplier = self.states[pid].multiplier
                self.states[pid] = ps
