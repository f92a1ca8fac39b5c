"""Tests for automation module."""
from decimal import Decimal

import pytest

from seedfarm.automation import AutomationLedger, LevelingMode, MachineDef
from seedfarm.context import EffectContext
from seedfarm.currency import ResourceState
from seedfarm.effect import Effect, EffectLayer
from seedfarm.numeric import D
from seedfarm.requirement import Req
from seedfarm.upgrade import UpgradeDef
from seedfarm.views import CounterView


class FakeCounter(CounterView):
    def __init__(self, purchases: int = 0) -> None:
        self.purchases = purchases

    def total_purchases(self) -> int:
        return self.purchases


def _make_machines() -> list[MachineDef]:
    return [
        MachineDef(
            0,
            "Stepper",
            leveling=LevelingMode.STEPS,
            base_requirement=10,
            scaling_factor="1.4",
            upgrades=[
                UpgradeDef(0, "Boost", effects=[Effect.producer_boost(0, "0.1")]),
                UpgradeDef(
                    1, "Gated", effects=[Effect.producer_boost(0, "0.1")],
                    unlock=Req.at_least(0, 2), max_level=1,
                ),
            ],
        ),
        MachineDef(
            1,
            "Counter",
            leveling=LevelingMode.PURCHASES,
            base_requirement=10,
            unlock_cost=100,
            upgrades=[UpgradeDef(0, "Boost", effects=[Effect.producer_boost(0, "0.15")])],
        ),
    ]


def _make_ledger(purchases: int = 0, balance: int = 0):
    wallet = ResourceState(current=D(balance))
    counter = FakeCounter(purchases)
    return AutomationLedger(_make_machines(), wallet, counter), wallet, counter


def _context(**reductions) -> EffectContext:
    ctx = EffectContext.fresh([0], [0, 1])
    for key, value in reductions.items():
        ctx.requirement_reductions[int(key[1:])] = Decimal(value)
    return ctx


def test_initial_states():
    ledger, _, _ = _make_ledger()
    assert ledger.states[0].unlocked
    assert not ledger.states[1].unlocked
    assert ledger.states[0].level == 1
    assert ledger.states[0].upgrade_levels == {0: 0, 1: 0}


def test_unlock_backfills_purchase_levels():
    ledger, wallet, _ = _make_ledger(purchases=47, balance=1000)
    assert ledger.unlock(1)
    st = ledger.states[1]
    assert st.unlocked
    assert st.level == 5
    assert st.points == 4
    assert wallet.current == 900


def test_unlock_failures():
    ledger, wallet, _ = _make_ledger(balance=99)
    assert not ledger.unlock(1)  # too expensive
    assert wallet.current == 99
    assert not ledger.unlock(0)  # no unlock cost, already unlocked
    assert not ledger.unlock(7)  # unknown
    wallet.current = D(200)
    assert ledger.unlock(1)
    assert not ledger.unlock(1)  # already unlocked
    assert wallet.current == 100


def test_sync_purchases_awards_points_for_new_levels():
    ledger, _, counter = _make_ledger(purchases=47, balance=100)
    ledger.unlock(1)
    counter.purchases = 49
    assert ledger.sync_purchases() == 0
    counter.purchases = 50
    assert ledger.sync_purchases() == 1
    assert ledger.states[1].level == 6
    assert ledger.states[1].points == 5


def test_locked_purchase_unit_does_not_level():
    ledger, _, _ = _make_ledger(purchases=47)
    assert ledger.sync_purchases() == 0
    assert ledger.states[1].level == 1


def test_step_leveling_follows_scaling_curve():
    ledger, _, _ = _make_ledger()
    assert ledger.required_for_next_level(0) == 10
    gained = sum(ledger.settle_steps() for _ in range(10))
    assert gained == 1
    st = ledger.states[0]
    assert (st.level, st.points, st.progress) == (2, 1, 0)
    assert ledger.required_for_next_level(0) == 14  # floor(10 * 1.4)
    for _ in range(14):
        ledger.settle_steps()
    assert st.level == 3
    assert ledger.required_for_next_level(0) == 19  # floor(10 * 1.96)


def test_only_one_level_per_step():
    ledger, _, _ = _make_ledger()
    ledger.states[0].progress = 500
    assert ledger.settle_steps() == 1
    assert ledger.states[0].level == 2


def test_requirement_reduction_applies_to_step_units():
    ledger, _, _ = _make_ledger()
    ledger.apply_context(_context(u0="0.7"))
    assert ledger.requirement_reduction(0) == Decimal("0.7")
    assert ledger.required_for_next_level(0) == 7


def test_requirement_reduction_is_clamped():
    ledger, _, _ = _make_ledger()
    ledger.apply_context(_context(u0="0.01"))
    assert ledger.requirement_reduction(0) == Decimal("0.1")
    assert ledger.required_for_next_level(0) == 1


def test_requirement_reduction_applies_to_purchase_units():
    ledger, _, _ = _make_ledger(purchases=47, balance=100)
    ledger.apply_context(_context(u1="0.9"))
    assert ledger.required_for_next_level(1) == 9
    ledger.unlock(1)
    assert ledger.states[1].level == 6  # floor(47 / 9) + 1


def test_progress_to_next_level():
    ledger, _, _ = _make_ledger(purchases=45, balance=100)
    for _ in range(5):
        ledger.settle_steps()
    assert ledger.progress_to_next_level(0) == pytest.approx(0.5)
    ledger.unlock(1)
    assert ledger.progress_to_next_level(1) == pytest.approx(0.5)


def test_buy_upgrade_costs_one_point():
    ledger, _, _ = _make_ledger()
    assert not ledger.buy_upgrade(0, 0)  # no points
    ledger.states[0].points = 2
    assert ledger.buy_upgrade(0, 0)
    assert ledger.states[0].points == 1
    assert ledger.states[0].upgrade_levels[0] == 1


def test_buy_upgrade_checks_unlock_condition_and_max_level():
    ledger, _, _ = _make_ledger()
    ledger.states[0].points = 10
    assert not ledger.is_upgrade_unlocked(0, 1)
    assert not ledger.buy_upgrade(0, 1)
    ledger.buy_upgrade(0, 0)
    ledger.buy_upgrade(0, 0)
    assert ledger.is_upgrade_unlocked(0, 1)
    assert ledger.buy_upgrade(0, 1)
    assert not ledger.buy_upgrade(0, 1)  # max level 1
    assert ledger.states[0].points == 7


def test_buy_upgrade_unknown_ids():
    ledger, _, _ = _make_ledger()
    ledger.states[0].points = 5
    assert not ledger.buy_upgrade(9, 0)
    assert not ledger.buy_upgrade(0, 9)


def test_auto_purchases_respect_enabled_flags():
    ledger, _, _ = _make_ledger()
    ctx = EffectContext.fresh([0, 1, 2], [0, 1])
    ctx.auto_buy_rates[0] = 2
    ctx.auto_buy_rates[2] = 1
    ledger.apply_context(ctx)
    assert ledger.auto_purchases() == [(0, 2), (2, 1)]
    ledger.set_auto_buyer_enabled(2, False)
    assert ledger.auto_purchases() == [(0, 2)]


def test_active_upgrades_carry_machine_level():
    ledger, _, _ = _make_ledger()
    ledger.states[0].level = 4
    ledger.states[0].upgrade_levels[0] = 2
    active = list(ledger.active_upgrades())
    assert len(active) == 1
    assert active[0].order == (0, 0, 0)
    assert active[0].owner_level == 4
    assert active[0].level == 2
    assert active[0].layer is EffectLayer.MACHINE


def test_reset():
    ledger, _, _ = _make_ledger(purchases=47, balance=100)
    ledger.unlock(1)
    ledger.states[0].upgrade_levels[0] = 3
    ledger.set_auto_buyer_enabled(0, False)
    ledger.reset()
    assert ledger.states[0].unlocked
    assert not ledger.states[1].unlocked
    assert ledger.states[1].level == 1
    assert ledger.states[0].upgrade_levels == {0: 0, 1: 0}
    assert ledger.auto_buy_enabled == {0: False}
