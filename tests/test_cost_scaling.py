"""Tests for cost_scaling module."""
from decimal import Decimal

import pytest

from seedfarm.catalog import define_game
from seedfarm.cost_scaling import CostScaling


def test_fixed():
    cs = CostScaling.fixed()
    assert cs.compute(100, 0) == 100
    assert cs.compute(100, 10) == 100


def test_exponential():
    cs = CostScaling.exponential(2)
    assert cs.compute(100, 0) == 100
    assert cs.compute(100, 1) == 200
    assert cs.compute(100, 3) == 800


def test_exponential_default_rate():
    cs = CostScaling.exponential()
    assert cs.compute(100, 1) == Decimal("115.00")


def test_threshold_first_purchase_is_flat():
    cs = CostScaling.threshold(3, "1.065", "0.004", 999, 1000)
    assert cs.compute(3, 0) == 3


def test_threshold_below_threshold():
    cs = CostScaling.threshold(3, "1.065", "0.004", 999, 1000)
    # 3 * 1.069^1 and 3 * 1.073^2
    assert cs.compute(3, 1) == Decimal("3.207")
    assert cs.compute(3, 2) == Decimal("3.453987")


def test_threshold_exponent_grows_past_threshold():
    cs = CostScaling.threshold(1, 2, 0, 2, 1)
    assert cs.compute(1, 2) == 4  # 2^2, at the threshold
    assert cs.compute(1, 3) == 64  # 2^(3 * 2)
    assert cs.compute(1, 4) == 2 ** 12  # 2^(4 * 3)


def test_custom():
    cs = CostScaling.custom(lambda base, count: base * (count + 1) ** 2)
    assert cs.compute(10, 0) == 10
    assert cs.compute(10, 2) == 90


@pytest.mark.parametrize("producer", define_game().producers, ids=lambda p: p.name)
def test_catalog_costs_strictly_increase(producer):
    curve = producer.cost_curve
    previous = curve.compute(producer.base_cost, 0)
    for n in range(1, 200):
        cost = curve.compute(producer.base_cost, n)
        assert cost > previous, f"{producer.name}: cost({n}) <= cost({n - 1})"
        previous = cost
