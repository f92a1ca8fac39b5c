"""Tests for requirement module."""
import pytest

from seedfarm.requirement import Req, Requirement

LEVELS = {0: 5, 1: 2, 2: 0}


def test_level():
    assert Req.level(0, ">=", 5).evaluate(LEVELS)
    assert not Req.level(0, ">", 5).evaluate(LEVELS)
    assert Req.level(2, "==", 0).evaluate(LEVELS)


def test_at_least():
    assert Req.at_least(1, 2).evaluate(LEVELS)
    assert not Req.at_least(1, 3).evaluate(LEVELS)


def test_missing_sibling_counts_as_level_zero():
    assert not Req.at_least(9, 1).evaluate(LEVELS)
    assert Req.level(9, "==", 0).evaluate(LEVELS)


def test_all_and_any():
    both = Req.all(Req.at_least(0, 5), Req.at_least(1, 3))
    either = Req.any(Req.at_least(0, 5), Req.at_least(1, 3))
    assert not both.evaluate(LEVELS)
    assert either.evaluate(LEVELS)


def test_operators_compose():
    req = Req.at_least(0, 1) & (Req.at_least(1, 9) | Req.level(2, "==", 0))
    assert isinstance(req, Requirement)
    assert req.evaluate(LEVELS)


def test_custom():
    req = Req.custom(lambda levels: sum(levels.values()) >= 7, "Seven levels total", refs={0, 1})
    assert req.evaluate(LEVELS)
    assert req.description == "Seven levels total"
    assert req.references() == {0, 1}


def test_references():
    req = Req.all(Req.at_least(0, 1), Req.any(Req.at_least(1, 1), Req.at_least(4, 2)))
    assert req.references() == {0, 1, 4}


def test_description_uses_name():
    assert Req.at_least(0, 5, "Seed Boost").description == "Requires Seed Boost level >= 5"
    assert Req.at_least(3, 2).description == "Requires upgrade 3 level >= 2"


def test_unknown_operator():
    with pytest.raises(ValueError):
        Req.level(0, "=>", 1)
