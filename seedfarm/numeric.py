"""Arbitrary-precision quantities used for every seed count, rate and cost."""

from __future__ import annotations

import functools
from decimal import (
    MAX_EMAX,
    MIN_EMIN,
    ROUND_CEILING,
    ROUND_FLOOR,
    ROUND_HALF_EVEN,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import Callable, TypeVar

CONTEXT = Context(
    prec=34,
    rounding=ROUND_HALF_EVEN,
    Emax=MAX_EMAX,
    Emin=MIN_EMIN,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)

ZERO = Decimal(0)
ONE = Decimal(1)

DecimalLike = Decimal | int | float | str

_F = TypeVar("_F", bound=Callable)


def D(value: DecimalLike) -> Decimal:
    """Coerce *value* to Decimal. Floats go through ``str`` so 0.1 stays 0.1."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def power(base: DecimalLike, exponent: DecimalLike) -> Decimal:
    return CONTEXT.power(D(base), D(exponent))


def floor(value: Decimal) -> Decimal:
    return value.to_integral_value(rounding=ROUND_FLOOR)


def ceil(value: Decimal) -> Decimal:
    return value.to_integral_value(rounding=ROUND_CEILING)


def parse(text: object) -> Decimal:
    """Strictly parse a checkpoint value. Raises ValueError on anything non-finite."""
    if isinstance(text, bool) or not isinstance(text, (str, int)):
        raise ValueError(f"Expected a decimal string, got {type(text).__name__}")
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Not a decimal number: {text!r}") from None
    if not value.is_finite():
        raise ValueError(f"Not a finite number: {text!r}")
    return value


def to_str(value: Decimal) -> str:
    return str(value)


def exact(fn: _F) -> _F:
    """Run *fn* with CONTEXT as the active decimal context."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        with localcontext(CONTEXT):
            return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
