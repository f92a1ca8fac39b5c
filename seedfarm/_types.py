from __future__ import annotations

import operator
from typing import Callable

_OPS: dict[str, Callable[[float, float], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "==": operator.eq,
    "!=": operator.ne,
}


def compare(left: float, op: str, right: float) -> bool:
    """Compare two values using a string operator."""
    fn = _OPS.get(op)
    if fn is None:
        raise ValueError(f"Unknown operator: {op!r}. Expected one of {list(_OPS)}")
    return fn(left, right)


def check_operator(op: str) -> None:
    if op not in _OPS:
        raise ValueError(f"Unknown operator: {op!r}. Expected one of {list(_OPS)}")
