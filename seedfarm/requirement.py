from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Mapping

from seedfarm._types import check_operator, compare

# Sibling upgrade levels keyed by upgrade id.
LevelMap = Mapping[int, int]


class Requirement(ABC):
    """Unlock condition evaluated against sibling upgrade levels."""

    description: str = ""

    @abstractmethod
    def evaluate(self, levels: LevelMap) -> bool: ...

    def references(self) -> set[int]:
        """Upgrade ids this condition reads, for catalog validation."""
        return set()

    def __and__(self, other: Requirement) -> Requirement:
        return _AllRequirement([self, other])

    def __or__(self, other: Requirement) -> Requirement:
        return _AnyRequirement([self, other])


# ── Private implementations ──────────────────────────────────────────


class _LevelRequirement(Requirement):
    def __init__(self, upgrade_id: int, op: str, threshold: int, name: str = "") -> None:
        check_operator(op)
        self.upgrade_id = upgrade_id
        self.op = op
        self.threshold = threshold
        label = name or f"upgrade {upgrade_id}"
        self.description = f"Requires {label} level {op} {threshold}"

    def evaluate(self, levels: LevelMap) -> bool:
        return compare(levels.get(self.upgrade_id, 0), self.op, self.threshold)

    def references(self) -> set[int]:
        return {self.upgrade_id}


class _AllRequirement(Requirement):
    def __init__(self, reqs: list[Requirement]) -> None:
        self.reqs = reqs
        self.description = " and ".join(r.description for r in reqs)

    def evaluate(self, levels: LevelMap) -> bool:
        return all(r.evaluate(levels) for r in self.reqs)

    def references(self) -> set[int]:
        return set().union(*(r.references() for r in self.reqs))


class _AnyRequirement(Requirement):
    def __init__(self, reqs: list[Requirement]) -> None:
        self.reqs = reqs
        self.description = " or ".join(r.description for r in reqs)

    def evaluate(self, levels: LevelMap) -> bool:
        return any(r.evaluate(levels) for r in self.reqs)

    def references(self) -> set[int]:
        return set().union(*(r.references() for r in self.reqs))


class _CustomRequirement(Requirement):
    def __init__(
        self,
        fn: Callable[[LevelMap], bool],
        description: str,
        refs: set[int],
    ) -> None:
        self.fn = fn
        self.description = description
        self.refs = set(refs)

    def evaluate(self, levels: LevelMap) -> bool:
        return self.fn(levels)

    def references(self) -> set[int]:
        return set(self.refs)


# ── Public factory ───────────────────────────────────────────────────


class Req:
    """Factory for built-in unlock conditions."""

    @staticmethod
    def level(upgrade_id: int, op: str, threshold: int, name: str = "") -> Requirement:
        return _LevelRequirement(upgrade_id, op, threshold, name)

    @staticmethod
    def at_least(upgrade_id: int, threshold: int, name: str = "") -> Requirement:
        return _LevelRequirement(upgrade_id, ">=", threshold, name)

    @staticmethod
    def all(*reqs: Requirement) -> Requirement:
        return _AllRequirement(list(reqs))

    @staticmethod
    def any(*reqs: Requirement) -> Requirement:
        return _AnyRequirement(list(reqs))

    @staticmethod
    def custom(
        fn: Callable[[LevelMap], bool],
        description: str = "",
        refs: set[int] | None = None,
    ) -> Requirement:
        return _CustomRequirement(fn, description, refs or set())
