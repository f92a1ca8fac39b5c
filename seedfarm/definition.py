from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from seedfarm.automation import MachineDef
from seedfarm.effect import PRODUCER_TARGETED, UNIT_TARGETED
from seedfarm.numeric import D, DecimalLike, ONE
from seedfarm.producer import ProducerDef
from seedfarm.upgrade import UpgradeDef


@dataclass
class GameConfig:
    """Top-level game configuration."""

    name: str = "Untitled"
    resource_name: str = "seeds"
    base_step_duration: float = 10.0
    min_step_duration: float = 0.5
    catch_up_batch_size: int = 100
    base_milestone_requirement: DecimalLike = 1000
    milestone_base_points: DecimalLike = 1
    min_milestone_requirement_multiplier: DecimalLike = "0.03125"
    min_unit_requirement_multiplier: DecimalLike = "0.1"
    history_limit: int | None = 100


@dataclass
class GameDefinition:
    """Complete static catalog of a seed economy."""

    config: GameConfig = field(default_factory=GameConfig)
    producers: list[ProducerDef] = field(default_factory=list)
    machines: list[MachineDef] = field(default_factory=list)
    milestone_upgrades: list[UpgradeDef] = field(default_factory=list)

    _producers_by_id: dict[int, ProducerDef] = field(default_factory=dict, init=False, repr=False)
    _machines_by_id: dict[int, MachineDef] = field(default_factory=dict, init=False, repr=False)
    _upgrades_by_id: dict[int, UpgradeDef] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self._producers_by_id = {p.id: p for p in self.producers}
        self._machines_by_id = {m.id: m for m in self.machines}
        self._upgrades_by_id = {u.id: u for u in self.milestone_upgrades}

    def get_producer(self, id: int) -> ProducerDef | None:
        return self._producers_by_id.get(id)

    def get_machine(self, id: int) -> MachineDef | None:
        return self._machines_by_id.get(id)

    def get_milestone_upgrade(self, id: int) -> UpgradeDef | None:
        return self._upgrades_by_id.get(id)

    def validate(self) -> list[str]:
        """Check the catalog for wiring errors. Returns list of error messages."""
        errors: list[str] = []
        producer_ids = {p.id for p in self.producers}
        machine_ids = {m.id for m in self.machines}

        _check_duplicates("producer", [p.id for p in self.producers], errors)
        _check_duplicates("machine", [m.id for m in self.machines], errors)
        _check_duplicates("milestone upgrade", [u.id for u in self.milestone_upgrades], errors)

        if not self.producers:
            errors.append("Definition has no producers")
        elif not any(p.is_terminal for p in self.producers):
            errors.append("No producer feeds the terminal resource")

        for p in self.producers:
            if p.feeds is not None:
                if p.feeds not in producer_ids:
                    errors.append(f"Producer {p.id} feeds unknown producer {p.feeds}")
                elif p.feeds >= p.id:
                    errors.append(
                        f"Producer {p.id} feeds producer {p.feeds}; feed targets must be lower tiers"
                    )
            errors.extend(_check_cost_curve(p))

        for m in self.machines:
            _check_duplicates(f"machine {m.id} upgrade", [u.id for u in m.upgrades], errors)
            if _decimal(m.base_requirement) is None or D(m.base_requirement) <= 0:
                errors.append(f"Machine {m.id} has non-positive base_requirement")
            if _decimal(m.scaling_factor) is None or D(m.scaling_factor) < ONE:
                errors.append(f"Machine {m.id} has scaling_factor below 1")
            if m.unlock_cost is not None and (
                _decimal(m.unlock_cost) is None or D(m.unlock_cost) < 0
            ):
                errors.append(f"Machine {m.id} has negative unlock_cost")
            siblings = {u.id for u in m.upgrades}
            for u in m.upgrades:
                errors.extend(
                    _check_upgrade(f"Machine {m.id} upgrade {u.id}", u, siblings, producer_ids, machine_ids)
                )

        siblings = {u.id for u in self.milestone_upgrades}
        for u in self.milestone_upgrades:
            errors.extend(
                _check_upgrade(f"Milestone upgrade {u.id}", u, siblings, producer_ids, machine_ids)
            )

        cfg = self.config
        if cfg.min_step_duration <= 0:
            errors.append("min_step_duration must be positive")
        if cfg.base_step_duration < cfg.min_step_duration:
            errors.append("base_step_duration must not be below min_step_duration")
        if cfg.catch_up_batch_size < 1:
            errors.append("catch_up_batch_size must be at least 1")
        if cfg.history_limit is not None and cfg.history_limit < 0:
            errors.append("history_limit must not be negative")

        return errors


def _decimal(value: DecimalLike) -> Decimal | None:
    try:
        d = D(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    return d if d.is_finite() else None


def _check_duplicates(kind: str, ids: list[int], errors: list[str]) -> None:
    seen: set[int] = set()
    for i in ids:
        if i in seen:
            errors.append(f"Duplicate {kind} ID: {i}")
        seen.add(i)


def _check_cost_curve(p: ProducerDef) -> list[str]:
    errors: list[str] = []
    values = {
        "base_cost": _decimal(p.base_cost),
        "base_production": _decimal(p.base_production),
        "cost_multiplier": _decimal(p.cost_multiplier),
        "cost_base": _decimal(p.cost_base),
        "cost_linear": _decimal(p.cost_linear),
        "cost_divisor": _decimal(p.cost_divisor),
    }
    for name, value in values.items():
        if value is None:
            errors.append(f"Producer {p.id} has invalid {name}")
    if any(v is None for v in values.values()):
        return errors
    if values["base_cost"] <= 0:
        errors.append(f"Producer {p.id} has non-positive base_cost")
    if values["base_production"] < 0:
        errors.append(f"Producer {p.id} has negative base_production")
    if values["cost_multiplier"] <= 0:
        errors.append(f"Producer {p.id} has non-positive cost_multiplier")
    if values["cost_linear"] < 0:
        errors.append(f"Producer {p.id} has negative cost_linear")
    if values["cost_base"] + values["cost_linear"] <= ONE:
        errors.append(f"Producer {p.id} cost curve does not grow (cost_base + cost_linear <= 1)")
    elif values["cost_multiplier"] * (values["cost_base"] + values["cost_linear"]) <= values["base_cost"]:
        errors.append(
            f"Producer {p.id} second purchase is not dearer than the first "
            "(cost_multiplier * (cost_base + cost_linear) <= base_cost)"
        )
    if values["cost_divisor"] <= 0:
        errors.append(f"Producer {p.id} has non-positive cost_divisor")
    if p.cost_threshold < 0:
        errors.append(f"Producer {p.id} has negative cost_threshold")
    return errors


def _check_upgrade(
    label: str,
    u: UpgradeDef,
    siblings: set[int],
    producer_ids: set[int],
    machine_ids: set[int],
) -> list[str]:
    errors: list[str] = []
    if u.unlock is not None:
        for ref in sorted(u.unlock.references() - siblings):
            errors.append(f"{label} unlock condition references unknown upgrade {ref}")
    if u.max_level is not None and u.max_level < 1:
        errors.append(f"{label} has max_level below 1")
    for eff in u.effects:
        if eff.type in PRODUCER_TARGETED and eff.target not in producer_ids:
            errors.append(f"{label} has effect targeting unknown producer {eff.target!r}")
        elif eff.type in UNIT_TARGETED and eff.target not in machine_ids:
            errors.append(f"{label} has effect targeting unknown machine {eff.target!r}")
    return errors
