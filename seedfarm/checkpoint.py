"""Checkpoint codec: runtime state to plain JSON-compatible data and back.

Decimals are written as strings. Only ``resource`` and ``producers`` are
required; every other section falls back to its fresh-game default, and ids
the catalog no longer knows are ignored.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping

from seedfarm.automation import MachineState
from seedfarm.definition import GameDefinition
from seedfarm.errors import CheckpointError
from seedfarm.milestone import MilestoneRecord, MilestoneState
from seedfarm.numeric import ZERO, parse, to_str
from seedfarm.producer import ProducerState
from seedfarm.runtime import GameRuntime

logger = logging.getLogger(__name__)

VERSION = 1


def serialize(runtime: GameRuntime) -> dict[str, Any]:
    ms = runtime.milestones.state
    return {
        "version": VERSION,
        "step_count": runtime.step_count,
        "total_purchases": runtime.producers.total_purchases(),
        "resource": {
            "current": to_str(runtime.wallet.current),
            "total_earned": to_str(runtime.wallet.total_earned),
        },
        "producers": {
            str(pid): {
                "manually_purchased": ps.manually_purchased,
                "total_owned": to_str(ps.total_owned),
                "unlocked": ps.unlocked,
            }
            for pid, ps in sorted(runtime.producers.states.items())
        },
        "machines": {
            str(uid): {
                "level": st.level,
                "points": st.points,
                "progress": st.progress,
                "unlocked": st.unlocked,
                "upgrades": {str(k): v for k, v in sorted(st.upgrade_levels.items())},
            }
            for uid, st in sorted(runtime.automation.states.items())
        },
        "auto_buyers_enabled": {
            str(pid): flag for pid, flag in sorted(runtime.automation.auto_buy_enabled.items())
        },
        "season": {
            "index": ms.season,
            "prestige_points": to_str(ms.prestige_points),
            "total_prestige_points": to_str(ms.total_prestige_points),
            "total_completed": ms.total_completed,
            "completed_this_season": ms.completed_this_season,
            "season_counter": ms.season_counter,
            "upgrades": {str(k): v for k, v in sorted(ms.upgrade_levels.items())},
            "history": [
                {
                    "id": r.id,
                    "requirement": to_str(r.requirement),
                    "points": to_str(r.points),
                    "season": r.season,
                }
                for r in ms.history
            ],
        },
    }


def deserialize(definition: GameDefinition, data: Mapping[str, Any]) -> GameRuntime:
    """Build a runtime for *definition* from checkpoint *data*. Raises CheckpointError."""
    runtime = GameRuntime(definition)
    restore(runtime, data)
    return runtime


def load_or_default(definition: GameDefinition, data: Mapping[str, Any] | None) -> GameRuntime:
    """Like :func:`deserialize`, but falls back to a fresh game on a bad checkpoint."""
    if data is None:
        return GameRuntime(definition)
    try:
        return deserialize(definition, data)
    except CheckpointError as exc:
        logger.warning("Discarding unreadable checkpoint: %s", exc)
        return GameRuntime(definition)


def restore(runtime: GameRuntime, data: Mapping[str, Any]) -> None:
    """Load *data* into *runtime* in place.

    The whole checkpoint is decoded and checked before anything is written,
    so a rejected checkpoint leaves *runtime* untouched.
    """
    decoded = _decode(runtime, data)
    runtime.step_count = decoded.step_count
    runtime.wallet.current = decoded.current
    runtime.wallet.total_earned = decoded.total_earned
    runtime.producers.restore(decoded.total_purchases, decoded.producers)
    runtime.automation.reset()
    runtime.automation.restore(decoded.machines, decoded.auto_buy_enabled)
    runtime.milestones.state = decoded.season
    runtime.recompute()
    if runtime.automation.sync_purchases():
        runtime.recompute()


@dataclass
class _Decoded:
    step_count: int
    total_purchases: int
    current: Decimal
    total_earned: Decimal
    producers: dict[int, ProducerState]
    machines: dict[int, MachineState]
    auto_buy_enabled: dict[int, bool]
    season: MilestoneState


def _decode(runtime: GameRuntime, data: Mapping[str, Any]) -> _Decoded:
    if not isinstance(data, Mapping):
        raise CheckpointError("Checkpoint must be a mapping")
    version = data.get("version", VERSION)
    if version != VERSION:
        raise CheckpointError(f"Unsupported checkpoint version {version!r}")

    resource = _section(data, "resource", required=True)
    current = _decimal(resource, "current", "resource", required=True)
    total_earned = _decimal(resource, "total_earned", "resource", default=current)
    if current < 0 or total_earned < 0:
        raise CheckpointError("resource amounts must not be negative")

    producers: dict[int, ProducerState] = {}
    for key, raw in _section(data, "producers", required=True).items():
        pid = _id(key, "producers")
        if runtime.producers.definition(pid) is None:
            continue
        where = f"producers.{key}"
        raw = _mapping(raw, where)
        ps = ProducerState(
            manually_purchased=_int(raw, "manually_purchased", where, required=True),
            total_owned=_decimal(raw, "total_owned", where, required=True),
        )
        ps.unlocked = _bool(raw, "unlocked", where, default=ps.total_owned > 0)
        if ps.total_owned < 0:
            raise CheckpointError(f"{where}.total_owned is negative")
        if ps.total_owned < ps.manually_purchased:
            raise CheckpointError(f"{where}.total_owned is below manually_purchased")
        producers[pid] = ps
    for pdef in runtime.producers.definitions:
        producers.setdefault(pdef.id, ProducerState.initial(pdef))

    bought = sum(ps.manually_purchased for ps in producers.values())
    bought -= sum(p.initial_owned for p in runtime.producers.definitions)
    total_purchases = _int(data, "total_purchases", "checkpoint", default=max(0, bought))

    machines: dict[int, MachineState] = {}
    for key, raw in _section(data, "machines").items():
        uid = _id(key, "machines")
        mdef = runtime.automation.definition(uid)
        if mdef is None:
            continue
        where = f"machines.{key}"
        raw = _mapping(raw, where)
        base = MachineState.initial(mdef)
        level = _int(raw, "level", where, default=1)
        if level < 1:
            raise CheckpointError(f"{where}.level must be at least 1")
        machines[uid] = MachineState(
            level=level,
            points=_int(raw, "points", where, default=0),
            progress=_int(raw, "progress", where, default=0),
            unlocked=_bool(raw, "unlocked", where, default=base.unlocked),
            upgrade_levels=_levels(raw.get("upgrades", {}), f"{where}.upgrades"),
        )

    auto_buy_enabled: dict[int, bool] = {}
    for key, flag in _section(data, "auto_buyers_enabled").items():
        pid = _id(key, "auto_buyers_enabled")
        if not isinstance(flag, bool):
            raise CheckpointError(f"auto_buyers_enabled.{key} must be a boolean")
        if runtime.producers.definition(pid) is not None:
            auto_buy_enabled[pid] = flag

    season = _decode_season(runtime, _section(data, "season"))

    return _Decoded(
        step_count=_int(data, "step_count", "checkpoint", default=0),
        total_purchases=total_purchases,
        current=current,
        total_earned=total_earned,
        producers=producers,
        machines=machines,
        auto_buy_enabled=auto_buy_enabled,
        season=season,
    )


def _decode_season(runtime: GameRuntime, raw: Mapping[str, Any]) -> MilestoneState:
    where = "season"
    known = {u.id for u in runtime.milestones.definitions}
    levels = {k: v for k, v in _levels(raw.get("upgrades", {}), f"{where}.upgrades").items() if k in known}
    state = MilestoneState(
        season=_int(raw, "index", where, default=1),
        prestige_points=_decimal(raw, "prestige_points", where, default=ZERO),
        total_prestige_points=_decimal(raw, "total_prestige_points", where, default=ZERO),
        total_completed=_int(raw, "total_completed", where, default=0),
        completed_this_season=_int(raw, "completed_this_season", where, default=0),
        season_counter=_int(raw, "season_counter", where, default=0),
        upgrade_levels={u.id: levels.get(u.id, 0) for u in runtime.milestones.definitions},
    )
    if state.season < 1:
        raise CheckpointError("season.index must be at least 1")
    if state.prestige_points < 0 or state.total_prestige_points < state.prestige_points:
        raise CheckpointError("season prestige points are inconsistent")
    if state.completed_this_season > state.total_completed:
        raise CheckpointError("season.completed_this_season exceeds total_completed")

    history = raw.get("history", [])
    if not isinstance(history, list):
        raise CheckpointError("season.history must be a list")
    for i, item in enumerate(history):
        entry = _mapping(item, f"season.history[{i}]")
        state.history.append(
            MilestoneRecord(
                id=_int(entry, "id", f"season.history[{i}]", required=True),
                requirement=_decimal(entry, "requirement", f"season.history[{i}]", required=True),
                points=_decimal(entry, "points", f"season.history[{i}]", default=ZERO),
                season=_int(entry, "season", f"season.history[{i}]", default=state.season),
            )
        )
    return state


# ── Field helpers ────────────────────────────────────────────────────

_MISSING = object()


def _mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise CheckpointError(f"{where} must be a mapping")
    return value


def _section(data: Mapping[str, Any], name: str, required: bool = False) -> Mapping[str, Any]:
    if name not in data:
        if required:
            raise CheckpointError(f"Missing required field {name!r}")
        return {}
    return _mapping(data[name], name)


def _id(key: Any, where: str) -> int:
    try:
        return int(key)
    except (TypeError, ValueError):
        raise CheckpointError(f"{where} has a non-numeric id {key!r}") from None


def _decimal(
    raw: Mapping[str, Any], name: str, where: str, required: bool = False, default: Any = _MISSING
) -> Decimal:
    if name not in raw:
        if required or default is _MISSING:
            raise CheckpointError(f"Missing required field {where}.{name}")
        return default
    try:
        return parse(raw[name])
    except ValueError as exc:
        raise CheckpointError(f"{where}.{name}: {exc}") from None


def _int(
    raw: Mapping[str, Any], name: str, where: str, required: bool = False, default: int = 0
) -> int:
    if name not in raw:
        if required:
            raise CheckpointError(f"Missing required field {where}.{name}")
        return default
    value = raw[name]
    if isinstance(value, bool) or not isinstance(value, int):
        raise CheckpointError(f"{where}.{name} must be an integer, got {value!r}")
    if value < 0:
        raise CheckpointError(f"{where}.{name} must not be negative")
    return value


def _bool(raw: Mapping[str, Any], name: str, where: str, default: bool) -> bool:
    value = raw.get(name, default)
    if not isinstance(value, bool):
        raise CheckpointError(f"{where}.{name} must be a boolean")
    return value


def _levels(raw: Any, where: str) -> dict[int, int]:
    raw = _mapping(raw, where)
    return {_id(k, where): _int(raw, k, where) for k in raw}
