"""MCP server wrapping GameRuntime for interactive AI playtesting."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from mcp.server.fastmcp import FastMCP

from seedfarm.checkpoint import deserialize
from seedfarm.definition import GameDefinition
from seedfarm.errors import CheckpointError
from seedfarm.numeric import to_str
from seedfarm.runtime import GameRuntime

# Maximum seconds per wait() call (24 hours)
_MAX_WAIT = 86400


@dataclass
class _GameHolder:
    """Holds the active game definition and runtime."""

    definition: GameDefinition
    runtime: GameRuntime


def _num(value: Decimal | None) -> str | None:
    return None if value is None else to_str(value)


# ── Tool logic functions (testable without MCP protocol) ────────────


def _tool_get_game_info(holder: _GameHolder) -> dict[str, Any]:
    defn = holder.definition
    return {
        "name": defn.config.name,
        "resource": defn.config.resource_name,
        "producers": [
            {
                "id": p.id,
                "name": p.name,
                "base_production": str(p.base_production),
                "feeds": p.feeds,
            }
            for p in defn.producers
        ],
        "machines": [
            {
                "id": m.id,
                "name": m.name,
                "description": m.description,
                "leveling": m.leveling.value,
                "unlock_cost": None if m.unlock_cost is None else str(m.unlock_cost),
                "upgrades": [
                    {"id": u.id, "name": u.name, "description": u.description, "max_level": u.max_level}
                    for u in m.upgrades
                ],
            }
            for m in defn.machines
        ],
        "milestone_upgrades": [
            {
                "id": u.id,
                "name": u.name,
                "description": u.description,
                "category": u.category,
                "max_level": u.max_level,
            }
            for u in defn.milestone_upgrades
        ],
    }


def _tool_get_game_state(holder: _GameHolder) -> dict[str, Any]:
    rt = holder.runtime
    ms = rt.milestones.state
    producers = {}
    for pdef in rt.producers.definitions:
        ps = rt.producers.states[pdef.id]
        producers[pdef.id] = {
            "name": pdef.name,
            "manually_purchased": ps.manually_purchased,
            "total_owned": to_str(ps.total_owned),
            "unlocked": ps.unlocked,
            "multiplier": to_str(ps.multiplier),
        }
    machines = {}
    for mdef in rt.automation.definitions:
        st = rt.automation.states[mdef.id]
        machines[mdef.id] = {
            "name": mdef.name,
            "unlocked": st.unlocked,
            "level": st.level,
            "points": st.points,
            "progress_to_next_level": round(rt.progress_to_next_level(mdef.id), 4),
            "upgrades": dict(st.upgrade_levels),
        }
    return {
        "step_count": rt.step_count,
        "step_duration": rt.step_duration(),
        "resource": to_str(rt.resource),
        "production_per_step": to_str(rt.production_per_step()),
        "total_purchases": rt.total_purchases(),
        "producers": producers,
        "machines": machines,
        "auto_buyers": {
            pid: {"rate": rate, "enabled": rt.automation.auto_buy_enabled.get(pid, True)}
            for pid, rate in sorted(rt.context.auto_buy_rates.items())
            if rate > 0
        },
        "season": {
            "index": ms.season,
            "harvests_this_season": ms.completed_this_season,
            "harvests_required": rt.season_completion_requirement(),
            "total_harvests": ms.total_completed,
            "next_harvest_requirement": to_str(rt.milestone_requirement()),
            "prestige_points": to_str(ms.prestige_points),
            "total_prestige_points": to_str(ms.total_prestige_points),
            "can_prestige": rt.can_prestige(),
            "upgrades": dict(ms.upgrade_levels),
        },
        "active_effects": [
            {"upgrade": name, "effect": text} for name, text in rt.effect_descriptions()
        ],
    }


def _tool_get_costs(holder: _GameHolder) -> dict[str, Any]:
    rt = holder.runtime
    return {
        "producers": {
            p.id: _num(rt.producer_cost(p.id)) for p in rt.producers.definitions
        },
        "machine_unlocks": {
            m.id: None if m.unlock_cost is None else str(m.unlock_cost)
            for m in rt.automation.definitions
            if not rt.automation.states[m.id].unlocked
        },
        "milestone_upgrades": {
            u.id: {
                "cost": _num(rt.milestones.upgrade_cost(u.id)),
                "level": rt.milestones.level(u.id),
                "maxed": u.is_maxed(rt.milestones.level(u.id)),
                "unlocked": rt.is_upgrade_unlocked(u.id),
            }
            for u in rt.milestones.definitions
        },
    }


def _tool_buy_producer(holder: _GameHolder, producer_id: int) -> dict[str, Any]:
    rt = holder.runtime
    if rt.producers.definition(producer_id) is None:
        return {"error": f"Unknown producer: {producer_id!r}"}
    cost = rt.producer_cost(producer_id)
    if not rt.buy_producer(producer_id):
        return {"success": False, "reason": f"Cannot afford (cost {to_str(cost)})"}
    return {
        "success": True,
        "producer_id": producer_id,
        "manually_purchased": rt.producers.states[producer_id].manually_purchased,
        "resource": to_str(rt.resource),
    }


def _tool_unlock_machine(holder: _GameHolder, unit_id: int) -> dict[str, Any]:
    rt = holder.runtime
    mdef = rt.automation.definition(unit_id)
    if mdef is None:
        return {"error": f"Unknown machine: {unit_id!r}"}
    if rt.automation.states[unit_id].unlocked:
        return {"success": False, "reason": "Already unlocked"}
    if not rt.unlock_machine(unit_id):
        return {"success": False, "reason": f"Cannot afford (cost {mdef.unlock_cost})"}
    st = rt.automation.states[unit_id]
    return {"success": True, "unit_id": unit_id, "level": st.level, "points": st.points}


def _tool_buy_machine_upgrade(holder: _GameHolder, unit_id: int, upgrade_id: int) -> dict[str, Any]:
    rt = holder.runtime
    mdef = rt.automation.definition(unit_id)
    if mdef is None:
        return {"error": f"Unknown machine: {unit_id!r}"}
    udef = mdef.get_upgrade(upgrade_id)
    if udef is None:
        return {"error": f"Unknown upgrade {upgrade_id!r} on machine {unit_id!r}"}
    st = rt.automation.states[unit_id]
    if udef.is_maxed(st.upgrade_levels.get(upgrade_id, 0)):
        return {"success": False, "reason": "Already at max level"}
    if not rt.is_upgrade_unlocked(upgrade_id, unit_id):
        return {"success": False, "reason": udef.unlock.description}
    if not rt.buy_machine_upgrade(unit_id, upgrade_id):
        return {"success": False, "reason": "No machine points available"}
    return {
        "success": True,
        "level": st.upgrade_levels[upgrade_id],
        "points_left": st.points,
    }


def _tool_buy_milestone_upgrade(holder: _GameHolder, upgrade_id: int) -> dict[str, Any]:
    rt = holder.runtime
    udef = rt.milestones.definition(upgrade_id)
    if udef is None:
        return {"error": f"Unknown milestone upgrade: {upgrade_id!r}"}
    level = rt.milestones.level(upgrade_id)
    if udef.is_maxed(level):
        return {"success": False, "reason": "Already at max level"}
    if not rt.is_upgrade_unlocked(upgrade_id):
        return {"success": False, "reason": udef.unlock.description}
    cost = rt.milestones.upgrade_cost(upgrade_id)
    if not rt.buy_milestone_upgrade(upgrade_id):
        return {"success": False, "reason": f"Not enough prestige points (cost {to_str(cost)})"}
    return {
        "success": True,
        "level": rt.milestones.level(upgrade_id),
        "prestige_points": to_str(rt.milestones.state.prestige_points),
    }


def _tool_set_auto_buyer(holder: _GameHolder, producer_id: int, enabled: bool) -> dict[str, Any]:
    if not holder.runtime.set_auto_buyer_enabled(producer_id, enabled):
        return {"error": f"Unknown producer: {producer_id!r}"}
    return {"success": True, "producer_id": producer_id, "enabled": bool(enabled)}


def _tool_force_step(holder: _GameHolder, count: int = 1) -> dict[str, Any]:
    if count < 1:
        return {"error": "Count must be at least 1"}
    rt = holder.runtime
    before = rt.resource
    done = 0
    for _ in range(count):
        if not rt.force_step():
            break
        done += 1
    if done == 0:
        return {"success": False, "reason": "Catch-up in progress"}
    return {
        "success": True,
        "steps": done,
        "step_count": rt.step_count,
        "resource": to_str(rt.resource),
        "resource_change": to_str(rt.resource - before),
    }


def _tool_wait(holder: _GameHolder, seconds: float) -> dict[str, Any]:
    if seconds <= 0:
        return {"error": "Seconds must be positive"}
    if seconds > _MAX_WAIT:
        return {"error": f"Cannot wait more than {_MAX_WAIT} seconds (24h) per call"}

    rt = holder.runtime
    harvests_before = rt.milestones.state.total_completed
    report = rt.catch_up(seconds).skip()
    result: dict[str, Any] = {
        "waited": seconds,
        "steps": report.steps_done,
        "resource_gained": to_str(report.resource_gained),
        "resource": to_str(rt.resource),
    }
    new_harvests = rt.milestones.state.total_completed - harvests_before
    if new_harvests:
        result["new_harvests"] = new_harvests
    return result


def _tool_prestige(holder: _GameHolder) -> dict[str, Any]:
    result = holder.runtime.prestige()
    if result.success:
        return {
            "success": True,
            "points_awarded": to_str(result.points_awarded),
            "season": result.season,
        }
    return {"success": False, "reason": result.reason}


def _tool_save_checkpoint(holder: _GameHolder) -> dict[str, Any]:
    return {"checkpoint": holder.runtime.serialize()}


def _tool_load_checkpoint(holder: _GameHolder, checkpoint: dict[str, Any]) -> dict[str, Any]:
    try:
        holder.runtime = deserialize(holder.definition, checkpoint)
    except CheckpointError as exc:
        return {"success": False, "reason": str(exc)}
    return {"success": True, "step_count": holder.runtime.step_count}


def _tool_new_game(holder: _GameHolder) -> dict[str, Any]:
    holder.runtime = GameRuntime(holder.definition)
    return {"success": True, "message": "Game reset to initial state"}


# ── Server factory ──────────────────────────────────────────────────


def create_server(definition: GameDefinition, runtime: GameRuntime | None = None) -> FastMCP:
    """Create an MCP server wrapping *runtime* (a fresh one by default) for the given definition."""
    holder = _GameHolder(
        definition=definition,
        runtime=runtime if runtime is not None else GameRuntime(definition),
    )

    mcp = FastMCP(
        name=f"SeedFarm: {definition.config.name}",
    )

    @mcp.tool()
    def get_game_info() -> dict[str, Any]:
        """Get the static catalog: producers, machines and their upgrades, milestone upgrades."""
        return _tool_get_game_info(holder)

    @mcp.tool()
    def get_game_state() -> dict[str, Any]:
        """Get the current state: resource, producers, machines, season and active effects."""
        return _tool_get_game_state(holder)

    @mcp.tool()
    def get_costs() -> dict[str, Any]:
        """Get the next price of every producer, locked machine and milestone upgrade."""
        return _tool_get_costs(holder)

    @mcp.tool()
    def buy_producer(producer_id: int) -> dict[str, Any]:
        """Buy one unit of a producer. Returns success/failure with reason."""
        return _tool_buy_producer(holder, producer_id)

    @mcp.tool()
    def unlock_machine(unit_id: int) -> dict[str, Any]:
        """Pay a machine's unlock cost."""
        return _tool_unlock_machine(holder, unit_id)

    @mcp.tool()
    def buy_machine_upgrade(unit_id: int, upgrade_id: int) -> dict[str, Any]:
        """Spend one machine point on an upgrade of that machine."""
        return _tool_buy_machine_upgrade(holder, unit_id, upgrade_id)

    @mcp.tool()
    def buy_milestone_upgrade(upgrade_id: int) -> dict[str, Any]:
        """Spend prestige points on a milestone upgrade."""
        return _tool_buy_milestone_upgrade(holder, upgrade_id)

    @mcp.tool()
    def set_auto_buyer(producer_id: int, enabled: bool) -> dict[str, Any]:
        """Enable or disable the auto-buyer of a producer."""
        return _tool_set_auto_buyer(holder, producer_id, enabled)

    @mcp.tool()
    def force_step(count: int = 1) -> dict[str, Any]:
        """Advance the game by one or more steps immediately."""
        return _tool_force_step(holder, count)

    @mcp.tool()
    def wait(seconds: float) -> dict[str, Any]:
        """Replay the steps covered by the given seconds of real time (max 86400)."""
        return _tool_wait(holder, seconds)

    @mcp.tool()
    def prestige() -> dict[str, Any]:
        """Close the season for prestige points and start a new one."""
        return _tool_prestige(holder)

    @mcp.tool()
    def save_checkpoint() -> dict[str, Any]:
        """Return the full game state as checkpoint data."""
        return _tool_save_checkpoint(holder)

    @mcp.tool()
    def load_checkpoint(checkpoint: dict[str, Any]) -> dict[str, Any]:
        """Replace the game state with checkpoint data from save_checkpoint."""
        return _tool_load_checkpoint(holder, checkpoint)

    @mcp.tool()
    def new_game() -> dict[str, Any]:
        """Reset the game to initial state."""
        return _tool_new_game(holder)

    return mcp
