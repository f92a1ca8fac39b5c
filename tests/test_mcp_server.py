"""Tests for MCP server tool functions."""

import json

import seedfarm.mcp.server as server_module
from seedfarm import catalog
from seedfarm.catalog import define_game
from seedfarm.numeric import D
from seedfarm.runtime import GameRuntime
from seedfarm.mcp.__main__ import build_parser, main

from seedfarm.mcp.server import (
    _GameHolder,
    _tool_buy_machine_upgrade,
    _tool_buy_milestone_upgrade,
    _tool_buy_producer,
    _tool_force_step,
    _tool_get_costs,
    _tool_get_game_info,
    _tool_get_game_state,
    _tool_load_checkpoint,
    _tool_new_game,
    _tool_prestige,
    _tool_save_checkpoint,
    _tool_set_auto_buyer,
    _tool_unlock_machine,
    _tool_wait,
    create_server,
)


def _make_holder() -> _GameHolder:
    defn = define_game()
    return _GameHolder(definition=defn, runtime=GameRuntime(defn))


# ── get_game_info ────────────────────────────────────────────────────


def test_game_info():
    info = _tool_get_game_info(_make_holder())
    assert info["name"] == "Seed Farmer"
    assert info["resource"] == "seeds"
    assert [p["name"] for p in info["producers"]][:2] == ["Farm 1", "Farm 2"]
    assert info["producers"][1]["feeds"] == 0
    assert info["machines"][1]["leveling"] == "purchases"
    assert info["machines"][1]["unlock_cost"] == "25000"
    assert any(u["name"] == "Starting Seeds" for u in info["milestone_upgrades"])


# ── get_game_state ───────────────────────────────────────────────────


def test_initial_state():
    state = _tool_get_game_state(_make_holder())
    assert state["step_count"] == 0
    assert state["resource"] == "0"
    assert state["production_per_step"] == "100"
    assert state["producers"][0]["total_owned"] == "1"
    assert state["machines"][0]["unlocked"] is True
    assert state["machines"][1]["unlocked"] is False
    assert state["season"]["index"] == 1
    assert state["season"]["harvests_required"] == 3
    assert state["season"]["can_prestige"] is False
    assert state["auto_buyers"] == {}
    assert state["active_effects"] == []


def test_state_lists_active_effects():
    holder = _make_holder()
    _tool_force_step(holder, 10)
    _tool_buy_machine_upgrade(holder, catalog.SEED_PROCESSOR, 0)
    state = _tool_get_game_state(holder)
    assert state["active_effects"] == [{"upgrade": "Seed Boost", "effect": "+20% to Farm 1"}]


# ── get_costs ────────────────────────────────────────────────────────


def test_costs():
    holder = _make_holder()
    costs = _tool_get_costs(holder)
    assert costs["producers"][0] == "3.207"
    assert costs["producers"][1] == "2000"
    assert costs["machine_unlocks"] == {1: "25000"}
    starting = costs["milestone_upgrades"][catalog.STARTING_SEEDS]
    assert starting == {"cost": "3", "level": 0, "maxed": False, "unlocked": True}
    assert costs["milestone_upgrades"][catalog.FASTER_TICKS_II]["unlocked"] is False


# ── purchases ────────────────────────────────────────────────────────


def test_buy_producer():
    holder = _make_holder()
    result = _tool_buy_producer(holder, 0)
    assert result["success"] is False
    assert "3.207" in result["reason"]

    _tool_force_step(holder)
    result = _tool_buy_producer(holder, 0)
    assert result["success"] is True
    assert result["manually_purchased"] == 2
    assert result["resource"] == "96.793"


def test_buy_unknown_producer():
    assert "error" in _tool_buy_producer(_make_holder(), 42)


def test_unlock_machine():
    holder = _make_holder()
    assert "error" in _tool_unlock_machine(holder, 9)
    assert _tool_unlock_machine(holder, catalog.SEED_PROCESSOR)["reason"] == "Already unlocked"
    assert _tool_unlock_machine(holder, catalog.FARM2_ENHANCER)["success"] is False

    holder.runtime.wallet.current = D(30000)
    result = _tool_unlock_machine(holder, catalog.FARM2_ENHANCER)
    assert result == {"success": True, "unit_id": 1, "level": 1, "points": 0}
    assert holder.runtime.resource == 5000


def test_buy_machine_upgrade():
    holder = _make_holder()
    assert "error" in _tool_buy_machine_upgrade(holder, 5, 0)
    assert "error" in _tool_buy_machine_upgrade(holder, catalog.SEED_PROCESSOR, 9)

    result = _tool_buy_machine_upgrade(holder, catalog.SEED_PROCESSOR, 0)
    assert result == {"success": False, "reason": "No machine points available"}

    result = _tool_buy_machine_upgrade(holder, catalog.SEED_PROCESSOR, 1)
    assert result["success"] is False
    assert "Seed Boost" in result["reason"]

    _tool_force_step(holder, 10)
    result = _tool_buy_machine_upgrade(holder, catalog.SEED_PROCESSOR, 0)
    assert result == {"success": True, "level": 1, "points_left": 0}


def test_buy_milestone_upgrade():
    holder = _make_holder()
    assert "error" in _tool_buy_milestone_upgrade(holder, 99)

    result = _tool_buy_milestone_upgrade(holder, catalog.STARTING_SEEDS)
    assert result["success"] is False
    assert "cost 3" in result["reason"]

    holder.runtime.milestones.state.prestige_points = D(3)
    result = _tool_buy_milestone_upgrade(holder, catalog.STARTING_SEEDS)
    assert result == {"success": True, "level": 1, "prestige_points": "0"}


def test_milestone_upgrade_max_level():
    holder = _make_holder()
    holder.runtime.milestones.state.upgrade_levels[catalog.STARTING_SEEDS] = 5
    result = _tool_buy_milestone_upgrade(holder, catalog.STARTING_SEEDS)
    assert result == {"success": False, "reason": "Already at max level"}


def test_set_auto_buyer():
    holder = _make_holder()
    assert "error" in _tool_set_auto_buyer(holder, 9, True)
    result = _tool_set_auto_buyer(holder, 0, False)
    assert result == {"success": True, "producer_id": 0, "enabled": False}

    holder.runtime.milestones.state.upgrade_levels[catalog.AUTO_BUYERS[0][0]] = 2
    holder.runtime.recompute()
    state = _tool_get_game_state(holder)
    assert state["auto_buyers"] == {0: {"rate": 2, "enabled": False}}


# ── time ─────────────────────────────────────────────────────────────


def test_force_step():
    holder = _make_holder()
    result = _tool_force_step(holder, 3)
    assert result["success"] is True
    assert result["steps"] == 3
    assert result["resource_change"] == "300"
    assert "error" in _tool_force_step(holder, 0)


def test_force_step_rejected_during_replay():
    holder = _make_holder()
    holder.runtime.replaying = True
    result = _tool_force_step(holder)
    assert result == {"success": False, "reason": "Catch-up in progress"}


def test_wait():
    holder = _make_holder()
    result = _tool_wait(holder, 105)
    assert result["steps"] == 10
    assert result["resource_gained"] == "1000"
    assert result["new_harvests"] == 1
    assert not holder.runtime.replaying


def test_wait_limits():
    holder = _make_holder()
    assert "error" in _tool_wait(holder, 0)
    assert "error" in _tool_wait(holder, 86401)


# ── prestige ─────────────────────────────────────────────────────────


def test_prestige():
    holder = _make_holder()
    result = _tool_prestige(holder)
    assert result["success"] is False
    assert "Need 3 harvests" in result["reason"]

    _tool_force_step(holder, 23)
    result = _tool_prestige(holder)
    assert result == {"success": True, "points_awarded": "3", "season": 2}


# ── checkpoints ──────────────────────────────────────────────────────


def test_save_and_load_checkpoint():
    holder = _make_holder()
    _tool_force_step(holder, 12)
    saved = _tool_save_checkpoint(holder)["checkpoint"]

    _tool_new_game(holder)
    assert holder.runtime.step_count == 0

    result = _tool_load_checkpoint(holder, saved)
    assert result == {"success": True, "step_count": 12}
    assert holder.runtime.resource == 1200


def test_load_bad_checkpoint_keeps_game():
    holder = _make_holder()
    _tool_force_step(holder, 4)
    result = _tool_load_checkpoint(holder, {"producers": {}})
    assert result["success"] is False
    assert "resource" in result["reason"]
    assert holder.runtime.step_count == 4


def test_new_game():
    holder = _make_holder()
    _tool_force_step(holder, 5)
    result = _tool_new_game(holder)
    assert result["success"] is True
    assert holder.runtime.step_count == 0
    assert holder.runtime.resource == 0


def test_create_server():
    server = create_server(define_game())
    assert server.name == "SeedFarm: Seed Farmer"


# ── entry point ──────────────────────────────────────────────────────


def test_entry_point_resumes_from_checkpoint(tmp_path, monkeypatch):
    args = build_parser().parse_args([])
    assert (args.catalog, args.checkpoint, args.verbose) == ("seedfarm.catalog", None, False)

    rt = GameRuntime(define_game())
    rt.run(7)
    path = tmp_path / "save.json"
    path.write_text(json.dumps(rt.serialize()))

    served = {}

    class _FakeServer:
        def run(self, transport):
            served["transport"] = transport

    def _fake_create_server(definition, runtime=None):
        served["runtime"] = runtime
        return _FakeServer()

    monkeypatch.setattr(server_module, "create_server", _fake_create_server)
    main(["seedfarm.catalog", "--checkpoint", str(path)])

    assert served["transport"] == "stdio"
    assert served["runtime"].step_count == 7
