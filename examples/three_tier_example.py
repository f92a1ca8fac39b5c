"""A small three-tier economy: one machine, a couple of meta-upgrades."""
from __future__ import annotations

from seedfarm.automation import LevelingMode, MachineDef
from seedfarm.cost_scaling import CostScaling
from seedfarm.definition import GameConfig, GameDefinition
from seedfarm.effect import Effect
from seedfarm.producer import ProducerDef
from seedfarm.requirement import Req
from seedfarm.upgrade import UpgradeDef


def define_game() -> GameDefinition:
    return GameDefinition(
        config=GameConfig(
            name="Three Tier Example",
            resource_name="grain",
            base_step_duration=2.0,
            min_step_duration=0.5,
            catch_up_batch_size=50,
            base_milestone_requirement=500,
        ),
        producers=[
            ProducerDef(
                0, "Field", base_cost=5, base_production=10,
                cost_multiplier=5, cost_base="1.1", cost_linear="0.01",
                cost_threshold=100, cost_divisor=100, initial_owned=1,
            ),
            ProducerDef(
                1, "Barn", base_cost=250, base_production=1,
                cost_multiplier=250, cost_base=2, cost_linear="0.1",
                cost_threshold=50, cost_divisor=100, feeds=0,
            ),
            ProducerDef(
                2, "Mill", base_cost=50000, base_production=1,
                cost_multiplier=50000, cost_base=5, cost_linear=1,
                cost_threshold=25, cost_divisor=50, feeds=1,
            ),
        ],
        machines=[
            MachineDef(
                0,
                "Tractor",
                "Levels up as fields are bought",
                leveling=LevelingMode.PURCHASES,
                base_requirement=5,
                unlock_cost=100,
                upgrades=[
                    UpgradeDef(
                        0, "Plough",
                        effects=[Effect.producer_boost(0, "0.2", label="Field")],
                    ),
                    UpgradeDef(
                        1, "Trailer",
                        effects=[Effect.producer_boost(1, "0.1", label="Barn")],
                        unlock=Req.at_least(0, 2, "Plough"),
                        max_level=5,
                    ),
                ],
            ),
        ],
        milestone_upgrades=[
            UpgradeDef(
                0, "Fertile Soil", "Fields produce 25% more per level",
                effects=[Effect.producer_boost(0, "0.25", per_owner_level=False, label="Field")],
                cost_scaling=CostScaling.exponential(2),
            ),
            UpgradeDef(
                1, "Field Hand", "Buys one Field every step per level",
                effects=[Effect.auto_buy(0, label="Field")],
                base_cost=2,
                cost_scaling=CostScaling.exponential(3),
                max_level=3,
            ),
        ],
    )
