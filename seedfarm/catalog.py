"""The built-in seed economy: five farms, two machines and the season meta-upgrades."""
from __future__ import annotations

from seedfarm.automation import LevelingMode, MachineDef
from seedfarm.cost_scaling import CostScaling
from seedfarm.definition import GameConfig, GameDefinition
from seedfarm.effect import Effect, EffectType
from seedfarm.numeric import CONTEXT, D, ONE, power
from seedfarm.producer import ProducerDef
from seedfarm.requirement import Req
from seedfarm.upgrade import UpgradeDef

# Meta-upgrade ids.
FARM1_BOOST = 0
STARTING_SEEDS = 1
HARVEST_EFFICIENCY = 2
DUAL_FARM_BOOST = 3
HARVEST_POINTS_BOOST = 4
HARVEST_POINTS_MULTIPLIER = 9
FASTER_TICKS_I = 10
FASTER_TICKS_II = 11
PROCESSOR_TUNING = 13
ENHANCER_TUNING = 14
FARM1_DISCOUNT = 15
FARM2_DISCOUNT = 16

# farm id -> (meta-upgrade id, base cost, cost scaling)
AUTO_BUYERS: dict[int, tuple[int, int, str]] = {
    0: (5, 5, "2"),
    1: (6, 10, "2.5"),
    2: (7, 20, "3"),
    3: (8, 40, "4"),
    4: (12, 80, "5"),
}

SEED_PROCESSOR = 0
FARM2_ENHANCER = 1


def _farms() -> list[ProducerDef]:
    return [
        ProducerDef(
            0, "Farm 1", base_cost=3, base_production=100,
            cost_multiplier=3, cost_base="1.065", cost_linear="0.004",
            cost_threshold=999, cost_divisor=1000, initial_owned=1,
        ),
        ProducerDef(
            1, "Farm 2", base_cost=2000, base_production=1,
            cost_multiplier=2000, cost_base="2.9", cost_linear="0.3",
            cost_threshold=199, cost_divisor=500, feeds=0,
        ),
        ProducerDef(
            2, "Farm 3", base_cost="1e8", base_production=1,
            cost_multiplier="1e8", cost_base=20, cost_linear=10,
            cost_threshold=99, cost_divisor=CONTEXT.divide(D(1000), D(3)), feeds=1,
        ),
        ProducerDef(
            3, "Farm 4", base_cost="4e18", base_production=1,
            cost_multiplier="4e18", cost_base=50, cost_linear=30,
            cost_threshold=74, cost_divisor=200, feeds=2,
        ),
        ProducerDef(
            4, "Farm 5", base_cost="1e32", base_production=1,
            cost_multiplier="1e32", cost_base=100, cost_linear=50,
            cost_threshold=50, cost_divisor=150, feeds=3,
        ),
    ]


def _tick_accelerator(level: int, _owner: int):
    return ONE - min(D("0.5"), level * D("0.05"))


def _machines() -> list[MachineDef]:
    return [
        MachineDef(
            SEED_PROCESSOR,
            "Seed Processor",
            "Increases Farm 1 production efficiency, boosting seed generation",
            leveling=LevelingMode.STEPS,
            base_requirement=10,
            scaling_factor="1.4",
            upgrades=[
                UpgradeDef(
                    0, "Seed Boost",
                    "Increases Farm 1 production by 10% per level per machine level",
                    effects=[Effect.producer_boost(0, "0.1", label="Farm 1")],
                ),
                UpgradeDef(
                    1, "Cross-Farm Synergy",
                    "Increases Farm 2 production based on this machine's level",
                    effects=[Effect.producer_boost(1, "0.01", label="Farm 2")],
                    unlock=Req.at_least(0, 5, "Seed Boost"),
                ),
                UpgradeDef(
                    2, "Differential Boost",
                    "Increases Farm 1 by 10% and Farm 2 by 5% per level per machine level",
                    effects=[
                        Effect.producer_boost(0, "0.1", label="Farm 1"),
                        Effect.producer_boost(1, "0.05", label="Farm 2"),
                    ],
                    unlock=Req.at_least(1, 3, "Cross-Farm Synergy"),
                ),
            ],
        ),
        MachineDef(
            FARM2_ENHANCER,
            "Farm 2 Enhancer",
            "Boosts Farm 2 production based on manual purchases",
            leveling=LevelingMode.PURCHASES,
            base_requirement=10,
            unlock_cost=25000,
            upgrades=[
                UpgradeDef(
                    0, "Farm 2 Boost",
                    "Increases Farm 2 production by 15% per level per machine level",
                    effects=[Effect.producer_boost(1, "0.15", label="Farm 2")],
                ),
                UpgradeDef(
                    1, "Dual Farm Enhancer",
                    "Increases Farm 1 and Farm 2 production by 5% per level per machine level",
                    effects=[
                        Effect.producer_boost(0, "0.05", label="Farm 1"),
                        Effect.producer_boost(1, "0.05", label="Farm 2"),
                    ],
                    unlock=Req.at_least(0, 4, "Farm 2 Boost"),
                ),
                UpgradeDef(
                    2, "Advanced Farm Synergy",
                    "Increases Farm 1 by 7% and Farm 2 by 12% per level per machine level",
                    effects=[
                        Effect.producer_boost(0, "0.07", label="Farm 1"),
                        Effect.producer_boost(1, "0.12", label="Farm 2"),
                    ],
                    unlock=Req.at_least(1, 3, "Dual Farm Enhancer"),
                ),
                UpgradeDef(
                    3, "Tick Accelerator",
                    "Decreases the time between steps by 5% per level",
                    max_level=10,
                    effects=[
                        Effect.custom(
                            EffectType.STEP_DURATION_MULT,
                            _tick_accelerator,
                            describe=lambda level, _o: f"{min(50, level * 5)}% faster steps (max 50%)",
                        )
                    ],
                    unlock=Req.at_least(2, 2, "Advanced Farm Synergy"),
                ),
            ],
        ),
    ]


def _auto_buyer(farm: ProducerDef) -> UpgradeDef:
    upgrade_id, base_cost, scaling = AUTO_BUYERS[farm.id]
    return UpgradeDef(
        upgrade_id,
        f"{farm.name} Auto-Buyer",
        f"Automatically purchases {farm.name} every step based on level",
        effects=[Effect.auto_buy(farm.id, label=farm.name)],
        base_cost=base_cost,
        cost_scaling=CostScaling.exponential(scaling),
        category="Auto-Buyers",
    )


def _milestone_upgrades(farms: list[ProducerDef]) -> list[UpgradeDef]:
    upgrades = [
        UpgradeDef(
            FARM1_BOOST, "Farm 1 Boost",
            "Increases Farm 1 production by 10% per level",
            effects=[Effect.producer_boost(0, "0.1", per_owner_level=False, label="Farm 1")],
            base_cost=1, cost_scaling=CostScaling.exponential("1.5"),
            category="Production",
        ),
        UpgradeDef(
            STARTING_SEEDS, "Starting Seeds",
            "Start each new season with more seeds",
            effects=[
                Effect.custom(
                    EffectType.STARTING_RESOURCE,
                    lambda level, _o: power(10, level),
                    describe=lambda level, _o: f"Start with 10^{level} seeds",
                )
            ],
            max_level=5, base_cost=3, cost_scaling=CostScaling.exponential(2),
            category="Season",
        ),
        UpgradeDef(
            HARVEST_EFFICIENCY, "Harvest Efficiency",
            "Reduces seed requirements for harvests",
            effects=[
                Effect.custom(
                    EffectType.MILESTONE_REQUIREMENT_MULT,
                    lambda level, _o: max(D("0.5"), ONE - level * D("0.05")),
                    describe=lambda level, _o: f"-{min(50, level * 5)}% harvest requirements",
                )
            ],
            max_level=10, base_cost=5, cost_scaling=CostScaling.exponential("2.5"),
            category="Harvest",
        ),
        UpgradeDef(
            DUAL_FARM_BOOST, "Dual Farm Boost",
            "Increases both Farm 1 and Farm 2 production",
            effects=[
                Effect.producer_boost(0, "0.05", per_owner_level=False, label="Farm 1"),
                Effect.producer_boost(1, "0.08", per_owner_level=False, label="Farm 2"),
            ],
            base_cost=8, cost_scaling=CostScaling.exponential(2),
            category="Production",
        ),
        UpgradeDef(
            HARVEST_POINTS_BOOST, "Harvest Points Boost",
            "Increases prestige points earned from each harvest",
            effects=[
                Effect.custom(
                    EffectType.MILESTONE_POINTS_ADD,
                    lambda level, _o: level,
                    describe=lambda level, _o: f"+{level} points per harvest",
                )
            ],
            max_level=5, base_cost=10, cost_scaling=CostScaling.exponential(3),
            category="Harvest",
        ),
        UpgradeDef(
            HARVEST_POINTS_MULTIPLIER, "Harvest Points Multiplier",
            "Increases prestige points earned from each harvest by 10% per level",
            effects=[
                Effect.custom(
                    EffectType.MILESTONE_POINTS_MULT,
                    lambda level, _o: ONE + level * D("0.1"),
                    describe=lambda level, _o: f"+{level * 10}% harvest points",
                )
            ],
            base_cost=7, cost_scaling=CostScaling.exponential("1.5"),
            category="Harvest",
        ),
        UpgradeDef(
            FASTER_TICKS_I, "Faster Ticks I",
            "Reduces the step duration by 0.1 seconds per level",
            effects=[_step_reduction()],
            max_level=10, base_cost=25, cost_scaling=CostScaling.exponential(2),
            category="Speed",
        ),
        UpgradeDef(
            FASTER_TICKS_II, "Faster Ticks II",
            "Further reduces the step duration by 0.1 seconds per level",
            effects=[_step_reduction()],
            max_level=10, base_cost=100, cost_scaling=CostScaling.exponential(3),
            unlock=Req.at_least(FASTER_TICKS_I, 10, "Faster Ticks I"),
            category="Speed",
        ),
        UpgradeDef(
            PROCESSOR_TUNING, "Processor Tuning",
            "Seed Processor needs 10% fewer steps per level",
            effects=[Effect.requirement_reduction(SEED_PROCESSOR, "0.1", label="Seed Processor")],
            max_level=9, base_cost=15, cost_scaling=CostScaling.exponential(2),
            category="Machines",
        ),
        UpgradeDef(
            ENHANCER_TUNING, "Enhancer Tuning",
            "Farm 2 Enhancer needs 10% fewer purchases per level",
            effects=[Effect.requirement_reduction(FARM2_ENHANCER, "0.1", label="Farm 2 Enhancer")],
            max_level=9, base_cost=15, cost_scaling=CostScaling.exponential(2),
            category="Machines",
        ),
        UpgradeDef(
            FARM1_DISCOUNT, "Farm 1 Discount",
            "Farm 1 costs are divided by 1.05 per level",
            effects=[Effect.cost_reduction(0, "0.05", label="Farm 1")],
            max_level=10, base_cost=12, cost_scaling=CostScaling.exponential(2),
            category="Production",
        ),
        UpgradeDef(
            FARM2_DISCOUNT, "Farm 2 Discount",
            "Farm 2 costs are divided by 1.05 per level",
            effects=[Effect.cost_reduction(1, "0.05", label="Farm 2")],
            max_level=10, base_cost=20, cost_scaling=CostScaling.exponential("2.5"),
            unlock=Req.at_least(FARM1_DISCOUNT, 3, "Farm 1 Discount"),
            category="Production",
        ),
    ]
    upgrades.extend(_auto_buyer(f) for f in farms)
    return upgrades


def _step_reduction():
    return Effect.custom(
        EffectType.STEP_DURATION_REDUCTION,
        lambda level, _o: level * D("0.1"),
        describe=lambda level, _o: f"-{level * D('0.1')} seconds per step",
    )


def define_game() -> GameDefinition:
    farms = _farms()
    return GameDefinition(
        config=GameConfig(name="Seed Farmer"),
        producers=farms,
        machines=_machines(),
        milestone_upgrades=_milestone_upgrades(farms),
    )
