# seedfarm: step-based seed economy engine with offline catch-up

from seedfarm._types import compare
from seedfarm.numeric import D, exact
from seedfarm.errors import SeedFarmError, ConfigurationError, CheckpointError
from seedfarm.requirement import Requirement, Req
from seedfarm.cost_scaling import CostScaling
from seedfarm.effect import EffectType, EffectLayer, EffectDef, Effect
from seedfarm.context import EffectContext
from seedfarm.currency import ResourceState
from seedfarm.upgrade import UpgradeDef
from seedfarm.producer import ProducerDef, ProducerState, ProducerLedger
from seedfarm.automation import LevelingMode, MachineDef, MachineState, AutomationLedger
from seedfarm.milestone import (
    MilestoneLedger,
    MilestoneRecord,
    MilestoneState,
    season_completion_requirement,
)
from seedfarm.composer import EffectComposer
from seedfarm.prestige import PrestigeResult
from seedfarm.definition import GameDefinition, GameConfig
from seedfarm.runtime import GameRuntime
from seedfarm.catchup import CatchUpProcessor, CatchUpReport
from seedfarm.checkpoint import serialize, deserialize, restore, load_or_default

__all__ = [
    # Types
    "compare",
    "D",
    "exact",
    # Errors
    "SeedFarmError",
    "ConfigurationError",
    "CheckpointError",
    # Requirements
    "Requirement",
    "Req",
    # Cost
    "CostScaling",
    # Effects
    "EffectType",
    "EffectLayer",
    "EffectDef",
    "Effect",
    "EffectContext",
    "EffectComposer",
    # Data model
    "ResourceState",
    "UpgradeDef",
    "ProducerDef",
    "ProducerState",
    "LevelingMode",
    "MachineDef",
    "MachineState",
    "MilestoneRecord",
    "MilestoneState",
    "season_completion_requirement",
    "PrestigeResult",
    # Ledgers
    "ProducerLedger",
    "AutomationLedger",
    "MilestoneLedger",
    # Definition
    "GameDefinition",
    "GameConfig",
    # Runtime
    "GameRuntime",
    "CatchUpProcessor",
    "CatchUpReport",
    # Checkpoints
    "serialize",
    "deserialize",
    "restore",
    "load_or_default",
]
