# idlecore: Hacker Incremental economy engine

from idlecore.errors import IdleCoreError, InvalidNumberError, SaveFormatError, StorageError
from idlecore.bignum import BigNum, NumberLike, ZERO, ONE
from idlecore.currency import Resource, ResourceBalance, ResourceLedger
from idlecore.cost_scaling import (
    CostScaling,
    calculate_cost,
    calculate_linear_cost,
    calculate_bulk_cost,
    calculate_affordable_levels,
)
from idlecore.effect import EffectType, EffectMode, Stacking, EffectDef, Effect
from idlecore.upgrade import UpgradeCategory, UpgradeDef, UpgradeStatus
from idlecore.minigame import MinigameDef, MinigameRecord, insert_score
from idlecore.automation import AutomationDef, AutomationState, AutomationRunner
from idlecore.definition import GameDefinition, EngineConfig
from idlecore.state import GameState, SAVE_VERSION
from idlecore.pipeline import ProductionPipeline, GenerationBreakdown
from idlecore.runtime import GameRuntime, PurchaseResult
from idlecore.subsystem import Subsystem
from idlecore.clock import Scheduler, ManualScheduler, AsyncioScheduler
from idlecore.tick import TickEngine, TickPhase, TickState
from idlecore.offline import (
    OfflineProgressResult,
    OfflineProgressSession,
    calculate_offline_progress,
    apply_offline_progress,
    process_offline_progress,
    preview_offline_earnings,
)
from idlecore.persistence import (
    StorageAdapter,
    MemoryStorage,
    FileStorage,
    SaveManager,
    SaveResult,
    LoadResult,
    SaveSlotMetadata,
)
from idlecore.catalog import define_game
from idlecore.formatting import format_number, format_time, format_status_report

__all__ = [
    # Errors
    "IdleCoreError",
    "InvalidNumberError",
    "SaveFormatError",
    "StorageError",
    # Numbers
    "BigNum",
    "NumberLike",
    "ZERO",
    "ONE",
    # Resources
    "Resource",
    "ResourceBalance",
    "ResourceLedger",
    # Cost
    "CostScaling",
    "calculate_cost",
    "calculate_linear_cost",
    "calculate_bulk_cost",
    "calculate_affordable_levels",
    # Effects
    "EffectType",
    "EffectMode",
    "Stacking",
    "EffectDef",
    "Effect",
    # Data model
    "UpgradeCategory",
    "UpgradeDef",
    "UpgradeStatus",
    "MinigameDef",
    "MinigameRecord",
    "insert_score",
    "AutomationDef",
    "AutomationState",
    "AutomationRunner",
    # Definition
    "GameDefinition",
    "EngineConfig",
    "define_game",
    # State
    "GameState",
    "SAVE_VERSION",
    # Pipeline
    "ProductionPipeline",
    "GenerationBreakdown",
    # Runtime
    "GameRuntime",
    "PurchaseResult",
    "Subsystem",
    # Tick loop
    "Scheduler",
    "ManualScheduler",
    "AsyncioScheduler",
    "TickEngine",
    "TickPhase",
    "TickState",
    # Offline
    "OfflineProgressResult",
    "OfflineProgressSession",
    "calculate_offline_progress",
    "apply_offline_progress",
    "process_offline_progress",
    "preview_offline_earnings",
    # Persistence
    "StorageAdapter",
    "MemoryStorage",
    "FileStorage",
    "SaveManager",
    "SaveResult",
    "LoadResult",
    "SaveSlotMetadata",
    # Formatting
    "format_number",
    "format_time",
    "format_status_report",
]
