"""Simulation layer: diffusion, membrane exchange, construction, tick driver."""

from cell_sandbox.simulation.construction import (
    Blueprint,
    BlueprintLedger,
    CompletionEvent,
    OperationResult,
    PlacementResult,
    PlacementValidation,
    ProgressRow,
)
from cell_sandbox.simulation.diffusion import DiffusionEngine
from cell_sandbox.simulation.engine import CellSimulation, TickReport, populate_grid
from cell_sandbox.simulation.membrane import (
    ExternalEnvironment,
    MembraneExchange,
    MembraneExchangeStats,
)
from cell_sandbox.simulation.passive_effects import (
    PassiveEffect,
    PassiveEffects,
    default_passive_effects,
)

__all__ = [
    "Blueprint",
    "BlueprintLedger",
    "CellSimulation",
    "CompletionEvent",
    "DiffusionEngine",
    "ExternalEnvironment",
    "MembraneExchange",
    "MembraneExchangeStats",
    "OperationResult",
    "PassiveEffect",
    "PassiveEffects",
    "PlacementResult",
    "PlacementValidation",
    "ProgressRow",
    "TickReport",
    "default_passive_effects",
    "populate_grid",
]
