"""Configuration layer: constants and typed config dataclasses."""

from cell_sandbox.config.constants import (
    CELL_RADIUS,
    CONSERVATION_TOLERANCE,
    DEFAULT_DT,
    DEFAULT_REFUND_FRACTION,
    GRID_RADIUS,
    HEX_DIRECTIONS,
    HEX_SIZE,
)
from cell_sandbox.config.types import EnvironmentConfig, GridConfig, SimulationConfig

__all__ = [
    "CELL_RADIUS",
    "CONSERVATION_TOLERANCE",
    "DEFAULT_DT",
    "DEFAULT_REFUND_FRACTION",
    "EnvironmentConfig",
    "GRID_RADIUS",
    "GridConfig",
    "HEX_DIRECTIONS",
    "HEX_SIZE",
    "SimulationConfig",
]
