"""Diagnostics over simulation state."""

from cell_sandbox.metrics.conservation import (
    ConservationCheck,
    ConservationData,
    ConservationOracle,
)

__all__ = [
    "ConservationCheck",
    "ConservationData",
    "ConservationOracle",
]
