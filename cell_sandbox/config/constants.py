"""Centralized domain constants for the cell simulation core.

All magic numbers that appear across multiple modules are defined here.
Consuming modules should import from this module rather than defining
their own inline literals.
"""

from __future__ import annotations

import math

HEX_SIZE = 16.0
"""Default hex tile size (center-to-corner distance, world units)."""

CELL_RADIUS = 220.0
"""Default nominal cell radius in world units."""

GRID_RADIUS = 14
"""Default axial radius of the generated hex region before circular filtering."""

DEFAULT_DT = 1.0 / 60.0
"""Default fixed timestep in seconds."""

DEFAULT_REFUND_FRACTION = 0.5
"""Fraction of contributed species returned to the footprint on cancellation."""

CONSERVATION_TOLERANCE = 0.1
"""Relative tolerance band when comparing observed and expected change rates."""

CONSERVATION_CHECK_PERCENT = 1.0
"""Default percent-per-second drift allowed for species without passive effects."""

HEX_DIRECTIONS: tuple[tuple[int, int], ...] = (
    (1, 0),
    (1, -1),
    (0, -1),
    (-1, 0),
    (-1, 1),
    (0, 1),
)
"""Six axial neighbor offsets, counter-clockwise from east."""

SQRT3 = math.sqrt(3.0)
"""Cached square root of three used by flat-top hex conversions."""

DEFAULT_EXTERNAL_CONCENTRATIONS: dict[str, float] = {
    "GLUCOSE": 50.0,
    "ROS": 2.0,
    "H2O": 100.0,
    "CO2": 10.0,
}
"""Constant external concentrations seen by membrane transporters."""

DEFAULT_LIGAND_PRESENCE: dict[str, float] = {
    "LIGAND_GROWTH": 1.0,
}
"""Constant external ligand presences seen by membrane receptors."""

PROTEIN_CAPABLE_STRUCTURES: frozenset[str] = frozenset(
    {"membrane-port", "transporter", "receptor", "exocyst-hotspot"}
)
"""Structure types that claim a membrane tile's single protein slot."""
