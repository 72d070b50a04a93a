"""Axial hex grid with dense per-tile species concentrations.

Coordinates are flat-top axial ``(q, r)`` with implicit cube ``s = -q - r``.
Tiles are keyed by ``HexCoord`` directly; concentrations live in one
``(n_tiles, n_species)`` float matrix whose rows are assigned at generation
time and compacted whenever the topology changes.

Membrane invariant: a tile is a membrane tile iff at least one of its six
neighbor coordinates has no tile, or that neighbor's world position falls
outside the nominal circular cell radius.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

from cell_sandbox.config.constants import HEX_DIRECTIONS, HEX_SIZE, SQRT3
from cell_sandbox.domain.species import SpeciesTable

logger = logging.getLogger(__name__)

WorldPos = tuple[float, float]


@dataclass(frozen=True, order=True)
class HexCoord:
    """Axial hex coordinate. Hashable, usable as a dict key."""

    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    def __add__(self, other: HexCoord) -> HexCoord:
        if isinstance(other, HexCoord):
            return HexCoord(self.q + other.q, self.r + other.r)
        return NotImplemented

    def __sub__(self, other: HexCoord) -> HexCoord:
        if isinstance(other, HexCoord):
            return HexCoord(self.q - other.q, self.r - other.r)
        return NotImplemented

    def __str__(self) -> str:
        return f"({self.q}, {self.r})"

    def neighbors(self) -> tuple[HexCoord, ...]:
        """All six neighbor coordinates, whether or not a tile exists there."""
        return tuple(self + offset for offset in HEX_DIRECTION_COORDS)

    def distance_to(self, other: HexCoord) -> int:
        """Hex (cube Manhattan) distance."""
        return (abs(self.q - other.q) + abs(self.r - other.r) + abs(self.s - other.s)) // 2

    def is_adjacent(self, other: HexCoord) -> bool:
        return self.distance_to(other) == 1


HEX_DIRECTION_COORDS: tuple[HexCoord, ...] = tuple(HexCoord(dq, dr) for dq, dr in HEX_DIRECTIONS)
"""``HEX_DIRECTIONS`` as ``HexCoord`` offsets."""


def cube_round(x: float, y: float, z: float) -> tuple[int, int, int]:
    """Round fractional cube coordinates to the containing hex.

    Each component is rounded independently, then the one with the largest
    rounding error is recomputed from the other two so that x + y + z == 0.
    """
    rx, ry, rz = round(x), round(y), round(z)
    x_diff = abs(rx - x)
    y_diff = abs(ry - y)
    z_diff = abs(rz - z)
    if x_diff > y_diff and x_diff > z_diff:
        rx = -ry - rz
    elif y_diff > z_diff:
        ry = -rx - rz
    else:
        rz = -rx - ry
    return int(rx), int(ry), int(rz)


@dataclass
class Tile:
    """One grid tile. ``row`` indexes the grid's concentration matrix."""

    coord: HexCoord
    world_pos: WorldPos
    row: int
    is_membrane: bool = False
    membrane_index: int | None = None


class HexGrid:
    """Spatial model owning all tiles and their concentrations."""

    def __init__(
        self,
        species: SpeciesTable,
        hex_size: float = HEX_SIZE,
        center: WorldPos = (0.0, 0.0),
    ) -> None:
        if hex_size <= 0.0:
            raise ValueError("hex_size must be > 0")
        self.species = species
        self.hex_size = hex_size
        self.center: WorldPos = (float(center[0]), float(center[1]))
        self._tiles: dict[HexCoord, Tile] = {}
        self._conc = np.zeros((0, len(species)), dtype=float)
        self._cell_center: WorldPos | None = None
        self._cell_radius: float | None = None
        self.topology_version = 0

    # ------------------------------------------------------------------
    # Topology
    # ------------------------------------------------------------------

    def generate_tiles(self, radius: int) -> None:
        """Populate every axial tile within ``radius`` (hex-shaped region)."""
        if radius < 0:
            raise ValueError("radius must be >= 0")
        self._tiles = {}
        row = 0
        for q in range(-radius, radius + 1):
            r1 = max(-radius, -q - radius)
            r2 = min(radius, -q + radius)
            for r in range(r1, r2 + 1):
                coord = HexCoord(q, r)
                self._tiles[coord] = Tile(coord=coord, world_pos=self.hex_to_world(coord), row=row)
                row += 1
        self._conc = np.zeros((row, len(self.species)), dtype=float)
        self._cell_center = None
        self._cell_radius = None
        self.topology_version += 1
        logger.info("Generated %d tiles (radius=%d)", row, radius)

    def filter_tiles_in_circle(self, center: WorldPos, max_radius: float) -> None:
        """Discard tiles whose world position lies farther than ``max_radius``."""
        cx, cy = center
        kept = [
            tile
            for tile in self._tiles.values()
            if math.hypot(tile.world_pos[0] - cx, tile.world_pos[1] - cy) <= max_radius
        ]
        rows = [tile.row for tile in kept]
        self._conc = self._conc[rows].copy() if rows else np.zeros((0, len(self.species)))
        self._tiles = {}
        for new_row, tile in enumerate(kept):
            tile.row = new_row
            self._tiles[tile.coord] = tile
        self.topology_version += 1
        logger.info("Filtered grid to %d tiles inside radius %.1f", len(kept), max_radius)

    def recompute_membranes(self, center: WorldPos, cell_radius: float) -> list[HexCoord]:
        """Reclassify membrane tiles and return them in angular order.

        Also records ``center``/``cell_radius`` as the nominal cell boundary
        used by ``is_within_cell_radius``.
        """
        self._cell_center = (float(center[0]), float(center[1]))
        self._cell_radius = float(cell_radius)
        membrane: list[Tile] = []
        for tile in self._tiles.values():
            tile.is_membrane = self._has_open_side(tile.coord)
            tile.membrane_index = None
            if tile.is_membrane:
                membrane.append(tile)

        cx, cy = self._cell_center
        membrane.sort(
            key=lambda t: (math.atan2(t.world_pos[1] - cy, t.world_pos[0] - cx), t.coord)
        )
        for i, tile in enumerate(membrane):
            tile.membrane_index = i
        return [tile.coord for tile in membrane]

    def _has_open_side(self, coord: HexCoord) -> bool:
        for neighbor in coord.neighbors():
            if neighbor not in self._tiles:
                return True
            if not self.is_within_cell_radius(neighbor):
                return True
        return False

    def is_within_cell_radius(self, coord: HexCoord) -> bool:
        """True if ``coord``'s world position lies inside the nominal cell radius.

        Before membranes are computed there is no nominal radius and every
        coordinate counts as inside.
        """
        if self._cell_center is None or self._cell_radius is None:
            return True
        x, y = self.hex_to_world(coord)
        cx, cy = self._cell_center
        return math.hypot(x - cx, y - cy) <= self._cell_radius

    @property
    def cell_radius(self) -> float | None:
        return self._cell_radius

    @property
    def cell_center(self) -> WorldPos | None:
        return self._cell_center

    def update_center(self, center: WorldPos) -> None:
        """Move the grid origin, shifting every tile's world position."""
        dx = center[0] - self.center[0]
        dy = center[1] - self.center[1]
        self.center = (float(center[0]), float(center[1]))
        for tile in self._tiles.values():
            tile.world_pos = (tile.world_pos[0] + dx, tile.world_pos[1] + dy)
        if self._cell_center is not None:
            self._cell_center = (self._cell_center[0] + dx, self._cell_center[1] + dy)

    # ------------------------------------------------------------------
    # Coordinates and lookup
    # ------------------------------------------------------------------

    def hex_to_world(self, coord: HexCoord) -> WorldPos:
        x = self.hex_size * (1.5 * coord.q)
        y = self.hex_size * (SQRT3 / 2.0 * coord.q + SQRT3 * coord.r)
        return (self.center[0] + x, self.center[1] + y)

    def world_to_hex(self, world_x: float, world_y: float) -> HexCoord:
        x = (world_x - self.center[0]) / self.hex_size
        y = (world_y - self.center[1]) / self.hex_size
        q = (2.0 / 3.0) * x
        r = (-1.0 / 3.0) * x + (SQRT3 / 3.0) * y
        cx, _, cz = cube_round(q, -q - r, r)
        return HexCoord(cx, cz)

    def get_tile(self, coord: HexCoord) -> Tile | None:
        return self._tiles.get(coord)

    def has_tile(self, coord: HexCoord) -> bool:
        return coord in self._tiles

    def get_tile_at_world(self, world_x: float, world_y: float) -> Tile | None:
        return self._tiles.get(self.world_to_hex(world_x, world_y))

    def get_all_tiles(self) -> list[Tile]:
        return list(self._tiles.values())

    def coords(self) -> list[HexCoord]:
        """Tile coordinates in matrix row order."""
        return list(self._tiles)

    @property
    def tile_count(self) -> int:
        return len(self._tiles)

    def get_neighbors(self, coord: HexCoord) -> list[Tile]:
        """Existing tiles among the six axial neighbors of ``coord``."""
        return [self._tiles[n] for n in coord.neighbors() if n in self._tiles]

    def is_membrane_coord(self, coord: HexCoord) -> bool:
        tile = self._tiles.get(coord)
        return tile is not None and tile.is_membrane

    def get_membrane_tiles(self) -> list[Tile]:
        """Membrane tiles ordered by ``membrane_index``."""
        membrane = [tile for tile in self._tiles.values() if tile.is_membrane]
        membrane.sort(key=lambda t: -1 if t.membrane_index is None else t.membrane_index)
        return membrane

    # ------------------------------------------------------------------
    # Concentrations
    # ------------------------------------------------------------------

    def _locate(self, coord: HexCoord, species_id: str) -> tuple[int, int] | None:
        tile = self._tiles.get(coord)
        col = self.species.index_of(species_id)
        if tile is None or col is None:
            return None
        return tile.row, col

    def get_concentration(self, coord: HexCoord, species_id: str) -> float:
        loc = self._locate(coord, species_id)
        if loc is None:
            return 0.0
        return float(self._conc[loc])

    def set_concentration(self, coord: HexCoord, species_id: str, value: float) -> None:
        loc = self._locate(coord, species_id)
        if loc is not None:
            self._conc[loc] = self.species.clamp(species_id, value)

    def add_concentration(self, coord: HexCoord, species_id: str, delta: float) -> float:
        """Add ``delta`` (clamped) and return the change actually applied."""
        loc = self._locate(coord, species_id)
        if loc is None:
            return 0.0
        before = float(self._conc[loc])
        after = self.species.clamp(species_id, before + delta)
        self._conc[loc] = after
        return after - before

    def get_all_concentrations(self, coord: HexCoord) -> dict[str, float]:
        tile = self._tiles.get(coord)
        if tile is None:
            return {}
        return self.species.to_dict(self._conc[tile.row])

    def clear_concentrations(self, coord: HexCoord) -> None:
        tile = self._tiles.get(coord)
        if tile is not None:
            self._conc[tile.row] = self.species.clamp_array(np.zeros(len(self.species)))

    def fill_concentration(
        self, species_id: str, value: float, coords: Iterable[HexCoord] | None = None
    ) -> None:
        """Set ``species_id`` to ``value`` on ``coords`` (default: every tile)."""
        targets = self._tiles.keys() if coords is None else coords
        for coord in targets:
            self.set_concentration(coord, species_id, value)

    def total_concentration(self, species_id: str) -> float:
        col = self.species.index_of(species_id)
        if col is None or self._conc.shape[0] == 0:
            return 0.0
        return float(self._conc[:, col].sum())

    def totals(self) -> dict[str, float]:
        """Per-species totals across all tiles."""
        return self.species.to_dict(self._conc.sum(axis=0))

    def concentration_matrix(self) -> np.ndarray:
        """Copy of the ``(n_tiles, n_species)`` matrix in row order."""
        return self._conc.copy()

    def copy_concentrations_into(self, out: np.ndarray) -> None:
        """Copy the matrix into a preallocated buffer of the same shape."""
        np.copyto(out, self._conc)

    def write_concentration_matrix(self, matrix: np.ndarray) -> None:
        """Replace all concentrations at once, clamped per species."""
        if matrix.shape != self._conc.shape:
            raise ValueError(
                f"matrix shape {matrix.shape} does not match grid {self._conc.shape}"
            )
        self._conc[...] = self.species.clamp_array(matrix)
