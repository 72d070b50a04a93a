"""Double-buffered, order-independent diffusion over a HexGrid.

Each step snapshots the grid into the read buffer, computes every tile's new
concentrations from that frozen snapshot into the write buffer, and only then
writes the result back to the grid and swaps buffer roles. No tile ever sees
a neighbor value produced in the same step.

Per edge (i, j) and species s the exchanged amount is
``(c_j - c_i) * D_s / max(k_i, k_j)`` where ``k`` is a tile's neighbor count.
For tiles whose neighbors share their neighbor count this is exactly
``sum_j (c_j - c_i) * D_s / k_i``; using the larger count on mixed edges makes
the exchange antisymmetric, so total mass is conserved on irregular boundaries,
and bounds each tile's outflow by ``D_s * c_i``.
"""

from __future__ import annotations

import logging

import numpy as np

from cell_sandbox.domain.hex_grid import HexGrid

logger = logging.getLogger(__name__)


class DiffusionEngine:
    """Advances grid concentrations by one fixed timestep per ``step()``."""

    def __init__(self, grid: HexGrid) -> None:
        self.grid = grid
        self._topology_version = -1
        self._n_tiles = 0
        self._read = np.zeros((1, len(grid.species)), dtype=float)
        self._write = np.zeros((1, len(grid.species)), dtype=float)
        self._neighbor_index = np.zeros((0, 6), dtype=np.intp)
        self._edge_weight = np.zeros((0, 6), dtype=float)
        self._weight_sum = np.zeros(0, dtype=float)
        self._coefficients = grid.species.diffusion_coefficients
        self.steps_taken = 0
        self.reinitialize()

    def reinitialize(self) -> None:
        """Rebuild neighbor tables and resize both buffers for the current topology.

        Buffers carry one extra all-zero row that missing neighbors index into.
        """
        coords = self.grid.coords()
        n = len(coords)
        n_species = len(self.grid.species)
        row_of = {coord: i for i, coord in enumerate(coords)}

        neighbor_index = np.full((n, 6), n, dtype=np.intp)
        counts = np.zeros(n, dtype=float)
        for i, coord in enumerate(coords):
            for d, neighbor in enumerate(coord.neighbors()):
                j = row_of.get(neighbor)
                if j is not None:
                    neighbor_index[i, d] = j
                    counts[i] += 1

        padded_counts = np.append(counts, 0.0)
        norm = np.maximum(counts[:, None], padded_counts[neighbor_index])
        valid = neighbor_index < n
        edge_weight = np.zeros((n, 6), dtype=float)
        np.divide(1.0, norm, out=edge_weight, where=valid & (norm > 0))

        self._n_tiles = n
        self._neighbor_index = neighbor_index
        self._edge_weight = edge_weight
        self._weight_sum = edge_weight.sum(axis=1)
        self._read = np.zeros((n + 1, n_species), dtype=float)
        self._write = np.zeros((n + 1, n_species), dtype=float)
        self.grid.copy_concentrations_into(self._read[:n])
        self._write[:n] = self._read[:n]
        self._topology_version = self.grid.topology_version

    def step(self) -> None:
        """Advance one timestep: snapshot, sweep all tiles, then apply and swap."""
        if self._topology_version != self.grid.topology_version:
            logger.debug(
                "Grid topology changed (v%d -> v%d); reinitializing diffusion buffers",
                self._topology_version,
                self.grid.topology_version,
            )
            self.reinitialize()
        n = self._n_tiles
        if n == 0:
            return

        read = self._read
        write = self._write
        self.grid.copy_concentrations_into(read[:n])

        # (n, 6, species) neighbor values; missing neighbors hit the zero row.
        neighbor_values = read[self._neighbor_index]
        inflow = np.einsum("ne,nes->ns", self._edge_weight, neighbor_values)
        flux = (inflow - self._weight_sum[:, None] * read[:n]) * self._coefficients
        np.add(read[:n], flux, out=write[:n])

        self.grid.write_concentration_matrix(write[:n])
        self._read, self._write = write, read
        self.steps_taken += 1
