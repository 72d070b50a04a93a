"""Membrane exchange: installed proteins moving species across the boundary.

The external environment is a set of constant scalars (concentrations and
ligand presences), not simulated tiles. Each membrane tile holds at most one
installed protein.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from cell_sandbox.config.constants import DEFAULT_EXTERNAL_CONCENTRATIONS, DEFAULT_LIGAND_PRESENCE
from cell_sandbox.domain.hex_grid import HexCoord, HexGrid
from cell_sandbox.domain.proteins import (
    MembraneProtein,
    ProteinCatalog,
    ReceptorProtein,
    TransporterProtein,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExternalEnvironment:
    """Constant conditions outside the cell."""

    concentrations: Mapping[str, float] = field(
        default_factory=lambda: dict(DEFAULT_EXTERNAL_CONCENTRATIONS)
    )
    ligand_presence: Mapping[str, float] = field(
        default_factory=lambda: dict(DEFAULT_LIGAND_PRESENCE)
    )

    def concentration(self, species_id: str) -> float:
        return float(self.concentrations.get(species_id, 0.0))

    def ligand(self, ligand_id: str) -> float:
        return float(self.ligand_presence.get(ligand_id, 0.0))


@dataclass
class MembraneExchangeStats:
    """Cumulative amounts moved by installed proteins, per species."""

    total_imports: dict[str, float] = field(default_factory=dict)
    total_exports: dict[str, float] = field(default_factory=dict)
    messenger_produced: dict[str, float] = field(default_factory=dict)


def _accumulate(totals: dict[str, float], species_id: str, amount: float) -> None:
    totals[species_id] = totals.get(species_id, 0.0) + amount


class MembraneExchange:
    """Per-tile protein registry plus the per-tick exchange pass."""

    def __init__(
        self,
        grid: HexGrid,
        proteins: ProteinCatalog,
        environment: ExternalEnvironment | None = None,
    ) -> None:
        self.grid = grid
        self.proteins = proteins
        self.environment = environment or ExternalEnvironment()
        self._installed: dict[HexCoord, MembraneProtein] = {}
        self._stats = MembraneExchangeStats()
        self.reset_stats()

    # ------------------------------------------------------------------
    # Installation
    # ------------------------------------------------------------------

    def install_protein(self, coord: HexCoord, protein_id: str) -> bool:
        """Install ``protein_id`` on a free membrane tile. Returns success."""
        protein = self.proteins.get(protein_id)
        if protein is None:
            logger.warning("Cannot install %s at %s: unknown protein", protein_id, coord)
            return False
        if not self.grid.is_membrane_coord(coord):
            logger.warning("Cannot install %s at %s: not a membrane tile", protein_id, coord)
            return False
        if coord in self._installed:
            logger.warning(
                "Cannot install %s at %s: tile already has %s",
                protein_id,
                coord,
                self._installed[coord].protein_id,
            )
            return False
        self._installed[coord] = protein
        logger.info("Installed %s at %s", protein.label, coord)
        return True

    def uninstall_protein(self, coord: HexCoord) -> bool:
        protein = self._installed.pop(coord, None)
        if protein is None:
            return False
        logger.info("Removed %s from %s", protein.label, coord)
        return True

    def get_installed_protein(self, coord: HexCoord) -> MembraneProtein | None:
        return self._installed.get(coord)

    def has_installed_protein(self, coord: HexCoord) -> bool:
        return coord in self._installed

    def get_installed_coords(self) -> list[HexCoord]:
        return list(self._installed)

    def available_slots(self, coord: HexCoord) -> int:
        """Free protein slots on ``coord`` (0 or 1; 0 for non-membrane tiles)."""
        if not self.grid.is_membrane_coord(coord):
            return 0
        return 0 if coord in self._installed else 1

    def clear(self) -> None:
        self._installed.clear()
        logger.info("All membrane proteins cleared")

    def prune_stale(self) -> list[HexCoord]:
        """Drop installations whose tile is gone or no longer membrane."""
        stale = [c for c in self._installed if not self.grid.is_membrane_coord(c)]
        for coord in stale:
            del self._installed[coord]
        if stale:
            logger.info("Pruned %d stale membrane proteins", len(stale))
        return stale

    # ------------------------------------------------------------------
    # Exchange
    # ------------------------------------------------------------------

    def process(self, dt: float) -> None:
        """Apply every installed protein once, in installation order."""
        if dt <= 0.0:
            return
        for coord, protein in self._installed.items():
            if not self.grid.has_tile(coord):
                continue
            if isinstance(protein, TransporterProtein):
                self._apply_transporter(coord, protein, dt)
            else:
                self._apply_receptor(coord, protein, dt)

    def _apply_transporter(self, coord: HexCoord, protein: TransporterProtein, dt: float) -> None:
        amount = protein.rate * dt
        if protein.direction == "in":
            applied = self.grid.add_concentration(coord, protein.species_id, amount)
            if applied > 0.0:
                _accumulate(self._stats.total_imports, protein.species_id, applied)
        else:
            current = self.grid.get_concentration(coord, protein.species_id)
            pumped = -self.grid.add_concentration(
                coord, protein.species_id, -min(amount, current)
            )
            if pumped > 0.0:
                _accumulate(self._stats.total_exports, protein.species_id, pumped)

    def _apply_receptor(self, coord: HexCoord, protein: ReceptorProtein, dt: float) -> None:
        presence = self.environment.ligand(protein.ligand_id)
        if presence <= 0.0:
            return
        produced = self.grid.add_concentration(
            coord, protein.messenger_id, protein.messenger_rate * presence * dt
        )
        if produced > 0.0:
            _accumulate(self._stats.messenger_produced, protein.messenger_id, produced)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def get_stats(self) -> MembraneExchangeStats:
        return MembraneExchangeStats(
            total_imports=dict(self._stats.total_imports),
            total_exports=dict(self._stats.total_exports),
            messenger_produced=dict(self._stats.messenger_produced),
        )

    def reset_stats(self) -> None:
        self._stats = MembraneExchangeStats()
        for species_id in self.environment.concentrations:
            self._stats.total_imports[species_id] = 0.0
            self._stats.total_exports[species_id] = 0.0

    def net_rate(self, species_id: str) -> float:
        """Nominal per-second flux of all installed proteins for ``species_id``.

        Ignores clamping and depletion, so it is an upper bound on the
        observed rate for exporters running on empty tiles.
        """
        rate = 0.0
        for protein in self._installed.values():
            if isinstance(protein, TransporterProtein):
                if protein.species_id == species_id:
                    rate += protein.rate if protein.direction == "in" else -protein.rate
            elif protein.messenger_id == species_id:
                rate += protein.messenger_rate * self.environment.ligand(protein.ligand_id)
        return rate
