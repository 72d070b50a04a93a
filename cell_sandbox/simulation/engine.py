"""Tick driver wiring grid, exchange, diffusion, construction and diagnostics.

One tick runs, in order: passive effects, membrane exchange, diffusion,
construction, then the conservation oracle reading. Construction sees
post-diffusion concentrations; the oracle sees the end-of-tick state.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, replace

from cell_sandbox.config.types import GridConfig, SimulationConfig
from cell_sandbox.domain.hex_grid import HexCoord, HexGrid
from cell_sandbox.domain.proteins import ProteinCatalog, default_protein_catalog
from cell_sandbox.domain.recipes import ConstructionCatalog, default_construction_catalog
from cell_sandbox.domain.species import SpeciesTable, default_species_table
from cell_sandbox.metrics.conservation import ConservationOracle
from cell_sandbox.simulation.construction import (
    BlueprintLedger,
    CompletionCallback,
    CompletionEvent,
    OccupiedTilesProvider,
    StructureLookup,
)
from cell_sandbox.simulation.diffusion import DiffusionEngine
from cell_sandbox.simulation.membrane import ExternalEnvironment, MembraneExchange
from cell_sandbox.simulation.passive_effects import PassiveEffects

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickReport:
    tick: int
    completed: tuple[CompletionEvent, ...]


def _no_occupied_tiles() -> Iterable[HexCoord]:
    return ()


def _required_grid_radius(grid_config: GridConfig) -> int:
    """Smallest axial radius whose hex region covers the filter circle.

    The nearest tiles of ring ``k`` sit ``1.5 * k * hex_size`` from the center.
    """
    needed = math.ceil(grid_config.filter_radius / (1.5 * grid_config.hex_size))
    return max(grid_config.grid_radius, needed)


def populate_grid(grid: HexGrid, grid_config: GridConfig) -> list[HexCoord]:
    """Generate, trim to the cell circle and classify membranes; return membrane coords."""
    grid.generate_tiles(_required_grid_radius(grid_config))
    grid.filter_tiles_in_circle(grid_config.center, grid_config.filter_radius)
    return grid.recompute_membranes(grid_config.center, grid_config.cell_radius)


class CellSimulation:
    """Owns one cell's simulation components and advances them together."""

    def __init__(
        self,
        config: SimulationConfig,
        grid: HexGrid,
        passive_effects: PassiveEffects,
        membrane: MembraneExchange,
        diffusion: DiffusionEngine,
        ledger: BlueprintLedger,
    ) -> None:
        self.config = config
        self.grid = grid
        self.passive_effects = passive_effects
        self.membrane = membrane
        self.diffusion = diffusion
        self.ledger = ledger
        self.oracle = ConservationOracle(
            grid,
            expected_rate=self.expected_rate,
            tolerance=config.conservation_tolerance,
        )
        self.tick_count = 0

    @classmethod
    def create(
        cls,
        config: SimulationConfig | None = None,
        occupied_tiles_provider: OccupiedTilesProvider | None = None,
        structure_lookup: StructureLookup | None = None,
        on_complete: CompletionCallback | None = None,
        species: SpeciesTable | None = None,
        proteins: ProteinCatalog | None = None,
        recipes: ConstructionCatalog | None = None,
    ) -> CellSimulation:
        """Build a populated grid and every component from ``config``."""
        config = config or SimulationConfig()
        grid_config, env_config = config.to_components()
        grid = HexGrid(
            species or default_species_table(),
            hex_size=grid_config.hex_size,
            center=grid_config.center,
        )
        populate_grid(grid, grid_config)

        environment = ExternalEnvironment(
            concentrations=dict(env_config.external_concentrations),
            ligand_presence=dict(env_config.ligand_presence),
        )
        membrane = MembraneExchange(grid, proteins or default_protein_catalog(), environment)
        ledger = BlueprintLedger(
            grid,
            recipes or default_construction_catalog(),
            occupied_tiles_provider or _no_occupied_tiles,
            membrane=membrane,
            get_structure_at=structure_lookup,
            on_complete=on_complete,
        )
        logger.info(
            "Created cell simulation: %d tiles, %d membrane",
            grid.tile_count,
            len(grid.get_membrane_tiles()),
        )
        return cls(
            config=config,
            grid=grid,
            passive_effects=PassiveEffects(grid),
            membrane=membrane,
            diffusion=DiffusionEngine(grid),
            ledger=ledger,
        )

    def expected_rate(self, species_id: str) -> float:
        """Nominal whole-grid change rate from passive effects and membrane proteins."""
        return self.passive_effects.total_effect_rate(species_id) + self.membrane.net_rate(
            species_id
        )

    def tick(self, dt: float | None = None) -> TickReport:
        """Advance one fixed step of ``dt`` seconds (config default when omitted)."""
        dt = self.config.dt if dt is None else dt
        if dt <= 0.0:
            raise ValueError("dt must be > 0")
        self.passive_effects.step(dt)
        self.membrane.process(dt)
        self.diffusion.step()
        self.ledger.process_construction(dt)
        if self.config.track_conservation:
            self.oracle.update(dt)
        self.tick_count += 1
        return TickReport(tick=self.tick_count, completed=tuple(self.ledger.drain_completed()))

    def run(self, n_ticks: int, dt: float | None = None) -> list[CompletionEvent]:
        """Run ``n_ticks`` ticks and collect every completion in order."""
        if n_ticks < 0:
            raise ValueError("n_ticks must be >= 0")
        completed: list[CompletionEvent] = []
        for _ in range(n_ticks):
            completed.extend(self.tick(dt).completed)
        return completed

    def cancel_blueprint(self, blueprint_id: str) -> bool:
        """Cancel with the configured refund fraction."""
        return self.ledger.cancel_blueprint(blueprint_id, self.config.refund_fraction)

    def resize(self, cell_radius: float) -> None:
        """Regenerate the grid for a new cell radius.

        Concentrations are reset and diffusion buffers are rebuilt. Protein
        installations on tiles that are no longer membrane are dropped. Blueprints
        that lost a footprint tile are cancelled with the configured refund going
        to their surviving tiles.
        """
        self.config = replace(self.config, cell_radius=cell_radius)
        grid_config, _ = self.config.to_components()
        populate_grid(self.grid, grid_config)
        self.membrane.prune_stale()
        self.ledger.prune_stale(self.config.refund_fraction)
        self.diffusion.reinitialize()
        self.oracle.reset()
        logger.info("Resized cell to radius %.1f (%d tiles)", cell_radius, self.grid.tile_count)
