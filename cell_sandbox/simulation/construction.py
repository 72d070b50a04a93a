"""Blueprint ledger: placement validation and resource-driven construction.

A blueprint claims its footprint tiles from placement until completion or
cancellation, so two blueprints never share a tile. Each tick, active
blueprints pull their required species out of their own footprint tiles in
FIFO creation order; earlier blueprints get first access to shared stock.

Pull model per blueprint and species:

    target = min(remaining, build_rate * dt)
    share  = target / len(footprint)
    each tile contributes min(available, share)

A depleted tile's shortfall is not redistributed to the other tiles.
"""

from __future__ import annotations

import itertools
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cell_sandbox.config.constants import DEFAULT_REFUND_FRACTION, PROTEIN_CAPABLE_STRUCTURES
from cell_sandbox.domain.hex_grid import HexCoord, HexGrid
from cell_sandbox.domain.recipes import ConstructionCatalog, Recipe

if TYPE_CHECKING:
    from cell_sandbox.simulation.membrane import MembraneExchange

logger = logging.getLogger(__name__)

OccupiedTilesProvider = Callable[[], Iterable[HexCoord]]
StructureLookup = Callable[[HexCoord], str | None]
CompletionCallback = Callable[[str, HexCoord], None]

# Progress within this distance of the requirement counts as complete.
COMPLETION_EPSILON = 1e-9


@dataclass(frozen=True)
class ProgressRow:
    """One species line of a blueprint's progress breakdown."""

    species_id: str
    current: float
    required: float
    percentage: float
    is_complete: bool


@dataclass
class Blueprint:
    """An in-progress construction claiming a footprint."""

    blueprint_id: str
    recipe: Recipe
    anchor: HexCoord
    footprint: tuple[HexCoord, ...]
    progress: dict[str, float]
    sequence: int
    created_at: float
    total_progress: float = 0.0
    is_active: bool = True

    @property
    def recipe_id(self) -> str:
        return self.recipe.recipe_id

    def remaining(self, species_id: str) -> float:
        required = self.recipe.cost.get(species_id, 0.0)
        return max(0.0, required - self.progress.get(species_id, 0.0))

    @property
    def is_complete(self) -> bool:
        return all(
            self.progress.get(species_id, 0.0) >= required - COMPLETION_EPSILON
            for species_id, required in self.recipe.cost.items()
        )

    @property
    def overall_progress(self) -> float:
        """Fraction complete, limited by the least-advanced species."""
        fractions = [
            min(1.0, self.progress.get(species_id, 0.0) / required)
            for species_id, required in self.recipe.cost.items()
        ]
        return min(fractions) if fractions else 1.0

    def progress_breakdown(self) -> list[ProgressRow]:
        rows: list[ProgressRow] = []
        for species_id, required in self.recipe.cost.items():
            current = self.progress.get(species_id, 0.0)
            rows.append(
                ProgressRow(
                    species_id=species_id,
                    current=current,
                    required=required,
                    percentage=min(100.0, current / required * 100.0),
                    is_complete=current >= required - COMPLETION_EPSILON,
                )
            )
        return rows

    def refresh_total(self) -> None:
        self.total_progress = sum(self.progress.values())


@dataclass(frozen=True)
class PlacementValidation:
    is_valid: bool
    errors: tuple[str, ...] = ()
    footprint: tuple[HexCoord, ...] = ()


@dataclass(frozen=True)
class PlacementResult:
    success: bool
    blueprint_id: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class OperationResult:
    success: bool
    error: str | None = None


@dataclass(frozen=True)
class CompletionEvent:
    """Emitted once when a blueprint finishes."""

    blueprint_id: str
    recipe_id: str
    structure_type: str
    anchor: HexCoord
    footprint: tuple[HexCoord, ...] = field(default=())


class BlueprintLedger:
    """Owns every blueprint and the tile claims they hold."""

    def __init__(
        self,
        grid: HexGrid,
        catalog: ConstructionCatalog,
        get_occupied_tiles: OccupiedTilesProvider,
        membrane: MembraneExchange | None = None,
        get_structure_at: StructureLookup | None = None,
        on_complete: CompletionCallback | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.grid = grid
        self.catalog = catalog
        self._get_occupied_tiles = get_occupied_tiles
        self._membrane = membrane
        self._get_structure_at = get_structure_at
        self._on_complete = on_complete
        self._clock = clock
        self._blueprints: dict[str, Blueprint] = {}
        self._claims: dict[HexCoord, str] = {}
        self._sequence = itertools.count(1)
        self._completed: list[CompletionEvent] = []

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def validate_placement(self, recipe_id: str, anchor: HexCoord) -> PlacementValidation:
        """Check every footprint tile; all failures are reported, not just the first."""
        recipe = self.catalog.get(recipe_id)
        if recipe is None:
            return PlacementValidation(is_valid=False, errors=("Recipe not found",))

        footprint = tuple(recipe.footprint_at(anchor))
        occupied = set(self._get_occupied_tiles())
        errors: list[str] = []

        for coord in footprint:
            tile = self.grid.get_tile(coord)
            if tile is None:
                errors.append(f"Tile {coord} does not exist")
                continue
            if coord in occupied:
                errors.append(f"Tile {coord} is occupied by an organelle")
            claim = self._claims.get(coord)
            if claim is not None:
                errors.append(f"Tile {coord} is already claimed by blueprint {claim}")
            if not self.grid.is_within_cell_radius(coord):
                errors.append(f"Tile {coord} is outside the cell radius")
            if recipe.membrane_only and not tile.is_membrane:
                errors.append(f"Tile {coord} is not a membrane tile")
            if not recipe.membrane_only and tile.is_membrane:
                errors.append(f"Tile {coord} is reserved for membrane structures")
            if recipe.membrane_only and tile.is_membrane and self._protein_slot_taken(coord):
                errors.append(f"Tile {coord} already holds a membrane protein")
            if recipe.rim_only and not any(n in occupied for n in coord.neighbors()):
                errors.append(f"Tile {coord} does not touch an existing structure")

        if recipe.attaches_to and not self._has_allowed_neighbor(recipe, footprint):
            errors.append(
                f"Tile {anchor} must attach to one of: {', '.join(recipe.attaches_to)}"
            )

        return PlacementValidation(
            is_valid=not errors, errors=tuple(errors), footprint=footprint
        )

    def _protein_slot_taken(self, coord: HexCoord) -> bool:
        if self._membrane is not None and self._membrane.has_installed_protein(coord):
            return True
        if self._get_structure_at is not None:
            return self._get_structure_at(coord) in PROTEIN_CAPABLE_STRUCTURES
        return False

    def _has_allowed_neighbor(self, recipe: Recipe, footprint: tuple[HexCoord, ...]) -> bool:
        # Without a structure lookup the type filter cannot be evaluated.
        if self._get_structure_at is None:
            return True
        own = set(footprint)
        for coord in footprint:
            for neighbor in coord.neighbors():
                if neighbor in own:
                    continue
                if self._get_structure_at(neighbor) in recipe.attaches_to:
                    return True
        return False

    def place_blueprint(self, recipe_id: str, anchor: HexCoord) -> PlacementResult:
        validation = self.validate_placement(recipe_id, anchor)
        if not validation.is_valid:
            return PlacementResult(success=False, error="; ".join(validation.errors))

        recipe = self.catalog.get(recipe_id)
        if recipe is None:
            return PlacementResult(success=False, error="Recipe not found")
        sequence = next(self._sequence)
        blueprint = Blueprint(
            blueprint_id=f"bp-{sequence}",
            recipe=recipe,
            anchor=anchor,
            footprint=validation.footprint,
            progress={species_id: 0.0 for species_id in recipe.cost},
            sequence=sequence,
            created_at=self._clock(),
        )
        self._blueprints[blueprint.blueprint_id] = blueprint
        for coord in blueprint.footprint:
            self._claims[coord] = blueprint.blueprint_id
        logger.info("Placed %s blueprint %s at %s", recipe.label, blueprint.blueprint_id, anchor)
        return PlacementResult(success=True, blueprint_id=blueprint.blueprint_id)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def process_construction(self, dt: float) -> list[CompletionEvent]:
        """Advance all active blueprints by ``dt`` seconds; return completions."""
        if dt <= 0.0:
            return []
        events: list[CompletionEvent] = []
        for blueprint in self.get_all_blueprints():
            if not blueprint.is_active:
                continue
            self._pull_resources(blueprint, dt)
            if blueprint.is_complete:
                events.append(self._complete(blueprint))
        return events

    def _pull_resources(self, blueprint: Blueprint, dt: float) -> None:
        recipe = blueprint.recipe
        n_tiles = len(blueprint.footprint)
        for species_id, required in recipe.cost.items():
            remaining = blueprint.remaining(species_id)
            if remaining <= 0.0:
                continue
            share = min(remaining, recipe.build_rate * dt) / n_tiles
            pulled = 0.0
            for coord in blueprint.footprint:
                available = self.grid.get_concentration(coord, species_id)
                take = min(available, share)
                if take > 0.0:
                    pulled -= self.grid.add_concentration(coord, species_id, -take)
            blueprint.progress[species_id] = min(
                required, blueprint.progress[species_id] + pulled
            )
        blueprint.refresh_total()

    def _complete(self, blueprint: Blueprint) -> CompletionEvent:
        for species_id, required in blueprint.recipe.cost.items():
            blueprint.progress[species_id] = required
        blueprint.refresh_total()
        blueprint.is_active = False
        self._release(blueprint)
        event = CompletionEvent(
            blueprint_id=blueprint.blueprint_id,
            recipe_id=blueprint.recipe_id,
            structure_type=blueprint.recipe.completion_type,
            anchor=blueprint.anchor,
            footprint=blueprint.footprint,
        )
        self._completed.append(event)
        logger.info(
            "Completed %s blueprint %s at %s",
            blueprint.recipe.label,
            blueprint.blueprint_id,
            blueprint.anchor,
        )
        if self._on_complete is not None:
            self._on_complete(event.structure_type, event.anchor)
        return event

    def _release(self, blueprint: Blueprint) -> None:
        self._blueprints.pop(blueprint.blueprint_id, None)
        for coord in blueprint.footprint:
            if self._claims.get(coord) == blueprint.blueprint_id:
                del self._claims[coord]

    def add_player_contribution(self, blueprint_id: str, species_id: str, amount: float) -> bool:
        """Add species directly to a blueprint, capped at what it still needs."""
        blueprint = self._blueprints.get(blueprint_id)
        if blueprint is None or species_id not in blueprint.recipe.cost or amount <= 0.0:
            return False
        accepted = min(amount, blueprint.remaining(species_id))
        if accepted <= 0.0:
            return False
        blueprint.progress[species_id] += accepted
        blueprint.refresh_total()
        if blueprint.is_complete:
            self._complete(blueprint)
        return True

    def cancel_blueprint(
        self, blueprint_id: str, refund_fraction: float = DEFAULT_REFUND_FRACTION
    ) -> bool:
        """Remove a blueprint, returning ``progress * refund_fraction`` to its footprint."""
        if not 0.0 <= refund_fraction <= 1.0:
            logger.warning(
                "Refusing to cancel blueprint %s: refund_fraction %r outside [0, 1]",
                blueprint_id,
                refund_fraction,
            )
            return False
        blueprint = self._blueprints.get(blueprint_id)
        if blueprint is None:
            return False
        self._refund(blueprint, refund_fraction, blueprint.footprint)
        blueprint.is_active = False
        self._release(blueprint)
        logger.info("Cancelled blueprint %s (refund %.0f%%)", blueprint_id, refund_fraction * 100)
        return True

    def prune_stale(self, refund_fraction: float = DEFAULT_REFUND_FRACTION) -> list[str]:
        """Cancel blueprints whose footprint lost a tile; refund to the tiles that remain."""
        refund_fraction = min(1.0, max(0.0, refund_fraction))
        stale = [
            blueprint
            for blueprint in self._blueprints.values()
            if not all(self.grid.has_tile(c) for c in blueprint.footprint)
        ]
        for blueprint in stale:
            surviving = tuple(c for c in blueprint.footprint if self.grid.has_tile(c))
            self._refund(blueprint, refund_fraction, surviving)
            blueprint.is_active = False
            self._release(blueprint)
        if stale:
            logger.info("Pruned %d stale blueprints", len(stale))
        return [blueprint.blueprint_id for blueprint in stale]

    def _refund(
        self, blueprint: Blueprint, refund_fraction: float, coords: tuple[HexCoord, ...]
    ) -> None:
        if not coords:
            return
        for species_id, amount in blueprint.progress.items():
            share = amount * refund_fraction / len(coords)
            if share <= 0.0:
                continue
            for coord in coords:
                self.grid.add_concentration(coord, species_id, share)

    def instantly_complete(self, blueprint_id: str) -> OperationResult:
        blueprint = self._blueprints.get(blueprint_id)
        if blueprint is None:
            return OperationResult(success=False, error="Blueprint not found")
        self._complete(blueprint)
        return OperationResult(success=True)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_all_blueprints(self) -> list[Blueprint]:
        """Blueprints in FIFO creation order."""
        return sorted(self._blueprints.values(), key=lambda bp: bp.sequence)

    def get_blueprint(self, blueprint_id: str) -> Blueprint | None:
        return self._blueprints.get(blueprint_id)

    def get_blueprint_at_tile(self, coord: HexCoord) -> Blueprint | None:
        blueprint_id = self._claims.get(coord)
        return None if blueprint_id is None else self._blueprints.get(blueprint_id)

    def get_footprint_tiles(self, blueprint_id: str) -> list[HexCoord]:
        blueprint = self._blueprints.get(blueprint_id)
        return [] if blueprint is None else list(blueprint.footprint)

    def claimed_tiles(self) -> set[HexCoord]:
        return set(self._claims)

    def drain_completed(self) -> list[CompletionEvent]:
        """Every completion since the last drain, whatever triggered it."""
        events, self._completed = self._completed, []
        return events
