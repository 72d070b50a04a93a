"""Domain layer: species, hex grid, membrane proteins, and construction recipes."""

from cell_sandbox.domain.hex_grid import HEX_DIRECTION_COORDS, HexCoord, HexGrid, Tile, cube_round
from cell_sandbox.domain.proteins import (
    MembraneProtein,
    ProteinCatalog,
    ReceptorProtein,
    TransporterProtein,
    default_protein_catalog,
)
from cell_sandbox.domain.recipes import (
    FOOTPRINTS,
    ConstructionCatalog,
    Recipe,
    RecipeCategory,
    default_construction_catalog,
)
from cell_sandbox.domain.species import Species, SpeciesTable, default_species_table

__all__ = [
    "ConstructionCatalog",
    "FOOTPRINTS",
    "HEX_DIRECTION_COORDS",
    "HexCoord",
    "HexGrid",
    "MembraneProtein",
    "ProteinCatalog",
    "ReceptorProtein",
    "Recipe",
    "RecipeCategory",
    "Species",
    "SpeciesTable",
    "Tile",
    "TransporterProtein",
    "cube_round",
    "default_construction_catalog",
    "default_protein_catalog",
    "default_species_table",
]
