"""Construction recipes: footprints, species costs, build rates, constraints.

A recipe's footprint is an ordered tuple of axial offsets relative to an
anchor. Footprints must be hex-connected; linear filaments must also lie on
a single axial line. Both invariants are checked when the recipe is built,
so the ledger never sees a malformed shape.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

import networkx as nx

from cell_sandbox.domain.hex_grid import HexCoord


class RecipeCategory(Enum):
    """What kind of thing a recipe builds."""

    STRUCTURE = "structure"
    LINEAR_FILAMENT = "linear-filament"
    UPGRADE = "upgrade"


def _shape(*offsets: tuple[int, int]) -> tuple[HexCoord, ...]:
    return tuple(HexCoord(q, r) for q, r in offsets)


FOOTPRINTS: dict[str, tuple[HexCoord, ...]] = {
    "SINGLE": _shape((0, 0)),
    "NUCLEUS_LARGE_DISK": _shape((0, 0), (1, 0), (0, 1), (-1, 1), (-1, 0), (0, -1), (1, -1)),
    "RIBOSOME_HUB_SMALL": _shape((0, 0), (1, 0), (-1, 0)),
    "PROTO_ER_BLOB": _shape((0, 0), (1, 0), (-1, 0), (0, 1), (0, -1)),
    "MEDIUM_DISK": _shape((0, 0), (1, 0), (0, 1), (-1, 0)),
    "ER_PATCH": _shape((0, 0), (1, 0), (0, 1), (-1, 1), (-1, 0), (0, -1)),
    "ACTIN_LINE": _shape((0, 0), (1, 0), (2, 0)),
    "MICROTUBULE_LINE": _shape((0, 0), (0, 1), (0, 2), (0, 3)),
}
"""Named footprint shapes shared by recipes."""


def footprint_graph(footprint: Iterable[HexCoord]) -> nx.Graph:
    """Adjacency graph of a footprint: nodes are offsets, edges join hex neighbors."""
    nodes = list(footprint)
    g = nx.Graph()
    g.add_nodes_from(nodes)
    node_set = set(nodes)
    for node in nodes:
        for neighbor in node.neighbors():
            if neighbor in node_set:
                g.add_edge(node, neighbor)
    return g


def is_axial_line(footprint: Iterable[HexCoord]) -> bool:
    """True if every offset lies on one axial line through the first offset."""
    offsets = list(footprint)
    if len(offsets) <= 1:
        return True
    origin = offsets[0]
    diffs = [o - origin for o in offsets[1:]]
    return (
        all(d.r == 0 for d in diffs)
        or all(d.q == 0 for d in diffs)
        or all(d.q + d.r == 0 for d in diffs)
    )


@dataclass(frozen=True)
class Recipe:
    """One buildable structure."""

    recipe_id: str
    label: str
    category: RecipeCategory
    footprint: tuple[HexCoord, ...]
    cost: Mapping[str, float]
    build_rate: float
    """Maximum units of each species consumed per second."""
    on_complete_type: str | None = None
    membrane_only: bool = False
    cytosol_only: bool = False
    rim_only: bool = False
    """Every footprint tile must touch a tile claimed by an existing structure."""
    attaches_to: tuple[str, ...] = ()
    """Structure types this recipe may attach to (empty: no filter)."""
    description: str = ""

    def __post_init__(self) -> None:
        if not self.footprint:
            raise ValueError(f"{self.recipe_id}: footprint must not be empty")
        if len(set(self.footprint)) != len(self.footprint):
            raise ValueError(f"{self.recipe_id}: footprint has duplicate offsets")
        if not nx.is_connected(footprint_graph(self.footprint)):
            raise ValueError(f"{self.recipe_id}: footprint must be hex-connected")
        if self.category is RecipeCategory.LINEAR_FILAMENT and not is_axial_line(self.footprint):
            raise ValueError(f"{self.recipe_id}: filament footprint must be a straight line")
        if not self.cost:
            raise ValueError(f"{self.recipe_id}: cost must not be empty")
        if any(amount <= 0.0 for amount in self.cost.values()):
            raise ValueError(f"{self.recipe_id}: cost amounts must be > 0")
        if self.build_rate <= 0.0:
            raise ValueError(f"{self.recipe_id}: build_rate must be > 0")
        if self.membrane_only and self.cytosol_only:
            raise ValueError(f"{self.recipe_id}: membrane_only and cytosol_only are exclusive")
        object.__setattr__(self, "cost", MappingProxyType(dict(self.cost)))

    @property
    def completion_type(self) -> str:
        """Structure type reported on completion."""
        return self.on_complete_type or self.recipe_id

    @property
    def total_cost(self) -> float:
        return sum(self.cost.values())

    def footprint_at(self, anchor: HexCoord) -> list[HexCoord]:
        return [anchor + offset for offset in self.footprint]


class ConstructionCatalog:
    """Read-only recipe table."""

    def __init__(self, recipes: Iterable[Recipe]) -> None:
        table: dict[str, Recipe] = {}
        for recipe in recipes:
            if recipe.recipe_id in table:
                raise ValueError(f"duplicate recipe id: {recipe.recipe_id}")
            table[recipe.recipe_id] = recipe
        self._recipes = table

    def __len__(self) -> int:
        return len(self._recipes)

    def __contains__(self, recipe_id: object) -> bool:
        return recipe_id in self._recipes

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(self._recipes)

    def get(self, recipe_id: str) -> Recipe | None:
        return self._recipes.get(recipe_id)

    def has(self, recipe_id: str) -> bool:
        return recipe_id in self._recipes

    def all_recipes(self) -> list[Recipe]:
        return list(self._recipes.values())

    def by_category(self, category: RecipeCategory) -> list[Recipe]:
        return [r for r in self._recipes.values() if r.category is category]

    def total_cost(self, recipe_id: str) -> float:
        recipe = self._recipes.get(recipe_id)
        return 0.0 if recipe is None else recipe.total_cost

    def footprint_at(self, recipe_id: str, anchor: HexCoord) -> list[HexCoord]:
        """Absolute footprint tiles for ``recipe_id`` at ``anchor`` ([] if unknown)."""
        recipe = self._recipes.get(recipe_id)
        return [] if recipe is None else recipe.footprint_at(anchor)


def default_construction_catalog() -> ConstructionCatalog:
    """Build the standard recipe table."""
    structure = RecipeCategory.STRUCTURE
    filament = RecipeCategory.LINEAR_FILAMENT
    upgrade = RecipeCategory.UPGRADE
    return ConstructionCatalog(
        [
            Recipe(
                "ribosome-hub",
                "Ribosome Hub",
                structure,
                FOOTPRINTS["RIBOSOME_HUB_SMALL"],
                {"AA": 15.0, "PRE_MRNA": 8.0},
                0.5,
                cytosol_only=True,
                description="Build Ribosome Hub",
            ),
            Recipe(
                "proto-er",
                "Proto-ER",
                structure,
                FOOTPRINTS["PROTO_ER_BLOB"],
                {"PROTEIN": 45.0},
                0.4,
                cytosol_only=True,
                description="Build Proto-ER",
            ),
            Recipe(
                "er-patch",
                "ER Patch",
                structure,
                FOOTPRINTS["ER_PATCH"],
                {"PROTEIN": 45.0},
                0.8,
                cytosol_only=True,
                description="Extend the endoplasmic reticulum",
            ),
            Recipe(
                "golgi",
                "Golgi Patch",
                structure,
                FOOTPRINTS["MEDIUM_DISK"],
                {"PROTEIN": 35.0, "CARGO": 15.0},
                0.6,
                cytosol_only=True,
                description="Build Golgi Patch",
            ),
            Recipe(
                "peroxisome",
                "Peroxisome",
                structure,
                FOOTPRINTS["RIBOSOME_HUB_SMALL"],
                {"PROTEIN": 30.0},
                0.7,
                cytosol_only=True,
                description="Build Peroxisome",
            ),
            Recipe(
                "membrane-port",
                "Membrane Port",
                structure,
                FOOTPRINTS["SINGLE"],
                {"PROTEIN": 30.0, "LIPID": 20.0},
                2.0,
                membrane_only=True,
                description="Basic membrane transport structure",
            ),
            Recipe(
                "transporter",
                "Transporter",
                structure,
                FOOTPRINTS["SINGLE"],
                {"PROTEIN": 50.0, "NT": 15.0},
                1.5,
                membrane_only=True,
                description="Specialized transport protein",
            ),
            Recipe(
                "receptor",
                "Receptor",
                structure,
                FOOTPRINTS["SINGLE"],
                {"PROTEIN": 40.0, "NT": 10.0},
                1.8,
                membrane_only=True,
                description="Membrane signaling protein",
            ),
            Recipe(
                "actin",
                "Actin Filament",
                filament,
                FOOTPRINTS["ACTIN_LINE"],
                {"AA": 6.0, "PROTEIN": 4.0},
                2.0,
                cytosol_only=True,
                description="Short actin segment",
            ),
            Recipe(
                "microtubule",
                "Microtubule",
                filament,
                FOOTPRINTS["MICROTUBULE_LINE"],
                {"AA": 8.0, "PROTEIN": 8.0},
                1.5,
                cytosol_only=True,
                description="Microtubule segment",
            ),
            Recipe(
                "npc-exporter",
                "NPC Exporter",
                upgrade,
                FOOTPRINTS["SINGLE"],
                {"PROTEIN": 20.0, "NT": 10.0},
                1.0,
                cytosol_only=True,
                rim_only=True,
                attaches_to=("nucleus",),
                description="Lets transcripts leave the nucleus onto filaments",
            ),
            Recipe(
                "er-exit",
                "ER Exit Site",
                upgrade,
                FOOTPRINTS["SINGLE"],
                {"PROTEIN": 15.0, "LIPID": 5.0},
                1.0,
                cytosol_only=True,
                rim_only=True,
                attaches_to=("proto-er", "er-patch"),
                description="COPII exit site emitting partial vesicles",
            ),
            Recipe(
                "golgi-tgn",
                "Golgi TGN Adapter",
                upgrade,
                FOOTPRINTS["SINGLE"],
                {"PROTEIN": 15.0, "CARGO": 5.0},
                1.0,
                cytosol_only=True,
                rim_only=True,
                attaches_to=("golgi",),
                description="Completes vesicles leaving the Golgi",
            ),
            Recipe(
                "exocyst-hotspot",
                "Exocyst Hotspot",
                upgrade,
                FOOTPRINTS["SINGLE"],
                {"PROTEIN": 15.0, "LIPID": 10.0},
                1.2,
                membrane_only=True,
                description="Membrane docking site for complete vesicles",
            ),
        ]
    )
