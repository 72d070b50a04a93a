"""Membrane protein catalog: transporters and receptors.

Transporters move one species across the membrane at a constant rate in a
fixed direction. Receptors convert the constant presence of an external
ligand into production of an internal messenger species.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal, TypeAlias

Direction = Literal["in", "out"]


@dataclass(frozen=True)
class TransporterProtein:
    """Constant-rate pump for one species."""

    protein_id: str
    label: str
    species_id: str
    direction: Direction
    rate: float
    """Units per second; always positive, ``direction`` sets the sign."""

    def __post_init__(self) -> None:
        if self.direction not in ("in", "out"):
            raise ValueError(f"direction for {self.protein_id} must be 'in' or 'out'")
        if self.rate < 0.0:
            raise ValueError(f"rate for {self.protein_id} must be >= 0")

    @property
    def kind(self) -> str:
        return "transporter"


@dataclass(frozen=True)
class ReceptorProtein:
    """Ligand-to-messenger signal converter with linear dose response."""

    protein_id: str
    label: str
    ligand_id: str
    messenger_id: str
    messenger_rate: float

    def __post_init__(self) -> None:
        if self.messenger_rate < 0.0:
            raise ValueError(f"messenger_rate for {self.protein_id} must be >= 0")

    @property
    def kind(self) -> str:
        return "receptor"


MembraneProtein: TypeAlias = TransporterProtein | ReceptorProtein


class ProteinCatalog:
    """Read-only registry of installable membrane proteins."""

    def __init__(self, proteins: Iterable[MembraneProtein]) -> None:
        table: dict[str, MembraneProtein] = {}
        for protein in proteins:
            if protein.protein_id in table:
                raise ValueError(f"duplicate protein id: {protein.protein_id}")
            table[protein.protein_id] = protein
        self._proteins = table

    def __len__(self) -> int:
        return len(self._proteins)

    def __contains__(self, protein_id: object) -> bool:
        return protein_id in self._proteins

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(self._proteins)

    def get(self, protein_id: str) -> MembraneProtein | None:
        return self._proteins.get(protein_id)

    def has(self, protein_id: str) -> bool:
        return protein_id in self._proteins

    def all_proteins(self) -> list[MembraneProtein]:
        return list(self._proteins.values())

    def transporters(self) -> list[TransporterProtein]:
        return [p for p in self._proteins.values() if isinstance(p, TransporterProtein)]

    def receptors(self) -> list[ReceptorProtein]:
        return [p for p in self._proteins.values() if isinstance(p, ReceptorProtein)]


def default_protein_catalog() -> ProteinCatalog:
    """Build the standard transporter/receptor catalog."""
    return ProteinCatalog(
        [
            TransporterProtein("GLUT", "GLUT Transporter", "GLUCOSE", "in", 0.05),
            TransporterProtein("AA_TRANSPORTER", "AA Transporter", "AA", "in", 0.04),
            TransporterProtein("NT_TRANSPORTER", "NT Transporter", "NT", "in", 0.03),
            TransporterProtein("ROS_EXPORTER", "ROS Exporter", "ROS", "out", 0.06),
            TransporterProtein("SECRETION_PUMP", "Secretion Pump", "CARGO", "out", 0.08),
            ReceptorProtein(
                "GROWTH_FACTOR_RECEPTOR",
                "Growth Factor Receptor",
                ligand_id="LIGAND_GROWTH",
                messenger_id="SIGNAL",
                messenger_rate=0.04,
            ),
        ]
    )
