"""Immutable species catalog with dense per-species indexing.

Every concentration array in the simulation is laid out along the species
axis in catalog order, so ``SpeciesTable.index_of`` is the only mapping
between species ids and array columns.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Species:
    """One chemical species and its diffusion/clamp properties."""

    species_id: str
    label: str
    diffusion_coefficient: float
    min_concentration: float | None = None
    max_concentration: float | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.diffusion_coefficient <= 1.0:
            raise ValueError(
                f"diffusion_coefficient for {self.species_id} must be in [0.0, 1.0]"
            )
        if (
            self.min_concentration is not None
            and self.max_concentration is not None
            and self.min_concentration > self.max_concentration
        ):
            raise ValueError(f"min_concentration > max_concentration for {self.species_id}")

    def clamp(self, value: float) -> float:
        """Clamp to >= 0 and then to the declared bounds."""
        value = max(0.0, value)
        if self.max_concentration is not None:
            value = min(self.max_concentration, value)
        if self.min_concentration is not None:
            value = max(self.min_concentration, value)
        return value


class SpeciesTable:
    """Ordered, read-only collection of species."""

    def __init__(self, species: Iterable[Species]) -> None:
        ordered = tuple(species)
        index: dict[str, int] = {}
        for i, sp in enumerate(ordered):
            if sp.species_id in index:
                raise ValueError(f"duplicate species id: {sp.species_id}")
            index[sp.species_id] = i
        self._species = ordered
        self._index = index
        self._coefficients = np.array([sp.diffusion_coefficient for sp in ordered], dtype=float)
        self._lower = np.array(
            [max(0.0, sp.min_concentration or 0.0) for sp in ordered], dtype=float
        )
        self._upper = np.array(
            [
                np.inf if sp.max_concentration is None else sp.max_concentration
                for sp in ordered
            ],
            dtype=float,
        )

    def __len__(self) -> int:
        return len(self._species)

    def __iter__(self) -> Iterator[Species]:
        return iter(self._species)

    def __contains__(self, species_id: object) -> bool:
        return species_id in self._index

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(sp.species_id for sp in self._species)

    @property
    def diffusion_coefficients(self) -> np.ndarray:
        """Per-species diffusion coefficients in column order (read-only copy)."""
        return self._coefficients.copy()

    def has(self, species_id: str) -> bool:
        return species_id in self._index

    def get(self, species_id: str) -> Species | None:
        idx = self._index.get(species_id)
        return None if idx is None else self._species[idx]

    def index_of(self, species_id: str) -> int | None:
        """Column index of ``species_id``, or None when unknown."""
        return self._index.get(species_id)

    def clamp(self, species_id: str, value: float) -> float:
        sp = self.get(species_id)
        if sp is None:
            return max(0.0, value)
        return sp.clamp(value)

    def clamp_array(self, values: np.ndarray) -> np.ndarray:
        """Clamp a ``(..., n_species)`` array column-wise; returns a new array.

        Lower bound is applied last so a declared minimum wins over the
        maximum, matching ``Species.clamp``.
        """
        clipped = np.minimum(np.maximum(values, 0.0), self._upper)
        return np.maximum(clipped, self._lower)

    def empty_concentrations(self) -> dict[str, float]:
        return {sp.species_id: 0.0 for sp in self._species}

    def to_dict(self, row: np.ndarray) -> dict[str, float]:
        """Convert one concentration row into a species-keyed dict."""
        return {sp.species_id: float(row[i]) for i, sp in enumerate(self._species)}

    def from_mapping(self, values: Mapping[str, float]) -> np.ndarray:
        """Dense row from a partial mapping; unknown ids are ignored."""
        row = np.zeros(len(self._species), dtype=float)
        for species_id, value in values.items():
            idx = self._index.get(species_id)
            if idx is not None:
                row[idx] = value
        return row


def default_species_table() -> SpeciesTable:
    """Build the standard species catalog."""
    return SpeciesTable(
        [
            Species("ATP", "ATP", 0.03, 0.0, 100.0),
            Species("AA", "Amino Acids", 0.025, 0.0, 80.0),
            Species("NT", "Nucleotides", 0.02, 0.0, 60.0),
            Species("ROS", "Reactive Oxygen", 0.04, 0.0, 40.0),
            Species("GLUCOSE", "Glucose", 0.015, 0.0, 50.0),
            Species("PRE_MRNA", "pre-mRNA", 0.01, 0.0, 30.0),
            Species("PROTEIN", "Protein Units", 0.008, 0.0, 25.0),
            Species("CARGO", "Cargo Vesicles", 0.005, 0.0, 20.0),
            Species("LIPID", "Lipids", 0.006, 0.0, 40.0),
            Species("H2O", "Water", 0.05, 0.0, 100.0),
            Species("CO2", "Carbon Dioxide", 0.045, 0.0, 30.0),
            Species("SIGNAL", "Second Messenger", 0.035, 0.0, 20.0),
        ]
    )
