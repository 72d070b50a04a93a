"""Tests for cell_sandbox.domain.species module."""

from __future__ import annotations

import numpy as np
import pytest

from cell_sandbox.domain.species import Species, SpeciesTable, default_species_table


class TestSpecies:
    def test_clamp_floors_at_zero(self) -> None:
        assert Species("X", "X", 0.1).clamp(-3.0) == 0.0

    def test_clamp_applies_bounds(self) -> None:
        sp = Species("X", "X", 0.1, min_concentration=2.0, max_concentration=5.0)
        assert sp.clamp(0.0) == 2.0
        assert sp.clamp(9.0) == 5.0
        assert sp.clamp(3.5) == 3.5

    def test_rejects_coefficient_above_one(self) -> None:
        with pytest.raises(ValueError, match="diffusion_coefficient"):
            Species("X", "X", 1.5)

    def test_rejects_inverted_bounds(self) -> None:
        with pytest.raises(ValueError, match="min_concentration"):
            Species("X", "X", 0.1, min_concentration=5.0, max_concentration=1.0)


class TestSpeciesTable:
    def test_default_table_has_twelve_species(self) -> None:
        table = default_species_table()
        assert len(table) == 12
        assert table.ids[0] == "ATP"
        assert "SIGNAL" in table

    def test_indices_are_dense_and_ordered(self) -> None:
        table = default_species_table()
        assert [table.index_of(sid) for sid in table.ids] == list(range(len(table)))

    def test_unknown_species(self) -> None:
        table = default_species_table()
        assert table.get("NOPE") is None
        assert table.index_of("NOPE") is None
        assert not table.has("NOPE")

    def test_rejects_duplicate_ids(self) -> None:
        with pytest.raises(ValueError, match="duplicate"):
            SpeciesTable([Species("A", "A", 0.1), Species("A", "A2", 0.2)])

    def test_clamp_by_id(self) -> None:
        table = default_species_table()
        assert table.clamp("PROTEIN", 30.0) == 25.0
        assert table.clamp("PROTEIN", -1.0) == 0.0
        assert table.clamp("UNKNOWN", -5.0) == 0.0

    def test_clamp_array_matches_scalar_clamp(self) -> None:
        table = default_species_table()
        rng = np.random.default_rng(3)
        values = rng.uniform(-50.0, 150.0, size=(8, len(table)))
        clamped = table.clamp_array(values)
        for row_in, row_out in zip(values, clamped, strict=True):
            for i, sid in enumerate(table.ids):
                assert row_out[i] == table.clamp(sid, float(row_in[i]))

    def test_clamp_array_returns_new_array(self) -> None:
        table = default_species_table()
        values = np.full((2, len(table)), -1.0)
        table.clamp_array(values)
        assert (values == -1.0).all()

    def test_diffusion_coefficients_are_a_copy(self) -> None:
        table = default_species_table()
        coeffs = table.diffusion_coefficients
        coeffs[:] = 0.0
        assert table.diffusion_coefficients[table.index_of("H2O")] == pytest.approx(0.05)

    def test_empty_concentrations(self) -> None:
        table = default_species_table()
        empty = table.empty_concentrations()
        assert set(empty) == set(table.ids)
        assert all(v == 0.0 for v in empty.values())

    def test_from_mapping_ignores_unknown_ids(self) -> None:
        table = default_species_table()
        row = table.from_mapping({"ATP": 3.0, "NOPE": 9.0})
        assert row.shape == (len(table),)
        assert row[table.index_of("ATP")] == 3.0
        assert row.sum() == 3.0

    def test_to_dict_round_trip(self) -> None:
        table = default_species_table()
        row = table.from_mapping({"AA": 1.5, "CO2": 2.5})
        as_dict = table.to_dict(row)
        assert as_dict["AA"] == 1.5
        assert as_dict["CO2"] == 2.5
        assert as_dict["ATP"] == 0.0
