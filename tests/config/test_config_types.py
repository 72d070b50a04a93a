"""Tests for cell_sandbox.config constants and config dataclasses."""

from __future__ import annotations

import pytest

from cell_sandbox.config.constants import (
    CELL_RADIUS,
    DEFAULT_DT,
    GRID_RADIUS,
    HEX_DIRECTIONS,
    HEX_SIZE,
    PROTEIN_CAPABLE_STRUCTURES,
)
from cell_sandbox.config.types import EnvironmentConfig, GridConfig, SimulationConfig


class TestConstants:
    def test_six_unique_hex_directions(self) -> None:
        assert len(HEX_DIRECTIONS) == 6
        assert len(set(HEX_DIRECTIONS)) == 6

    def test_hex_directions_cancel_out(self) -> None:
        assert sum(q for q, _ in HEX_DIRECTIONS) == 0
        assert sum(r for _, r in HEX_DIRECTIONS) == 0

    def test_each_direction_is_one_step(self) -> None:
        for q, r in HEX_DIRECTIONS:
            assert (abs(q) + abs(r) + abs(q + r)) // 2 == 1

    def test_default_geometry_is_consistent(self) -> None:
        assert HEX_SIZE > 0
        assert CELL_RADIUS > HEX_SIZE
        assert GRID_RADIUS * 1.5 * HEX_SIZE >= CELL_RADIUS - HEX_SIZE

    def test_default_dt_is_sixtieth_of_a_second(self) -> None:
        assert DEFAULT_DT == pytest.approx(1.0 / 60.0)

    def test_protein_capable_structures_include_ports(self) -> None:
        assert "membrane-port" in PROTEIN_CAPABLE_STRUCTURES
        assert "transporter" in PROTEIN_CAPABLE_STRUCTURES


class TestGridConfig:
    def test_defaults_are_valid(self) -> None:
        cfg = GridConfig()
        assert cfg.hex_size == HEX_SIZE
        assert cfg.cell_radius == CELL_RADIUS

    def test_filter_radius_is_cell_radius_minus_hex_size(self) -> None:
        assert GridConfig(hex_size=16.0, cell_radius=220.0).filter_radius == pytest.approx(204.0)

    def test_rejects_non_positive_hex_size(self) -> None:
        with pytest.raises(ValueError, match="hex_size"):
            GridConfig(hex_size=0.0)

    def test_rejects_radius_not_larger_than_hex(self) -> None:
        with pytest.raises(ValueError, match="cell_radius"):
            GridConfig(hex_size=16.0, cell_radius=16.0)

    def test_rejects_negative_grid_radius(self) -> None:
        with pytest.raises(ValueError, match="grid_radius"):
            GridConfig(grid_radius=-1)


class TestEnvironmentConfig:
    def test_defaults_include_glucose_and_growth_ligand(self) -> None:
        cfg = EnvironmentConfig()
        assert cfg.external_concentrations["GLUCOSE"] == 50.0
        assert cfg.ligand_presence["LIGAND_GROWTH"] == 1.0

    def test_rejects_negative_concentration(self) -> None:
        with pytest.raises(ValueError, match="external_concentrations"):
            EnvironmentConfig(external_concentrations={"GLUCOSE": -1.0})

    def test_rejects_negative_ligand(self) -> None:
        with pytest.raises(ValueError, match="ligand_presence"):
            EnvironmentConfig(ligand_presence={"LIGAND_GROWTH": -0.5})


class TestSimulationConfig:
    def test_defaults_are_valid(self) -> None:
        cfg = SimulationConfig()
        assert cfg.dt == DEFAULT_DT
        assert cfg.track_conservation is True

    def test_rejects_non_positive_dt(self) -> None:
        with pytest.raises(ValueError, match="dt"):
            SimulationConfig(dt=0.0)

    def test_rejects_refund_fraction_out_of_range(self) -> None:
        with pytest.raises(ValueError, match="refund_fraction"):
            SimulationConfig(refund_fraction=1.5)

    def test_validates_embedded_grid_fields(self) -> None:
        with pytest.raises(ValueError, match="cell_radius"):
            SimulationConfig(hex_size=20.0, cell_radius=10.0)

    def test_validates_embedded_environment_fields(self) -> None:
        with pytest.raises(ValueError, match="ligand_presence"):
            SimulationConfig(ligand_presence={"LIGAND_GROWTH": -1.0})

    def test_components_round_trip(self) -> None:
        grid = GridConfig(hex_size=12.0, cell_radius=100.0, grid_radius=9)
        env = EnvironmentConfig(ligand_presence={"LIGAND_GROWTH": 2.0})
        cfg = SimulationConfig.from_components(grid=grid, environment=env, dt=0.5)
        assert cfg.dt == 0.5
        grid_out, env_out = cfg.to_components()
        assert grid_out == grid
        assert env_out.ligand_presence == {"LIGAND_GROWTH": 2.0}

    def test_from_components_defaults(self) -> None:
        assert SimulationConfig.from_components() == SimulationConfig()
