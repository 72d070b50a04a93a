"""Tests for cell_sandbox.domain.hex_grid module."""

from __future__ import annotations

import math

import numpy as np
import pytest

from cell_sandbox.domain.hex_grid import HexCoord, HexGrid, cube_round
from cell_sandbox.domain.species import default_species_table


def _grid(radius: int = 3, center: tuple[float, float] = (0.0, 0.0)) -> HexGrid:
    grid = HexGrid(default_species_table(), hex_size=16.0, center=center)
    grid.generate_tiles(radius)
    return grid


def _cell_grid() -> HexGrid:
    grid = _grid(14)
    grid.filter_tiles_in_circle((0.0, 0.0), 204.0)
    grid.recompute_membranes((0.0, 0.0), 220.0)
    return grid


class TestHexCoord:
    def test_arithmetic(self) -> None:
        assert HexCoord(1, 2) + HexCoord(-3, 1) == HexCoord(-2, 3)
        assert HexCoord(1, 2) - HexCoord(1, 1) == HexCoord(0, 1)

    def test_cube_component(self) -> None:
        assert HexCoord(2, -5).s == 3

    def test_str_names_both_axes(self) -> None:
        assert str(HexCoord(1, -2)) == "(1, -2)"

    def test_usable_as_dict_key(self) -> None:
        table = {HexCoord(0, 1): "a"}
        assert table[HexCoord(0, 1)] == "a"

    def test_neighbors_are_adjacent(self) -> None:
        origin = HexCoord(4, -2)
        neighbors = origin.neighbors()
        assert len(set(neighbors)) == 6
        assert all(origin.is_adjacent(n) for n in neighbors)

    def test_distance(self) -> None:
        assert HexCoord(0, 0).distance_to(HexCoord(3, -1)) == 3
        assert HexCoord(-2, 2).distance_to(HexCoord(2, -2)) == 4


class TestCubeRound:
    def test_result_sums_to_zero(self) -> None:
        for x, y in [(0.4, -0.9), (1.6, 0.2), (-2.49, 1.51)]:
            rx, ry, rz = cube_round(x, y, -x - y)
            assert rx + ry + rz == 0

    def test_exact_values_unchanged(self) -> None:
        assert cube_round(2.0, -3.0, 1.0) == (2, -3, 1)


class TestGeneration:
    @pytest.mark.parametrize("radius, expected", [(0, 1), (1, 7), (2, 19), (14, 631)])
    def test_hexagonal_tile_count(self, radius: int, expected: int) -> None:
        assert _grid(radius).tile_count == expected

    def test_tiles_within_axial_radius(self) -> None:
        grid = _grid(4)
        for tile in grid.get_all_tiles():
            q, r = tile.coord.q, tile.coord.r
            assert max(abs(q), abs(r), abs(q + r)) <= 4

    def test_concentrations_start_at_zero(self) -> None:
        grid = _grid(2)
        assert grid.concentration_matrix().shape == (19, 12)
        assert not grid.concentration_matrix().any()

    def test_rejects_negative_radius(self) -> None:
        with pytest.raises(ValueError, match="radius"):
            _grid(-1)

    def test_topology_version_bumps(self) -> None:
        grid = _grid(3)
        version = grid.topology_version
        grid.filter_tiles_in_circle((0.0, 0.0), 30.0)
        assert grid.topology_version == version + 1

    def test_filter_keeps_tiles_inside_circle(self) -> None:
        grid = _grid(14)
        grid.filter_tiles_in_circle((0.0, 0.0), 204.0)
        assert 0 < grid.tile_count < 631
        for tile in grid.get_all_tiles():
            assert math.hypot(*tile.world_pos) <= 204.0

    def test_filter_preserves_concentrations(self) -> None:
        grid = _grid(3)
        grid.set_concentration(HexCoord(1, 0), "ATP", 7.0)
        grid.filter_tiles_in_circle((0.0, 0.0), 30.0)
        assert grid.tile_count == 7
        assert grid.get_concentration(HexCoord(1, 0), "ATP") == 7.0
        assert not grid.has_tile(HexCoord(2, 0))
        assert grid.concentration_matrix().shape == (7, 12)


class TestGeometry:
    def test_hex_to_world_flat_top(self) -> None:
        grid = _grid(1)
        x, y = grid.hex_to_world(HexCoord(1, 0))
        assert x == pytest.approx(24.0)
        assert y == pytest.approx(8.0 * math.sqrt(3.0))

    def test_round_trip_every_tile(self) -> None:
        grid = _grid(10, center=(100.0, -50.0))
        for coord in grid.coords():
            assert grid.world_to_hex(*grid.hex_to_world(coord)) == coord

    def test_round_trip_with_jitter(self) -> None:
        grid = _grid(6)
        for coord in grid.coords():
            x, y = grid.hex_to_world(coord)
            assert grid.world_to_hex(x + 3.0, y - 2.0) == coord

    def test_tile_at_world(self) -> None:
        grid = _grid(2)
        tile = grid.get_tile_at_world(24.0, 13.0)
        assert tile is not None and tile.coord == HexCoord(1, 0)
        assert grid.get_tile_at_world(10_000.0, 0.0) is None

    def test_update_center_shifts_world_positions(self) -> None:
        grid = _grid(2)
        before = grid.get_tile(HexCoord(1, 0)).world_pos  # type: ignore[union-attr]
        grid.update_center((10.0, 5.0))
        after = grid.get_tile(HexCoord(1, 0)).world_pos  # type: ignore[union-attr]
        assert after[0] == pytest.approx(before[0] + 10.0)
        assert after[1] == pytest.approx(before[1] + 5.0)
        assert grid.world_to_hex(10.0, 5.0) == HexCoord(0, 0)

    def test_neighbors_interior_and_corner(self) -> None:
        grid = _grid(2)
        assert len(grid.get_neighbors(HexCoord(0, 0))) == 6
        assert {t.coord for t in grid.get_neighbors(HexCoord(2, 0))} == {
            HexCoord(2, -1),
            HexCoord(1, 0),
            HexCoord(1, 1),
        }


class TestMembranes:
    def test_outer_ring_is_membrane(self) -> None:
        grid = _grid(3)
        membrane = grid.recompute_membranes((0.0, 0.0), 1000.0)
        assert len(membrane) == 18
        assert all(HexCoord(0, 0).distance_to(c) == 3 for c in membrane)
        assert not grid.is_membrane_coord(HexCoord(0, 0))

    def test_membrane_invariant_on_cell_grid(self) -> None:
        grid = _cell_grid()
        for tile in grid.get_all_tiles():
            open_side = any(
                not grid.has_tile(n) or not grid.is_within_cell_radius(n)
                for n in tile.coord.neighbors()
            )
            assert tile.is_membrane == open_side

    def test_recompute_is_idempotent(self) -> None:
        grid = _cell_grid()
        first = grid.recompute_membranes((0.0, 0.0), 220.0)
        flags = {t.coord: (t.is_membrane, t.membrane_index) for t in grid.get_all_tiles()}
        second = grid.recompute_membranes((0.0, 0.0), 220.0)
        assert first == second
        assert flags == {t.coord: (t.is_membrane, t.membrane_index) for t in grid.get_all_tiles()}

    def test_membrane_indices_are_dense(self) -> None:
        grid = _cell_grid()
        tiles = grid.get_membrane_tiles()
        assert [t.membrane_index for t in tiles] == list(range(len(tiles)))

    def test_everything_inside_before_recompute(self) -> None:
        grid = _grid(2)
        assert grid.cell_radius is None
        assert grid.is_within_cell_radius(HexCoord(50, 50))


class TestConcentrations:
    def test_unknown_coord_or_species_is_noop(self) -> None:
        grid = _grid(1)
        grid.set_concentration(HexCoord(9, 9), "ATP", 5.0)
        grid.set_concentration(HexCoord(0, 0), "NOPE", 5.0)
        assert grid.get_concentration(HexCoord(9, 9), "ATP") == 0.0
        assert grid.get_concentration(HexCoord(0, 0), "NOPE") == 0.0
        assert grid.add_concentration(HexCoord(9, 9), "ATP", 1.0) == 0.0
        assert grid.get_all_concentrations(HexCoord(9, 9)) == {}

    def test_set_clamps(self) -> None:
        grid = _grid(1)
        grid.set_concentration(HexCoord(0, 0), "PROTEIN", 100.0)
        assert grid.get_concentration(HexCoord(0, 0), "PROTEIN") == 25.0
        grid.set_concentration(HexCoord(0, 0), "PROTEIN", -4.0)
        assert grid.get_concentration(HexCoord(0, 0), "PROTEIN") == 0.0

    def test_add_returns_applied_delta(self) -> None:
        grid = _grid(1)
        grid.set_concentration(HexCoord(0, 0), "ATP", 99.0)
        assert grid.add_concentration(HexCoord(0, 0), "ATP", 5.0) == pytest.approx(1.0)
        assert grid.add_concentration(HexCoord(0, 0), "ATP", -500.0) == pytest.approx(-100.0)
        assert grid.get_concentration(HexCoord(0, 0), "ATP") == 0.0

    def test_get_all_returns_copy(self) -> None:
        grid = _grid(1)
        grid.set_concentration(HexCoord(0, 0), "AA", 3.0)
        snapshot = grid.get_all_concentrations(HexCoord(0, 0))
        assert len(snapshot) == 12
        snapshot["AA"] = 99.0
        assert grid.get_concentration(HexCoord(0, 0), "AA") == 3.0

    def test_clear_and_totals(self) -> None:
        grid = _grid(1)
        grid.fill_concentration("NT", 2.0)
        assert grid.total_concentration("NT") == pytest.approx(14.0)
        assert grid.totals()["NT"] == pytest.approx(14.0)
        grid.clear_concentrations(HexCoord(0, 0))
        assert grid.total_concentration("NT") == pytest.approx(12.0)

    def test_matrix_write_clamps_and_checks_shape(self) -> None:
        grid = _grid(1)
        matrix = np.full((7, 12), 1000.0)
        grid.write_concentration_matrix(matrix)
        assert grid.get_concentration(HexCoord(0, 0), "PROTEIN") == 25.0
        with pytest.raises(ValueError, match="shape"):
            grid.write_concentration_matrix(np.zeros((3, 12)))

    def test_concentration_matrix_is_a_copy(self) -> None:
        grid = _grid(1)
        matrix = grid.concentration_matrix()
        matrix[:] = 5.0
        assert grid.total_concentration("ATP") == 0.0

    def test_clamp_holds_after_mixed_operations(self) -> None:
        grid = _grid(2)
        table = grid.species
        rng = np.random.default_rng(11)
        coords = grid.coords()
        for _ in range(500):
            coord = coords[int(rng.integers(len(coords)))]
            sid = table.ids[int(rng.integers(len(table)))]
            if rng.random() < 0.5:
                grid.set_concentration(coord, sid, float(rng.uniform(-200, 200)))
            else:
                grid.add_concentration(coord, sid, float(rng.uniform(-200, 200)))
        for coord in coords:
            for sid, value in grid.get_all_concentrations(coord).items():
                sp = table.get(sid)
                assert sp is not None
                assert 0.0 <= value <= (sp.max_concentration or math.inf)
