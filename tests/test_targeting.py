"""Tests for ray-cast targeting and the neighbor fallback."""

import copy

import pytest

from geometry import build_shared_edges
from models import NEUTRAL, Cell, Direction
from targeting import (
    TargetResult,
    angle_difference,
    direction_vector,
    resolve_target,
    territory_centroid,
)
from conftest import make_row_cells, square


def target(cells, team_id, direction):
    return resolve_target(cells, build_shared_edges(cells), team_id, direction)


def detached_cells(centroids, neighbors):
    """Cells whose polygons share no edges, so only the neighbor fallback can fire."""
    return [
        Cell(id=i, owner_team_id=0 if i == 0 else 1, centroid=c, polygon=square(c[0], c[1], 1.0),
             neighbors=neighbors.get(i, []))
        for i, c in enumerate(centroids)
    ]


class TestDirections:

    def test_math_convention(self):
        assert direction_vector(Direction.E) == pytest.approx((1.0, 0.0))
        assert direction_vector(Direction.N) == pytest.approx((0.0, 1.0))
        assert direction_vector(Direction.W) == pytest.approx((-1.0, 0.0))
        assert direction_vector(Direction.S) == pytest.approx((0.0, -1.0))
        assert direction_vector(Direction.NE) == pytest.approx((2 ** -0.5, 2 ** -0.5))
        assert direction_vector(Direction.SW) == pytest.approx((-(2 ** -0.5), -(2 ** -0.5)))

    def test_string_directions_accepted(self):
        assert direction_vector('E') == direction_vector(Direction.E)

    def test_angle_difference_wraps(self):
        assert angle_difference(170.0, -170.0) == pytest.approx(20.0)
        assert angle_difference(0.0, 180.0) == pytest.approx(180.0)
        assert angle_difference(-45.0, 45.0) == pytest.approx(90.0)


class TestBoundaryPass:

    def test_two_cell_strike_east(self, two_cell_cells):
        assert target(two_cell_cells, 0, Direction.E) == TargetResult(from_cell_id=0, to_cell_id=1)

    def test_defender_strikes_back_west(self, two_cell_cells):
        assert target(two_cell_cells, 1, Direction.W) == TargetResult(from_cell_id=1, to_cell_id=0)

    def test_no_enemy_in_direction(self, two_cell_cells):
        assert target(two_cell_cells, 0, Direction.W) is None
        assert target(two_cell_cells, 0, Direction.N) is None

    def test_closest_boundary_wins(self):
        # Team 0 holds cells 0 and 2, so its territory centroid sits inside enemy cell 1
        cells = make_row_cells([0, 1, 0, 2])
        assert territory_centroid(cells, 0) == pytest.approx((10.0, 0.0))
        assert target(cells, 0, Direction.E) == TargetResult(from_cell_id=2, to_cell_id=1)
        assert target(cells, 0, Direction.W) == TargetResult(from_cell_id=0, to_cell_id=1)

    def test_internal_edges_are_skipped(self):
        cells = make_row_cells([0, 0, 1, 1, 2])
        assert target(cells, 0, Direction.E) == TargetResult(from_cell_id=1, to_cell_id=2)

    def test_edges_between_other_teams_are_skipped(self):
        cells = make_row_cells([0, 1, 2])
        assert target(cells, 0, Direction.E) == TargetResult(from_cell_id=0, to_cell_id=1)

    def test_neutral_cells_are_targets(self):
        cells = make_row_cells([0, NEUTRAL, 1])
        assert target(cells, 0, Direction.E) == TargetResult(from_cell_id=0, to_cell_id=1)

    def test_diagonal_hits_edge_corner(self, two_cell_cells):
        assert target(two_cell_cells, 0, Direction.NE) == TargetResult(from_cell_id=0, to_cell_id=1)

    def test_enemy_behind_is_not_struck(self):
        cells = make_row_cells([0, 0, 1])
        assert target(cells, 0, Direction.W) is None


class TestNeighborFallback:

    def test_aligned_neighbor_is_chosen(self):
        cells = detached_cells([(0.0, 0.0), (10.0, 0.0)], {0: [1], 1: [0]})
        assert build_shared_edges(cells) == []
        assert target(cells, 0, Direction.E) == TargetResult(from_cell_id=0, to_cell_id=1)

    def test_within_tolerance(self):
        cells = detached_cells([(0.0, 0.0), (10.0, 0.0)], {0: [1], 1: [0]})
        assert target(cells, 0, Direction.NE) == TargetResult(from_cell_id=0, to_cell_id=1)

    def test_outside_tolerance(self):
        cells = detached_cells([(0.0, 0.0), (10.0, 0.0)], {0: [1], 1: [0]})
        assert target(cells, 0, Direction.N) is None
        assert target(cells, 0, Direction.W) is None

    def test_smallest_projection_wins(self):
        cells = detached_cells([(0.0, 0.0), (10.0, 0.0), (6.0, 4.0)], {0: [1, 2]})
        assert target(cells, 0, Direction.E) == TargetResult(from_cell_id=0, to_cell_id=2)

    def test_tie_broken_by_perpendicular_distance(self):
        cells = detached_cells([(0.0, 0.0), (10.0, 3.0), (10.0, 0.0)], {0: [1, 2]})
        assert target(cells, 0, Direction.E) == TargetResult(from_cell_id=0, to_cell_id=2)


class TestResolveTarget:

    def test_dead_team_has_no_target(self):
        cells = make_row_cells([0, 0])
        assert target(cells, 1, Direction.E) is None

    def test_preview_is_idempotent_and_pure(self):
        cells = make_row_cells([0, 1, 0, 2, NEUTRAL, 1])
        before = copy.deepcopy(cells)
        edges = build_shared_edges(cells)
        for direction in Direction:
            first = resolve_target(cells, edges, 0, direction)
            second = resolve_target(cells, edges, 0, direction)
            assert first == second
        assert cells == before

    def test_target_always_changes_owner(self):
        cells = make_row_cells([0, 1, 0, 2, NEUTRAL, 1])
        edges = build_shared_edges(cells)
        for team_id in (0, 1, 2):
            for direction in Direction:
                result = resolve_target(cells, edges, team_id, direction)
                if result is None:
                    continue
                assert cells[result.from_cell_id].owner_team_id == team_id
                assert cells[result.to_cell_id].owner_team_id != team_id

    def test_to_dict(self):
        assert TargetResult(0, 1).to_dict() == {'from_cell_id': 0, 'to_cell_id': 1}
