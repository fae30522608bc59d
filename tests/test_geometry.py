import pytest

from geometry import (
    SharedEdge,
    adjacency_from_edges,
    build_shared_edges,
    centroid,
    edge_key,
    mean_point,
    polygon_edges,
    ray_segment_intersection,
)
from conftest import make_row_cells, square


class TestCentroid:

    def test_square_centroid(self):
        assert centroid(square(10.0, -3.0)) == pytest.approx((10.0, -3.0))

    def test_closing_vertex_is_ignored(self):
        ring = square(0.0, 0.0)
        assert centroid(ring + [ring[0]]) == pytest.approx((0.0, 0.0))

    def test_empty_polygon_raises(self):
        with pytest.raises(ValueError):
            centroid([])

    def test_mean_point(self):
        assert mean_point([(0, 0), (10, 0), (5, 3)]) == pytest.approx((5.0, 1.0))
        assert mean_point([]) is None


class TestEdgeKey:

    def test_order_independent(self):
        assert edge_key((5, -5), (5, 5)) == edge_key((5, 5), (5, -5))

    def test_tiny_float_noise_is_rounded_away(self):
        assert edge_key((5.0000000000001, 0.0), (1.0, 1.0)) == edge_key((1.0, 1.0), (5.0, 0.0))

    def test_different_edges_differ(self):
        assert edge_key((0, 0), (1, 0)) != edge_key((0, 0), (0, 1))

    def test_polygon_edges_include_closing_edge(self):
        edges = polygon_edges([(0, 0), (1, 0), (1, 1)])
        assert len(edges) == 3
        assert edges[-1] == ((1.0, 1.0), (0.0, 0.0))


class TestRaySegmentIntersection:

    def test_ray_hits_vertical_edge(self):
        """Ray east from the origin hits the edge x=5, y in [-5, 5] at its midpoint."""
        hit = ray_segment_intersection((0.0, 0.0), (1.0, 0.0), (5.0, -5.0), (5.0, 5.0))
        assert hit is not None
        t, s = hit
        assert t == pytest.approx(5.0)
        assert s == pytest.approx(0.5)

    def test_segment_behind_ray_is_missed(self):
        assert ray_segment_intersection((0.0, 0.0), (-1.0, 0.0), (5.0, -5.0), (5.0, 5.0)) is None

    def test_parallel_segment_is_missed(self):
        assert ray_segment_intersection((0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (10.0, 1.0)) is None

    def test_ray_passing_beside_segment_is_missed(self):
        assert ray_segment_intersection((0.0, 0.0), (1.0, 0.0), (5.0, 1.0), (5.0, 5.0)) is None

    def test_endpoint_hit_counts(self):
        hit = ray_segment_intersection((0.0, 0.0), (1.0, 0.0), (5.0, 0.0), (5.0, 5.0))
        assert hit is not None
        assert hit[1] == pytest.approx(0.0)


class TestSharedEdges:

    def test_two_cells_share_one_edge(self, two_cell_cells):
        edges = build_shared_edges(two_cell_cells)
        assert len(edges) == 1
        edge = edges[0]
        assert (edge.cell_a, edge.cell_b) == (0, 1)
        assert edge_key(edge.a, edge.b) == edge_key((5.0, -5.0), (5.0, 5.0))

    def test_row_of_cells(self):
        edges = build_shared_edges(make_row_cells([0, 0, 1, 1, 2]))
        assert len(edges) == 4
        assert [(e.cell_a, e.cell_b) for e in edges] == [(0, 1), (1, 2), (2, 3), (3, 4)]

    def test_ownership_is_not_consulted(self):
        assert build_shared_edges(make_row_cells([0, 0, 0])) == build_shared_edges(make_row_cells([0, 1, 2]))

    def test_disjoint_polygons_share_nothing(self):
        cells = make_row_cells([0, 1])
        cells[1].polygon = square(10.0, 0.0, 4.0)
        assert build_shared_edges(cells) == []

    def test_adjacency_from_edges(self):
        adjacency = adjacency_from_edges(build_shared_edges(make_row_cells([0, 1, 2])))
        assert adjacency == {0: [1], 1: [0, 2], 2: [1]}

    def test_other_side(self):
        edge = SharedEdge(a=(0.0, 0.0), b=(0.0, 1.0), cell_a=3, cell_b=7)
        assert edge.other(3) == 7
        assert edge.other(7) == 3
