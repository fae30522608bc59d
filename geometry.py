"""
Geometry kernel for territory targeting.

Pure functions over points and polygons: centroids, canonical edge keys,
shared-edge extraction between adjacent cells, and ray/segment intersection.
Coordinates use standard math axes (x to the right, y up).
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from models import Cell, Point

EDGE_KEY_DECIMALS = 9  # Vertex rounding used when matching edges across cells
PARALLEL_EPS = 1e-9

EdgeKey = Tuple[Tuple[float, float], Tuple[float, float]]


@dataclass(frozen=True)
class SharedEdge:
    """A polygon edge that borders exactly two cells."""
    a: Point
    b: Point
    cell_a: int
    cell_b: int

    def other(self, cell_id: int) -> int:
        return self.cell_b if cell_id == self.cell_a else self.cell_a


def _ring(polygon: Sequence[Point]) -> List[Point]:
    """Drop an explicit closing vertex so each edge is visited once."""
    points = [(float(p[0]), float(p[1])) for p in polygon]
    if len(points) > 1 and points[0] == points[-1]:
        points.pop()
    return points


def centroid(polygon: Sequence[Point]) -> Point:
    """
    Arithmetic mean of a polygon's vertices.

    Not area-weighted; good enough for direction math on roughly convex cells.

    Args:
        polygon: Ordered ring of (x, y) points, optionally closed

    Returns:
        (x, y) centroid
    """
    ring = _ring(polygon)
    if not ring:
        raise ValueError("Cannot take the centroid of an empty polygon")
    cx, cy = np.asarray(ring, dtype=float).mean(axis=0)
    return (float(cx), float(cy))


def mean_point(points: Iterable[Point]) -> Optional[Point]:
    """Mean of a collection of points, or None when there are none."""
    arr = np.asarray(list(points), dtype=float)
    if arr.size == 0:
        return None
    cx, cy = arr.mean(axis=0)
    return (float(cx), float(cy))


def edge_key(a: Point, b: Point) -> EdgeKey:
    """
    Order-independent identity of the edge between two points.

    The same physical edge walked from either adjacent cell yields the
    same key.
    """
    ka = (round(float(a[0]), EDGE_KEY_DECIMALS), round(float(a[1]), EDGE_KEY_DECIMALS))
    kb = (round(float(b[0]), EDGE_KEY_DECIMALS), round(float(b[1]), EDGE_KEY_DECIMALS))
    return (ka, kb) if ka <= kb else (kb, ka)


def polygon_edges(polygon: Sequence[Point]) -> List[Tuple[Point, Point]]:
    """Consecutive vertex pairs of a ring, including the closing edge."""
    ring = _ring(polygon)
    return [(ring[i], ring[(i + 1) % len(ring)]) for i in range(len(ring))]


def cross(ax: float, ay: float, bx: float, by: float) -> float:
    return ax * by - ay * bx


def ray_segment_intersection(
    origin: Point,
    direction: Point,
    a: Point,
    b: Point
) -> Optional[Tuple[float, float]]:
    """
    Intersect a ray with a segment.

    Solves origin + t*direction == a + s*(b - a) with the cross-product
    parametrisation.

    Args:
        origin: Ray start
        direction: Ray direction (unit length makes t a distance)
        a, b: Segment end points

    Returns:
        (t, s) if the ray hits the segment (t >= 0, 0 <= s <= 1), else None
    """
    ux, uy = direction
    sx, sy = b[0] - a[0], b[1] - a[1]
    denom = cross(ux, uy, sx, sy)
    if abs(denom) < PARALLEL_EPS:
        return None
    acx, acy = a[0] - origin[0], a[1] - origin[1]
    t = cross(acx, acy, sx, sy) / denom
    s = cross(acx, acy, ux, uy) / denom
    if t >= 0 and 0 <= s <= 1:
        return (t, s)
    return None


def build_shared_edges(cells: Sequence[Cell]) -> List[SharedEdge]:
    """
    Find every polygon edge shared by two different cells.

    Edges are matched by edge_key, so adjacent polygons must use identical
    vertices along their common border. Run once at setup; ownership is not
    consulted here so the result stays valid for the whole game.

    Args:
        cells: Board cells in id order

    Returns:
        Shared edges in first-seen order
    """
    first_seen: Dict[EdgeKey, Tuple[int, Point, Point]] = {}
    shared: List[SharedEdge] = []
    for cell in cells:
        for a, b in polygon_edges(cell.polygon):
            key = edge_key(a, b)
            seen = first_seen.get(key)
            if seen is None:
                first_seen[key] = (cell.id, a, b)
            elif seen[0] != cell.id:
                shared.append(SharedEdge(a=seen[1], b=seen[2], cell_a=seen[0], cell_b=cell.id))
    return shared


def adjacency_from_edges(edges: Iterable[SharedEdge]) -> Dict[int, List[int]]:
    """Neighbor lists implied by shared edges, sorted by id."""
    adjacency: Dict[int, set] = {}
    for edge in edges:
        adjacency.setdefault(edge.cell_a, set()).add(edge.cell_b)
        adjacency.setdefault(edge.cell_b, set()).add(edge.cell_a)
    return {cell_id: sorted(ids) for cell_id, ids in adjacency.items()}
