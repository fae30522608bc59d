"""
Target resolution: which enemy cell does a (team, direction) strike hit?

A ray is cast from the mean centroid of the attacker's territory along the
chosen compass direction. The closest boundary edge between the attacker and
any other owner decides the target. If no boundary edge lies on the ray, a
neighbor heuristic picks the enemy neighbor best aligned with the direction.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from geometry import SharedEdge, mean_point, ray_segment_intersection
from models import Cell, Direction, Point

# Degrees, counter-clockwise from east, y up
DIRECTION_ANGLES: Dict[Direction, float] = {
    Direction.E: 0.0,
    Direction.NE: 45.0,
    Direction.N: 90.0,
    Direction.NW: 135.0,
    Direction.W: 180.0,
    Direction.SW: -135.0,
    Direction.S: -90.0,
    Direction.SE: -45.0,
}

FALLBACK_TOLERANCE_DEG = 60.0
ALONG_TIE_EPS = 1e-6


@dataclass(frozen=True)
class TargetResult:
    """Attacking cell and the cell it strikes."""
    from_cell_id: int
    to_cell_id: int

    def to_dict(self) -> Dict[str, int]:
        return {'from_cell_id': self.from_cell_id, 'to_cell_id': self.to_cell_id}


def direction_vector(direction: Direction) -> Point:
    """Unit vector for a compass direction."""
    rad = math.radians(DIRECTION_ANGLES[Direction(direction)])
    return (math.cos(rad), math.sin(rad))


def angle_difference(a: float, b: float) -> float:
    """Absolute difference between two angles in degrees, in [0, 180]."""
    diff = (a - b + 180.0) % 360.0 - 180.0
    return abs(diff)


def territory_centroid(cells: Sequence[Cell], team_id: int) -> Optional[Point]:
    """Mean of the centroids of every cell owned by team_id."""
    return mean_point(c.centroid for c in cells if c.owner_team_id == team_id)


def _boundary_pass(
    cells: Sequence[Cell],
    shared_edges: Sequence[SharedEdge],
    attacker_team_id: int,
    origin: Point,
    unit: Point
) -> Optional[TargetResult]:
    best_t = math.inf
    best: Optional[TargetResult] = None
    for edge in shared_edges:
        owner_a = cells[edge.cell_a].owner_team_id
        owner_b = cells[edge.cell_b].owner_team_id
        if owner_a == owner_b:
            continue
        # Exactly one side must belong to the attacker
        if (owner_a == attacker_team_id) == (owner_b == attacker_team_id):
            continue
        hit = ray_segment_intersection(origin, unit, edge.a, edge.b)
        if hit is None:
            continue
        t, _ = hit
        if t < best_t:
            best_t = t
            if owner_a == attacker_team_id:
                best = TargetResult(from_cell_id=edge.cell_a, to_cell_id=edge.cell_b)
            else:
                best = TargetResult(from_cell_id=edge.cell_b, to_cell_id=edge.cell_a)
    return best


def _neighbor_pass(
    cells: Sequence[Cell],
    attacker_cells: List[Cell],
    attacker_team_id: int,
    origin: Point,
    unit: Point,
    direction_deg: float
) -> Optional[TargetResult]:
    ux, uy = unit
    best_along = math.inf
    best_perp = math.inf
    best: Optional[TargetResult] = None
    for cell in attacker_cells:
        for neighbor_id in cell.neighbors:
            if not 0 <= neighbor_id < len(cells):
                continue
            neighbor = cells[neighbor_id]
            if neighbor.owner_team_id == attacker_team_id:
                continue
            dx = neighbor.centroid[0] - origin[0]
            dy = neighbor.centroid[1] - origin[1]
            along = dx * ux + dy * uy
            if along <= 0:
                continue
            if angle_difference(math.degrees(math.atan2(dy, dx)), direction_deg) > FALLBACK_TOLERANCE_DEG:
                continue
            perp = abs(dx * -uy + dy * ux)
            if (along < best_along - ALONG_TIE_EPS
                    or (abs(along - best_along) < ALONG_TIE_EPS and perp < best_perp)):
                best_along = along
                best_perp = perp
                best = TargetResult(from_cell_id=cell.id, to_cell_id=neighbor.id)
    return best


def resolve_target(
    cells: Sequence[Cell],
    shared_edges: Sequence[SharedEdge],
    attacker_team_id: int,
    direction: Direction
) -> Optional[TargetResult]:
    """
    Find the cell struck by attacker_team_id attacking towards direction.

    Deterministic and side-effect free; safe to call for previews.

    Args:
        cells: Board cells indexed by id
        shared_edges: Cached shared edges from build_shared_edges
        attacker_team_id: Attacking team
        direction: Compass direction of the strike

    Returns:
        TargetResult, or None if the team owns nothing or no enemy lies
        in that direction
    """
    direction = Direction(direction)
    attacker_cells = [c for c in cells if c.owner_team_id == attacker_team_id]
    if not attacker_cells:
        return None

    origin = mean_point(c.centroid for c in attacker_cells)
    unit = direction_vector(direction)

    best = _boundary_pass(cells, shared_edges, attacker_team_id, origin, unit)
    if best is not None:
        return best

    return _neighbor_pass(cells, attacker_cells, attacker_team_id, origin, unit,
                          DIRECTION_ANGLES[direction])
