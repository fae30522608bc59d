"""
Map generation for the territorial conquest engine.

Builds a rows x cols lattice of quadrilateral cells whose interior vertices
are displaced with Perlin noise, giving an irregular map where neighbouring
cells still share their border vertices exactly. Capitals are spread across
the map and given ids 0..num_teams-1 so team i starts on cell i.
"""

from typing import Dict, List, Tuple

import numpy as np
from noise import pnoise2

from geometry import centroid
from models import NEUTRAL, Cell
from rng import create_rng, derive_seed, seed_to_int

MAX_JITTER = 0.45  # Keeps displaced quads simple (no self-intersection)
VERTEX_DECIMALS = 6
NOISE_Y_OFFSET = 37.0  # Decorrelates x and y displacement fields


def get_grid_neighbors(row: int, col: int, rows: int, cols: int) -> List[Tuple[int, int]]:
    """
    Edge-sharing neighbours of a lattice cell.

    Args:
        row, col: Cell position
        rows, cols: Lattice size

    Returns:
        (row, col) pairs inside the lattice, in E, N, W, S order
    """
    candidates = [(row, col + 1), (row + 1, col), (row, col - 1), (row - 1, col)]
    return [(r, c) for r, c in candidates if 0 <= r < rows and 0 <= c < cols]


def jittered_vertices(rows: int, cols: int, seed: str, jitter: float, frequency: float) -> np.ndarray:
    """
    Lattice vertices with Perlin displacement on interior points.

    Border vertices stay put so the map keeps a rectangular outline.

    Returns:
        Array of shape (rows + 1, cols + 1, 2) holding (x, y); y grows upward
    """
    base = seed_to_int(seed) % 256
    vertices = np.zeros((rows + 1, cols + 1, 2), dtype=float)
    for r in range(rows + 1):
        for c in range(cols + 1):
            x, y = float(c), float(r)
            if 0 < r < rows and 0 < c < cols and jitter > 0:
                # Sample between lattice points; Perlin noise is zero on them
                nx = (c + 0.5) / frequency
                ny = (r + 0.5) / frequency
                dx = pnoise2(nx, ny, octaves=2, persistence=0.6, lacunarity=2.5, base=base)
                dy = pnoise2(nx + NOISE_Y_OFFSET, ny + NOISE_Y_OFFSET, octaves=2,
                             persistence=0.6, lacunarity=2.5, base=base)
                x += float(np.clip(dx * 2 * jitter, -jitter, jitter))
                y += float(np.clip(dy * 2 * jitter, -jitter, jitter))
            vertices[r, c] = (x, y)
    return np.round(vertices, VERTEX_DECIMALS)


def spread_capitals(centroids: np.ndarray, num_teams: int, seed: str) -> List[int]:
    """
    Farthest-point sampling over cell centroids.

    The first capital is a seeded pick; each following one is the cell
    farthest from all chosen so far (ties go to the lowest index).

    Returns:
        Grid indices of the capitals, in pick order
    """
    rng = create_rng(derive_seed(seed, 'map', 'capitals', len(centroids), num_teams))
    chosen = [int(rng() * len(centroids)) % len(centroids)]
    nearest = np.linalg.norm(centroids - centroids[chosen[0]], axis=1)
    while len(chosen) < num_teams:
        nearest[chosen] = -1.0
        pick = int(np.argmax(nearest))
        chosen.append(pick)
        nearest = np.minimum(nearest, np.linalg.norm(centroids - centroids[pick], axis=1))
    return chosen


def generate_map(
    num_teams: int,
    rows: int = 8,
    cols: int = 10,
    seed: str = 'demo',
    jitter: float = 0.3,
    frequency: float = 4.0
) -> List[Cell]:
    """
    Generate a procedural map for num_teams teams.

    Args:
        num_teams: Number of capitals to place (ids 0..num_teams-1)
        rows, cols: Lattice size
        seed: Seed string for reproducible generation
        jitter: Max vertex displacement in cell units (0..0.45)
        frequency: Perlin frequency (higher = smoother borders)

    Returns:
        Cells in id order, all initially NEUTRAL

    Raises:
        ValueError: On impossible sizes or jitter out of range
    """
    if rows < 1 or cols < 1:
        raise ValueError(f"Map needs at least one row and column, got {rows}x{cols}")
    if not 1 <= num_teams <= rows * cols:
        raise ValueError(f"Cannot place {num_teams} teams on {rows * cols} cells")
    if not 0 <= jitter <= MAX_JITTER:
        raise ValueError(f"jitter must be within [0, {MAX_JITTER}], got {jitter}")
    if frequency <= 0:
        raise ValueError(f"frequency must be positive, got {frequency}")

    vertices = jittered_vertices(rows, cols, seed, jitter, frequency)

    polygons: List[List[Tuple[float, float]]] = []
    for r in range(rows):
        for c in range(cols):
            ring = [vertices[r, c], vertices[r, c + 1], vertices[r + 1, c + 1], vertices[r + 1, c]]
            polygons.append([(float(p[0]), float(p[1])) for p in ring])

    centroids = np.asarray([centroid(poly) for poly in polygons])
    capitals = spread_capitals(centroids, num_teams, seed)

    # Capitals first, then the rest in lattice order
    capital_set = set(capitals)
    order = capitals + [g for g in range(rows * cols) if g not in capital_set]
    new_id: Dict[int, int] = {grid_index: cell_id for cell_id, grid_index in enumerate(order)}

    cells: List[Cell] = []
    for grid_index in order:
        r, c = divmod(grid_index, cols)
        neighbors = sorted(new_id[nr * cols + nc] for nr, nc in get_grid_neighbors(r, c, rows, cols))
        cells.append(Cell(
            id=new_id[grid_index],
            owner_team_id=NEUTRAL,
            centroid=(float(centroids[grid_index][0]), float(centroids[grid_index][1])),
            polygon=polygons[grid_index],
            neighbors=neighbors,
        ))
    return cells


def map_stats(cells: List[Cell]) -> Dict[str, float]:
    """Cell count, bounding box and mean neighbour count of a generated map."""
    points = np.asarray([p for cell in cells for p in cell.polygon], dtype=float)
    return {
        'cells': len(cells),
        'min_x': float(points[:, 0].min()),
        'max_x': float(points[:, 0].max()),
        'min_y': float(points[:, 1].min()),
        'max_y': float(points[:, 1].max()),
        'mean_neighbors': float(np.mean([len(c.neighbors) for c in cells])),
    }
