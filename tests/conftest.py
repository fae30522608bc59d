"""Shared test fixtures and helpers."""

from typing import List, Optional, Sequence

import pytest

from models import NEUTRAL, Cell, Team
from state import GameState, load_config, new_game

FIXED_CLOCK = 1_700_000_000.0


def fixed_clock() -> float:
    return FIXED_CLOCK


# --- Board builders ---


def square(cx: float, cy: float, half: float = 5.0):
    """Counter-clockwise square centred on (cx, cy)."""
    return [(cx - half, cy - half), (cx + half, cy - half), (cx + half, cy + half), (cx - half, cy + half)]


def make_row_cells(owners: Sequence[int], width: float = 10.0) -> List[Cell]:
    """
    A horizontal strip of square cells.

    Cell i is centred on (i * width, 0) and borders cells i - 1 and i + 1
    along vertical edges at x = i * width +/- width / 2.
    """
    cells = []
    for i, owner in enumerate(owners):
        neighbors = [n for n in (i - 1, i + 1) if 0 <= n < len(owners)]
        cells.append(Cell(
            id=i,
            owner_team_id=owner,
            centroid=(i * width, 0.0),
            polygon=square(i * width, 0.0, width / 2),
            neighbors=neighbors,
        ))
    return cells


def make_teams(count: int, overall: int = 75) -> List[Team]:
    return [Team(id=i, name=f"Team {i + 1}", overall=overall) for i in range(count)]


def make_state(cells: List[Cell], teams: List[Team], seed: str = 'test',
               config: Optional[dict] = None, store=None) -> GameState:
    """GameState on a hand-made board, keeping the given ownership."""
    return GameState(
        seed=seed,
        teams=teams,
        cells=cells,
        config=config or load_config(),
        store=store,
        clock=fixed_clock,
    )


# --- Fixtures ---


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def two_cell_cells():
    """Team 0 on cell 0 centred (0, 0); team 1 on cell 1 centred (10, 0); shared edge x = 5."""
    return make_row_cells([0, 1])


@pytest.fixture
def two_cell_game(two_cell_cells):
    return make_state(two_cell_cells, make_teams(2))


@pytest.fixture
def game():
    """Fresh generated game: 4 teams, 6x8 map, seed 'demo'."""
    return new_game(seed='demo', num_teams=4, rows=6, cols=8, clock=fixed_clock)


@pytest.fixture
def force_battle(monkeypatch):
    """Force battle rolls: force_battle(0.0) makes the attacker win, force_battle(0.999) lose."""
    import resolution

    def _force(value: float):
        monkeypatch.setattr(resolution, 'battle_roll', lambda *args: value)
    return _force


@pytest.fixture
def force_neutral(monkeypatch):
    """Force neutral capture rolls to a fixed value."""
    import resolution

    def _force(value: float):
        monkeypatch.setattr(resolution, 'neutral_roll', lambda *args: value)
    return _force


@pytest.fixture
def api_client():
    """Flask test client."""
    from app import app

    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def create_api_game(client, seed='demo', num_teams=4):
    """Create a new game via API, return game_id."""
    resp = client.post("/api/game/new", json={"seed": seed, "num_teams": num_teams, "rows": 6, "cols": 8})
    assert resp.status_code == 200
    return resp.json["game_id"]


def owners(game_state: GameState) -> List[int]:
    return [c.owner_team_id for c in game_state.cells]


def neutral_ids(game_state: GameState) -> List[int]:
    return [c.id for c in game_state.cells if c.owner_team_id == NEUTRAL]
