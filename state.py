"""
Game state management for the territorial conquest engine.

GameState owns the authoritative board (teams, cells, turn, history, undo
snapshots). All mutation goes through its operations:

- resolve_target: preview which cell a (team, direction) strike would hit
- apply_attack: resolve target, fight, transfer territory, log, snapshot
- undo / reset_to_initial: whole-state restores from the snapshot stack
- save_to_storage / load_from_storage: best-effort mirror in a key-value store
"""

from __future__ import annotations

import copy
import json
import logging
import math
import os
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from geometry import SharedEdge, build_shared_edges
from models import NEUTRAL, Cell, Direction, HistoryItem, Snapshot, Team
from resolution import (
    apply_battle_result,
    clamp,
    resolve_combat,
    roll_battle,
    roll_neutral_capture,
    support_bonus,
)
from rng import create_rng, derive_seed
from storage import KeyValueStore
from targeting import TargetResult, resolve_target

logger = logging.getLogger(__name__)

CONFIG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.json')

MIN_TEAMS = 2
MAX_TEAMS = 25

DEFAULT_CONFIG: Dict[str, Any] = {
    'balance': {
        'k': 10.0,
        'attacker_advantage_x': 0.1,
        'neighbor_support_weight': 1.5,
        'form': {'min': 0.8, 'max': 1.2, 'win': 0.03, 'loss': -0.03},
        'capital': {'penalty_power': 15, 'penalty_turns': 3},
        'neutrals': {'share': 0.15, 'capture_probability': 0.3},
        'overall': {'min': 40, 'max': 99, 'default': 75},
    },
    'storage_key': 'fi_game_v1',
    'default_team_count': 5,
    'default_country': 'Turkey',
    'map_coloring': 'striped',
    'map': {'rows': 8, 'cols': 10, 'jitter': 0.3, 'frequency': 4.0},
}


class SetupError(ValueError):
    """Raised when the map or roster handed to initialize_game is malformed."""
    pass


def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load config.json merged over the built-in defaults.

    Args:
        path: Config file to read (default: config.json next to this module)

    Returns:
        Complete configuration dict
    """
    try:
        with open(path or CONFIG_PATH, 'r') as f:
            overrides = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        # Use defaults if config file is missing or invalid
        overrides = {}
    return _merge(DEFAULT_CONFIG, overrides)


@dataclass
class AttackResult:
    """Outcome of apply_attack as reported to the caller."""
    success: bool
    target_cell_id: Optional[int] = None
    from_cell_id: Optional[int] = None
    defender_team_id: Optional[int] = None
    attacker_won: Optional[bool] = None
    p: Optional[float] = None
    captured_capital: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'target_cell_id': self.target_cell_id,
            'from_cell_id': self.from_cell_id,
            'defender_team_id': self.defender_team_id,
            'attacker_won': self.attacker_won,
            'p': self.p,
            'captured_capital': self.captured_capital,
        }


@dataclass
class GameState:
    """
    Complete game state and the only place it is mutated.

    turn starts at 0 and advances once per successful attack. snapshots[0]
    is always the post-setup board; later entries are pre-attack copies.
    """
    seed: str
    teams: List[Team]
    cells: List[Cell]
    turn: int = 0
    history: List[HistoryItem] = field(default_factory=list)
    snapshots: List[Snapshot] = field(default_factory=list)
    selected_country: str = 'Turkey'
    map_coloring: str = 'striped'
    config: Dict[str, Any] = field(default_factory=load_config, repr=False)
    store: Optional[KeyValueStore] = field(default=None, repr=False, compare=False)
    clock: Callable[[], float] = field(default=time.time, repr=False, compare=False)
    shared_edges: List[SharedEdge] = field(default_factory=list, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.shared_edges:
            self.shared_edges = build_shared_edges(self.cells)
        if not self.snapshots:
            self.snapshots = [self._capture()]

    @property
    def num_teams(self) -> int:
        return len(self.teams)

    @property
    def balance(self) -> Dict[str, Any]:
        return self.config['balance']

    # --- Queries ---

    def get_team(self, team_id: int) -> Team:
        """Get a team by id; unknown ids are a programming error."""
        for team in self.teams:
            if team.id == team_id:
                return team
        raise ValueError(f"Unknown team id: {team_id}")

    def get_cell(self, cell_id: int) -> Cell:
        if not 0 <= cell_id < len(self.cells):
            raise ValueError(f"Unknown cell id: {cell_id}")
        return self.cells[cell_id]

    def cell_counts(self) -> Dict[int, int]:
        """Cells owned per owner id (NEUTRAL included when present)."""
        counts: Dict[int, int] = {}
        for cell in self.cells:
            counts[cell.owner_team_id] = counts.get(cell.owner_team_id, 0) + 1
        return counts

    def cells_of(self, team_id: int) -> List[Cell]:
        return [c for c in self.cells if c.owner_team_id == team_id]

    def alive_teams(self) -> List[Team]:
        return [t for t in self.teams if t.alive]

    def is_game_over(self) -> bool:
        return len(self.alive_teams()) <= 1

    def winner(self) -> Optional[Team]:
        alive = self.alive_teams()
        return alive[0] if len(alive) == 1 else None

    def resolve_target(self, attacker_team_id: int, direction: Direction) -> Optional[TargetResult]:
        """Preview the strike for (team, direction) without changing anything."""
        return resolve_target(self.cells, self.shared_edges, attacker_team_id, Direction(direction))

    # --- Commands ---

    def apply_attack(self, attacker_team_id: int, direction: Direction) -> AttackResult:
        """
        Resolve and apply one attack.

        A snapshot is pushed only when the board actually changes, so one
        undo() always reverts exactly one history entry. Failed attempts
        (no target, dead attacker, failed neutral capture) leave the state
        untouched and do not advance the turn.

        Args:
            attacker_team_id: Attacking team
            direction: Compass direction of the strike

        Returns:
            AttackResult; success=False means nothing changed
        """
        direction = Direction(direction)
        attacker = self.get_team(attacker_team_id)
        target = self.resolve_target(attacker.id, direction)
        if target is None:
            return AttackResult(success=False)

        defender_id = self.cells[target.to_cell_id].owner_team_id
        if defender_id == NEUTRAL:
            result = self._capture_neutral(attacker, target, direction)
        else:
            result = self._fight(attacker, self.get_team(defender_id), target, direction)

        if result.success:
            self.save_to_storage()
        return result

    def _capture_neutral(self, attacker: Team, target: TargetResult, direction: Direction) -> AttackResult:
        probability = self.balance['neutrals']['capture_probability']
        if not roll_neutral_capture(self.seed, self.turn, attacker.id, target.to_cell_id, probability):
            return AttackResult(
                success=False,
                target_cell_id=target.to_cell_id,
                from_cell_id=target.from_cell_id,
                defender_team_id=NEUTRAL,
                attacker_won=False,
                p=probability,
            )

        self.snapshots.append(self._capture())
        self.cells[target.to_cell_id].owner_team_id = attacker.id
        self._refresh_alive()
        self.history.append(HistoryItem(
            turn=self.turn + 1,
            attacker_team_id=attacker.id,
            defender_team_id=NEUTRAL,
            target_cell_id=target.to_cell_id,
            from_cell_id=target.from_cell_id,
            direction=direction,
            attacker_won=True,
            p=probability,
            timestamp=self.clock(),
        ))
        self.turn += 1
        return AttackResult(
            success=True,
            target_cell_id=target.to_cell_id,
            from_cell_id=target.from_cell_id,
            defender_team_id=NEUTRAL,
            attacker_won=True,
            p=probability,
        )

    def _fight(self, attacker: Team, defender: Team, target: TargetResult, direction: Direction) -> AttackResult:
        weight = self.balance['neighbor_support_weight']
        odds = resolve_combat(
            attacker,
            defender,
            support_bonus(self.cells, target.from_cell_id, attacker.id, weight),
            support_bonus(self.cells, target.to_cell_id, defender.id, weight),
            self.turn,
            self.balance,
        )
        attacker_won = roll_battle(self.seed, self.turn, attacker.id, target.to_cell_id, odds.p)

        self.snapshots.append(self._capture())

        # Winner takes all: the loser forfeits every cell it owns
        winner, loser = (attacker, defender) if attacker_won else (defender, attacker)
        for cell in self.cells:
            if cell.owner_team_id == loser.id:
                cell.owner_team_id = winner.id

        apply_battle_result(winner, loser, self.balance)

        penalty_until = self.turn + 1 + self.balance['capital']['penalty_turns']
        captured_capital = attacker_won and defender.capital_cell_id == target.to_cell_id
        if captured_capital:
            defender.capital_penalty_until_turn = penalty_until
        if not attacker_won and attacker.capital_cell_id == target.from_cell_id:
            attacker.capital_penalty_until_turn = penalty_until

        self._refresh_alive()
        self.history.append(HistoryItem(
            turn=self.turn + 1,
            attacker_team_id=attacker.id,
            defender_team_id=defender.id,
            target_cell_id=target.to_cell_id,
            from_cell_id=target.from_cell_id,
            direction=direction,
            attacker_won=attacker_won,
            p=odds.p,
            captured_capital=captured_capital,
            timestamp=self.clock(),
        ))
        self.turn += 1
        return AttackResult(
            success=True,
            target_cell_id=target.to_cell_id,
            from_cell_id=target.from_cell_id,
            defender_team_id=defender.id,
            attacker_won=attacker_won,
            p=odds.p,
            captured_capital=captured_capital,
        )

    def undo(self) -> bool:
        """Restore the most recent pre-attack snapshot. False if nothing to undo."""
        if len(self.snapshots) <= 1:
            return False
        self._restore(self.snapshots.pop())
        return True

    def reset_to_initial(self) -> None:
        """Restore the post-setup board and drop every later snapshot."""
        first = self.snapshots[0]
        self._restore(Snapshot.capture(first.teams, first.cells, first.turn, first.history))
        self.snapshots = [first]

    def _capture(self) -> Snapshot:
        return Snapshot.capture(self.teams, self.cells, self.turn, self.history)

    def _restore(self, snapshot: Snapshot) -> None:
        self.teams = snapshot.teams
        self.cells = snapshot.cells
        self.turn = snapshot.turn
        self.history = snapshot.history

    def _refresh_alive(self) -> None:
        counts = self.cell_counts()
        for team in self.teams:
            team.alive = counts.get(team.id, 0) > 0

    # --- Persistence ---

    def to_payload(self) -> Dict[str, Any]:
        """Storage payload: setup metadata plus the current board."""
        return {
            'selected_country': self.selected_country,
            'num_teams': self.num_teams,
            'map_coloring': self.map_coloring,
            'seed': self.seed,
            'turn': self.turn,
            'teams': [t.to_dict() for t in self.teams],
            'cells': [c.to_dict() for c in self.cells],
            'history': [h.to_dict() for h in self.history],
        }

    def save_to_storage(self) -> bool:
        """
        Mirror the board into the configured store.

        Never raises: the in-memory board is authoritative and a failed
        write, whatever the store raised, is only logged.
        """
        if self.store is None:
            return False
        key = self.config['storage_key']
        try:
            self.store.set(key, self.to_payload())
        except Exception as e:
            logger.warning(f"Failed to save game under {key!r}: {e}")
            return False
        return True

    def load_from_storage(self) -> bool:
        """
        Replace the board with whatever the store holds.

        The loaded board becomes the new initial snapshot. Returns False and
        leaves the state unchanged if nothing usable is stored.
        """
        if self.store is None:
            return False
        loaded = load_game(self.store, config=self.config, clock=self.clock)
        if loaded is None:
            return False
        self.seed = loaded.seed
        self.selected_country = loaded.selected_country
        self.map_coloring = loaded.map_coloring
        self.teams = loaded.teams
        self.cells = loaded.cells
        self.turn = loaded.turn
        self.history = loaded.history
        self.shared_edges = loaded.shared_edges
        self.snapshots = loaded.snapshots
        return True

    @classmethod
    def from_payload(
        cls,
        payload: Dict[str, Any],
        config: Optional[Dict[str, Any]] = None,
        store: Optional[KeyValueStore] = None,
        clock: Callable[[], float] = time.time
    ) -> 'GameState':
        """Rebuild a game from a storage payload, default-filling missing fields."""
        config = config or load_config()
        cells = sorted((Cell.from_dict(c) for c in payload.get('cells') or []), key=lambda c: c.id)
        teams = [Team.from_dict(t) for t in payload.get('teams') or []]
        validate_setup(cells, teams)
        return cls(
            seed=str(payload.get('seed', 'demo')),
            teams=teams,
            cells=cells,
            turn=int(payload.get('turn') or 0),
            history=[HistoryItem.from_dict(h) for h in payload.get('history') or []],
            selected_country=payload.get('selected_country') or config['default_country'],
            map_coloring=payload.get('map_coloring') or config['map_coloring'],
            config=config,
            store=store,
            clock=clock,
        )


def load_game(
    store: KeyValueStore,
    config: Optional[Dict[str, Any]] = None,
    clock: Callable[[], float] = time.time
) -> Optional[GameState]:
    """
    Rehydrate a saved game from a store.

    Returns None (and logs why) if nothing is stored or the payload is unusable.
    """
    config = config or load_config()
    key = config['storage_key']
    try:
        payload = store.get(key)
    except Exception as e:
        logger.warning(f"Failed to read saved game {key!r}: {e}")
        return None
    if not payload:
        return None
    try:
        return GameState.from_payload(payload, config=config, store=store, clock=clock)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Ignoring unusable saved game {key!r}: {e}")
        return None


def validate_setup(cells: Sequence[Cell], teams: Sequence[Team], check_owners: bool = True) -> None:
    """
    Reject boards that would make targeting undefined.

    check_owners also requires every cell to belong to a roster team or be
    NEUTRAL; initialize_game turns it off because it reassigns ownership.

    Raises:
        SetupError: describing the first problem found
    """
    if not MIN_TEAMS <= len(teams) <= MAX_TEAMS:
        raise SetupError(f"Need between {MIN_TEAMS} and {MAX_TEAMS} teams, got {len(teams)}")
    if len(cells) < len(teams):
        raise SetupError(f"{len(teams)} teams need at least as many cells, got {len(cells)}")

    for index, cell in enumerate(cells):
        if cell.id != index:
            raise SetupError(f"Cell at position {index} has id {cell.id}; ids must match positions")
        if len(cell.polygon) < 3:
            raise SetupError(f"Cell {cell.id} has no usable polygon ({len(cell.polygon)} points)")
        for neighbor_id in cell.neighbors:
            if not 0 <= neighbor_id < len(cells) or neighbor_id == cell.id:
                raise SetupError(f"Cell {cell.id} lists invalid neighbor {neighbor_id}")

    team_ids = [t.id for t in teams]
    if len(set(team_ids)) != len(team_ids):
        raise SetupError(f"Duplicate team ids: {team_ids}")
    for team_id in team_ids:
        if not 0 <= team_id < len(cells):
            raise SetupError(f"Team {team_id} has no starting cell")

    if check_owners:
        valid_owners = set(team_ids) | {NEUTRAL}
        for cell in cells:
            if cell.owner_team_id not in valid_owners:
                raise SetupError(f"Cell {cell.id} is owned by unknown team {cell.owner_team_id}")


def _nearest_capital(cell: Cell, capitals: Sequence[Cell]) -> int:
    def key(capital: Cell):
        return (math.dist(cell.centroid, capital.centroid), capital.id)
    return min(capitals, key=key).id


def initialize_game(
    cells: Sequence[Cell],
    teams: Sequence[Team],
    seed: str = 'demo',
    selected_country: Optional[str] = None,
    map_coloring: Optional[str] = None,
    config: Optional[Dict[str, Any]] = None,
    store: Optional[KeyValueStore] = None,
    clock: Callable[[], float] = time.time
) -> GameState:
    """
    Build a new game from a tessellated map and a team roster.

    Team i starts on cell i, which is also its capital. A configured share
    of the other cells is made neutral with a seeded stream; each remaining
    cell goes to the team with the nearest capital.

    Args:
        cells: Map cells in id order (ownership is ignored and reassigned)
        teams: Roster; ids double as starting cell ids
        seed: Game seed, every random decision derives from it
        selected_country: Roster country, part of the setup seed
        map_coloring: Display preference carried in saves
        config: Configuration (default: load_config())
        store: Optional store mirrored after each successful attack
        clock: Timestamp source for history entries

    Returns:
        New GameState at turn 0 with its initial snapshot

    Raises:
        SetupError: If the map or roster is malformed
    """
    config = config or load_config()
    cells = [copy.deepcopy(c) for c in cells]
    teams = [copy.deepcopy(t) for t in teams]
    validate_setup(cells, teams, check_owners=False)

    selected_country = selected_country or config['default_country']
    balance = config['balance']
    overall_cfg = balance['overall']

    capital_ids = {t.id for t in teams}
    candidates = [c.id for c in cells if c.id not in capital_ids]
    target_neutral = min(int(math.floor(len(cells) * balance['neutrals']['share'])), len(candidates))
    rng = create_rng(derive_seed(seed, 'init', selected_country, len(teams)))
    neutral_ids = set()
    pool = list(candidates)
    for _ in range(target_neutral):
        neutral_ids.add(pool.pop(int(rng() * len(pool))))

    capitals = [cells[t.id] for t in teams]
    for cell in cells:
        if cell.id in capital_ids:
            cell.owner_team_id = cell.id
        elif cell.id in neutral_ids:
            cell.owner_team_id = NEUTRAL
        else:
            cell.owner_team_id = _nearest_capital(cell, capitals)

    for team in teams:
        team.alive = True
        team.form = 1.0
        team.overall = int(clamp(team.overall or overall_cfg['default'], overall_cfg['min'], overall_cfg['max']))
        team.capital_cell_id = team.id
        team.capital_penalty_until_turn = None
        logger.debug(f"Team {team.name} (id {team.id}) assigned capital cell {team.capital_cell_id}")

    return GameState(
        seed=str(seed),
        teams=teams,
        cells=cells,
        selected_country=selected_country,
        map_coloring=map_coloring or config['map_coloring'],
        config=config,
        store=store,
        clock=clock,
    )


def get_game_summary(game_state: GameState, include_geometry: bool = True) -> Dict[str, Any]:
    """
    Get a summary of the current game state for API responses.

    Args:
        game_state: Current game state
        include_geometry: Include cell polygons and centroids

    Returns:
        Dictionary with game summary information
    """
    counts = game_state.cell_counts()
    winner = game_state.winner()
    cells = []
    for cell in game_state.cells:
        entry = {'id': cell.id, 'owner_team_id': cell.owner_team_id}
        if include_geometry:
            entry.update({
                'centroid': list(cell.centroid),
                'polygon': [list(p) for p in cell.polygon],
                'neighbors': list(cell.neighbors),
            })
        cells.append(entry)
    return {
        'seed': game_state.seed,
        'turn': game_state.turn,
        'selected_country': game_state.selected_country,
        'num_teams': game_state.num_teams,
        'map_coloring': game_state.map_coloring,
        'teams': [
            dict(team.to_dict(), cell_count=counts.get(team.id, 0))
            for team in game_state.teams
        ],
        'neutral_count': counts.get(NEUTRAL, 0),
        'cells': cells,
        'history': [h.to_dict() for h in game_state.history],
        'game_over': game_state.is_game_over(),
        'winner': winner.id if winner else None,
        'can_undo': len(game_state.snapshots) > 1,
    }


def new_game(
    seed: str = 'demo',
    num_teams: Optional[int] = None,
    country: Optional[str] = None,
    rows: Optional[int] = None,
    cols: Optional[int] = None,
    config: Optional[Dict[str, Any]] = None,
    store: Optional[KeyValueStore] = None,
    clock: Callable[[], float] = time.time
) -> GameState:
    """
    Generate a map, build a club roster and start a game, all from config defaults.

    Args:
        seed: Game seed, also used for the map
        num_teams: Team count (default: config default_team_count)
        country: Roster country (default: config default_country)
        rows, cols: Map lattice size (default: config map section)

    Returns:
        New GameState
    """
    from clubs import build_teams
    from map_gen import generate_map

    config = config or load_config()
    map_cfg = config['map']
    num_teams = num_teams or config['default_team_count']
    country = country or config['default_country']
    cells = generate_map(
        num_teams,
        rows=rows or map_cfg['rows'],
        cols=cols or map_cfg['cols'],
        seed=str(seed),
        jitter=map_cfg['jitter'],
        frequency=map_cfg['frequency'],
    )
    teams = build_teams(country, num_teams)
    return initialize_game(cells, teams, seed=str(seed), selected_country=country,
                           config=config, store=store, clock=clock)
