# Models for board elements: cells, teams, history and undo snapshots

from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

Point = Tuple[float, float]

NEUTRAL = -1  # owner id of unowned, capturable cells


class Direction(Enum):
    N = "N"
    NE = "NE"
    E = "E"
    SE = "SE"
    S = "S"
    SW = "SW"
    W = "W"
    NW = "NW"


DIRECTIONS: List[Direction] = list(Direction)


def _point(value: Any) -> Point:
    return (float(value[0]), float(value[1]))


@dataclass
class Cell:
    """
    A polygonal region of the map, the unit of territorial ownership.

    Only owner_team_id changes after setup; polygons, centroids and
    neighbor lists are fixed for the lifetime of a game.
    """
    id: int  # Stable identity, equal to the cell's index on the board
    owner_team_id: int  # Team id or NEUTRAL
    centroid: Point  # Geometric center used for targeting math
    polygon: List[Point] = field(default_factory=list)  # Closed boundary ring
    neighbors: List[int] = field(default_factory=list)  # Adjacent cell ids

    @property
    def is_neutral(self) -> bool:
        return self.owner_team_id == NEUTRAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'owner_team_id': self.owner_team_id,
            'centroid': list(self.centroid),
            'polygon': [list(p) for p in self.polygon],
            'neighbors': list(self.neighbors),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Cell':
        polygon = [_point(p) for p in data.get('polygon') or []]
        if data.get('centroid') is not None:
            center = _point(data['centroid'])
        elif polygon:
            from geometry import centroid  # geometry imports this module
            center = centroid(polygon)
        else:
            center = (0.0, 0.0)
        return cls(
            id=int(data['id']),
            owner_team_id=int(data.get('owner_team_id', NEUTRAL)),
            centroid=center,
            polygon=polygon,
            neighbors=[int(n) for n in data.get('neighbors') or []],
        )


@dataclass
class Team:
    """
    A competing faction.

    Teams are never removed from the roster: a team that loses its last cell
    stays in the list with alive=False and never comes back.
    """
    id: int  # Stable identity, also the id of its starting cell
    name: str
    color: str = '#888888'
    alive: bool = True
    overall: int = 75  # Strength rating, clamped to [40, 99]
    form: float = 1.0  # Morale multiplier, clamped to the configured range
    capital_cell_id: Optional[int] = None  # Seat of power, fixed at setup
    capital_penalty_until_turn: Optional[int] = None  # Penalty active while turn < this
    abbreviation: str = ''

    def __post_init__(self) -> None:
        if self.capital_cell_id is None:
            self.capital_cell_id = self.id
        if not self.abbreviation:
            self.abbreviation = self.name[:3].upper()

    def penalty_active(self, turn: int) -> bool:
        """True while the capital-loss penalty window is open."""
        return (self.capital_penalty_until_turn is not None
                and turn < self.capital_penalty_until_turn)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'color': self.color,
            'alive': self.alive,
            'overall': self.overall,
            'form': self.form,
            'capital_cell_id': self.capital_cell_id,
            'capital_penalty_until_turn': self.capital_penalty_until_turn,
            'abbreviation': self.abbreviation,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Team':
        team_id = int(data['id'])
        return cls(
            id=team_id,
            name=data.get('name') or f"Team {team_id + 1}",
            color=data.get('color', '#888888'),
            alive=bool(data.get('alive', True)),
            overall=int(data.get('overall') or 75),
            form=float(data.get('form') or 1.0),
            capital_cell_id=data.get('capital_cell_id', team_id),
            capital_penalty_until_turn=data.get('capital_penalty_until_turn'),
            abbreviation=data.get('abbreviation', ''),
        )


@dataclass
class HistoryItem:
    """One resolved attack, appended to the game log."""
    turn: int
    attacker_team_id: int
    defender_team_id: int  # NEUTRAL when a neutral cell was taken
    target_cell_id: int
    from_cell_id: int
    direction: Direction
    attacker_won: bool
    p: float  # Probability used for the roll
    captured_capital: bool = False
    timestamp: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'turn': self.turn,
            'attacker_team_id': self.attacker_team_id,
            'defender_team_id': self.defender_team_id,
            'target_cell_id': self.target_cell_id,
            'from_cell_id': self.from_cell_id,
            'direction': self.direction.value,
            'attacker_won': self.attacker_won,
            'p': self.p,
            'captured_capital': self.captured_capital,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HistoryItem':
        defender = data.get('defender_team_id')
        return cls(
            turn=int(data['turn']),
            attacker_team_id=int(data['attacker_team_id']),
            defender_team_id=NEUTRAL if defender is None else int(defender),
            target_cell_id=int(data['target_cell_id']),
            from_cell_id=int(data.get('from_cell_id', data['target_cell_id'])),
            direction=Direction(data.get('direction', 'N')),
            attacker_won=bool(data.get('attacker_won', False)),
            p=float(data.get('p', 0.0)),
            captured_capital=bool(data.get('captured_capital', False)),
            timestamp=float(data.get('timestamp', 0.0)),
        )


@dataclass
class Snapshot:
    """Deep copy of the mutable board taken before an attack is applied."""
    teams: List[Team]
    cells: List[Cell]
    turn: int
    history: List[HistoryItem]

    @classmethod
    def capture(cls, teams: List[Team], cells: List[Cell], turn: int,
                history: List[HistoryItem]) -> 'Snapshot':
        return cls(
            teams=deepcopy(teams),
            cells=deepcopy(cells),
            turn=turn,
            history=deepcopy(history),
        )
