"""
Battle resolution for territory attacks.

Win probability is a logistic function of the power gap between attacker and
defender, where power = overall * effective form + local neighbor support.
Outcomes are drawn from seeded streams keyed by (seed, turn, attacker, cell),
so a match replays identically from its seed.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from models import Cell, Team
from rng import create_rng, derive_seed


class ConfrontationError(Exception):
    """Exception raised when a battle cannot be resolved."""
    pass


@dataclass(frozen=True)
class CombatOdds:
    """Powers of both sides and the attacker's win probability."""
    power_a: float
    power_b: float
    p: float


def sigmoid(x: float) -> float:
    """Logistic function, written to avoid overflow for large |x|."""
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def effective_form(team: Team, turn: int, penalty_power: float) -> float:
    """Team form, reduced by penalty_power percent while a capital penalty is active."""
    if team.penalty_active(turn):
        return team.form * (1 - penalty_power / 100.0)
    return team.form


def support_bonus(cells: Sequence[Cell], cell_id: int, team_id: int, weight: float) -> float:
    """
    Local support at the contested edge.

    Args:
        cells: Board cells indexed by id
        cell_id: Cell the side fights from
        team_id: Team whose support is counted
        weight: Bonus per same-team neighbor

    Returns:
        Number of neighbors of cell_id owned by team_id, times weight
    """
    if not 0 <= cell_id < len(cells):
        return 0.0
    count = sum(
        1 for n in cells[cell_id].neighbors
        if 0 <= n < len(cells) and cells[n].owner_team_id == team_id
    )
    return count * weight


def team_power(team: Team, support: float, turn: int, balance: Dict[str, Any]) -> float:
    """overall * effective form + support."""
    form = effective_form(team, turn, balance['capital']['penalty_power'])
    return team.overall * form + support


def win_probability(power_a: float, power_b: float, k: float, bias: float) -> float:
    """p = sigmoid((power_a - power_b) / k + bias)."""
    if k <= 0:
        raise ConfrontationError(f"Scale constant k must be positive, got {k}")
    return sigmoid((power_a - power_b) / k + bias)


def resolve_combat(
    attacker: Team,
    defender: Team,
    support_a: float,
    support_b: float,
    turn: int,
    balance: Dict[str, Any]
) -> CombatOdds:
    """
    Compute the attacker's win probability.

    Args:
        attacker: Attacking team
        defender: Defending team
        support_a: Attacker's support bonus at the attacking cell
        support_b: Defender's support bonus at the target cell
        turn: Current turn (decides capital penalties)
        balance: Balance section of the game config

    Returns:
        CombatOdds with both powers and p in (0, 1)
    """
    power_a = team_power(attacker, support_a, turn, balance)
    power_b = team_power(defender, support_b, turn, balance)
    p = win_probability(power_a, power_b, balance['k'], balance['attacker_advantage_x'])
    return CombatOdds(power_a=power_a, power_b=power_b, p=p)


def battle_roll(seed: str, turn: int, attacker_id: int, target_cell_id: int) -> float:
    return create_rng(derive_seed(seed, 'match', turn, attacker_id, target_cell_id))()


def neutral_roll(seed: str, turn: int, attacker_id: int, cell_id: int) -> float:
    return create_rng(derive_seed(seed, 'neutral', turn, attacker_id, cell_id))()


def roll_battle(seed: str, turn: int, attacker_id: int, target_cell_id: int, p: float) -> bool:
    """True if the attacker wins: roll < p."""
    return battle_roll(seed, turn, attacker_id, target_cell_id) < p


def roll_neutral_capture(
    seed: str,
    turn: int,
    attacker_id: int,
    cell_id: int,
    probability: Optional[float]
) -> bool:
    """True if a neutral cell falls; strength never matters here."""
    if probability is None:
        raise ConfrontationError("Neutral capture probability is not configured")
    return neutral_roll(seed, turn, attacker_id, cell_id) < probability


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def apply_battle_result(
    winner: Team,
    loser: Team,
    balance: Dict[str, Any]
) -> None:
    """Nudge overall by one point and form by the configured deltas for both sides."""
    overall_cfg = balance['overall']
    form_cfg = balance['form']
    winner.overall = int(clamp(winner.overall + 1, overall_cfg['min'], overall_cfg['max']))
    loser.overall = int(clamp(loser.overall - 1, overall_cfg['min'], overall_cfg['max']))
    winner.form = clamp(winner.form + form_cfg['win'], form_cfg['min'], form_cfg['max'])
    loser.form = clamp(loser.form + form_cfg['loss'], form_cfg['min'], form_cfg['max'])
