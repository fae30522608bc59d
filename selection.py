"""
Spinner helpers: seeded picks of the attacking team and the direction.

Team picks are biased against snowballing: small teams get a comeback
boost, large teams and high-form teams are picked less often. These picks
feed apply_attack but play no part in its correctness.
"""

from typing import Dict, List, Optional, Tuple

from models import DIRECTIONS, Direction, Team
from rng import Rng, create_rng, derive_seed, weighted_choice
from state import AttackResult, GameState

MIN_WEIGHT = 0.05
COMEBACK_STEP = 0.1
BULLY_STEP = 0.08
OVERPOWER_THRESHOLD = 85
OVERPOWER_FACTOR = 0.9


def team_weights(teams: List[Team], cell_counts: Dict[int, int]) -> List[float]:
    """
    Selection weight per team.

    weight = max(0.05, comeback * bully * overpower / form) where
    comeback grows with the gap to the largest team, bully shrinks with the
    lead over the smallest team, and overpower damps teams rated above 85.

    Args:
        teams: Candidate teams (normally the living ones)
        cell_counts: Cells owned per team id

    Returns:
        One non-negative weight per team, in order
    """
    if not teams:
        return []
    counts = [cell_counts.get(t.id, 0) for t in teams]
    max_count = max(counts)
    min_count = min(counts)
    weights = []
    for team, count in zip(teams, counts):
        comeback = 1 + (max_count - count) * COMEBACK_STEP
        bully = 1 - max(0, count - min_count) * BULLY_STEP
        overpower = OVERPOWER_FACTOR if team.overall > OVERPOWER_THRESHOLD else 1.0
        form = team.form or 1.0
        weights.append(max(MIN_WEIGHT, comeback * bully * overpower * (1.0 / form)))
    return weights


class Spinner:
    """
    Sequential seeded picker bound to one game.

    The stream is keyed by the game seed and board size only, so a replay
    from the same seed makes the same picks in the same order, including
    picks consumed by failed attempts.
    """

    def __init__(self, game: GameState, rng: Optional[Rng] = None):
        self.game = game
        self.rng = rng or create_rng(
            derive_seed(game.seed, 'spins', game.num_teams, len(game.cells)))

    def pick_team(self) -> Optional[Team]:
        """Weighted pick among living teams; None when nobody is alive."""
        alive = self.game.alive_teams()
        if not alive:
            return None
        weights = team_weights(alive, self.game.cell_counts())
        return alive[weighted_choice(weights, self.rng)]

    def pick_direction(self) -> Direction:
        return DIRECTIONS[int(self.rng() * len(DIRECTIONS)) % len(DIRECTIONS)]

    def play_turn(self, max_attempts: int = 16) -> Tuple[Optional[Team], Optional[Direction], AttackResult]:
        """
        Spin a team and a direction and attack, re-spinning the direction
        after failed attempts.

        Returns:
            (team, direction, result) of the last attempt
        """
        if self.game.is_game_over():
            return None, None, AttackResult(success=False)
        team = self.pick_team()
        direction = None
        result = AttackResult(success=False)
        for _ in range(max_attempts):
            direction = self.pick_direction()
            result = self.game.apply_attack(team.id, direction)
            if result.success:
                break
        return team, direction, result
