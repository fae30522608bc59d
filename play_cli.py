"""
CLI play mode for the territorial conquest engine.

Spin a weighted team and a direction each turn (or name them yourself)
and watch territory change hands until one team is left. ASCII standings,
undo and reset included.

Usage: python play_cli.py [seed]
"""

import sys

from clubs import SUPPORTED_COUNTRIES
from models import DIRECTIONS, NEUTRAL, Direction
from selection import Spinner
from state import GameState, load_config, new_game

MAX_AUTO_SPINS = 2000

HELP = """
Commands:
  <Enter>          spin a team and a direction, then attack
  <team> <dir>     attack manually, e.g. '2 NE'
  preview <team> <dir>
  undo             revert the last attack
  reset            back to the starting map
  auto             spin until one team is left
  quit
"""


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def show_standings(game: GameState):
    """Print every team with cell count, rating and form."""
    counts = game.cell_counts()
    total = len(game.cells)
    print(f"\n--- Turn {game.turn} ---")
    for team in sorted(game.teams, key=lambda t: (-counts.get(t.id, 0), t.id)):
        owned = counts.get(team.id, 0)
        bar = "#" * round(20 * owned / total) if total else ""
        status = "" if team.alive else "  (eliminated)"
        penalty = "  [capital lost]" if team.penalty_active(game.turn) else ""
        print(f"  {team.id:>2} {team.abbreviation:<5} {team.name:<20} "
              f"{owned:>3} cells  OVR {team.overall:>2}  form {team.form:.2f}  {bar}{status}{penalty}")
    neutral = counts.get(NEUTRAL, 0)
    if neutral:
        print(f"     --    {'Neutral':<20} {neutral:>3} cells")


def describe_attack(game: GameState, team_id: int, direction: Direction, result) -> str:
    team = game.get_team(team_id)
    if not result.success:
        if result.target_cell_id is not None:
            return f"{team.name} {direction.value}: neutral cell {result.target_cell_id} held out (p={result.p:.2f})"
        return f"{team.name} {direction.value}: no target in that direction"
    if result.defender_team_id == NEUTRAL:
        return f"{team.name} {direction.value}: captured neutral cell {result.target_cell_id}"
    defender = game.get_team(result.defender_team_id)
    winner = team if result.attacker_won else defender
    line = (f"{team.name} -> {defender.name} via cell {result.target_cell_id} "
            f"(p={result.p:.2f}): {winner.name} wins and takes everything!")
    if result.captured_capital:
        line += " Capital captured."
    return line


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


def parse_team_and_direction(game: GameState, parts):
    """Parse '<team> <dir>' tokens; returns (team_id, Direction) or None."""
    if len(parts) != 2:
        return None
    try:
        team_id = int(parts[0])
        game.get_team(team_id)
        direction = Direction(parts[1].upper())
    except ValueError:
        return None
    return team_id, direction


def choose_country() -> str:
    config = load_config()
    print("\nCountries:")
    for i, country in enumerate(SUPPORTED_COUNTRIES, 1):
        print(f"  {i}. {country}")
    while True:
        raw = input(f"Pick (number, Enter for {config['default_country']}): ").strip()
        if not raw:
            return config['default_country']
        if raw.isdigit() and 1 <= int(raw) <= len(SUPPORTED_COUNTRIES):
            return SUPPORTED_COUNTRIES[int(raw) - 1]
        print(f"  Enter 1-{len(SUPPORTED_COUNTRIES)}")


def choose_team_count() -> int:
    config = load_config()
    while True:
        raw = input(f"Number of teams (2-8, Enter for {config['default_team_count']}): ").strip()
        if not raw:
            return config['default_team_count']
        if raw.isdigit() and 2 <= int(raw) <= 8:
            return int(raw)
        print("  Enter a number between 2 and 8")


def auto_play(game: GameState, spinner: Spinner):
    for _ in range(MAX_AUTO_SPINS):
        if game.is_game_over():
            return
        team, direction, result = spinner.play_turn()
        if team is not None and result.success:
            print("  " + describe_attack(game, team.id, direction, result))
    print(f"  Stopped after {MAX_AUTO_SPINS} spins without a winner.")


def main():
    print("=" * 50)
    print("  TERRITORY WARS  -  CLI Play Mode")
    print("=" * 50)

    seed = sys.argv[1] if len(sys.argv) > 1 else "demo"
    country = choose_country()
    num_teams = choose_team_count()

    game = new_game(seed=seed, num_teams=num_teams, country=country)
    spinner = Spinner(game)
    print(f"\nSeed: {seed}  Map: {len(game.cells)} cells  Teams: {num_teams}")
    print(HELP)

    while not game.is_game_over():
        show_standings(game)
        raw = input("attack> ").strip()
        parts = raw.split()

        if raw.lower() in ("quit", "q", "exit"):
            break
        if raw.lower() == "help":
            print(HELP)
            continue
        if raw.lower() == "undo":
            print("  Undone." if game.undo() else "  Nothing to undo.")
            continue
        if raw.lower() == "reset":
            game.reset_to_initial()
            print("  Back to the starting map.")
            continue
        if raw.lower() == "auto":
            auto_play(game, spinner)
            continue
        if parts and parts[0].lower() == "preview":
            parsed = parse_team_and_direction(game, parts[1:])
            if not parsed:
                print("  Usage: preview <team> <dir>, dir one of " + " ".join(d.value for d in DIRECTIONS))
                continue
            target = game.resolve_target(*parsed)
            if target is None:
                print("  No target in that direction.")
            else:
                owner = game.cells[target.to_cell_id].owner_team_id
                owner_name = "neutral" if owner == NEUTRAL else game.get_team(owner).name
                print(f"  Strike from cell {target.from_cell_id} into cell {target.to_cell_id} ({owner_name})")
            continue

        if not raw:
            team, direction, result = spinner.play_turn()
            if team is None:
                break
            print(f"  Spinner: {team.name}, {direction.value}")
            print("  " + describe_attack(game, team.id, direction, result))
            continue

        parsed = parse_team_and_direction(game, parts)
        if not parsed:
            print("  Unrecognised command. Type 'help'.")
            continue
        team_id, direction = parsed
        result = game.apply_attack(team_id, direction)
        print("  " + describe_attack(game, team_id, direction, result))

    # --- End ---
    show_standings(game)
    print("\n" + "=" * 50)
    winner = game.winner()
    if winner:
        print(f"  CHAMPION: {winner.name} after {game.turn} turns")
    else:
        print("  Game ended without a champion.")
    print("=" * 50)


if __name__ == "__main__":
    main()
