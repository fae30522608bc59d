#!/usr/bin/env python3
"""
Live API check - plays a short seeded game against a running server
and verifies undo/reset round-trips over HTTP.
"""

import requests
import sys
from typing import Dict, List, Any, Optional


class AttackApiChecker:
    """Drives the game API end to end."""

    def __init__(self, base_url: str = 'http://127.0.0.1:5000/api'):
        self.base_url = base_url.rstrip('/')
        self.session = requests.Session()
        self.game_id: Optional[str] = None

    def create_game(self, seed: str = 'demo', num_teams: int = 4) -> bool:
        """Create a new game."""
        try:
            url = f"{self.base_url}/game/new"
            data = {"seed": seed, "num_teams": num_teams}

            print(f"Creating new game with seed {seed!r} and {num_teams} teams...")
            response = self.session.post(url, json=data)

            if response.status_code == 200:
                self.game_id = response.json().get('game_id')
                print(f"Game created successfully with ID: {self.game_id}")
                return True
            print(f"Failed to create game: {response.status_code} - {response.text}")
            return False

        except requests.RequestException as e:
            print(f"Error creating game: {e}")
            return False

    def get_game_state(self) -> Optional[Dict[str, Any]]:
        """Get the current game state."""
        if not self.game_id:
            return None
        try:
            response = self.session.get(f"{self.base_url}/game/{self.game_id}/state")
            if response.status_code == 200:
                return response.json()
            print(f"Failed to get game state: {response.status_code} - {response.text}")
            return None
        except requests.RequestException as e:
            print(f"Error getting game state: {e}")
            return None

    def post(self, action: str, data: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """POST to /game/<id>/<action> and return the JSON body."""
        if not self.game_id:
            return None
        try:
            response = self.session.post(f"{self.base_url}/game/{self.game_id}/{action}", json=data or {})
            if response.status_code == 200:
                return response.json()
            print(f"Failed to {action}: {response.status_code} - {response.text}")
            return None
        except requests.RequestException as e:
            print(f"Error during {action}: {e}")
            return None

    def spin_until_attack(self, max_spins: int = 20) -> Optional[Dict[str, Any]]:
        """Spin until one attack succeeds."""
        for _ in range(max_spins):
            body = self.post('spin')
            if body is None:
                return None
            if body['result']['success']:
                return body
        return None

    def check_undo_round_trip(self) -> bool:
        """An attack followed by undo must restore the exact owners and turn."""
        before = self.get_game_state()
        if not before:
            return False
        attack = self.spin_until_attack()
        if not attack:
            print("No successful attack to undo.")
            return False
        print(f"Turn {attack['turn']}: team {attack['team_id']} attacked {attack['direction']} "
              f"-> {attack['result']}")
        undo = self.post('undo')
        after = self.get_game_state()
        if not undo or not after:
            return False
        owners_before: List[int] = [c['owner_team_id'] for c in before['cells']]
        owners_after: List[int] = [c['owner_team_id'] for c in after['cells']]
        return owners_before == owners_after and before['turn'] == after['turn']

    def play_to_the_end(self, max_spins: int = 500) -> Optional[Dict[str, Any]]:
        """Spin until the game is over or max_spins is reached."""
        state = None
        for _ in range(max_spins):
            body = self.post('spin')
            if body is None:
                return None
            state = body['state']
            if state['game_over']:
                break
        return state


def main():
    """Run the live API check."""
    print("Live API Check")
    print("=" * 40)

    base_url = sys.argv[1] if len(sys.argv) > 1 else 'http://127.0.0.1:5000/api'
    checker = AttackApiChecker(base_url)

    if not checker.create_game():
        print("✗ Could not create a game")
        return

    if checker.check_undo_round_trip():
        print("✓ Undo round-trip working!")
    else:
        print("✗ Undo round-trip failed!")

    final_state = checker.play_to_the_end()
    if final_state and final_state['game_over']:
        print(f"✓ Game finished on turn {final_state['turn']}, winner team {final_state['winner']}")
    else:
        print("✗ Game did not finish")


if __name__ == "__main__":
    main()
