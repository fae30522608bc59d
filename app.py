from flask import Flask, request, jsonify
from flask_cors import CORS
from clubs import SUPPORTED_COUNTRIES
from models import Direction
from selection import Spinner
from state import GameState, SetupError, get_game_summary, load_config, new_game
from storage import MemoryStore
from typing import Dict
import uuid

app = Flask(__name__)
CORS(app)  # Enable CORS for all routes
games: Dict[str, GameState] = {}  # In-memory storage for game states
spinners: Dict[str, Spinner] = {}  # One seeded spinner stream per game
store = MemoryStore()  # Saved-game mirror, one key per game


def _game_config(game_id: str) -> Dict:
    config = load_config()
    config['storage_key'] = f"{config['storage_key']}:{game_id}"
    return config


def _parse_direction(value) -> Direction:
    try:
        return Direction(str(value).upper())
    except ValueError:
        raise ValueError(f"Invalid direction: {value}")


@app.route('/api/game/new', methods=['POST'])
def new_game_route():
    """Create a new game from a seed, team count, country and map size."""
    try:
        data = request.get_json(silent=True)
        if data is None:
            return jsonify({'error': 'Invalid JSON data'}), 400

        seed = str(data.get('seed', 'demo'))
        country = data.get('country')
        if country is not None and country not in SUPPORTED_COUNTRIES:
            return jsonify({'error': f'Unsupported country: {country}'}), 400

        try:
            num_teams = int(data['num_teams']) if 'num_teams' in data else None
            rows = int(data['rows']) if 'rows' in data else None
            cols = int(data['cols']) if 'cols' in data else None
        except (ValueError, TypeError):
            return jsonify({'error': 'num_teams, rows and cols must be integers'}), 400

        game_id = str(uuid.uuid4())
        try:
            game_state = new_game(seed=seed, num_teams=num_teams, country=country,
                                  rows=rows, cols=cols, config=_game_config(game_id), store=store)
        except (SetupError, ValueError) as e:
            return jsonify({'error': str(e)}), 400

        games[game_id] = game_state
        spinners[game_id] = Spinner(game_state)

        return jsonify({'game_id': game_id})

    except Exception as e:
        return jsonify({'error': f'Failed to create game: {str(e)}'}), 500


@app.route('/api/game/<game_id>/state', methods=['GET'])
def get_game_state(game_id: str):
    """Retrieve the current board for the given game ID."""
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        state_json = get_game_summary(games[game_id])
        state_json['game_id'] = game_id
        return jsonify(state_json)

    except Exception as e:
        return jsonify({'error': f'Failed to retrieve game state: {str(e)}'}), 500


@app.route('/api/game/<game_id>/target', methods=['GET'])
def preview_target(game_id: str):
    """Preview which cell a team would strike in a direction. Never changes state."""
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        game_state = games[game_id]
        try:
            team_id = int(request.args.get('team', ''))
            direction = _parse_direction(request.args.get('direction'))
            game_state.get_team(team_id)
        except ValueError as e:
            return jsonify({'error': str(e) or 'team must be an integer'}), 400

        target = game_state.resolve_target(team_id, direction)
        response_data = {
            'game_id': game_id,
            'team_id': team_id,
            'direction': direction.value,
            'target': target.to_dict() if target else None,
        }
        if target:
            response_data['defender_team_id'] = game_state.cells[target.to_cell_id].owner_team_id
        return jsonify(response_data)

    except Exception as e:
        return jsonify({'error': f'Failed to resolve target: {str(e)}'}), 500


@app.route('/api/game/<game_id>/attack', methods=['POST'])
def submit_attack(game_id: str):
    """Apply an attack for a team in a compass direction."""
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        game_state = games[game_id]

        data = request.get_json(silent=True)
        if data is None:
            return jsonify({'error': 'Invalid JSON data'}), 400
        if not all(key in data for key in ['team_id', 'direction']):
            return jsonify({'error': 'Attack must have team_id and direction fields'}), 400

        try:
            team_id = int(data['team_id'])
            direction = _parse_direction(data['direction'])
            game_state.get_team(team_id)
        except (ValueError, TypeError) as e:
            return jsonify({'error': str(e)}), 400

        result = game_state.apply_attack(team_id, direction)

        response_data = {
            'game_id': game_id,
            'turn': game_state.turn,
            'result': result.to_dict(),
            'state': get_game_summary(game_state, include_geometry=False),
        }
        return jsonify(response_data)

    except Exception as e:
        return jsonify({'error': f'Failed to process attack: {str(e)}'}), 500


@app.route('/api/game/<game_id>/spin', methods=['POST'])
def spin_turn(game_id: str):
    """Spin a weighted team and a direction, then attack."""
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        game_state = games[game_id]
        team, direction, result = spinners[game_id].play_turn()

        response_data = {
            'game_id': game_id,
            'turn': game_state.turn,
            'team_id': team.id if team else None,
            'direction': direction.value if direction else None,
            'result': result.to_dict(),
            'state': get_game_summary(game_state, include_geometry=False),
        }
        return jsonify(response_data)

    except Exception as e:
        return jsonify({'error': f'Failed to spin: {str(e)}'}), 500


@app.route('/api/game/<game_id>/undo', methods=['POST'])
def undo_attack(game_id: str):
    """Revert the most recent successful attack."""
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        game_state = games[game_id]
        undone = game_state.undo()
        return jsonify({
            'game_id': game_id,
            'undone': undone,
            'turn': game_state.turn,
            'state': get_game_summary(game_state, include_geometry=False),
        })

    except Exception as e:
        return jsonify({'error': f'Failed to undo: {str(e)}'}), 500


@app.route('/api/game/<game_id>/reset', methods=['POST'])
def reset_game(game_id: str):
    """Return the game to its post-setup board."""
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        game_state = games[game_id]
        game_state.reset_to_initial()
        return jsonify({
            'game_id': game_id,
            'turn': game_state.turn,
            'state': get_game_summary(game_state, include_geometry=False),
        })

    except Exception as e:
        return jsonify({'error': f'Failed to reset: {str(e)}'}), 500


@app.route('/api/game/<game_id>/log', methods=['GET'])
def get_game_log(game_id: str):
    """Retrieve the full attack history for analysis."""
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        game_state = games[game_id]

        log_response = {
            'game_id': game_id,
            'turn': game_state.turn,
            'log': [h.to_dict() for h in game_state.history]
        }

        return jsonify(log_response)

    except Exception as e:
        return jsonify({'error': f'Failed to retrieve game log: {str(e)}'}), 500


if __name__ == '__main__':
    app.run(debug=True)
