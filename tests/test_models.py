import pytest

from clubs import SUPPORTED_COUNTRIES, build_teams
from models import NEUTRAL, Cell, Direction, HistoryItem, Snapshot, Team


def test_team_defaults():
    team = Team(id=3, name='Galatasaray')
    assert team.capital_cell_id == 3
    assert team.abbreviation == 'GAL'
    assert team.alive
    assert team.overall == 75
    assert team.form == 1.0
    assert not team.penalty_active(0)


def test_penalty_active_until_turn():
    team = Team(id=0, name='A', capital_penalty_until_turn=5)
    assert team.penalty_active(4)
    assert not team.penalty_active(5)


def test_team_from_partial_dict():
    team = Team.from_dict({'id': 2})
    assert team.name == 'Team 3'
    assert team.capital_cell_id == 2
    assert team.overall == 75


def test_cell_from_partial_dict():
    cell = Cell.from_dict({'id': 4, 'polygon': [[0, 0], [1, 0], [1, 1]]})
    assert cell.owner_team_id == NEUTRAL
    assert cell.is_neutral
    assert cell.polygon == [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)]
    assert cell.neighbors == []


def test_cell_centroid_falls_back_to_polygon():
    cell = Cell.from_dict({'id': 0, 'polygon': [[0, 0], [2, 0], [2, 2], [0, 2]]})
    assert cell.centroid == pytest.approx((1.0, 1.0))
    kept = Cell.from_dict({'id': 0, 'centroid': [5, 6], 'polygon': [[0, 0], [2, 0], [2, 2], [0, 2]]})
    assert kept.centroid == (5.0, 6.0)
    assert Cell.from_dict({'id': 0}).centroid == (0.0, 0.0)


def test_cell_dict_round_trip():
    cell = Cell(id=1, owner_team_id=0, centroid=(0.5, 0.5), polygon=[(0, 0), (1, 0), (1, 1), (0, 1)], neighbors=[2])
    assert Cell.from_dict(cell.to_dict()) == cell


def test_history_item_direction_serialised_as_value():
    item = HistoryItem(turn=1, attacker_team_id=0, defender_team_id=NEUTRAL, target_cell_id=5,
                       from_cell_id=2, direction=Direction.SW, attacker_won=True, p=0.3)
    data = item.to_dict()
    assert data['direction'] == 'SW'
    assert HistoryItem.from_dict(data) == item


def test_snapshot_is_a_deep_copy():
    teams = [Team(id=0, name='A')]
    cells = [Cell(id=0, owner_team_id=0, centroid=(0.0, 0.0))]
    snapshot = Snapshot.capture(teams, cells, 0, [])
    teams[0].overall = 99
    cells[0].owner_team_id = NEUTRAL
    assert snapshot.teams[0].overall == 75
    assert snapshot.cells[0].owner_team_id == 0


class TestClubs:

    def test_strongest_first(self):
        roster = build_teams('England', 4)
        assert [t.id for t in roster] == [0, 1, 2, 3]
        assert roster[0].name == 'Manchester City'
        overalls = [t.overall for t in roster]
        assert overalls == sorted(overalls, reverse=True)

    def test_fillers_when_country_runs_out(self):
        roster = build_teams('Germany', 8)
        assert [t.name for t in roster[6:]] == ['Team 7', 'Team 8']
        assert all(t.overall == 75 for t in roster[6:])
        assert roster[7].abbreviation == 'T8'

    def test_every_country_builds(self):
        for country in SUPPORTED_COUNTRIES:
            roster = build_teams(country, 5)
            assert len({t.name for t in roster}) == 5

    def test_unknown_country(self):
        with pytest.raises(ValueError):
            build_teams('Atlantis', 4)

    def test_non_positive_count(self):
        with pytest.raises(ValueError):
            build_teams('Turkey', 0)
