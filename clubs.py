"""
Club rosters used as teams.

Each country lists clubs with a display color, an abbreviation and a
starting overall rating. The engine only consumes names and ratings.
"""

from typing import Dict, List

from models import Team

COUNTRY_CLUBS: Dict[str, List[Dict]] = {
    'Turkey': [
        {'name': 'Galatasaray', 'abbreviation': 'GS', 'color': '#A3262A', 'overall': 85},
        {'name': 'Fenerbahçe', 'abbreviation': 'FB', 'color': '#041E42', 'overall': 79},
        {'name': 'Beşiktaş', 'abbreviation': 'BJK', 'color': '#000000', 'overall': 78},
        {'name': 'Trabzonspor', 'abbreviation': 'TS', 'color': '#6C1D45', 'overall': 76},
        {'name': 'Başakşehir', 'abbreviation': 'IBFK', 'color': '#F26522', 'overall': 73},
        {'name': 'Samsunspor', 'abbreviation': 'SAM', 'color': '#E30613', 'overall': 70},
        {'name': 'Konyaspor', 'abbreviation': 'KON', 'color': '#00843D', 'overall': 69},
        {'name': 'Antalyaspor', 'abbreviation': 'ANT', 'color': '#D71920', 'overall': 68},
    ],
    'England': [
        {'name': 'Manchester City', 'abbreviation': 'MCI', 'color': '#6CABDD', 'overall': 88},
        {'name': 'Arsenal', 'abbreviation': 'ARS', 'color': '#EF0107', 'overall': 86},
        {'name': 'Liverpool', 'abbreviation': 'LIV', 'color': '#C8102E', 'overall': 86},
        {'name': 'Chelsea', 'abbreviation': 'CHE', 'color': '#034694', 'overall': 82},
        {'name': 'Tottenham Hotspur', 'abbreviation': 'TOT', 'color': '#132257', 'overall': 81},
        {'name': 'Manchester United', 'abbreviation': 'MUN', 'color': '#DA291C', 'overall': 80},
        {'name': 'Newcastle United', 'abbreviation': 'NEW', 'color': '#241F20', 'overall': 80},
        {'name': 'Aston Villa', 'abbreviation': 'AVL', 'color': '#670E36', 'overall': 79},
    ],
    'Italy': [
        {'name': 'Inter', 'abbreviation': 'INT', 'color': '#010E80', 'overall': 85},
        {'name': 'Napoli', 'abbreviation': 'NAP', 'color': '#12A0D7', 'overall': 83},
        {'name': 'Milan', 'abbreviation': 'MIL', 'color': '#FB090B', 'overall': 82},
        {'name': 'Juventus', 'abbreviation': 'JUV', 'color': '#000000', 'overall': 82},
        {'name': 'Atalanta', 'abbreviation': 'ATA', 'color': '#1E71B8', 'overall': 81},
        {'name': 'Roma', 'abbreviation': 'ROM', 'color': '#8E1F2F', 'overall': 80},
        {'name': 'Lazio', 'abbreviation': 'LAZ', 'color': '#87D8F7', 'overall': 79},
        {'name': 'Fiorentina', 'abbreviation': 'FIO', 'color': '#482E92', 'overall': 77},
    ],
    'Spain': [
        {'name': 'Real Madrid', 'abbreviation': 'RMA', 'color': '#FEBE10', 'overall': 87},
        {'name': 'Barcelona', 'abbreviation': 'BAR', 'color': '#A50044', 'overall': 85},
        {'name': 'Atlético Madrid', 'abbreviation': 'ATM', 'color': '#CB3524', 'overall': 83},
        {'name': 'Athletic Club', 'abbreviation': 'ATH', 'color': '#EE2523', 'overall': 79},
        {'name': 'Real Sociedad', 'abbreviation': 'RSO', 'color': '#0067B1', 'overall': 78},
        {'name': 'Villarreal', 'abbreviation': 'VIL', 'color': '#FFE667', 'overall': 78},
        {'name': 'Real Betis', 'abbreviation': 'BET', 'color': '#0BB363', 'overall': 77},
        {'name': 'Sevilla', 'abbreviation': 'SEV', 'color': '#D81E05', 'overall': 76},
    ],
    'Germany': [
        {'name': 'Bayern München', 'abbreviation': 'FCB', 'color': '#DC052D', 'overall': 87},
        {'name': 'Bayer Leverkusen', 'abbreviation': 'B04', 'color': '#E32221', 'overall': 84},
        {'name': 'Borussia Dortmund', 'abbreviation': 'BVB', 'color': '#FDE100', 'overall': 82},
        {'name': 'RB Leipzig', 'abbreviation': 'RBL', 'color': '#DD0741', 'overall': 81},
        {'name': 'VfB Stuttgart', 'abbreviation': 'VFB', 'color': '#E32219', 'overall': 79},
        {'name': 'Eintracht Frankfurt', 'abbreviation': 'SGE', 'color': '#E1000F', 'overall': 78},
    ],
}

SUPPORTED_COUNTRIES: List[str] = list(COUNTRY_CLUBS)

DEFAULT_OVERALL = 75
FILLER_COLORS = ['#7F7F7F', '#9467BD', '#8C564B', '#E377C2', '#BCBD22', '#17BECF']


def build_teams(country: str, num_teams: int) -> List[Team]:
    """
    Roster of num_teams teams for a country, strongest clubs first.

    Missing clubs are filled with generic 'Team N' entries rated 75.

    Raises:
        ValueError: For an unknown country or a non-positive team count
    """
    if country not in COUNTRY_CLUBS:
        raise ValueError(f"Unknown country {country!r}; choose one of {SUPPORTED_COUNTRIES}")
    if num_teams < 1:
        raise ValueError(f"num_teams must be positive, got {num_teams}")

    clubs = sorted(COUNTRY_CLUBS[country], key=lambda c: -c['overall'])
    teams = []
    for team_id in range(num_teams):
        if team_id < len(clubs):
            club = clubs[team_id]
            teams.append(Team(
                id=team_id,
                name=club['name'],
                color=club['color'],
                overall=club['overall'],
                abbreviation=club['abbreviation'],
            ))
        else:
            teams.append(Team(
                id=team_id,
                name=f"Team {team_id + 1}",
                color=FILLER_COLORS[team_id % len(FILLER_COLORS)],
                overall=DEFAULT_OVERALL,
                abbreviation=f"T{team_id + 1}",
            ))
    return teams
