"""
Standings calculator.

Rebuilds every team's group-stage record from the full list of matches.
Always a full recomputation, so edited or deleted results are reflected.
"""

from dataclasses import asdict, dataclass
from typing import Dict, Iterable

from cupmanager.models.match import PHASE_GROUP

POINTS_WIN = 3
POINTS_DRAW = 1


@dataclass
class TeamStats:
    team_id: int
    matches_played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_difference: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    points: int = 0

    def counters(self) -> Dict[str, int]:
        data = asdict(self)
        data.pop("team_id")
        return data


def counts_toward_standings(match) -> bool:
    """Group-phase match with both scores entered."""
    return match.phase == PHASE_GROUP and match.home_score is not None and match.away_score is not None


def compute_statistics(matches: Iterable, enrolled_team_ids: Iterable[int]) -> Dict[int, TeamStats]:
    """
    Aggregate finished group matches into per-team statistics.

    Every enrolled team gets an entry, even with no matches played.
    Matches of other phases, unplayed matches and matches involving a
    team that is not enrolled are ignored.
    """
    stats: Dict[int, TeamStats] = {team_id: TeamStats(team_id=team_id) for team_id in enrolled_team_ids}

    for match in matches:
        if not counts_toward_standings(match):
            continue
        home = stats.get(match.home_team_id)
        away = stats.get(match.away_team_id)
        if home is None or away is None:
            continue

        home.matches_played += 1
        away.matches_played += 1

        home.goals_for += match.home_score
        home.goals_against += match.away_score
        away.goals_for += match.away_score
        away.goals_against += match.home_score

        home.yellow_cards += match.home_yellow_cards or 0
        home.red_cards += match.home_red_cards or 0
        away.yellow_cards += match.away_yellow_cards or 0
        away.red_cards += match.away_red_cards or 0

        if match.home_score > match.away_score:
            home.wins += 1
            home.points += POINTS_WIN
            away.losses += 1
        elif match.home_score < match.away_score:
            away.wins += 1
            away.points += POINTS_WIN
            home.losses += 1
        else:
            home.draws += 1
            away.draws += 1
            home.points += POINTS_DRAW
            away.points += POINTS_DRAW

    for entry in stats.values():
        entry.goal_difference = entry.goals_for - entry.goals_against

    return stats
