"""
Tie-break resolver.

Ordering, best first:
1. points (desc)
2. goal difference (desc)
3. goals for (desc)
4. goals against (asc)
5. red cards (asc)
6. yellow cards (asc)

Then one adjacent pass: neighbours level on points and goal difference
are swapped when the lower one won their direct match. Only two-team ties
are guaranteed to be resolved by head-to-head; a chain of three or more
level teams gets a single pass, not a fixed point.
"""

import logging
from typing import Callable, Iterable, List, Optional, Sequence

from cupmanager.models.match import PHASE_GROUP

logger = logging.getLogger(__name__)

# (team_a_id, team_b_id) -> 1 if a won, -1 if b won, 0 otherwise
HeadToHead = Callable[[int, int], int]


def standings_sort_key(entry):
    return (
        -entry.points,
        -entry.goal_difference,
        -entry.goals_for,
        entry.goals_against,
        entry.red_cards,
        entry.yellow_cards,
    )


def compare_scores(match, team_a_id: int) -> int:
    """Result of a played match from ``team_a_id``'s point of view."""
    if match.home_team_id == team_a_id:
        a_goals, b_goals = match.home_score, match.away_score
    else:
        a_goals, b_goals = match.away_score, match.home_score
    if a_goals > b_goals:
        return 1
    if a_goals < b_goals:
        return -1
    return 0


def find_direct_match(matches: Iterable, team_a_id: int, team_b_id: int):
    """First played group match between the two teams, or None."""
    for match in matches:
        if match.phase != PHASE_GROUP:
            continue
        if match.home_score is None or match.away_score is None:
            continue
        if {match.home_team_id, match.away_team_id} == {team_a_id, team_b_id}:
            return match
    return None


def head_to_head_result(matches: Iterable, team_a_id: int, team_b_id: int) -> int:
    """1 if a beat b, -1 if b beat a, 0 for a draw or no played match."""
    match = find_direct_match(matches, team_a_id, team_b_id)
    if match is None:
        return 0
    return compare_scores(match, team_a_id)


def rank_teams(entries: Sequence, head_to_head: Optional[HeadToHead] = None) -> List:
    """
    Return ``entries`` ordered best first.

    Entries are any objects carrying ``team_id`` and the standings counters
    (``TeamStats`` or ``EventTeam`` rows). The input is not modified.
    """
    ranked = sorted(entries, key=standings_sort_key)
    if head_to_head is None:
        return ranked

    for i in range(len(ranked) - 1):
        upper, lower = ranked[i], ranked[i + 1]
        if upper.points != lower.points or upper.goal_difference != lower.goal_difference:
            continue
        if head_to_head(upper.team_id, lower.team_id) == -1:
            logger.debug("Head-to-head swap: team %s above team %s", lower.team_id, upper.team_id)
            ranked[i], ranked[i + 1] = lower, upper

    return ranked
