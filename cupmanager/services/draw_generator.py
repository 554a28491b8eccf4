"""
Group stage draw.

Shuffles the enrolled teams, cuts the shuffled order into consecutive
groups and emits the single round robin inside every group. Pure: nothing
is persisted here.
"""

import logging
import random
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, List, Optional, Sequence

from cupmanager.models.match import PHASE_GROUP
from cupmanager.services.errors import InvalidInputError, WrongTeamCountError
from cupmanager.services.tournament_format import DEFAULT_FORMAT, TournamentFormat

logger = logging.getLogger(__name__)


@dataclass
class MatchSkeleton:
    """A fixture that has not been stored yet"""

    home_team_id: int
    away_team_id: int
    phase: str
    match_number: int
    group_name: Optional[str] = None


@dataclass
class DrawResult:
    group_assignment: Dict[int, str]  # team_id -> group label
    fixtures: List[MatchSkeleton]

    def groups(self) -> Dict[str, List[int]]:
        """Group label -> team ids in draw order"""
        result: Dict[str, List[int]] = {}
        for team_id, label in self.group_assignment.items():
            result.setdefault(label, []).append(team_id)
        return result


def round_robin_pairs(team_ids: Sequence[int]) -> List[tuple]:
    """Every unordered pair once; the first team of a pair is the home side."""
    return list(combinations(team_ids, 2))


def generate_draw(
    team_ids: Sequence[int],
    fmt: TournamentFormat = DEFAULT_FORMAT,
    rng: Optional[random.Random] = None,
) -> DrawResult:
    """
    Draw the group stage for exactly ``fmt.team_count`` distinct teams.

    Uses ``Random.shuffle`` (Fisher-Yates) for a uniform permutation; pass a
    seeded ``rng`` for a reproducible draw. Groups are labelled in format
    order and match numbers run from 1 across all groups in label order.

    Raises:
        WrongTeamCountError: team count differs from the format
        InvalidInputError: duplicate team ids
    """
    if len(team_ids) != fmt.team_count:
        raise WrongTeamCountError(fmt.team_count, len(team_ids))
    if len(set(team_ids)) != len(team_ids):
        raise InvalidInputError("Team ids must be distinct")

    rng = rng or random.Random()
    shuffled = list(team_ids)
    rng.shuffle(shuffled)

    group_assignment: Dict[int, str] = {}
    fixtures: List[MatchSkeleton] = []
    match_number = 1

    for group_index, label in enumerate(fmt.group_labels):
        start = group_index * fmt.group_size
        group_teams = shuffled[start : start + fmt.group_size]
        for team_id in group_teams:
            group_assignment[team_id] = label

        for home_id, away_id in round_robin_pairs(group_teams):
            fixtures.append(
                MatchSkeleton(
                    home_team_id=home_id,
                    away_team_id=away_id,
                    phase=PHASE_GROUP,
                    group_name=label,
                    match_number=match_number,
                )
            )
            match_number += 1

    logger.debug("Draw produced %d groups and %d fixtures", len(fmt.group_labels), len(fixtures))
    return DrawResult(group_assignment=group_assignment, fixtures=fixtures)
