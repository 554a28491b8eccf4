"""
First knockout round from ranked group standings.

The pairing table comes from the tournament format; for the 24-team
format it is 1A-2D, 1D-2A, 1B-2E, 1E-2B, 1C-2F, 1F-2C, numbered 1..6.
"""

import logging
from typing import Dict, List, Mapping, Sequence

from cupmanager.services.draw_generator import MatchSkeleton
from cupmanager.services.errors import IncompleteStandingsError
from cupmanager.services.tournament_format import DEFAULT_FORMAT, TournamentFormat

logger = logging.getLogger(__name__)


def _team_id(entry) -> int:
    # Accept ranked stat rows as well as bare team ids
    return getattr(entry, "team_id", entry)


def collect_qualifiers(
    group_standings: Mapping[str, Sequence], fmt: TournamentFormat = DEFAULT_FORMAT
) -> Dict[tuple, int]:
    """(position, group label) -> team id for every qualifying slot."""
    qualifiers: Dict[tuple, int] = {}
    for label in fmt.group_labels:
        ranked = list(group_standings.get(label) or [])
        for position in range(1, fmt.qualifiers_per_group + 1):
            if len(ranked) >= position:
                qualifiers[(position, label)] = _team_id(ranked[position - 1])
    return qualifiers


def generate_knockout(
    group_standings: Mapping[str, Sequence], fmt: TournamentFormat = DEFAULT_FORMAT
) -> List[MatchSkeleton]:
    """
    Build the first knockout round.

    Args:
        group_standings: group label -> entries ranked best first
        fmt: tournament format supplying groups and the pairing table

    Raises:
        IncompleteStandingsError: fewer qualifiers than the format needs
    """
    qualifiers = collect_qualifiers(group_standings, fmt)
    if len(qualifiers) < fmt.qualifier_count:
        missing = sorted(
            {label for label in fmt.group_labels for pos in range(1, fmt.qualifiers_per_group + 1)
             if (pos, label) not in qualifiers}
        )
        raise IncompleteStandingsError(
            f"Expected {fmt.qualifier_count} qualified teams, found {len(qualifiers)} "
            f"(groups not resolvable: {', '.join(missing)})"
        )

    fixtures: List[MatchSkeleton] = []
    for match_number, (home_slot, away_slot) in enumerate(fmt.knockout_pairings, start=1):
        fixtures.append(
            MatchSkeleton(
                home_team_id=qualifiers[home_slot],
                away_team_id=qualifiers[away_slot],
                phase=fmt.knockout_phase,
                match_number=match_number,
            )
        )

    logger.debug("Knockout generated %d fixtures for phase %s", len(fixtures), fmt.knockout_phase)
    return fixtures
