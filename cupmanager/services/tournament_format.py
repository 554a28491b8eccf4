"""
Tournament format configurations.

A format fixes the group labels, the group size, how many teams qualify
from each group and the seeding table of the first knockout round.
Generators take a format so other layouts can be added as new constants.
"""

from dataclasses import dataclass
from typing import Tuple

from cupmanager.models.match import PHASE_ROUND_OF_16

# (finishing position, group label)
Slot = Tuple[int, str]


@dataclass(frozen=True)
class TournamentFormat:
    name: str
    group_labels: Tuple[str, ...]
    group_size: int
    qualifiers_per_group: int
    knockout_phase: str
    knockout_pairings: Tuple[Tuple[Slot, Slot], ...]  # (home slot, away slot) in match_number order

    @property
    def team_count(self) -> int:
        return len(self.group_labels) * self.group_size

    @property
    def qualifier_count(self) -> int:
        return len(self.group_labels) * self.qualifiers_per_group

    @property
    def group_match_count(self) -> int:
        per_group = self.group_size * (self.group_size - 1) // 2
        return per_group * len(self.group_labels)


# 24 teams, 6 groups of 4, top two advance.
# Each winner meets the runner-up of the group three letters away, and vice versa.
WORLD_CUP_24 = TournamentFormat(
    name="world_cup_24",
    group_labels=("A", "B", "C", "D", "E", "F"),
    group_size=4,
    qualifiers_per_group=2,
    knockout_phase=PHASE_ROUND_OF_16,
    knockout_pairings=(
        ((1, "A"), (2, "D")),
        ((1, "D"), (2, "A")),
        ((1, "B"), (2, "E")),
        ((1, "E"), (2, "B")),
        ((1, "C"), (2, "F")),
        ((1, "F"), (2, "C")),
    ),
)

DEFAULT_FORMAT = WORLD_CUP_24
