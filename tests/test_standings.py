"""
Tests for the standings calculator.
"""

from types import SimpleNamespace

import pytest

from cupmanager.models.match import PHASE_GROUP, PHASE_ROUND_OF_16
from cupmanager.services.standings import compute_statistics, counts_toward_standings


def played(home, away, home_score, away_score, phase=PHASE_GROUP, **cards):
    return SimpleNamespace(
        home_team_id=home,
        away_team_id=away,
        home_score=home_score,
        away_score=away_score,
        phase=phase,
        home_yellow_cards=cards.get("home_yellow_cards", 0),
        home_red_cards=cards.get("home_red_cards", 0),
        away_yellow_cards=cards.get("away_yellow_cards", 0),
        away_red_cards=cards.get("away_red_cards", 0),
    )


W, X, Y, Z = 1, 2, 3, 4

GROUP_A = [
    played(W, X, 2, 1),
    played(W, Y, 3, 0),
    played(W, Z, 1, 0),
    played(X, Y, 1, 0),
    played(X, Z, 0, 1),
    played(Y, Z, 1, 1),
]


def test_full_group_table():
    stats = compute_statistics(GROUP_A, [W, X, Y, Z])

    w, x, y, z = stats[W], stats[X], stats[Y], stats[Z]
    assert (w.wins, w.draws, w.losses, w.points) == (3, 0, 0, 9)
    assert (w.goals_for, w.goals_against, w.goal_difference) == (6, 1, 5)

    assert (x.wins, x.draws, x.losses, x.points) == (1, 0, 2, 3)
    assert (x.goals_for, x.goals_against, x.goal_difference) == (2, 3, -1)

    assert (z.wins, z.draws, z.losses, z.points) == (1, 1, 1, 4)
    assert (z.goals_for, z.goals_against, z.goal_difference) == (2, 2, 0)

    assert (y.wins, y.draws, y.losses, y.points) == (0, 1, 2, 1)
    assert (y.goals_for, y.goals_against, y.goal_difference) == (1, 5, -4)

    assert all(entry.matches_played == 3 for entry in stats.values())


def test_points_and_goal_difference_invariants():
    stats = compute_statistics(GROUP_A, [W, X, Y, Z])
    for entry in stats.values():
        assert entry.points == 3 * entry.wins + entry.draws
        assert entry.goal_difference == entry.goals_for - entry.goals_against
        assert entry.matches_played == entry.wins + entry.draws + entry.losses


def test_team_without_matches_gets_zero_record():
    stats = compute_statistics([], [W, X])
    assert set(stats) == {W, X}
    assert stats[W].counters() == {
        "matches_played": 0,
        "wins": 0,
        "draws": 0,
        "losses": 0,
        "goals_for": 0,
        "goals_against": 0,
        "goal_difference": 0,
        "yellow_cards": 0,
        "red_cards": 0,
        "points": 0,
    }


def test_unplayed_and_knockout_matches_ignored():
    matches = [
        played(W, X, None, None),
        played(W, X, 2, None),
        played(W, X, 4, 0, phase=PHASE_ROUND_OF_16),
    ]
    stats = compute_statistics(matches, [W, X])
    assert stats[W].matches_played == 0
    assert stats[X].matches_played == 0


def test_match_with_unenrolled_team_ignored():
    stats = compute_statistics([played(W, 99, 3, 0)], [W])
    assert stats[W].matches_played == 0
    assert 99 not in stats


def test_cards_accumulate_per_side():
    matches = [
        played(W, X, 0, 0, home_yellow_cards=2, away_yellow_cards=1, away_red_cards=1),
        played(X, W, 1, 2, home_yellow_cards=3, away_red_cards=1),
    ]
    stats = compute_statistics(matches, [W, X])
    assert (stats[W].yellow_cards, stats[W].red_cards) == (2, 1)
    assert (stats[X].yellow_cards, stats[X].red_cards) == (4, 1)


def test_draw_awards_one_point_each():
    stats = compute_statistics([played(W, X, 2, 2)], [W, X])
    assert (stats[W].draws, stats[W].points) == (1, 1)
    assert (stats[X].draws, stats[X].points) == (1, 1)


def test_recomputation_is_idempotent():
    first = compute_statistics(GROUP_A, [W, X, Y, Z])
    second = compute_statistics(GROUP_A, [W, X, Y, Z])
    assert first == second


@pytest.mark.parametrize(
    "home_score, away_score, expected",
    [(None, None, False), (1, None, False), (None, 0, False), (0, 0, True)],
)
def test_counts_toward_standings(home_score, away_score, expected):
    assert counts_toward_standings(played(W, X, home_score, away_score)) is expected
