"""
Tests for the tie-break resolver.
"""

from types import SimpleNamespace

from cupmanager.models.match import PHASE_GROUP, PHASE_ROUND_OF_16
from cupmanager.services.standings import compute_statistics
from cupmanager.services.tiebreak import (
    find_direct_match,
    head_to_head_result,
    rank_teams,
)


def row(team_id, points=0, goal_difference=0, goals_for=0, goals_against=0, red_cards=0, yellow_cards=0):
    return SimpleNamespace(
        team_id=team_id,
        points=points,
        goal_difference=goal_difference,
        goals_for=goals_for,
        goals_against=goals_against,
        red_cards=red_cards,
        yellow_cards=yellow_cards,
    )


def played(home, away, home_score, away_score, phase=PHASE_GROUP):
    return SimpleNamespace(
        home_team_id=home,
        away_team_id=away,
        home_score=home_score,
        away_score=away_score,
        phase=phase,
        home_yellow_cards=0,
        home_red_cards=0,
        away_yellow_cards=0,
        away_red_cards=0,
    )


def ids(entries):
    return [entry.team_id for entry in entries]


class TestSortKeys:
    def test_points_first(self):
        ranked = rank_teams([row(1, points=3), row(2, points=9), row(3, points=6)])
        assert ids(ranked) == [2, 3, 1]

    def test_goal_difference_breaks_points_tie(self):
        ranked = rank_teams([row(1, points=6, goal_difference=1), row(2, points=6, goal_difference=4)])
        assert ids(ranked) == [2, 1]

    def test_goals_for_after_goal_difference(self):
        ranked = rank_teams(
            [
                row(1, points=4, goal_difference=2, goals_for=3),
                row(2, points=4, goal_difference=2, goals_for=5),
            ]
        )
        assert ids(ranked) == [2, 1]

    def test_fewer_goals_against_is_better(self):
        # Key order only; consistent rows never differ here once goals for and difference match
        ranked = rank_teams(
            [
                row(1, points=4, goal_difference=2, goals_for=5, goals_against=4),
                row(2, points=4, goal_difference=2, goals_for=5, goals_against=3),
            ]
        )
        assert ids(ranked) == [2, 1]

    def test_red_cards_then_yellow_cards(self):
        base = dict(points=4, goal_difference=1, goals_for=3, goals_against=2)
        ranked = rank_teams(
            [
                row(1, red_cards=1, yellow_cards=0, **base),
                row(2, red_cards=0, yellow_cards=5, **base),
                row(3, red_cards=0, yellow_cards=2, **base),
            ]
        )
        assert ids(ranked) == [3, 2, 1]

    def test_full_tie_keeps_input_order(self):
        ranked = rank_teams([row(5), row(3), row(4)])
        assert ids(ranked) == [5, 3, 4]

    def test_input_not_modified(self):
        entries = [row(1, points=0), row(2, points=3)]
        rank_teams(entries)
        assert ids(entries) == [1, 2]


class TestHeadToHead:
    def test_lower_team_that_won_direct_match_is_swapped(self):
        # Team 1 leads on goals for, but team 2 won their direct match
        entries = [
            row(1, points=4, goal_difference=1, goals_for=5),
            row(2, points=4, goal_difference=1, goals_for=3),
        ]
        matches = [played(1, 2, 0, 1)]

        ranked = rank_teams(entries, lambda a, b: head_to_head_result(matches, a, b))
        assert ids(ranked) == [2, 1]

    def test_no_swap_when_upper_team_won(self):
        entries = [
            row(1, points=4, goal_difference=1, goals_for=5),
            row(2, points=4, goal_difference=1, goals_for=3),
        ]
        matches = [played(2, 1, 0, 2)]

        ranked = rank_teams(entries, lambda a, b: head_to_head_result(matches, a, b))
        assert ids(ranked) == [1, 2]

    def test_no_swap_on_drawn_direct_match(self):
        entries = [row(1, points=4, goals_for=5), row(2, points=4, goals_for=3)]
        matches = [played(1, 2, 1, 1)]

        ranked = rank_teams(entries, lambda a, b: head_to_head_result(matches, a, b))
        assert ids(ranked) == [1, 2]

    def test_head_to_head_only_consulted_on_points_and_goal_difference_tie(self):
        calls = []

        def lookup(a, b):
            calls.append((a, b))
            return -1

        entries = [
            row(1, points=6, goal_difference=3),
            row(2, points=6, goal_difference=1),
            row(3, points=3, goal_difference=1),
        ]
        ranked = rank_teams(entries, lookup)
        assert ids(ranked) == [1, 2, 3]
        assert calls == []

    def test_single_adjacent_pass(self):
        # Three teams level on points and goal difference; each lookup says "lower won".
        # One pass moves the first team down step by step: [1, 2, 3] -> [2, 1, 3] -> [2, 3, 1]
        entries = [
            row(1, points=4, goals_for=6),
            row(2, points=4, goals_for=5),
            row(3, points=4, goals_for=4),
        ]
        ranked = rank_teams(entries, lambda a, b: -1)
        assert ids(ranked) == [2, 3, 1]

    def test_result_from_both_points_of_view(self):
        matches = [played(1, 2, 3, 1)]
        assert head_to_head_result(matches, 1, 2) == 1
        assert head_to_head_result(matches, 2, 1) == -1

    def test_missing_or_unplayed_match_is_neutral(self):
        assert head_to_head_result([], 1, 2) == 0
        assert head_to_head_result([played(1, 2, None, None)], 1, 2) == 0

    def test_knockout_matches_are_not_head_to_head(self):
        matches = [played(1, 2, 2, 0, phase=PHASE_ROUND_OF_16)]
        assert find_direct_match(matches, 1, 2) is None
        assert head_to_head_result(matches, 1, 2) == 0


def test_group_scenario_ranking():
    """W 9 pts, Z 4 pts, X 3 pts, Y 1 pt."""
    W, X, Y, Z = 1, 2, 3, 4
    matches = [
        played(W, X, 2, 1),
        played(W, Y, 3, 0),
        played(W, Z, 1, 0),
        played(X, Y, 1, 0),
        played(X, Z, 0, 1),
        played(Y, Z, 1, 1),
    ]
    stats = compute_statistics(matches, [W, X, Y, Z])

    ranked = rank_teams(list(stats.values()), lambda a, b: head_to_head_result(matches, a, b))

    assert ids(ranked) == [W, Z, X, Y]
    assert [entry.points for entry in ranked] == [9, 4, 3, 1]
    assert [entry.goal_difference for entry in ranked] == [5, 0, -1, -4]


def test_tied_group_scenario_uses_direct_match():
    """X, Y and Z all finish on 3 pts and -1; cards put X above Z, but Z beat X."""
    W, X, Y, Z = 1, 2, 3, 4
    matches = [
        played(W, X, 1, 0),
        played(W, Y, 1, 0),
        played(W, Z, 1, 0),
        played(X, Y, 1, 0),
        played(Z, X, 1, 0),
        played(Y, Z, 1, 0),
    ]
    matches[1].away_red_cards = 2  # Y
    matches[5].away_red_cards = 1  # Z
    stats = compute_statistics(matches, [W, X, Y, Z])

    for team_id in (X, Y, Z):
        assert stats[team_id].points == 3
        assert stats[team_id].goal_difference == -1

    # Without head-to-head: cards decide
    assert ids(rank_teams(list(stats.values()))) == [W, X, Z, Y]

    ranked = rank_teams(list(stats.values()), lambda a, b: head_to_head_result(matches, a, b))
    assert ids(ranked) == [W, Z, X, Y]
