"""Tests for standings aggregation and ranking."""

import random

import pytest

from lcms.logic.standings import (
    MatchResult,
    StandingsRow,
    aggregate_standings,
    compute_standings,
    rank_standings,
)
from lcms.services.errors import StandingsValidationError


def _by_team(rows):
    return {row.participant: row for row in rows}


def test_worked_example():
    results = [MatchResult('A', 'B', 2, 1), MatchResult('B', 'C', 0, 0)]
    rows = compute_standings(['A', 'B', 'C'], results)
    table = _by_team(rows)

    assert [row.participant for row in rows] == ['A', 'C', 'B']
    assert [row.position for row in rows] == [1, 2, 3]

    a, b, c = table['A'], table['B'], table['C']
    assert (a.played, a.won, a.drawn, a.lost, a.points) == (1, 1, 0, 0, 3)
    assert (a.goals_for, a.goals_against, a.goal_difference) == (2, 1, 1)
    assert (b.played, b.won, b.drawn, b.lost, b.points) == (2, 0, 1, 1, 1)
    assert (b.goals_for, b.goals_against, b.goal_difference) == (1, 2, -1)
    assert (c.played, c.won, c.drawn, c.lost, c.points) == (1, 0, 1, 0, 1)
    assert (c.goals_for, c.goals_against, c.goal_difference) == (0, 0, 0)


def test_away_win():
    table = _by_team(aggregate_standings(['H', 'V'], [MatchResult('H', 'V', 0, 3)]))

    assert table['V'].won == 1 and table['V'].points == 3
    assert table['H'].lost == 1 and table['H'].points == 0


def test_every_participant_gets_a_row():
    rows = aggregate_standings(['A', 'B', 'C'], [])

    assert [row.participant for row in rows] == ['A', 'B', 'C']
    assert all(row.played == 0 and row.points == 0 for row in rows)


def _random_results(teams, rng):
    return [
        MatchResult(home, away, rng.randint(0, 5), rng.randint(0, 5))
        for i, home in enumerate(teams)
        for away in teams[i + 1:]
    ]


def test_aggregation_is_order_independent():
    rng = random.Random(11)
    teams = [f'T{i}' for i in range(8)]
    results = _random_results(teams, rng)

    baseline = [row.as_dict() for row in aggregate_standings(teams, results)]
    for _ in range(5):
        shuffled = list(results)
        rng.shuffle(shuffled)
        assert [row.as_dict() for row in aggregate_standings(teams, shuffled)] == baseline


def test_recomputing_is_idempotent():
    teams = ['A', 'B', 'C', 'D']
    results = _random_results(teams, random.Random(5))

    first = [row.as_dict() for row in compute_standings(teams, results)]
    second = [row.as_dict() for row in compute_standings(teams, results)]
    assert first == second


def test_derived_columns_always_hold():
    teams = [f'T{i}' for i in range(6)]
    for row in aggregate_standings(teams, _random_results(teams, random.Random(9))):
        assert row.goal_difference == row.goals_for - row.goals_against
        assert row.points == 3 * row.won + row.drawn
        assert row.played == row.won + row.drawn + row.lost


def test_ranking_keys_in_order():
    rows = [
        StandingsRow('low-gf', won=1, goals_for=2, goals_against=1),
        StandingsRow('more-points', won=2),
        StandingsRow('high-gf', won=1, goals_for=4, goals_against=3),
        StandingsRow('better-gd', won=1, goals_for=3, goals_against=0),
    ]
    ranked = rank_standings(rows)

    assert [row.participant for row in ranked] == ['more-points', 'better-gd', 'high-gf', 'low-gf']


def test_full_ties_keep_input_order():
    rows = [StandingsRow('B', drawn=1), StandingsRow('A', drawn=1), StandingsRow('C', drawn=1)]

    assert [row.participant for row in rank_standings(rows)] == ['B', 'A', 'C']


def test_results_outside_scope_count_for_one_side():
    table = _by_team(aggregate_standings(['A'], [MatchResult('A', 'guest', 1, 0)]))

    assert list(table) == ['A']
    assert table['A'].won == 1


def test_missing_scores_count_as_zero():
    table = _by_team(aggregate_standings(['A', 'B'], [MatchResult('A', 'B', None, None)]))

    assert table['A'].drawn == 1 and table['B'].drawn == 1


def test_negative_scores_rejected():
    with pytest.raises(StandingsValidationError):
        aggregate_standings(['A', 'B'], [MatchResult('A', 'B', -1, 0)])
