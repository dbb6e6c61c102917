"""Tests for random and manual cup group draws."""

import random

import pytest

from lcms.logic.group_draw import (
    assign_groups_manual,
    draw_groups_random,
    group_label,
    number_of_groups,
)
from lcms.services.errors import FixtureValidationError


def test_group_labels():
    assert [group_label(i) for i in range(3)] == ['A', 'B', 'C']
    assert group_label(25) == 'Z'
    assert group_label(26) == 'AA'
    assert group_label(27) == 'AB'


def test_random_draw_covers_everyone_once():
    teams = [f'team-{i}' for i in range(16)]
    groups = draw_groups_random(teams, 4, rng=random.Random(3))

    assert [g.name for g in groups] == ['Group A', 'Group B', 'Group C', 'Group D']
    assert [g.order for g in groups] == [1, 2, 3, 4]
    assert all(len(g.participants) == 4 for g in groups)
    drawn = [p for g in groups for p in g.participants]
    assert sorted(drawn) == sorted(teams)


def test_random_draw_is_reproducible_with_seeded_rng():
    teams = list(range(12))
    first = draw_groups_random(teams, 3, rng=random.Random(42))
    second = draw_groups_random(teams, 3, rng=random.Random(42))

    assert [g.participants for g in first] == [g.participants for g in second]


def test_uneven_draw_leaves_last_groups_short():
    groups = draw_groups_random(list(range(10)), 4, rng=random.Random(1))

    assert [len(g.participants) for g in groups] == [4, 3, 3]


def test_random_draw_does_not_mutate_input():
    teams = ['a', 'b', 'c', 'd']
    draw_groups_random(teams, 2, rng=random.Random(0))

    assert teams == ['a', 'b', 'c', 'd']


def test_group_size_must_be_positive():
    with pytest.raises(FixtureValidationError):
        draw_groups_random(['a', 'b'], 0)
    with pytest.raises(FixtureValidationError):
        number_of_groups(4, -1)


def test_random_draw_rejects_empty_and_duplicate_lists():
    with pytest.raises(FixtureValidationError):
        draw_groups_random([], 4)
    with pytest.raises(FixtureValidationError):
        draw_groups_random(['a', 'a'], 2)


def test_manual_assignment_keeps_given_order():
    groups = assign_groups_manual({'Group B': ['x', 'y'], 'Group A': ['z', 'w']})

    assert [(g.name, g.order) for g in groups] == [('Group B', 1), ('Group A', 2)]
    assert groups[0].participants == ['x', 'y']


def test_manual_assignment_rejects_team_in_two_groups():
    with pytest.raises(FixtureValidationError, match='both'):
        assign_groups_manual({'Group A': ['x', 'y'], 'Group B': ['y', 'z']})


def test_manual_assignment_rejects_empty_group():
    with pytest.raises(FixtureValidationError):
        assign_groups_manual({'Group A': ['x'], 'Group B': []})


def test_manual_assignment_rejects_empty_mapping():
    with pytest.raises(FixtureValidationError):
        assign_groups_manual({})


@pytest.mark.parametrize('members', [[['x']], [{'id': 'x'}], [None], [True], 'xy'])
def test_manual_assignment_rejects_malformed_members(members):
    with pytest.raises(FixtureValidationError):
        assign_groups_manual({'Group A': members})
