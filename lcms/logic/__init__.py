"""Pure scheduling and ranking algorithms; no database access."""

from lcms.logic.group_draw import GroupDraw, assign_groups_manual, draw_groups_random, group_label
from lcms.logic.round_robin import Fixture, generate_round_robin, number_of_rounds, rounds
from lcms.logic.standings import (
    MatchResult,
    StandingsRow,
    aggregate_standings,
    compute_standings,
    rank_standings,
)

__all__ = [
    'Fixture',
    'generate_round_robin',
    'number_of_rounds',
    'rounds',
    'GroupDraw',
    'assign_groups_manual',
    'draw_groups_random',
    'group_label',
    'MatchResult',
    'StandingsRow',
    'aggregate_standings',
    'compute_standings',
    'rank_standings',
]
