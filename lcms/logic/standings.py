"""Standings table aggregation from completed results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Optional, Sequence

from lcms.services.errors import StandingsValidationError

POINTS_FOR_WIN = 3
POINTS_FOR_DRAW = 1


@dataclass(frozen=True)
class MatchResult:
    home: Hashable
    away: Hashable
    home_score: Optional[int]
    away_score: Optional[int]


@dataclass
class StandingsRow:
    participant: Hashable
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    position: Optional[int] = None

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    @property
    def points(self) -> int:
        return POINTS_FOR_WIN * self.won + POINTS_FOR_DRAW * self.drawn

    def record(self, scored: int, conceded: int) -> None:
        self.played += 1
        self.goals_for += scored
        self.goals_against += conceded
        if scored > conceded:
            self.won += 1
        elif scored == conceded:
            self.drawn += 1
        else:
            self.lost += 1

    def as_dict(self) -> dict:
        return {
            'participant': self.participant,
            'position': self.position,
            'played': self.played,
            'won': self.won,
            'drawn': self.drawn,
            'lost': self.lost,
            'goals_for': self.goals_for,
            'goals_against': self.goals_against,
            'goal_difference': self.goal_difference,
            'points': self.points,
        }


def _score(value: Optional[int]) -> int:
    # Completed matches saved without a score count as 0
    if value is None:
        return 0
    score = int(value)
    if score < 0:
        raise StandingsValidationError(f"Scores must not be negative, got {score}")
    return score


def aggregate_standings(
    participants: Sequence[Hashable],
    results: Iterable[MatchResult],
) -> List[StandingsRow]:
    """
    Fold completed results into one row per participant.

    Every participant gets a row even without matches. A result naming a
    participant outside ``participants`` only counts for the side that is in
    scope. The fold is commutative, so result order never changes the table.

    Returns:
        Rows in the order of ``participants`` (unranked)
    """
    table: Dict[Hashable, StandingsRow] = {}
    for participant in participants:
        table.setdefault(participant, StandingsRow(participant=participant))

    for result in results:
        home_score = _score(result.home_score)
        away_score = _score(result.away_score)

        if result.home in table:
            table[result.home].record(home_score, away_score)
        if result.away in table:
            table[result.away].record(away_score, home_score)

    return list(table.values())


def sort_key(row: StandingsRow):
    return (-row.points, -row.goal_difference, -row.goals_for)


def rank_standings(rows: Iterable[StandingsRow]) -> List[StandingsRow]:
    """Order by points, goal difference, then goals scored, and number positions.

    Rows still level on all three keep their incoming order.
    """
    ranked = sorted(rows, key=sort_key)
    for position, row in enumerate(ranked, start=1):
        row.position = position
    return ranked


def compute_standings(
    participants: Sequence[Hashable],
    results: Iterable[MatchResult],
) -> List[StandingsRow]:
    return rank_standings(aggregate_standings(participants, results))


__all__ = [
    'POINTS_FOR_WIN',
    'POINTS_FOR_DRAW',
    'MatchResult',
    'StandingsRow',
    'aggregate_standings',
    'rank_standings',
    'compute_standings',
    'sort_key',
]
