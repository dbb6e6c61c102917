"""Standings recalculation and read-side tables for divisions and cup groups."""

from __future__ import annotations

from typing import Any

from flask import current_app
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from lcms.extensions import db
from lcms.logic.standings import MatchResult, compute_standings
from lcms.models import (
    Cup,
    CupMatch,
    CupStage,
    CupTeam,
    Division,
    DivisionStanding,
    Match,
    MatchStatus,
)
from lcms.services.errors import NotFoundError
from lcms.services.locks import scope_lock

STANDING_COUNTERS = ('played', 'won', 'drawn', 'lost', 'goals_for', 'goals_against')


def _division_results(division_id: str) -> list[MatchResult]:
    completed = db.session.execute(
        select(Match)
        .where(Match.division_id == division_id)
        .where(Match.status == MatchStatus.COMPLETED)
    ).scalars()
    return [
        MatchResult(m.home_team_id, m.away_team_id, m.home_score, m.away_score)
        for m in completed
    ]


def _group_results(group_id: str) -> list[MatchResult]:
    completed = db.session.execute(
        select(CupMatch)
        .where(CupMatch.group_id == group_id)
        .where(CupMatch.stage == CupStage.GROUP)
        .where(CupMatch.status == MatchStatus.COMPLETED)
    ).scalars()
    return [
        MatchResult(m.home_cup_team_id, m.away_cup_team_id, m.home_score, m.away_score)
        for m in completed
    ]


def _reset_counters(team: CupTeam) -> None:
    for counter in STANDING_COUNTERS:
        setattr(team, counter, 0)
    team.goal_difference = 0
    team.points = 0


class StandingsService:
    """Rebuilds standings from completed matches, one scope at a time."""

    @staticmethod
    def recalculate_division(division_id: str) -> list[DivisionStanding]:
        """Replace every standings row of a division in one transaction."""
        with scope_lock('division', division_id):
            division = db.session.get(Division, division_id, with_for_update=True)
            if not division:
                raise NotFoundError('Division not found')

            team_ids = [team.id for team in division.teams]
            rows = compute_standings(team_ids, _division_results(division_id))

            try:
                db.session.execute(
                    delete(DivisionStanding).where(DivisionStanding.division_id == division_id)
                )
                records = [
                    DivisionStanding(
                        division_id=division_id,
                        team_id=row.participant,
                        position=row.position,
                        played=row.played,
                        won=row.won,
                        drawn=row.drawn,
                        lost=row.lost,
                        goals_for=row.goals_for,
                        goals_against=row.goals_against,
                        goal_difference=row.goal_difference,
                        points=row.points,
                    )
                    for row in rows
                ]
                db.session.add_all(records)
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"Failed to write standings for division {division_id}: {e}")
                raise

        current_app.logger.info(f"Recalculated standings for division {division_id} ({len(records)} teams)")
        return records

    @staticmethod
    def recalculate_cup(cup_id: str, group_id: str | None = None) -> list[dict[str, Any]]:
        """Rewrite group counters on the cup's teams; all groups unless one is named."""
        with scope_lock('cup', cup_id):
            cup = db.session.get(Cup, cup_id, with_for_update=True)
            if not cup:
                raise NotFoundError('Cup not found')

            groups = [g for g in cup.groups if group_id is None or g.id == group_id]
            if group_id is not None and not groups:
                raise NotFoundError('Group not found in this cup')

            try:
                for group in groups:
                    teams = {team.id: team for team in group.teams}
                    rows = compute_standings(list(teams), _group_results(group.id))
                    for row in rows:
                        team = teams[row.participant]
                        for counter in STANDING_COUNTERS:
                            setattr(team, counter, getattr(row, counter))
                        team.goal_difference = row.goal_difference
                        team.points = row.points

                if group_id is None:
                    for team in cup.teams:
                        if team.group_id is None:
                            _reset_counters(team)

                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"Failed to write standings for cup {cup_id}: {e}")
                raise

        current_app.logger.info(f"Recalculated group standings for cup {cup_id} ({len(groups)} groups)")
        return StandingsService.cup_group_tables(cup_id)

    @staticmethod
    def division_table(division_id: str) -> list[DivisionStanding]:
        division = db.session.get(Division, division_id)
        if not division:
            raise NotFoundError('Division not found')

        query = (
            select(DivisionStanding)
            .where(DivisionStanding.division_id == division_id)
            .order_by(DivisionStanding.position)
        )
        return list(db.session.execute(query).scalars())

    @staticmethod
    def cup_group_tables(cup_id: str) -> list[dict[str, Any]]:
        cup = db.session.get(Cup, cup_id)
        if not cup:
            raise NotFoundError('Cup not found')

        tables = []
        for group in cup.groups:
            ranked = sorted(
                group.teams,
                key=lambda t: (-t.points, -t.goal_difference, -t.goals_for),
            )
            tables.append({'group': group, 'teams': ranked})
        return tables


def serialize_division_standing(standing: DivisionStanding) -> dict:
    return {
        'position': standing.position,
        'team': {
            'id': standing.team_id,
            'name': standing.team.name if standing.team else 'Unknown',
            'logo_url': standing.team.logo_url if standing.team else None,
        },
        'played': standing.played,
        'won': standing.won,
        'drawn': standing.drawn,
        'lost': standing.lost,
        'goals_for': standing.goals_for,
        'goals_against': standing.goals_against,
        'goal_difference': standing.goal_difference,
        'points': standing.points,
    }


def serialize_cup_tables(tables: list[dict[str, Any]]) -> list[dict]:
    return [
        {
            'group_id': table['group'].id,
            'group_name': table['group'].group_name,
            'teams': [
                {
                    'position': position,
                    'cup_team_id': team.id,
                    'name': team.name,
                    'played': team.played,
                    'won': team.won,
                    'drawn': team.drawn,
                    'lost': team.lost,
                    'goals_for': team.goals_for,
                    'goals_against': team.goals_against,
                    'goal_difference': team.goal_difference,
                    'points': team.points,
                }
                for position, team in enumerate(table['teams'], start=1)
            ],
        }
        for table in tables
    ]


__all__ = [
    'StandingsService',
    'serialize_division_standing',
    'serialize_cup_tables',
]
