"""Fixture generation service: round-robin schedules persisted per scope."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from flask import current_app
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from lcms.extensions import db
from lcms.logic.round_robin import Fixture, generate_round_robin
from lcms.models import Cup, CupMatch, CupStage, Division, Match, MatchEvent, MatchStatus
from lcms.services.errors import NotFoundError, PrerequisiteError
from lcms.services.locks import scope_lock
from lcms.services.standings import StandingsService


def _kickoff(start_at: Optional[datetime], fixture: Fixture, days_between_rounds: int) -> Optional[datetime]:
    if start_at is None:
        return None
    return start_at + timedelta(days=(fixture.round_number - 1) * days_between_rounds)


def _delete_division_matches(division_id: str) -> int:
    """Bulk delete a division's matches along with their events."""
    division_matches = select(Match.id).where(Match.division_id == division_id)
    db.session.execute(delete(MatchEvent).where(MatchEvent.match_id.in_(division_matches)))
    return db.session.execute(delete(Match).where(Match.division_id == division_id)).rowcount


class FixtureService:
    """Writes generated schedules with a delete-then-bulk-insert pattern."""

    @staticmethod
    def generate_division_fixtures(
        division_id: str,
        start_at: Optional[datetime] = None,
        days_between_rounds: Optional[int] = None,
        replace: bool = True,
        balance: bool = False,
    ) -> List[Match]:
        """
        Generate a full round robin for a division's teams.

        Args:
            division_id: Division to schedule
            start_at: Kick-off of round 1; later rounds follow every
                ``days_between_rounds`` days. Dates stay empty when omitted.
            days_between_rounds: Defaults to FIXTURE_DAYS_BETWEEN_ROUNDS
            replace: Delete the division's existing matches first; when False,
                refuse if any exist
            balance: Alternate home/away for the fixed team

        Returns:
            The persisted matches ordered by round
        """
        division = db.session.get(Division, division_id)
        if not division:
            raise NotFoundError('Division not found')

        # Validation happens here, before anything is deleted
        fixtures = generate_round_robin([team.id for team in division.teams], balance=balance)

        if days_between_rounds is None:
            days_between_rounds = current_app.config.get('FIXTURE_DAYS_BETWEEN_ROUNDS', 7)

        with scope_lock('division', division_id):
            db.session.get(Division, division_id, with_for_update=True)

            existing = db.session.execute(
                select(func.count(Match.id)).where(Match.division_id == division_id)
            ).scalar_one()
            if existing and not replace:
                db.session.rollback()
                raise PrerequisiteError(
                    f"Division already has {existing} matches; delete them or regenerate with replace"
                )

            try:
                _delete_division_matches(division_id)
                matches = [
                    Match(
                        division_id=division_id,
                        home_team_id=fixture.home,
                        away_team_id=fixture.away,
                        round_number=fixture.round_number,
                        match_date=_kickoff(start_at, fixture, days_between_rounds),
                        status=MatchStatus.SCHEDULED,
                    )
                    for fixture in fixtures
                ]
                db.session.add_all(matches)
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"Failed to save fixtures for division {division_id}: {e}")
                raise

            # Old results are gone, so the table goes back to zero
            StandingsService.recalculate_division(division_id)

        current_app.logger.info(
            f"Generated {len(matches)} fixtures for division {division_id} "
            f"(replaced {existing})"
        )
        return matches

    @staticmethod
    def clear_division_fixtures(division_id: str) -> int:
        """Delete every match in a division and reset its table."""
        division = db.session.get(Division, division_id)
        if not division:
            raise NotFoundError('Division not found')

        with scope_lock('division', division_id):
            try:
                deleted = _delete_division_matches(division_id)
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"Failed to delete fixtures for division {division_id}: {e}")
                raise

            StandingsService.recalculate_division(division_id)

        return deleted

    @staticmethod
    def generate_cup_group_fixtures(cup_id: str, balance: bool = False) -> List[CupMatch]:
        """Replace the cup's group-stage matches with a round robin per group."""
        cup = db.session.get(Cup, cup_id)
        if not cup:
            raise NotFoundError('Cup not found')

        if not cup.groups:
            raise PrerequisiteError('Please generate groups first')

        plan = []
        for group in cup.groups:
            team_ids = [team.id for team in group.teams]
            if len(team_ids) < 2:
                current_app.logger.warning(
                    f"{group.group_name} in cup {cup_id} has less than 2 teams, skipping"
                )
                continue
            plan.append((group, generate_round_robin(team_ids, balance=balance)))

        with scope_lock('cup', cup_id):
            db.session.get(Cup, cup_id, with_for_update=True)
            try:
                db.session.execute(
                    delete(CupMatch)
                    .where(CupMatch.cup_id == cup_id)
                    .where(CupMatch.stage == CupStage.GROUP)
                )
                matches = [
                    CupMatch(
                        cup_id=cup_id,
                        group_id=group.id,
                        home_cup_team_id=fixture.home,
                        away_cup_team_id=fixture.away,
                        round_number=fixture.round_number,
                        stage=CupStage.GROUP,
                        status=MatchStatus.SCHEDULED,
                    )
                    for group, fixtures in plan
                    for fixture in fixtures
                ]
                db.session.add_all(matches)
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"Failed to save group fixtures for cup {cup_id}: {e}")
                raise

            StandingsService.recalculate_cup(cup_id)

        current_app.logger.info(
            f"Generated {len(matches)} group fixtures for cup {cup_id} across {len(plan)} groups"
        )
        return matches


def generate_division_schedule(division_id: str, **options) -> List[Match]:
    """Convenience wrapper used by the CLI."""
    return FixtureService.generate_division_fixtures(division_id, **options)


__all__ = ['FixtureService', 'generate_division_schedule']
