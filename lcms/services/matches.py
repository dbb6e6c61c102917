"""Match management and result reporting for league divisions."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from flask import current_app
from sqlalchemy import or_, select

from lcms.extensions import db
from lcms.models import Division, Match, MatchStatus, Team, User, UserRole
from lcms.services.errors import NotFoundError, ValidationError
from lcms.services.standings import StandingsService

SCORED_STATUSES = (MatchStatus.LIVE, MatchStatus.COMPLETED)


def parse_status(value: Any) -> MatchStatus:
    if isinstance(value, MatchStatus):
        return value
    try:
        return MatchStatus(str(value))
    except ValueError:
        raise ValidationError(f'Invalid match status: {value}')


def parse_score(value: Any, side: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'{side} score must be a whole number')
    try:
        score = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{side} score must be a whole number')
    if score < 0:
        raise ValidationError(f'{side} score must not be negative')
    return score


class MatchService:
    """Service for single matches inside a division."""

    @staticmethod
    def create_match(
        division_id: str,
        home_team_id: str,
        away_team_id: str,
        match_date: datetime | None = None,
        venue: str | None = None,
        referee_id: str | None = None,
        round_number: int = 1,
    ) -> Match:
        """Schedule one match by hand."""
        division = db.session.get(Division, division_id)
        if not division:
            raise NotFoundError('Division not found')

        if not home_team_id or not away_team_id:
            raise ValidationError('Please select both home and away teams')
        if home_team_id == away_team_id:
            raise ValidationError('Home and away teams must be different')

        for team_id in (home_team_id, away_team_id):
            team = db.session.get(Team, team_id)
            if not team or team.division_id != division_id:
                raise ValidationError(f'Team {team_id} is not in this division')

        if referee_id:
            MatchService._check_referee(referee_id)

        if round_number < 1:
            raise ValidationError('Round number must be at least 1')

        match = Match(
            division_id=division_id,
            home_team_id=home_team_id,
            away_team_id=away_team_id,
            match_date=match_date,
            venue=venue,
            referee_id=referee_id,
            round_number=round_number,
            status=MatchStatus.SCHEDULED,
        )
        db.session.add(match)
        db.session.commit()
        return match

    @staticmethod
    def update_details(match_id: str, **updates: Any) -> Match:
        """Change date, venue, referee or round; scores go through record_result."""
        match = MatchService.get_match(match_id)

        if updates.get('referee_id'):
            MatchService._check_referee(updates['referee_id'])

        for key in ('match_date', 'venue', 'referee_id', 'round_number', 'notes'):
            if key in updates:
                setattr(match, key, updates[key])

        db.session.commit()
        return match

    @staticmethod
    def record_result(
        match_id: str,
        status: MatchStatus | str,
        home_score: Any = None,
        away_score: Any = None,
        notes: str | None = None,
    ) -> Match:
        """
        Set a match's status and score.

        Live and completed matches need both scores. Whenever the match is,
        or was, completed the division table is recalculated.
        """
        match = MatchService.get_match(match_id)
        new_status = parse_status(status)
        was_completed = match.status == MatchStatus.COMPLETED

        if new_status in SCORED_STATUSES:
            if home_score is None or away_score is None:
                raise ValidationError('Both home_score and away_score are required')
            match.home_score = parse_score(home_score, 'Home')
            match.away_score = parse_score(away_score, 'Away')

        match.status = new_status
        if notes is not None:
            match.notes = notes
        db.session.commit()

        if new_status == MatchStatus.COMPLETED or was_completed:
            StandingsService.recalculate_division(match.division_id)

        current_app.logger.info(
            f"Match {match.id} set to {new_status.value} "
            f"({match.home_score}-{match.away_score})"
        )
        return match

    @staticmethod
    def delete_match(match_id: str) -> None:
        match = MatchService.get_match(match_id)
        division_id = match.division_id
        was_completed = match.status == MatchStatus.COMPLETED

        db.session.delete(match)
        db.session.commit()

        if was_completed:
            StandingsService.recalculate_division(division_id)

    @staticmethod
    def get_match(match_id: str) -> Match:
        match = db.session.get(Match, match_id)
        if not match:
            raise NotFoundError('Match not found')
        return match

    @staticmethod
    def list_division_matches(division_id: str) -> list[Match]:
        query = (
            select(Match)
            .where(Match.division_id == division_id)
            .order_by(Match.round_number, Match.match_date)
        )
        return list(db.session.execute(query).scalars())

    @staticmethod
    def list_team_matches(team_id: str, completed: bool) -> list[Match]:
        """A team's results (latest first) or remaining fixtures (next first)."""
        query = select(Match).where(or_(Match.home_team_id == team_id, Match.away_team_id == team_id))
        if completed:
            query = query.where(Match.status == MatchStatus.COMPLETED)
            query = query.order_by(Match.round_number.desc(), Match.match_date.desc())
        else:
            query = query.where(Match.status != MatchStatus.COMPLETED)
            query = query.order_by(Match.round_number, Match.match_date)
        return list(db.session.execute(query).scalars())

    @staticmethod
    def list_official_matches(referee_id: str, include_completed: bool = True) -> list[Match]:
        """Matches a match official is assigned to, soonest first."""
        query = select(Match).where(Match.referee_id == referee_id)
        if not include_completed:
            query = query.where(Match.status != MatchStatus.COMPLETED)
        query = query.order_by(Match.match_date, Match.round_number)
        return list(db.session.execute(query).scalars())

    @staticmethod
    def _check_referee(referee_id: str) -> None:
        referee = db.session.get(User, referee_id)
        if not referee or not referee.has_role(UserRole.MATCH_OFFICIAL):
            raise ValidationError('Referee must be a match official')


def serialize_match(match: Match) -> dict:
    return {
        'id': match.id,
        'division_id': match.division_id,
        'round_number': match.round_number,
        'home_team': {
            'id': match.home_team_id,
            'name': match.home_team.name if match.home_team else 'TBD',
            'short_name': match.home_team.short_name if match.home_team else None,
        },
        'away_team': {
            'id': match.away_team_id,
            'name': match.away_team.name if match.away_team else 'TBD',
            'short_name': match.away_team.short_name if match.away_team else None,
        },
        'match_date': match.match_date.isoformat() if match.match_date else None,
        'venue': match.venue,
        'referee': {
            'id': match.referee_id,
            'full_name': match.referee.full_name if match.referee else None,
        } if match.referee_id else None,
        'status': match.status.value,
        'home_score': match.home_score,
        'away_score': match.away_score,
    }


__all__ = ['MatchService', 'serialize_match', 'parse_status', 'parse_score']
