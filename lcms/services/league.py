"""League, division and team management service."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select

from lcms.extensions import db
from lcms.models import Division, League, LeagueStatus, SportType, Team, User, UserRole
from lcms.services.errors import PrerequisiteError, ValidationError

_PROTECTED_FIELDS = ('id', 'created_at', 'updated_at')


def _apply_updates(instance: Any, updates: dict[str, Any], protected: tuple[str, ...]) -> None:
    for key, value in updates.items():
        if hasattr(instance, key) and key not in _PROTECTED_FIELDS + protected:
            setattr(instance, key, value)


def _check_manager(updates: dict[str, Any]) -> None:
    manager_id = updates.get('manager_id')
    if not manager_id:
        return
    manager = db.session.get(User, manager_id)
    if not manager or not manager.has_role(UserRole.TEAM_MANAGER):
        raise ValidationError('Team manager must be a user with the team_manager role')


class LeagueService:
    """Service for league lifecycle operations."""

    @staticmethod
    def create_league(
        name: str,
        sport: SportType = SportType.FOOTBALL,
        description: str | None = None,
        season_start_date=None,
        season_end_date=None,
        logo_url: str | None = None,
    ) -> League:
        """Create a new active league."""
        league = League(
            name=name,
            sport=sport,
            description=description,
            season_start_date=season_start_date,
            season_end_date=season_end_date,
            logo_url=logo_url,
            status=LeagueStatus.ACTIVE,
        )
        db.session.add(league)
        db.session.commit()
        return league

    @staticmethod
    def update_league(league_id: str, **updates: Any) -> League | None:
        """Update league details."""
        league = db.session.get(League, league_id)
        if not league:
            return None

        _apply_updates(league, updates, ('status', 'archived_at'))
        db.session.commit()
        return league

    @staticmethod
    def archive_league(league_id: str) -> League | None:
        """Archive a league."""
        league = db.session.get(League, league_id)
        if not league:
            return None

        league.status = LeagueStatus.ARCHIVED
        league.archived_at = datetime.now(timezone.utc)
        db.session.commit()
        return league

    @staticmethod
    def restore_league(league_id: str) -> League | None:
        """Restore an archived league."""
        league = db.session.get(League, league_id)
        if not league:
            return None

        league.status = LeagueStatus.ACTIVE
        league.archived_at = None
        db.session.commit()
        return league

    @staticmethod
    def get_league(league_id: str) -> League | None:
        return db.session.get(League, league_id)

    @staticmethod
    def list_leagues(include_archived: bool = False) -> list[League]:
        """List leagues, newest first."""
        query = select(League)
        if not include_archived:
            query = query.where(League.status != LeagueStatus.ARCHIVED)

        query = query.order_by(League.created_at.desc())
        return list(db.session.execute(query).scalars())

    @staticmethod
    def delete_league(league_id: str) -> bool:
        """Permanently delete a league with its divisions, teams and matches."""
        league = db.session.get(League, league_id)
        if not league:
            return False

        db.session.delete(league)
        db.session.commit()
        return True


class DivisionService:
    """Service for divisions inside a league."""

    @staticmethod
    def create_division(league_id: str, name: str, **fields: Any) -> Division | None:
        """Create a division; returns None when the league does not exist."""
        league = db.session.get(League, league_id)
        if not league:
            return None

        division = Division(league_id=league_id, name=name)
        _apply_updates(division, fields, ('league_id',))
        db.session.add(division)
        db.session.commit()
        return division

    @staticmethod
    def update_division(division_id: str, **updates: Any) -> Division | None:
        division = db.session.get(Division, division_id)
        if not division:
            return None

        if 'max_teams' in updates and updates['max_teams'] < len(division.teams):
            raise ValidationError(
                f"Division already has {len(division.teams)} teams; max_teams cannot be lower"
            )

        _apply_updates(division, updates, ('league_id',))
        db.session.commit()
        return division

    @staticmethod
    def get_division(division_id: str) -> Division | None:
        return db.session.get(Division, division_id)

    @staticmethod
    def list_divisions(league_id: str) -> list[tuple[Division, int]]:
        """Divisions of a league by tier, each with its team count."""
        team_count = (
            select(func.count(Team.id))
            .where(Team.division_id == Division.id)
            .scalar_subquery()
        )
        query = (
            select(Division, team_count)
            .where(Division.league_id == league_id)
            .order_by(Division.tier, Division.name)
        )
        return [(division, count) for division, count in db.session.execute(query)]

    @staticmethod
    def delete_division(division_id: str) -> bool:
        division = db.session.get(Division, division_id)
        if not division:
            return False

        db.session.delete(division)
        db.session.commit()
        return True


class TeamService:
    """Service for teams registered in a division."""

    @staticmethod
    def create_team(division_id: str, name: str, **fields: Any) -> Team | None:
        """Add a team to a division, respecting the division's max_teams."""
        division = db.session.get(Division, division_id)
        if not division:
            return None

        if len(division.teams) >= division.max_teams:
            raise PrerequisiteError(
                f"{division.name} is full ({division.max_teams} teams)"
            )

        _check_manager(fields)
        team = Team(division_id=division_id, name=name)
        _apply_updates(team, fields, ('division_id',))
        db.session.add(team)
        db.session.commit()
        return team

    @staticmethod
    def update_team(team_id: str, **updates: Any) -> Team | None:
        team = db.session.get(Team, team_id)
        if not team:
            return None

        _check_manager(updates)
        _apply_updates(team, updates, ('division_id',))
        db.session.commit()
        return team

    @staticmethod
    def get_team(team_id: str) -> Team | None:
        return db.session.get(Team, team_id)

    @staticmethod
    def list_teams(division_id: str) -> list[Team]:
        query = select(Team).where(Team.division_id == division_id).order_by(Team.name)
        return list(db.session.execute(query).scalars())

    @staticmethod
    def delete_team(team_id: str) -> bool:
        team = db.session.get(Team, team_id)
        if not team:
            return False

        db.session.delete(team)
        db.session.commit()
        return True


def serialize_team(team: Team) -> dict:
    return {
        'id': team.id,
        'division_id': team.division_id,
        'name': team.name,
        'short_name': team.short_name,
        'home_city': team.home_city,
        'home_venue': team.home_venue,
        'founded_year': team.founded_year,
        'logo_url': team.logo_url,
        'manager_id': team.manager_id,
    }
