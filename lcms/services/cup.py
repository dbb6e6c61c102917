"""Cup tournaments: registration, group draw, group matches and lifecycle."""
from __future__ import annotations

import random
from datetime import datetime
from typing import Any, Mapping, Sequence

from flask import current_app
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from lcms.extensions import db
from lcms.logic.group_draw import GroupDraw, assign_groups_manual, draw_groups_random
from lcms.models import Cup, CupGroup, CupMatch, CupStage, CupStatus, CupTeam, MatchStatus
from lcms.services.errors import NotFoundError, PrerequisiteError, ValidationError
from lcms.services.locks import scope_lock
from lcms.services.matches import SCORED_STATUSES, parse_score, parse_status
from lcms.services.standings import StandingsService

# Each status may only move one step forward
NEXT_STATUS = {
    CupStatus.DRAFT: CupStatus.GROUP_STAGE,
    CupStatus.GROUP_STAGE: CupStatus.KNOCKOUT,
    CupStatus.KNOCKOUT: CupStatus.COMPLETED,
}

_CUP_FIELDS = ('name', 'description', 'season', 'total_teams', 'teams_per_group', 'start_date', 'end_date')
_TEAM_FIELDS = ('name', 'short_name', 'logo_url', 'city', 'stadium', 'coach')


def _check_sizes(total_teams: int, teams_per_group: int) -> None:
    if total_teams < 2:
        raise ValidationError('A cup needs at least 2 teams')
    if teams_per_group < 2:
        raise ValidationError('Groups need at least 2 teams')
    if teams_per_group > total_teams:
        raise ValidationError('teams_per_group cannot exceed total_teams')


def _reset_group_counters(team: CupTeam) -> None:
    team.played = team.won = team.drawn = team.lost = 0
    team.goals_for = team.goals_against = 0
    team.goal_difference = 0
    team.points = 0


class CupService:
    """Service for cup tournaments."""

    @staticmethod
    def create_cup(
        name: str,
        total_teams: int = 16,
        teams_per_group: int = 4,
        season: str | None = None,
        description: str | None = None,
        start_date=None,
        end_date=None,
    ) -> Cup:
        if not name:
            raise ValidationError('Cup name is required')
        _check_sizes(total_teams, teams_per_group)

        cup = Cup(
            name=name,
            total_teams=total_teams,
            teams_per_group=teams_per_group,
            season=season,
            description=description,
            start_date=start_date,
            end_date=end_date,
            status=CupStatus.DRAFT,
        )
        db.session.add(cup)
        db.session.commit()
        return cup

    @staticmethod
    def update_cup(cup_id: str, **updates: Any) -> Cup:
        cup = CupService.get_cup(cup_id)

        _check_sizes(
            updates.get('total_teams', cup.total_teams),
            updates.get('teams_per_group', cup.teams_per_group),
        )
        if updates.get('total_teams', cup.total_teams) < len(cup.teams):
            raise ValidationError(
                f"Cup already has {len(cup.teams)} teams; total_teams cannot be lower"
            )

        for key in _CUP_FIELDS:
            if key in updates:
                setattr(cup, key, updates[key])
        db.session.commit()
        return cup

    @staticmethod
    def get_cup(cup_id: str) -> Cup:
        cup = db.session.get(Cup, cup_id)
        if not cup:
            raise NotFoundError('Cup not found')
        return cup

    @staticmethod
    def list_cups(status: CupStatus | None = None) -> list[Cup]:
        query = select(Cup)
        if status is not None:
            query = query.where(Cup.status == status)
        query = query.order_by(Cup.created_at.desc())
        return list(db.session.execute(query).scalars())

    @staticmethod
    def delete_cup(cup_id: str) -> None:
        cup = CupService.get_cup(cup_id)
        db.session.delete(cup)
        db.session.commit()

    # Teams

    @staticmethod
    def register_team(cup_id: str, name: str, **fields: Any) -> CupTeam:
        cup = CupService.get_cup(cup_id)
        if not name:
            raise ValidationError('Team name is required')
        if len(cup.teams) >= cup.total_teams:
            raise PrerequisiteError(f"{cup.name} is full ({cup.total_teams} teams)")

        team = CupTeam(cup_id=cup_id, name=name)
        for key in _TEAM_FIELDS:
            if key in fields and key != 'name':
                setattr(team, key, fields[key])
        db.session.add(team)
        db.session.commit()
        return team

    @staticmethod
    def update_team(cup_team_id: str, **updates: Any) -> CupTeam:
        team = CupService.get_team(cup_team_id)
        for key in _TEAM_FIELDS:
            if key in updates:
                setattr(team, key, updates[key])
        db.session.commit()
        return team

    @staticmethod
    def get_team(cup_team_id: str) -> CupTeam:
        team = db.session.get(CupTeam, cup_team_id)
        if not team:
            raise NotFoundError('Cup team not found')
        return team

    @staticmethod
    def remove_team(cup_team_id: str) -> None:
        """Withdraw a team; its matches go with it and its group table is rebuilt."""
        team = CupService.get_team(cup_team_id)
        cup_id, group_id = team.cup_id, team.group_id

        db.session.delete(team)
        db.session.commit()

        if group_id:
            StandingsService.recalculate_cup(cup_id, group_id)

    # Groups

    @staticmethod
    def draw_groups(
        cup_id: str,
        mode: str = 'random',
        assignments: Mapping[str, Sequence[str]] | None = None,
        rng: random.Random | None = None,
    ) -> list[CupGroup]:
        """
        Replace the cup's groups with a fresh draw.

        Every registered team must be in before the draw. Existing groups and
        their group-stage matches are removed, and all group tables restart
        from zero.

        Args:
            cup_id: Cup to draw
            mode: 'random' deals shuffled teams into groups of teams_per_group;
                'manual' uses ``assignments``
            assignments: Group name -> cup team ids, for manual mode
            rng: Random source, for reproducible draws

        Returns:
            The new groups in order
        """
        cup = CupService.get_cup(cup_id)

        team_ids = [team.id for team in cup.teams]
        if len(team_ids) < cup.total_teams:
            raise PrerequisiteError(
                f"Need all {cup.total_teams} teams registered before the draw (currently {len(team_ids)})"
            )

        if mode == 'random':
            draws = draw_groups_random(team_ids, cup.teams_per_group, rng=rng)
        elif mode == 'manual':
            if not assignments:
                raise ValidationError('Manual draw needs a groups mapping')
            draws = assign_groups_manual(assignments)
            unknown = {pid for draw in draws for pid in draw.participants} - set(team_ids)
            if unknown:
                raise ValidationError(f"Teams not registered in this cup: {', '.join(sorted(map(str, unknown)))}")
        else:
            raise ValidationError(f"Unknown draw mode: {mode}")

        with scope_lock('cup', cup_id):
            db.session.get(Cup, cup_id, with_for_update=True)
            try:
                groups = CupService._replace_groups(cup, draws)
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"Failed to save group draw for cup {cup_id}: {e}")
                raise

        current_app.logger.info(f"Drew {len(groups)} groups ({mode}) for cup {cup_id}")
        return groups

    @staticmethod
    def _replace_groups(cup: Cup, draws: list[GroupDraw]) -> list[CupGroup]:
        db.session.execute(
            delete(CupMatch)
            .where(CupMatch.cup_id == cup.id)
            .where(CupMatch.stage == CupStage.GROUP)
        )
        teams = {team.id: team for team in cup.teams}
        for team in teams.values():
            team.group = None
            _reset_group_counters(team)
        for group in list(cup.groups):
            db.session.delete(group)
        # Old rows must be gone before names are reused
        db.session.flush()

        groups = []
        for draw in draws:
            group = CupGroup(cup_id=cup.id, group_name=draw.name, group_order=draw.order)
            db.session.add(group)
            for participant in draw.participants:
                teams[participant].group = group
            groups.append(group)
        return groups

    @staticmethod
    def get_group(group_id: str) -> CupGroup:
        group = db.session.get(CupGroup, group_id)
        if not group:
            raise NotFoundError('Group not found')
        return group

    @staticmethod
    def delete_group(group_id: str) -> None:
        """Delete a group; its teams become unassigned and its matches are dropped."""
        group = CupService.get_group(group_id)
        cup_id = group.cup_id

        with scope_lock('cup', cup_id):
            db.session.execute(delete(CupMatch).where(CupMatch.group_id == group_id))
            for team in list(group.teams):
                team.group = None
                _reset_group_counters(team)
            db.session.delete(group)
            db.session.commit()

        current_app.logger.info(f"Deleted group {group_id} from cup {cup_id}")

    # Matches

    @staticmethod
    def create_cup_match(
        cup_id: str,
        home_cup_team_id: str,
        away_cup_team_id: str,
        stage: CupStage | str = CupStage.GROUP,
        round_number: int | None = None,
        match_date: datetime | None = None,
        venue: str | None = None,
    ) -> CupMatch:
        """Schedule one cup match by hand. Group matches must pair two teams of one group."""
        cup = CupService.get_cup(cup_id)

        try:
            stage = CupStage(stage) if not isinstance(stage, CupStage) else stage
        except ValueError:
            raise ValidationError(f'Invalid stage: {stage}')

        if not home_cup_team_id or not away_cup_team_id:
            raise ValidationError('Please select both home and away teams')
        if home_cup_team_id == away_cup_team_id:
            raise ValidationError('Home and away teams must be different')

        home = db.session.get(CupTeam, home_cup_team_id)
        away = db.session.get(CupTeam, away_cup_team_id)
        if not home or not away or home.cup_id != cup.id or away.cup_id != cup.id:
            raise ValidationError('Both teams must be registered in this cup')

        group_id = None
        if stage == CupStage.GROUP:
            if not home.group_id or home.group_id != away.group_id:
                raise ValidationError('Group matches need two teams from the same group')
            group_id = home.group_id

        match = CupMatch(
            cup_id=cup.id,
            group_id=group_id,
            home_cup_team_id=home.id,
            away_cup_team_id=away.id,
            stage=stage,
            round_number=round_number,
            match_date=match_date,
            venue=venue,
            status=MatchStatus.SCHEDULED,
        )
        db.session.add(match)
        db.session.commit()
        return match

    @staticmethod
    def get_cup_match(cup_match_id: str) -> CupMatch:
        match = db.session.get(CupMatch, cup_match_id)
        if not match:
            raise NotFoundError('Cup match not found')
        return match

    @staticmethod
    def list_cup_matches(cup_id: str, stage: CupStage | None = None) -> list[CupMatch]:
        query = select(CupMatch).where(CupMatch.cup_id == cup_id)
        if stage is not None:
            query = query.where(CupMatch.stage == stage)
        query = query.order_by(CupMatch.round_number, CupMatch.match_date)
        return list(db.session.execute(query).scalars())

    @staticmethod
    def record_result(
        cup_match_id: str,
        status: MatchStatus | str,
        home_score: Any = None,
        away_score: Any = None,
    ) -> CupMatch:
        """Set a cup match's status and score, rebuilding its group table when it counts."""
        match = CupService.get_cup_match(cup_match_id)
        new_status = parse_status(status)
        was_completed = match.status == MatchStatus.COMPLETED

        if new_status in SCORED_STATUSES:
            if home_score is None or away_score is None:
                raise ValidationError('Both home_score and away_score are required')
            match.home_score = parse_score(home_score, 'Home')
            match.away_score = parse_score(away_score, 'Away')

        match.status = new_status
        db.session.commit()

        counts = match.stage == CupStage.GROUP and match.group_id
        if counts and (new_status == MatchStatus.COMPLETED or was_completed):
            StandingsService.recalculate_cup(match.cup_id, match.group_id)

        return match

    # Lifecycle

    @staticmethod
    def set_status(cup_id: str, status: CupStatus | str) -> Cup:
        """Advance a cup one step: draft, group_stage, knockout, completed."""
        cup = CupService.get_cup(cup_id)
        try:
            target = CupStatus(status) if not isinstance(status, CupStatus) else status
        except ValueError:
            raise ValidationError(f'Invalid cup status: {status}')

        if NEXT_STATUS.get(cup.status) != target:
            raise PrerequisiteError(
                f"Cannot move cup from {cup.status.value} to {target.value}"
            )
        if target == CupStatus.GROUP_STAGE and not cup.groups:
            raise PrerequisiteError('Please generate groups first')

        cup.status = target
        db.session.commit()
        current_app.logger.info(f"Cup {cup_id} moved to {target.value}")
        return cup


def serialize_cup(cup: Cup) -> dict:
    return {
        'id': cup.id,
        'name': cup.name,
        'description': cup.description,
        'season': cup.season,
        'total_teams': cup.total_teams,
        'teams_per_group': cup.teams_per_group,
        'registered_teams': len(cup.teams),
        'status': cup.status.value,
        'start_date': cup.start_date.isoformat() if cup.start_date else None,
        'end_date': cup.end_date.isoformat() if cup.end_date else None,
    }


def serialize_cup_team(team: CupTeam) -> dict:
    return {
        'id': team.id,
        'cup_id': team.cup_id,
        'name': team.name,
        'short_name': team.short_name,
        'logo_url': team.logo_url,
        'city': team.city,
        'stadium': team.stadium,
        'coach': team.coach,
        'group_id': team.group_id,
        'group_name': team.group.group_name if team.group else None,
    }


def serialize_group(group: CupGroup) -> dict:
    return {
        'id': group.id,
        'group_name': group.group_name,
        'group_order': group.group_order,
        'teams': [{'id': team.id, 'name': team.name} for team in group.teams],
    }


def serialize_cup_match(match: CupMatch) -> dict:
    return {
        'id': match.id,
        'cup_id': match.cup_id,
        'group_id': match.group_id,
        'group_name': match.group.group_name if match.group else None,
        'stage': match.stage.value,
        'round_number': match.round_number,
        'home_team': {'id': match.home_cup_team_id, 'name': match.home_team.name},
        'away_team': {'id': match.away_cup_team_id, 'name': match.away_team.name},
        'status': match.status.value,
        'home_score': match.home_score,
        'away_score': match.away_score,
        'match_date': match.match_date.isoformat() if match.match_date else None,
        'venue': match.venue,
    }


__all__ = [
    'CupService',
    'serialize_cup',
    'serialize_cup_team',
    'serialize_group',
    'serialize_cup_match',
]
