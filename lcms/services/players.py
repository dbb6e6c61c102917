"""Team rosters, per-player match events and leaderboards."""
from __future__ import annotations

from datetime import date
from typing import Any

from flask import current_app
from sqlalchemy import desc, func, select

from lcms.extensions import db
from lcms.models import (
    Division,
    Match,
    MatchEvent,
    MatchEventType,
    MatchStatus,
    Player,
    PlayerPosition,
    Team,
)
from lcms.services.errors import NotFoundError, PrerequisiteError, ValidationError

MAX_JERSEY_NUMBER = 99
MAX_MINUTE = 130
MAX_EXTRA_TIME_MINUTE = 30

# Own goals go on the scoresheet but not in the scorer's tally
LEADER_EVENTS = {
    'goals': (MatchEventType.GOAL, MatchEventType.PENALTY),
    'yellow_cards': (MatchEventType.YELLOW_CARD,),
    'red_cards': (MatchEventType.RED_CARD,),
}

_CLOSED_STATUSES = (MatchStatus.POSTPONED, MatchStatus.CANCELLED)


def _parse_whole(value: Any, label: str, minimum: int, maximum: int) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'{label} must be a whole number')
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{label} must be a whole number')
    if not minimum <= number <= maximum:
        raise ValidationError(f'{label} must be between {minimum} and {maximum}')
    return number


def parse_position(value: Any) -> PlayerPosition | None:
    if value in (None, ''):
        return None
    if isinstance(value, PlayerPosition):
        return value
    try:
        return PlayerPosition(str(value).lower())
    except ValueError:
        raise ValidationError(f'Invalid position: {value}')


def parse_event_type(value: Any) -> MatchEventType:
    if isinstance(value, MatchEventType):
        return value
    try:
        return MatchEventType(str(value))
    except ValueError:
        raise ValidationError(f'Invalid event type: {value}')


class PlayerService:
    """Service for the players registered on a team."""

    @staticmethod
    def _check_jersey(team_id: str, jersey_number: int | None, player_id: str | None = None) -> None:
        if jersey_number is None:
            return
        query = (
            select(Player.id)
            .where(Player.team_id == team_id)
            .where(Player.jersey_number == jersey_number)
            .where(Player.is_active.is_(True))
        )
        if player_id:
            query = query.where(Player.id != player_id)
        if db.session.execute(query).first():
            raise ValidationError(f'Jersey number {jersey_number} is already taken on this team')

    @staticmethod
    def create_player(
        team_id: str,
        name: str,
        jersey_number: Any = None,
        position: Any = None,
        date_of_birth: date | None = None,
        nationality: str | None = None,
    ) -> Player:
        """Add an active player to a team's roster."""
        team = db.session.get(Team, team_id)
        if not team:
            raise NotFoundError('Team not found')

        name = (name or '').strip()
        if not name:
            raise ValidationError('Player name is required')

        if jersey_number not in (None, ''):
            jersey_number = _parse_whole(jersey_number, 'Jersey number', 1, MAX_JERSEY_NUMBER)
        else:
            jersey_number = None
        PlayerService._check_jersey(team_id, jersey_number)

        player = Player(
            team_id=team_id,
            name=name,
            jersey_number=jersey_number,
            position=parse_position(position),
            date_of_birth=date_of_birth,
            nationality=nationality,
            is_active=True,
        )
        db.session.add(player)
        db.session.commit()
        current_app.logger.info(f"Added player {player.id} to team {team_id}")
        return player

    @staticmethod
    def update_player(player_id: str, **updates: Any) -> Player:
        player = PlayerService.get_player(player_id)

        if 'name' in updates:
            name = (updates['name'] or '').strip()
            if not name:
                raise ValidationError('Player name is required')
            player.name = name
        if 'jersey_number' in updates:
            jersey_number = updates['jersey_number']
            if jersey_number not in (None, ''):
                jersey_number = _parse_whole(jersey_number, 'Jersey number', 1, MAX_JERSEY_NUMBER)
            else:
                jersey_number = None
            if player.is_active:
                PlayerService._check_jersey(player.team_id, jersey_number, player.id)
            player.jersey_number = jersey_number
        if 'position' in updates:
            player.position = parse_position(updates['position'])
        for key in ('date_of_birth', 'nationality'):
            if key in updates:
                setattr(player, key, updates[key])

        db.session.commit()
        return player

    @staticmethod
    def set_active(player_id: str, active: bool) -> Player:
        """Activate or release a player; released players keep their history."""
        player = PlayerService.get_player(player_id)
        if active and not player.is_active:
            PlayerService._check_jersey(player.team_id, player.jersey_number, player.id)
        player.is_active = active
        db.session.commit()
        return player

    @staticmethod
    def delete_player(player_id: str) -> None:
        player = PlayerService.get_player(player_id)
        db.session.delete(player)
        db.session.commit()

    @staticmethod
    def get_player(player_id: str) -> Player:
        player = db.session.get(Player, player_id)
        if not player:
            raise NotFoundError('Player not found')
        return player

    @staticmethod
    def list_players(team_id: str, include_inactive: bool = False) -> list[Player]:
        query = select(Player).where(Player.team_id == team_id)
        if not include_inactive:
            query = query.where(Player.is_active.is_(True))
        query = query.order_by(Player.jersey_number, Player.name)
        return list(db.session.execute(query).scalars())


class MatchEventService:
    """Goals, cards and substitutions reported against a league match."""

    @staticmethod
    def record_event(
        match_id: str,
        team_id: str,
        player_id: str,
        event_type: Any,
        minute: Any,
        extra_time_minute: Any = 0,
        recorded_by_id: str | None = None,
    ) -> MatchEvent:
        """
        Add one event to a match's timeline.

        The team must be playing in the match and the player must be active
        on that team. Scores are not touched; they are reported separately.
        """
        match = db.session.get(Match, match_id)
        if not match:
            raise NotFoundError('Match not found')
        if match.status in _CLOSED_STATUSES:
            raise PrerequisiteError(f'Cannot record events for a {match.status.value} match')

        if not team_id or not player_id:
            raise ValidationError('Both team_id and player_id are required')
        if team_id not in (match.home_team_id, match.away_team_id):
            raise ValidationError('Team is not playing in this match')

        player = db.session.get(Player, player_id)
        if not player or player.team_id != team_id:
            raise ValidationError('Player is not on this team')
        if not player.is_active:
            raise ValidationError(f'{player.name} is not an active player')

        kind = parse_event_type(event_type)
        if minute in (None, ''):
            raise ValidationError('Minute is required')
        minute = _parse_whole(minute, 'Minute', 0, MAX_MINUTE)
        if extra_time_minute in (None, ''):
            extra_time_minute = 0
        extra_time_minute = _parse_whole(extra_time_minute, 'Extra time minute', 0, MAX_EXTRA_TIME_MINUTE)

        event = MatchEvent(
            match_id=match_id,
            team_id=team_id,
            player_id=player_id,
            event_type=kind,
            minute=minute,
            extra_time_minute=extra_time_minute,
            recorded_by_id=recorded_by_id,
        )
        db.session.add(event)
        db.session.commit()

        current_app.logger.info(
            f"Recorded {kind.value} for player {player_id} in match {match_id} at {minute}'"
        )
        return event

    @staticmethod
    def get_event(event_id: str) -> MatchEvent:
        event = db.session.get(MatchEvent, event_id)
        if not event:
            raise NotFoundError('Event not found')
        return event

    @staticmethod
    def list_events(match_id: str) -> list[MatchEvent]:
        query = (
            select(MatchEvent)
            .where(MatchEvent.match_id == match_id)
            .order_by(MatchEvent.minute, MatchEvent.extra_time_minute, MatchEvent.created_at)
        )
        return list(db.session.execute(query).scalars())

    @staticmethod
    def delete_event(event_id: str) -> None:
        event = MatchEventService.get_event(event_id)
        db.session.delete(event)
        db.session.commit()

    @staticmethod
    def leaders(
        stat: str = 'goals',
        league_id: str | None = None,
        division_id: str | None = None,
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        """
        Rank players by a counted event type.

        Args:
            stat: 'goals' (goals and penalties), 'yellow_cards' or 'red_cards'
            league_id: Restrict to matches in this league's divisions
            division_id: Restrict to matches in one division
            limit: Maximum rows returned

        Returns:
            Dicts with the player and its count, highest first, ties by name
        """
        if stat not in LEADER_EVENTS:
            raise ValidationError(f"Unknown stat: {stat}. Use one of {', '.join(LEADER_EVENTS)}")

        total = func.count(MatchEvent.id).label('total')
        matches = func.count(func.distinct(MatchEvent.match_id)).label('matches')
        query = (
            select(Player, total, matches)
            .join(MatchEvent, MatchEvent.player_id == Player.id)
            .join(Match, Match.id == MatchEvent.match_id)
            .where(MatchEvent.event_type.in_(LEADER_EVENTS[stat]))
        )
        if division_id:
            query = query.where(Match.division_id == division_id)
        if league_id:
            query = query.join(Division, Division.id == Match.division_id).where(Division.league_id == league_id)

        query = query.group_by(Player.id).order_by(desc(total), Player.name).limit(limit)
        return [
            {'player': player, 'total': count, 'matches': match_count}
            for player, count, match_count in db.session.execute(query).all()
        ]


def serialize_player(player: Player) -> dict:
    return {
        'id': player.id,
        'team_id': player.team_id,
        'name': player.name,
        'jersey_number': player.jersey_number,
        'position': player.position.value if player.position else None,
        'date_of_birth': player.date_of_birth.isoformat() if player.date_of_birth else None,
        'nationality': player.nationality,
        'is_active': player.is_active,
    }


def serialize_event(event: MatchEvent) -> dict:
    return {
        'id': event.id,
        'match_id': event.match_id,
        'team_id': event.team_id,
        'player': {
            'id': event.player_id,
            'name': event.player.name if event.player else 'Unknown',
            'jersey_number': event.player.jersey_number if event.player else None,
        },
        'event_type': event.event_type.value,
        'minute': event.minute,
        'extra_time_minute': event.extra_time_minute,
    }


def serialize_leader(row: dict[str, Any], stat: str) -> dict:
    player = row['player']
    return {
        'player': {
            'id': player.id,
            'name': player.name,
            'team_id': player.team_id,
            'team_name': player.team.name if player.team else None,
            'position': player.position.value if player.position else None,
        },
        'stat': stat,
        'value': row['total'],
        'matches': row['matches'],
    }


__all__ = [
    'PlayerService',
    'MatchEventService',
    'serialize_player',
    'serialize_event',
    'serialize_leader',
    'parse_position',
    'parse_event_type',
    'LEADER_EVENTS',
]
