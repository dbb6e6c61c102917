"""Match official blueprint: assigned matches, result and event reporting."""
from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user

from lcms.auth import role_required
from lcms.blueprints.common.payload import json_body
from lcms.models import Match, UserRole
from lcms.services.audit import log_admin_action
from lcms.services.matches import MatchService, serialize_match
from lcms.services.players import MatchEventService, PlayerService, serialize_event, serialize_player

officials_bp = Blueprint('officials', __name__, url_prefix='/official')


def _is_referee(match: Match) -> bool:
    return match.referee_id == current_user.id or current_user.has_role(UserRole.ADMIN)


def _not_referee():
    return jsonify({'error': 'You are not the referee for this match'}), 403


@officials_bp.route('/api/matches', methods=['GET'])
@role_required(UserRole.MATCH_OFFICIAL)
def my_matches():
    """Matches the current official referees."""
    include_completed = request.args.get('include_completed', 'true').lower() == 'true'
    matches = MatchService.list_official_matches(current_user.id, include_completed=include_completed)
    return jsonify([serialize_match(m) for m in matches])


@officials_bp.route('/api/matches/<match_id>', methods=['GET'])
@role_required(UserRole.MATCH_OFFICIAL)
def match_sheet(match_id):
    """Match, both active squads and the events so far."""
    match = MatchService.get_match(match_id)
    if not _is_referee(match):
        return _not_referee()

    return jsonify({
        'match': serialize_match(match),
        'home_players': [serialize_player(p) for p in PlayerService.list_players(match.home_team_id)],
        'away_players': [serialize_player(p) for p in PlayerService.list_players(match.away_team_id)],
        'events': [serialize_event(e) for e in MatchEventService.list_events(match.id)],
    })


@officials_bp.route('/api/matches/<match_id>/result', methods=['PUT'])
@role_required(UserRole.MATCH_OFFICIAL)
def submit_result(match_id):
    """Report a score for a match the official is assigned to."""
    match = MatchService.get_match(match_id)
    if not _is_referee(match):
        return _not_referee()

    data = json_body()
    match = MatchService.record_result(
        match_id,
        status=data.get('status', 'completed'),
        home_score=data.get('home_score'),
        away_score=data.get('away_score'),
        notes=data.get('notes'),
    )

    log_admin_action(
        user=current_user,
        action='official_result',
        entity_type='match',
        entity_id=match.id,
        metadata={'status': match.status.value, 'score': f'{match.home_score}-{match.away_score}'},
    )
    return jsonify(serialize_match(match))


@officials_bp.route('/api/matches/<match_id>/events', methods=['POST'])
@role_required(UserRole.MATCH_OFFICIAL)
def report_event(match_id):
    """Log a goal, card or substitution against a player."""
    match = MatchService.get_match(match_id)
    if not _is_referee(match):
        return _not_referee()

    data = json_body()
    event = MatchEventService.record_event(
        match_id,
        team_id=data.get('team_id'),
        player_id=data.get('player_id'),
        event_type=data.get('event_type'),
        minute=data.get('minute'),
        extra_time_minute=data.get('extra_time_minute', 0),
        recorded_by_id=current_user.id,
    )

    log_admin_action(
        user=current_user,
        action='official_event',
        entity_type='match_event',
        entity_id=event.id,
        metadata={'match_id': match_id, 'event_type': event.event_type.value, 'minute': event.minute},
    )
    return jsonify(serialize_event(event)), 201
