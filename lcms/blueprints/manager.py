"""Team manager blueprint: own team dashboard and squad management."""
from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user
from sqlalchemy import select

from lcms.auth import role_required
from lcms.blueprints.common.payload import json_body, parse_bool
from lcms.blueprints.common.roster import player_fields
from lcms.extensions import db
from lcms.models import DivisionStanding, Team, UserRole
from lcms.services.audit import log_admin_action
from lcms.services.league import TeamService, serialize_team
from lcms.services.matches import MatchService, serialize_match
from lcms.services.players import PlayerService, serialize_player
from lcms.services.standings import serialize_division_standing

manager_bp = Blueprint('manager', __name__, url_prefix='/manager')

RECENT_RESULTS = 5


def _managed_team(team_id: str):
    """(team, None) when the caller manages it, else (None, error response)."""
    team = TeamService.get_team(team_id)
    if not team:
        return None, (jsonify({'error': 'Team not found'}), 404)
    if team.manager_id != current_user.id and not current_user.has_role(UserRole.ADMIN):
        return None, (jsonify({'error': 'You do not manage this team'}), 403)
    return team, None


@manager_bp.route('/api/teams', methods=['GET'])
@role_required(UserRole.TEAM_MANAGER)
def my_teams():
    teams = db.session.execute(
        select(Team).where(Team.manager_id == current_user.id).order_by(Team.name)
    ).scalars()
    return jsonify([serialize_team(team) for team in teams])


@manager_bp.route('/api/teams/<team_id>', methods=['GET'])
@role_required(UserRole.TEAM_MANAGER)
def team_dashboard(team_id):
    """Squad, table position, next fixtures and latest results."""
    team, error = _managed_team(team_id)
    if error:
        return error

    standing = db.session.execute(
        select(DivisionStanding).where(DivisionStanding.team_id == team.id)
    ).scalar_one_or_none()

    return jsonify({
        'team': serialize_team(team),
        'players': [serialize_player(p) for p in PlayerService.list_players(team.id)],
        'standing': serialize_division_standing(standing) if standing else None,
        'upcoming': [serialize_match(m) for m in MatchService.list_team_matches(team.id, completed=False)],
        'results': [
            serialize_match(m)
            for m in MatchService.list_team_matches(team.id, completed=True)[:RECENT_RESULTS]
        ],
    })


@manager_bp.route('/api/teams/<team_id>/players', methods=['GET'])
@role_required(UserRole.TEAM_MANAGER)
def list_players(team_id):
    team, error = _managed_team(team_id)
    if error:
        return error
    include_inactive = parse_bool(request.args.get('include_inactive', 'false'))
    return jsonify([serialize_player(p) for p in PlayerService.list_players(team.id, include_inactive)])


@manager_bp.route('/api/teams/<team_id>/players', methods=['POST'])
@role_required(UserRole.TEAM_MANAGER)
def add_player(team_id):
    team, error = _managed_team(team_id)
    if error:
        return error

    fields = player_fields(json_body())
    player = PlayerService.create_player(team.id, fields.pop('name', None), **fields)

    log_admin_action(
        user=current_user,
        action='create',
        entity_type='player',
        entity_id=player.id,
        metadata={'team_id': team.id, 'name': player.name},
    )
    return jsonify(serialize_player(player)), 201


@manager_bp.route('/api/players/<player_id>', methods=['PUT'])
@role_required(UserRole.TEAM_MANAGER)
def update_player(player_id):
    player = PlayerService.get_player(player_id)
    _, error = _managed_team(player.team_id)
    if error:
        return error

    player = PlayerService.update_player(player_id, **player_fields(json_body()))
    log_admin_action(user=current_user, action='update', entity_type='player', entity_id=player.id)
    return jsonify(serialize_player(player))


@manager_bp.route('/api/players/<player_id>/toggle-active', methods=['POST'])
@role_required(UserRole.TEAM_MANAGER)
def toggle_player(player_id):
    player = PlayerService.get_player(player_id)
    _, error = _managed_team(player.team_id)
    if error:
        return error

    player = PlayerService.set_active(player_id, not player.is_active)
    log_admin_action(
        user=current_user,
        action='activate' if player.is_active else 'deactivate',
        entity_type='player',
        entity_id=player.id,
    )
    return jsonify(serialize_player(player))
