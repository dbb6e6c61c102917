"""Cup management blueprint: cups, registered teams, group draw and group stage."""
from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from lcms.auth import cup_admin_required
from lcms.blueprints.common.payload import (
    json_body,
    parse_bool,
    parse_date,
    parse_datetime,
    parse_int,
)
from lcms.models import CupStage, CupStatus
from lcms.services.audit import log_admin_action
from lcms.services.cup import (
    CupService,
    serialize_cup,
    serialize_cup_match,
    serialize_cup_team,
    serialize_group,
)
from lcms.services.errors import ValidationError
from lcms.services.scheduler import FixtureService
from lcms.services.standings import StandingsService, serialize_cup_tables

cup_mgmt_bp = Blueprint('cup_mgmt', __name__, url_prefix='/cup-management')


def _cup_fields(data: dict) -> dict:
    fields = {key: data[key] for key in ('name', 'description', 'season') if key in data}
    for key in ('total_teams', 'teams_per_group'):
        value = parse_int(data.get(key), key, minimum=2)
        if value is not None:
            fields[key] = value
    for key in ('start_date', 'end_date'):
        if key in data:
            fields[key] = parse_date(data[key], key)
    return fields


def _team_fields(data: dict) -> dict:
    return {
        key: data[key]
        for key in ('name', 'short_name', 'logo_url', 'city', 'stadium', 'coach')
        if key in data
    }


# ============= Cups =============

@cup_mgmt_bp.route('/api/cups', methods=['GET'])
@login_required
def list_cups():
    status = None
    if request.args.get('status'):
        try:
            status = CupStatus(request.args['status'])
        except ValueError:
            return jsonify({'error': f"Invalid cup status: {request.args['status']}"}), 400

    return jsonify([serialize_cup(cup) for cup in CupService.list_cups(status)])


@cup_mgmt_bp.route('/api/cups', methods=['POST'])
@cup_admin_required
def create_cup():
    data = json_body()
    fields = _cup_fields(data)
    fields['name'] = (fields.get('name') or '').strip()
    cup = CupService.create_cup(**fields)

    log_admin_action(
        user=current_user,
        action='create',
        entity_type='cup',
        entity_id=cup.id,
        metadata={'name': cup.name, 'total_teams': cup.total_teams},
    )
    return jsonify(serialize_cup(cup)), 201


@cup_mgmt_bp.route('/api/cups/<cup_id>', methods=['GET'])
@login_required
def get_cup(cup_id):
    cup = CupService.get_cup(cup_id)
    payload = serialize_cup(cup)
    payload['teams'] = [serialize_cup_team(team) for team in cup.teams]
    payload['groups'] = [serialize_group(group) for group in cup.groups]
    return jsonify(payload)


@cup_mgmt_bp.route('/api/cups/<cup_id>', methods=['PUT'])
@cup_admin_required
def update_cup(cup_id):
    cup = CupService.update_cup(cup_id, **_cup_fields(json_body()))
    log_admin_action(user=current_user, action='update', entity_type='cup', entity_id=cup.id)
    return jsonify(serialize_cup(cup))


@cup_mgmt_bp.route('/api/cups/<cup_id>', methods=['DELETE'])
@cup_admin_required
def delete_cup(cup_id):
    CupService.delete_cup(cup_id)
    log_admin_action(user=current_user, action='delete', entity_type='cup', entity_id=cup_id)
    return jsonify({'success': True})


@cup_mgmt_bp.route('/api/cups/<cup_id>/status', methods=['POST'])
@cup_admin_required
def set_status(cup_id):
    status = json_body().get('status')
    if not status:
        return jsonify({'error': 'status is required'}), 400

    cup = CupService.set_status(cup_id, status)
    log_admin_action(
        user=current_user,
        action='set_status',
        entity_type='cup',
        entity_id=cup.id,
        metadata={'status': cup.status.value},
    )
    return jsonify(serialize_cup(cup))


# ============= Teams =============

@cup_mgmt_bp.route('/api/cups/<cup_id>/teams', methods=['GET'])
@login_required
def list_teams(cup_id):
    cup = CupService.get_cup(cup_id)
    return jsonify([serialize_cup_team(team) for team in cup.teams])


@cup_mgmt_bp.route('/api/cups/<cup_id>/teams', methods=['POST'])
@cup_admin_required
def register_team(cup_id):
    fields = _team_fields(json_body())
    name = (fields.pop('name', None) or '').strip()
    team = CupService.register_team(cup_id, name, **fields)

    log_admin_action(
        user=current_user,
        action='register_team',
        entity_type='cup',
        entity_id=cup_id,
        metadata={'cup_team_id': team.id, 'name': team.name},
    )
    return jsonify(serialize_cup_team(team)), 201


@cup_mgmt_bp.route('/api/cup-teams/<cup_team_id>', methods=['PUT'])
@cup_admin_required
def update_team(cup_team_id):
    team = CupService.update_team(cup_team_id, **_team_fields(json_body()))
    return jsonify(serialize_cup_team(team))


@cup_mgmt_bp.route('/api/cup-teams/<cup_team_id>', methods=['DELETE'])
@cup_admin_required
def remove_team(cup_team_id):
    CupService.remove_team(cup_team_id)
    log_admin_action(user=current_user, action='remove_team', entity_type='cup_team', entity_id=cup_team_id)
    return jsonify({'success': True})


# ============= Groups =============

@cup_mgmt_bp.route('/api/cups/<cup_id>/groups', methods=['GET'])
@login_required
def list_groups(cup_id):
    cup = CupService.get_cup(cup_id)
    return jsonify([serialize_group(group) for group in cup.groups])


@cup_mgmt_bp.route('/api/cups/<cup_id>/groups/draw', methods=['POST'])
@cup_admin_required
def draw_groups(cup_id):
    """Draw groups at random, or from a {"Group A": [team ids]} mapping."""
    data = json_body()
    mode = data.get('mode', 'random')
    assignments = data.get('groups')
    if assignments is not None and not isinstance(assignments, dict):
        raise ValidationError('groups must map group names to lists of team ids')

    groups = CupService.draw_groups(cup_id, mode=mode, assignments=assignments)

    log_admin_action(
        user=current_user,
        action='draw_groups',
        entity_type='cup',
        entity_id=cup_id,
        metadata={'mode': mode, 'groups': len(groups)},
    )
    return jsonify({
        'success': True,
        'message': f'{len(groups)} groups created',
        'groups': [serialize_group(group) for group in groups],
    }), 201


@cup_mgmt_bp.route('/api/groups/<group_id>', methods=['DELETE'])
@cup_admin_required
def delete_group(group_id):
    CupService.delete_group(group_id)
    log_admin_action(user=current_user, action='delete', entity_type='cup_group', entity_id=group_id)
    return jsonify({'success': True})


# ============= Matches =============

@cup_mgmt_bp.route('/api/cups/<cup_id>/matches', methods=['GET'])
@login_required
def list_matches(cup_id):
    CupService.get_cup(cup_id)
    stage = None
    if request.args.get('stage'):
        try:
            stage = CupStage(request.args['stage'])
        except ValueError:
            return jsonify({'error': f"Invalid stage: {request.args['stage']}"}), 400

    return jsonify([serialize_cup_match(m) for m in CupService.list_cup_matches(cup_id, stage)])


@cup_mgmt_bp.route('/api/cups/<cup_id>/fixtures/generate', methods=['POST'])
@cup_admin_required
def generate_fixtures(cup_id):
    """Round robin inside every group; replaces existing group-stage matches."""
    data = json_body()
    matches = FixtureService.generate_cup_group_fixtures(
        cup_id,
        balance=parse_bool(data.get('balance', False)),
    )

    log_admin_action(
        user=current_user,
        action='generate_fixtures',
        entity_type='cup',
        entity_id=cup_id,
        metadata={'matches': len(matches)},
    )
    return jsonify({
        'success': True,
        'message': f'Generated {len(matches)} group matches',
        'matches': [serialize_cup_match(m) for m in matches],
    }), 201


@cup_mgmt_bp.route('/api/cups/<cup_id>/fixtures', methods=['POST'])
@cup_admin_required
def create_fixture(cup_id):
    data = json_body()
    match = CupService.create_cup_match(
        cup_id,
        home_cup_team_id=data.get('home_cup_team_id'),
        away_cup_team_id=data.get('away_cup_team_id'),
        stage=data.get('stage', CupStage.GROUP.value),
        round_number=parse_int(data.get('round_number'), 'round_number', minimum=1),
        match_date=parse_datetime(data.get('match_date'), 'match_date'),
        venue=data.get('venue'),
    )

    log_admin_action(user=current_user, action='create', entity_type='cup_match', entity_id=match.id)
    return jsonify(serialize_cup_match(match)), 201


@cup_mgmt_bp.route('/api/cup-matches/<cup_match_id>/result', methods=['PUT'])
@cup_admin_required
def record_result(cup_match_id):
    data = json_body()
    match = CupService.record_result(
        cup_match_id,
        status=data.get('status', 'completed'),
        home_score=data.get('home_score'),
        away_score=data.get('away_score'),
    )

    log_admin_action(
        user=current_user,
        action='record_result',
        entity_type='cup_match',
        entity_id=match.id,
        metadata={'status': match.status.value, 'score': f'{match.home_score}-{match.away_score}'},
    )
    return jsonify(serialize_cup_match(match))


# ============= Standings =============

@cup_mgmt_bp.route('/api/cups/<cup_id>/standings', methods=['GET'])
@login_required
def cup_standings(cup_id):
    return jsonify(serialize_cup_tables(StandingsService.cup_group_tables(cup_id)))


@cup_mgmt_bp.route('/api/cups/<cup_id>/standings/recalculate', methods=['POST'])
@cup_admin_required
def recalculate_standings(cup_id):
    tables = StandingsService.recalculate_cup(cup_id)
    return jsonify({'success': True, 'standings': serialize_cup_tables(tables)})
