"""League management blueprint: leagues, divisions, teams, rosters, matches and tables."""
from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from lcms.auth import league_admin_required
from lcms.blueprints.common.payload import (
    json_body,
    parse_bool,
    parse_date,
    parse_datetime,
    parse_int,
)
from lcms.blueprints.common.roster import player_fields
from lcms.models import Division, League, SportType
from lcms.services.audit import log_admin_action
from lcms.services.errors import ValidationError
from lcms.services.league import DivisionService, LeagueService, TeamService, serialize_team
from lcms.services.matches import MatchService, serialize_match
from lcms.services.players import MatchEventService, PlayerService, serialize_event, serialize_player
from lcms.services.scheduler import FixtureService
from lcms.services.standings import StandingsService, serialize_division_standing

league_mgmt_bp = Blueprint('league_mgmt', __name__, url_prefix='/league-management')


def serialize_league(league: League) -> dict:
    return {
        'id': league.id,
        'name': league.name,
        'sport': league.sport.value,
        'description': league.description,
        'status': league.status.value,
        'season_start_date': league.season_start_date.isoformat() if league.season_start_date else None,
        'season_end_date': league.season_end_date.isoformat() if league.season_end_date else None,
        'logo_url': league.logo_url,
        'archived_at': league.archived_at.isoformat() if league.archived_at else None,
        'created_at': league.created_at.isoformat() if league.created_at else None,
    }


def serialize_division(division: Division, team_count: int | None = None) -> dict:
    return {
        'id': division.id,
        'league_id': division.league_id,
        'name': division.name,
        'description': division.description,
        'tier': division.tier,
        'max_teams': division.max_teams,
        'promotion_spots': division.promotion_spots,
        'relegation_spots': division.relegation_spots,
        'team_count': team_count if team_count is not None else len(division.teams),
    }


def _league_fields(data: dict) -> dict:
    fields = {}
    for key in ('name', 'description', 'logo_url'):
        if key in data:
            fields[key] = data[key]
    if 'sport' in data:
        try:
            fields['sport'] = SportType(data['sport'])
        except ValueError:
            raise ValidationError(f"Invalid sport type: {data['sport']}")
    for key in ('season_start_date', 'season_end_date'):
        if key in data:
            fields[key] = parse_date(data[key], key)
    return fields


def _division_fields(data: dict) -> dict:
    fields = {key: data[key] for key in ('name', 'description') if key in data}
    for key, minimum in (('tier', 1), ('max_teams', 2), ('promotion_spots', 0), ('relegation_spots', 0)):
        value = parse_int(data.get(key), key, minimum=minimum)
        if value is not None:
            fields[key] = value
    return fields


def _team_fields(data: dict) -> dict:
    fields = {
        key: data[key]
        for key in ('name', 'short_name', 'home_city', 'home_venue', 'logo_url', 'manager_id')
        if key in data
    }
    if 'founded_year' in data:
        fields['founded_year'] = parse_int(data['founded_year'], 'founded_year')
    return fields


# ============= Leagues =============

@league_mgmt_bp.route('/api/leagues', methods=['GET'])
@login_required
def list_leagues():
    """List leagues, optionally including archived ones."""
    include_archived = request.args.get('include_archived', 'false').lower() == 'true'
    leagues = LeagueService.list_leagues(include_archived=include_archived)
    return jsonify([serialize_league(league) for league in leagues])


@league_mgmt_bp.route('/api/leagues', methods=['POST'])
@league_admin_required
def create_league():
    data = json_body()
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Name is required'}), 400

    fields = _league_fields(data)
    fields['name'] = name
    league = LeagueService.create_league(**fields)

    log_admin_action(
        user=current_user,
        action='create',
        entity_type='league',
        entity_id=league.id,
        metadata={'name': league.name, 'sport': league.sport.value},
    )
    return jsonify(serialize_league(league)), 201


@league_mgmt_bp.route('/api/leagues/<league_id>', methods=['GET'])
@login_required
def get_league(league_id):
    league = LeagueService.get_league(league_id)
    if not league:
        return jsonify({'error': 'League not found'}), 404
    return jsonify(serialize_league(league))


@league_mgmt_bp.route('/api/leagues/<league_id>', methods=['PUT'])
@league_admin_required
def update_league(league_id):
    league = LeagueService.update_league(league_id, **_league_fields(json_body()))
    if not league:
        return jsonify({'error': 'League not found'}), 404

    log_admin_action(user=current_user, action='update', entity_type='league', entity_id=league.id)
    return jsonify(serialize_league(league))


@league_mgmt_bp.route('/api/leagues/<league_id>/archive', methods=['POST'])
@league_admin_required
def archive_league(league_id):
    league = LeagueService.archive_league(league_id)
    if not league:
        return jsonify({'error': 'League not found'}), 404

    log_admin_action(user=current_user, action='archive', entity_type='league', entity_id=league.id)
    return jsonify(serialize_league(league))


@league_mgmt_bp.route('/api/leagues/<league_id>/restore', methods=['POST'])
@league_admin_required
def restore_league(league_id):
    league = LeagueService.restore_league(league_id)
    if not league:
        return jsonify({'error': 'League not found'}), 404

    log_admin_action(user=current_user, action='restore', entity_type='league', entity_id=league.id)
    return jsonify(serialize_league(league))


@league_mgmt_bp.route('/api/leagues/<league_id>', methods=['DELETE'])
@league_admin_required
def delete_league(league_id):
    """Permanently delete a league and everything in it."""
    if not LeagueService.delete_league(league_id):
        return jsonify({'error': 'League not found'}), 404

    log_admin_action(user=current_user, action='delete', entity_type='league', entity_id=league_id)
    return jsonify({'success': True})


# ============= Divisions =============

@league_mgmt_bp.route('/api/leagues/<league_id>/divisions', methods=['GET'])
@login_required
def list_divisions(league_id):
    if not LeagueService.get_league(league_id):
        return jsonify({'error': 'League not found'}), 404

    return jsonify([
        serialize_division(division, team_count)
        for division, team_count in DivisionService.list_divisions(league_id)
    ])


@league_mgmt_bp.route('/api/leagues/<league_id>/divisions', methods=['POST'])
@league_admin_required
def create_division(league_id):
    data = json_body()
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Name is required'}), 400

    fields = _division_fields(data)
    fields.pop('name', None)
    division = DivisionService.create_division(league_id, name, **fields)
    if not division:
        return jsonify({'error': 'League not found'}), 404

    log_admin_action(
        user=current_user,
        action='create',
        entity_type='division',
        entity_id=division.id,
        metadata={'league_id': league_id, 'name': division.name},
    )
    return jsonify(serialize_division(division)), 201


@league_mgmt_bp.route('/api/divisions/<division_id>', methods=['PUT'])
@league_admin_required
def update_division(division_id):
    division = DivisionService.update_division(division_id, **_division_fields(json_body()))
    if not division:
        return jsonify({'error': 'Division not found'}), 404

    log_admin_action(user=current_user, action='update', entity_type='division', entity_id=division.id)
    return jsonify(serialize_division(division))


@league_mgmt_bp.route('/api/divisions/<division_id>', methods=['DELETE'])
@league_admin_required
def delete_division(division_id):
    if not DivisionService.delete_division(division_id):
        return jsonify({'error': 'Division not found'}), 404

    log_admin_action(user=current_user, action='delete', entity_type='division', entity_id=division_id)
    return jsonify({'success': True})


# ============= Teams =============

@league_mgmt_bp.route('/api/divisions/<division_id>/teams', methods=['GET'])
@login_required
def list_teams(division_id):
    if not DivisionService.get_division(division_id):
        return jsonify({'error': 'Division not found'}), 404
    return jsonify([serialize_team(team) for team in TeamService.list_teams(division_id)])


@league_mgmt_bp.route('/api/divisions/<division_id>/teams', methods=['POST'])
@league_admin_required
def create_team(division_id):
    data = json_body()
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Team name is required'}), 400

    fields = _team_fields(data)
    fields.pop('name', None)
    team = TeamService.create_team(division_id, name, **fields)
    if not team:
        return jsonify({'error': 'Division not found'}), 404

    log_admin_action(
        user=current_user,
        action='create',
        entity_type='team',
        entity_id=team.id,
        metadata={'division_id': division_id, 'name': team.name},
    )
    return jsonify(serialize_team(team)), 201


@league_mgmt_bp.route('/api/teams/<team_id>', methods=['PUT'])
@league_admin_required
def update_team(team_id):
    team = TeamService.update_team(team_id, **_team_fields(json_body()))
    if not team:
        return jsonify({'error': 'Team not found'}), 404

    log_admin_action(user=current_user, action='update', entity_type='team', entity_id=team.id)
    return jsonify(serialize_team(team))


@league_mgmt_bp.route('/api/teams/<team_id>', methods=['DELETE'])
@league_admin_required
def delete_team(team_id):
    """Remove a team; its matches go too, so the table is rebuilt."""
    team = TeamService.get_team(team_id)
    if not team:
        return jsonify({'error': 'Team not found'}), 404

    division_id = team.division_id
    TeamService.delete_team(team_id)
    StandingsService.recalculate_division(division_id)

    log_admin_action(user=current_user, action='delete', entity_type='team', entity_id=team_id)
    return jsonify({'success': True})


# ============= Matches & Fixtures =============

@league_mgmt_bp.route('/api/divisions/<division_id>/matches', methods=['GET'])
@login_required
def list_matches(division_id):
    if not DivisionService.get_division(division_id):
        return jsonify({'error': 'Division not found'}), 404
    return jsonify([serialize_match(m) for m in MatchService.list_division_matches(division_id)])


@league_mgmt_bp.route('/api/divisions/<division_id>/matches', methods=['POST'])
@league_admin_required
def create_match(division_id):
    """Schedule a single match by hand."""
    data = json_body()
    match = MatchService.create_match(
        division_id=division_id,
        home_team_id=data.get('home_team_id'),
        away_team_id=data.get('away_team_id'),
        match_date=parse_datetime(data.get('match_date'), 'match_date'),
        venue=data.get('venue'),
        referee_id=data.get('referee_id'),
        round_number=parse_int(data.get('round_number'), 'round_number', minimum=1) or 1,
    )

    log_admin_action(user=current_user, action='create', entity_type='match', entity_id=match.id)
    return jsonify(serialize_match(match)), 201


@league_mgmt_bp.route('/api/divisions/<division_id>/fixtures/generate', methods=['POST'])
@league_admin_required
def generate_fixtures(division_id):
    """Generate a round-robin schedule for every team in the division."""
    data = json_body()
    start_at = parse_datetime(data.get('start_date'), 'start_date')
    days_between_rounds = parse_int(data.get('days_between_rounds'), 'days_between_rounds', minimum=0)

    matches = FixtureService.generate_division_fixtures(
        division_id,
        start_at=start_at,
        days_between_rounds=days_between_rounds,
        replace=parse_bool(data.get('replace', True)),
        balance=parse_bool(data.get('balance', False)),
    )

    log_admin_action(
        user=current_user,
        action='generate_fixtures',
        entity_type='division',
        entity_id=division_id,
        metadata={'matches': len(matches)},
    )

    return jsonify({
        'success': True,
        'message': f'Generated {len(matches)} matches',
        'rounds': max((m.round_number for m in matches), default=0),
        'matches': [serialize_match(m) for m in matches],
    }), 201


@league_mgmt_bp.route('/api/divisions/<division_id>/fixtures', methods=['DELETE'])
@league_admin_required
def clear_fixtures(division_id):
    """Delete all matches in a division."""
    deleted = FixtureService.clear_division_fixtures(division_id)

    log_admin_action(
        user=current_user,
        action='delete_fixtures',
        entity_type='division',
        entity_id=division_id,
        metadata={'deleted': deleted},
    )
    return jsonify({'success': True, 'deleted': deleted})


@league_mgmt_bp.route('/api/matches/<match_id>', methods=['PUT'])
@league_admin_required
def update_match(match_id):
    data = json_body()
    updates = {key: data[key] for key in ('venue', 'referee_id', 'notes') if key in data}
    if 'match_date' in data:
        updates['match_date'] = parse_datetime(data['match_date'], 'match_date')
    if 'round_number' in data:
        updates['round_number'] = parse_int(data['round_number'], 'round_number', minimum=1)

    match = MatchService.update_details(match_id, **updates)
    return jsonify(serialize_match(match))


@league_mgmt_bp.route('/api/matches/<match_id>/result', methods=['PUT'])
@league_admin_required
def record_result(match_id):
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
        action='record_result',
        entity_type='match',
        entity_id=match.id,
        metadata={'status': match.status.value, 'score': f'{match.home_score}-{match.away_score}'},
    )
    return jsonify(serialize_match(match))


@league_mgmt_bp.route('/api/matches/<match_id>', methods=['DELETE'])
@league_admin_required
def delete_match(match_id):
    MatchService.delete_match(match_id)
    log_admin_action(user=current_user, action='delete', entity_type='match', entity_id=match_id)
    return jsonify({'success': True})


# ============= Players =============

@league_mgmt_bp.route('/api/teams/<team_id>/players', methods=['GET'])
@league_admin_required
def list_players(team_id):
    if not TeamService.get_team(team_id):
        return jsonify({'error': 'Team not found'}), 404
    include_inactive = parse_bool(request.args.get('include_inactive', 'false'))
    players = PlayerService.list_players(team_id, include_inactive=include_inactive)
    return jsonify([serialize_player(p) for p in players])


@league_mgmt_bp.route('/api/teams/<team_id>/players', methods=['POST'])
@league_admin_required
def create_player(team_id):
    fields = player_fields(json_body())
    player = PlayerService.create_player(team_id, fields.pop('name', None), **fields)

    log_admin_action(
        user=current_user,
        action='create',
        entity_type='player',
        entity_id=player.id,
        metadata={'team_id': team_id, 'name': player.name},
    )
    return jsonify(serialize_player(player)), 201


@league_mgmt_bp.route('/api/players/<player_id>', methods=['PUT'])
@league_admin_required
def update_player(player_id):
    player = PlayerService.update_player(player_id, **player_fields(json_body()))
    log_admin_action(user=current_user, action='update', entity_type='player', entity_id=player.id)
    return jsonify(serialize_player(player))


@league_mgmt_bp.route('/api/players/<player_id>/toggle-active', methods=['POST'])
@league_admin_required
def toggle_player(player_id):
    player = PlayerService.get_player(player_id)
    player = PlayerService.set_active(player_id, not player.is_active)
    log_admin_action(
        user=current_user,
        action='activate' if player.is_active else 'deactivate',
        entity_type='player',
        entity_id=player.id,
    )
    return jsonify(serialize_player(player))


@league_mgmt_bp.route('/api/players/<player_id>', methods=['DELETE'])
@league_admin_required
def delete_player(player_id):
    PlayerService.delete_player(player_id)
    log_admin_action(user=current_user, action='delete', entity_type='player', entity_id=player_id)
    return jsonify({'success': True})


@league_mgmt_bp.route('/api/matches/<match_id>/events', methods=['GET'])
@league_admin_required
def list_match_events(match_id):
    MatchService.get_match(match_id)
    return jsonify([serialize_event(e) for e in MatchEventService.list_events(match_id)])


@league_mgmt_bp.route('/api/events/<event_id>', methods=['DELETE'])
@league_admin_required
def delete_match_event(event_id):
    """Remove a mis-reported goal or card."""
    MatchEventService.delete_event(event_id)
    log_admin_action(user=current_user, action='delete', entity_type='match_event', entity_id=event_id)
    return jsonify({'success': True})


# ============= Standings =============

@league_mgmt_bp.route('/api/divisions/<division_id>/standings', methods=['GET'])
@login_required
def division_standings(division_id):
    table = StandingsService.division_table(division_id)
    return jsonify([serialize_division_standing(row) for row in table])


@league_mgmt_bp.route('/api/divisions/<division_id>/standings/recalculate', methods=['POST'])
@league_admin_required
def recalculate_standings(division_id):
    table = StandingsService.recalculate_division(division_id)
    return jsonify({
        'success': True,
        'standings': [serialize_division_standing(row) for row in table],
    })
