"""Read-only public JSON API."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from sqlalchemy import select

from lcms.blueprints.common.payload import parse_int
from lcms.extensions import db
from lcms.models import Cup, CupStatus, Division, DivisionStanding, League, LeagueStatus
from lcms.services.matches import MatchService, serialize_match
from lcms.services.players import MatchEventService, serialize_event, serialize_leader
from lcms.services.standings import (
    StandingsService,
    serialize_cup_tables,
    serialize_division_standing,
)

api_bp = Blueprint('api', __name__)


def serialize_league(league: League) -> dict:
    return {
        'id': league.id,
        'name': league.name,
        'sport': league.sport.value,
        'season_start_date': league.season_start_date.isoformat() if league.season_start_date else None,
        'season_end_date': league.season_end_date.isoformat() if league.season_end_date else None,
        'divisions': [{'id': d.id, 'name': d.name, 'tier': d.tier} for d in league.divisions],
    }


@api_bp.route('/leagues', methods=['GET'])
def list_leagues():
    leagues = db.session.execute(
        select(League)
        .where(League.status == LeagueStatus.ACTIVE)
        .order_by(League.name)
    ).scalars()
    return jsonify({'items': [serialize_league(league) for league in leagues]})


@api_bp.route('/standings', methods=['GET'])
def standings():
    """Standings of every active division, optionally for one league."""
    league_id = request.args.get('league_id')

    query = (
        select(Division)
        .join(League)
        .where(League.status == LeagueStatus.ACTIVE)
    )
    if league_id:
        query = query.where(Division.league_id == league_id)
    divisions = db.session.execute(query.order_by(League.name, Division.tier)).scalars()

    result = []
    for division in divisions:
        rows = db.session.execute(
            select(DivisionStanding)
            .where(DivisionStanding.division_id == division.id)
            .order_by(DivisionStanding.position)
        ).scalars()
        result.append({
            'league': {'id': division.league_id, 'name': division.league.name},
            'division': {'id': division.id, 'name': division.name, 'tier': division.tier},
            'standings': [serialize_division_standing(row) for row in rows],
        })

    return jsonify({'items': result})


@api_bp.route('/divisions/<division_id>/standings', methods=['GET'])
def division_standings(division_id):
    table = StandingsService.division_table(division_id)
    return jsonify({'items': [serialize_division_standing(row) for row in table]})


@api_bp.route('/divisions/<division_id>/matches', methods=['GET'])
def division_matches(division_id):
    if not db.session.get(Division, division_id):
        return jsonify({'error': 'Division not found'}), 404
    matches = MatchService.list_division_matches(division_id)
    return jsonify({'items': [serialize_match(m) for m in matches]})


@api_bp.route('/matches/<match_id>/events', methods=['GET'])
def match_events(match_id):
    """Timeline of goals and cards for one match."""
    match = MatchService.get_match(match_id)
    events = MatchEventService.list_events(match.id)
    return jsonify({'items': [serialize_event(event) for event in events]})


@api_bp.route('/stats/leaders', methods=['GET'])
def stat_leaders():
    """Top scorers (or most booked players) for a league or division."""
    stat = request.args.get('stat', 'goals')
    limit = min(parse_int(request.args.get('limit'), 'limit', minimum=1) or 10, 50)

    leaders = MatchEventService.leaders(
        stat=stat,
        league_id=request.args.get('league_id'),
        division_id=request.args.get('division_id'),
        limit=limit,
    )
    return jsonify({'items': [serialize_leader(row, stat) for row in leaders], 'stat': stat})


@api_bp.route('/cups', methods=['GET'])
def list_cups():
    cups = db.session.execute(
        select(Cup)
        .where(Cup.status != CupStatus.DRAFT)
        .order_by(Cup.created_at.desc())
    ).scalars()
    return jsonify({'items': [
        {'id': cup.id, 'name': cup.name, 'season': cup.season, 'status': cup.status.value}
        for cup in cups
    ]})


@api_bp.route('/cups/<cup_id>/standings', methods=['GET'])
def cup_standings(cup_id):
    tables = StandingsService.cup_group_tables(cup_id)
    return jsonify({'items': serialize_cup_tables(tables)})
