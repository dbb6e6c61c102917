"""Data seeding CLI commands."""

import random
from datetime import date, datetime, timedelta

import click
from flask.cli import with_appcontext

from lcms.extensions import db
from lcms.models import CupStatus, MatchEventType, MatchStatus, PlayerPosition, SportType, User, UserRole
from lcms.services.cup import CupService
from lcms.services.league import DivisionService, LeagueService, TeamService
from lcms.services.matches import MatchService
from lcms.services.players import MatchEventService, PlayerService
from lcms.services.scheduler import FixtureService

TEAM_NAMES = [
    'Harbour City', 'Northbridge Rovers', 'Valley United', 'Riverside Athletic',
    'Eastfield Town', 'Westgate Wanderers', 'Hillcrest FC', 'Southport Albion',
    'Kingsway Rangers', 'Oakmere Borough', 'Lakeside Celtic', 'Ironworks United',
    'Marston Vale', 'Brookfield City', 'Ashford Athletic', 'Redcliff Rovers',
]

SQUAD_POSITIONS = [
    PlayerPosition.GOALKEEPER, PlayerPosition.DEFENDER, PlayerPosition.DEFENDER,
    PlayerPosition.MIDFIELDER, PlayerPosition.MIDFIELDER, PlayerPosition.FORWARD,
]
FIRST_NAMES = ['Sam', 'Alex', 'Jordan', 'Chris', 'Morgan', 'Taylor', 'Jamie', 'Robin']
LAST_NAMES = ['Reid', 'Okafor', 'Silva', 'Novak', 'Hughes', 'Mensah', 'Larsen', 'Costa']


@click.group('seed')
def seed_commands():
    """Data seeding commands."""
    pass


@seed_commands.command('demo')
@click.option('--teams', default=8, type=click.IntRange(2, len(TEAM_NAMES)), help='Teams in the division (default: 8)')
@click.option('--cup-teams', default=8, type=click.IntRange(2, len(TEAM_NAMES)), help='Teams in the cup (default: 8)')
@click.option('--played-rounds', default=2, help='Rounds to fill with random results (default: 2)')
@click.option('--seed', 'random_seed', default=None, type=int, help='Random seed for repeatable data')
@with_appcontext
def seed_demo(teams, cup_teams, played_rounds, random_seed):
    """Seed a demo league and cup.

    Creates:
    - Demo admin, match official and team manager accounts
    - A league with one division, its teams, squads and a full round robin
    - Random results and goal events for the first rounds, with the table recalculated
    - A cup with registered teams, a random group draw and group fixtures

    Example:
        flask seed demo --teams 10 --seed 7
    """
    rng = random.Random(random_seed)

    try:
        click.echo('Creating demo users...')
        official = _ensure_user('official@example.com', 'Demo Official', UserRole.MATCH_OFFICIAL)
        _ensure_user('admin@example.com', 'Demo Admin', UserRole.ADMIN)
        manager = _ensure_user('manager@example.com', 'Demo Manager', UserRole.TEAM_MANAGER)
        db.session.commit()

        click.echo('Creating demo league...')
        today = date.today()
        league = LeagueService.create_league(
            name='Demo Football League',
            sport=SportType.FOOTBALL,
            season_start_date=today,
            season_end_date=today + timedelta(days=300),
        )
        division = DivisionService.create_division(league.id, 'Premier Division', tier=1, max_teams=max(teams, 16))
        squads = {}
        for index, name in enumerate(TEAM_NAMES[:teams]):
            team = TeamService.create_team(
                division.id,
                name,
                home_venue=f'{name} Ground',
                manager_id=manager.id if index == 0 else None,
            )
            squads[team.id] = _seed_squad(team.id, rng)

        click.echo('Generating fixtures...')
        kickoff = datetime.combine(today, datetime.min.time()).replace(hour=15)
        matches = FixtureService.generate_division_fixtures(division.id, start_at=kickoff)

        click.echo('Recording results...')
        for match in matches:
            match.referee_id = official.id
        db.session.commit()
        for match in matches:
            if match.round_number <= played_rounds:
                home_score, away_score = rng.randint(0, 4), rng.randint(0, 3)
                _seed_goals(match, match.home_team_id, home_score, squads, rng)
                _seed_goals(match, match.away_team_id, away_score, squads, rng)
                MatchService.record_result(match.id, MatchStatus.COMPLETED, home_score, away_score)

        click.echo('Creating demo cup...')
        cup = CupService.create_cup(
            name='Demo Cup',
            season=str(today.year),
            total_teams=cup_teams,
            teams_per_group=min(4, cup_teams),
        )
        for name in TEAM_NAMES[:cup_teams]:
            CupService.register_team(cup.id, name)
        CupService.draw_groups(cup.id, mode='random', rng=rng)
        FixtureService.generate_cup_group_fixtures(cup.id)
        CupService.set_status(cup.id, CupStatus.GROUP_STAGE)

        click.echo(click.style('✓ Demo data seeded successfully!', fg='green'))
        click.echo(f'  League: {league.name} ({league.id})')
        click.echo(f'  Division: {division.name} ({division.id}), {len(matches)} matches')
        click.echo(f'  Cup: {cup.name} ({cup.id})')
        click.echo('  Logins: admin@example.com / official@example.com / manager@example.com (password: demo1234)')

    except Exception as e:
        db.session.rollback()
        click.echo(click.style(f'Error seeding demo data: {str(e)}', fg='red'))


def _ensure_user(email: str, full_name: str, role: UserRole) -> User:
    user = db.session.query(User).filter_by(email=email).first()
    if user:
        return user

    user = User(email=email, full_name=full_name, role=role)
    user.set_password('demo1234')
    db.session.add(user)
    db.session.flush()
    return user


def _seed_squad(team_id: str, rng: random.Random) -> list[str]:
    squad = []
    for number, position in enumerate(SQUAD_POSITIONS, start=1):
        player = PlayerService.create_player(
            team_id,
            f'{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}',
            jersey_number=number,
            position=position,
        )
        squad.append(player.id)
    return squad


def _seed_goals(match, team_id: str, goals: int, squads: dict, rng: random.Random) -> None:
    for _ in range(goals):
        MatchEventService.record_event(
            match.id,
            team_id,
            rng.choice(squads[team_id][1:]),
            MatchEventType.GOAL,
            rng.randint(1, 90),
        )
