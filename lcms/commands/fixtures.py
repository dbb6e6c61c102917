"""Fixture generation CLI commands."""

from datetime import datetime

import click
from flask.cli import with_appcontext

from lcms.logic.round_robin import rounds
from lcms.services.audit import log_admin_action
from lcms.services.errors import LeagueError
from lcms.services.scheduler import FixtureService, generate_division_schedule


@click.group('fixtures')
def fixture_commands():
    """Round-robin fixture commands."""
    pass


@fixture_commands.command('generate')
@click.option('--division', 'division_id', required=True, help='Division id')
@click.option('--start-date', type=click.DateTime(formats=['%Y-%m-%d', '%Y-%m-%dT%H:%M']), default=None,
              help='Kick-off of round 1 (YYYY-MM-DD)')
@click.option('--days-between-rounds', type=click.IntRange(min=0), default=None,
              help='Days between rounds (default: FIXTURE_DAYS_BETWEEN_ROUNDS)')
@click.option('--keep/--replace', 'keep', default=False,
              help='Refuse instead of replacing existing matches')
@click.option('--balance', is_flag=True, help='Alternate home and away for the fixed team')
@with_appcontext
def generate(division_id, start_date: datetime | None, days_between_rounds, keep, balance):
    """Generate a round-robin schedule for a division.

    Example:
        flask fixtures generate --division <id> --start-date 2026-08-01
    """
    try:
        matches = generate_division_schedule(
            division_id,
            start_at=start_date,
            days_between_rounds=days_between_rounds,
            replace=not keep,
            balance=balance,
        )
    except LeagueError as e:
        click.echo(click.style(f'Error: {e.message}', fg='red'))
        return

    log_admin_action(None, 'generate_fixtures', 'division', division_id, {'matches': len(matches), 'source': 'cli'})

    by_round = rounds(matches)
    click.echo(click.style(
        f'✓ Generated {len(matches)} matches over {len(by_round)} rounds', fg='green'
    ))


@fixture_commands.command('generate-cup')
@click.option('--cup', 'cup_id', required=True, help='Cup id')
@click.option('--balance', is_flag=True, help='Alternate home and away for the fixed team')
@with_appcontext
def generate_cup(cup_id, balance):
    """Generate the group-stage round robin for every group of a cup."""
    try:
        matches = FixtureService.generate_cup_group_fixtures(cup_id, balance=balance)
    except LeagueError as e:
        click.echo(click.style(f'Error: {e.message}', fg='red'))
        return

    log_admin_action(None, 'generate_fixtures', 'cup', cup_id, {'matches': len(matches), 'source': 'cli'})
    click.echo(click.style(f'✓ Generated {len(matches)} group matches', fg='green'))


@fixture_commands.command('clear')
@click.option('--division', 'division_id', required=True, help='Division id')
@click.confirmation_option(prompt='Delete every match in this division?')
@with_appcontext
def clear(division_id):
    """Delete all matches in a division."""
    try:
        deleted = FixtureService.clear_division_fixtures(division_id)
    except LeagueError as e:
        click.echo(click.style(f'Error: {e.message}', fg='red'))
        return

    click.echo(click.style(f'✓ Deleted {deleted} matches', fg='green'))
