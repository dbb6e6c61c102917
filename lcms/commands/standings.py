"""Standings CLI commands."""

import click
from flask.cli import with_appcontext

from lcms.services.errors import LeagueError
from lcms.services.standings import StandingsService


@click.group('standings')
def standings_commands():
    """Standings commands."""
    pass


@standings_commands.command('recalculate')
@click.option('--division', 'division_id', default=None, help='Division id')
@click.option('--cup', 'cup_id', default=None, help='Cup id (all groups)')
@with_appcontext
def recalculate(division_id, cup_id):
    """Rebuild a division table or a cup's group tables from completed matches."""
    if bool(division_id) == bool(cup_id):
        click.echo(click.style('Error: pass exactly one of --division or --cup', fg='red'))
        return

    try:
        if division_id:
            rows = StandingsService.recalculate_division(division_id)
            click.echo(click.style(f'✓ Recalculated {len(rows)} rows', fg='green'))
            for row in rows:
                click.echo(
                    f'{row.position:>3}. {row.team.name:<30} '
                    f'P{row.played:>3} GD{row.goal_difference:>4} Pts{row.points:>4}'
                )
        else:
            tables = StandingsService.recalculate_cup(cup_id)
            click.echo(click.style(f'✓ Recalculated {len(tables)} groups', fg='green'))
            for table in tables:
                click.echo(table['group'].group_name)
                for position, team in enumerate(table['teams'], start=1):
                    click.echo(f'  {position}. {team.name:<30} Pts{team.points:>4}')
    except LeagueError as e:
        click.echo(click.style(f'Error: {e.message}', fg='red'))
