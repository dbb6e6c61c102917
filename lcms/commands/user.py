"""User management CLI commands."""

import click
from flask.cli import with_appcontext

from lcms.models import UserRole
from lcms.services.errors import LeagueError
from lcms.services.users import UserService


@click.group('user')
def user_commands():
    """User management commands."""
    pass


@user_commands.command('create')
@click.option('--email', required=True, help='User email')
@click.option('--password', required=True, help='User password')
@click.option('--name', 'full_name', default=None, help='Full name')
@click.option('--role', type=click.Choice([r.value for r in UserRole]), default=UserRole.ADMIN.value, show_default=True)
@with_appcontext
def create_user(email, password, full_name, role):
    """Create a user."""
    try:
        user = UserService.create_user(email, password, role=role, full_name=full_name)
    except LeagueError as e:
        click.echo(click.style(f'Error: {e.message}', fg='red'))
        return

    click.echo(click.style('User created successfully!', fg='green'))
    click.echo(f'  Email: {user.email}')
    click.echo(f'  Role: {role}')


@user_commands.command('set-password')
@click.option('--email', required=True, help='User email')
@click.option('--password', required=True, help='New password')
@with_appcontext
def set_password(email, password):
    """Set or reset a user's password."""
    user = UserService.find_by_email(email)
    if not user:
        click.echo(click.style(f'Error: No user {email} found', fg='red'))
        return

    try:
        UserService.set_password(user.id, password)
    except LeagueError as e:
        click.echo(click.style(f'Error: {e.message}', fg='red'))
        return
    click.echo(click.style('Password updated.', fg='green'))


@user_commands.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = UserService.list_users()
    if not users:
        click.echo('No users found.')
        return

    for user in users:
        status = 'active' if user.active else 'inactive'
        click.echo(f'{user.email:<40} {user.role.value:<16} {status}')
