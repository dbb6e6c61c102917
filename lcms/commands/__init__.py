"""CLI commands for LCMS."""

from .fixtures import fixture_commands
from .seed import seed_commands
from .standings import standings_commands
from .user import user_commands


def register_commands(app):
    """Register all CLI command groups with the Flask app."""
    app.cli.add_command(fixture_commands)
    app.cli.add_command(seed_commands)
    app.cli.add_command(standings_commands)
    app.cli.add_command(user_commands)
