"""Domain exceptions raised by the service layer.

Blueprints do not catch these individually; ``create_app`` registers a single
handler for :class:`LeagueError` that maps ``status_code`` to the response.
"""

from __future__ import annotations


class LeagueError(Exception):
    """Base class for errors the API reports back to the caller."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {'error': self.message}


class ValidationError(LeagueError):
    """Raised when input is rejected before any write happens."""

    status_code = 400


class FixtureValidationError(ValidationError):
    """Raised for an unusable participant list or group size."""


class StandingsValidationError(ValidationError):
    """Raised when a result cannot be folded into a table."""


class PrerequisiteError(LeagueError):
    """Raised when an operation needs data that is not in place yet."""

    status_code = 409


class NotFoundError(LeagueError):
    status_code = 404


__all__ = [
    'LeagueError',
    'ValidationError',
    'FixtureValidationError',
    'StandingsValidationError',
    'PrerequisiteError',
    'NotFoundError',
]
