"""Authentication helpers shared across blueprints."""

from __future__ import annotations

from functools import wraps
from typing import Callable, TypeVar, cast

from flask import jsonify
from flask_login import current_user

from lcms.models import UserRole

F = TypeVar('F', bound=Callable[..., object])


def _unauthenticated():
    return jsonify({'error': 'Authentication required'}), 401


def _inactive():
    return jsonify({'error': 'Your account is inactive. Please contact your administrator.'}), 403


def role_required(*required_roles: UserRole | str):
    """Decorator factory to require specific roles. Admins always pass."""
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                return _unauthenticated()

            if not current_user.is_active:
                return _inactive()

            if not current_user.has_role(UserRole.ADMIN, *required_roles):
                return jsonify({'error': 'You do not have permission to perform this action'}), 403

            return func(*args, **kwargs)
        return cast(F, wrapper)
    return decorator


def admin_required(func: F) -> F:
    """Decorator to ensure the current user is a system admin."""
    return role_required()(func)


def league_admin_required(func: F) -> F:
    return role_required(UserRole.LEAGUE_ADMIN)(func)


def cup_admin_required(func: F) -> F:
    return role_required(UserRole.CUP_ADMIN)(func)


def active_user_required(func: F) -> F:
    """Decorator to ensure the current user is logged in and active."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            return _unauthenticated()

        if not current_user.is_active:
            return _inactive()

        return func(*args, **kwargs)

    return cast(F, wrapper)


__all__ = [
    'role_required',
    'admin_required',
    'league_admin_required',
    'cup_admin_required',
    'active_user_required',
]
