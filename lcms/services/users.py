"""User account management shared by the admin API and the CLI."""
from __future__ import annotations

from typing import Any

from flask import current_app
from sqlalchemy import func, select

from lcms.extensions import db
from lcms.models import User, UserRole
from lcms.services.errors import NotFoundError, PrerequisiteError, ValidationError

MIN_PASSWORD_LENGTH = 8


def parse_role(value: Any) -> UserRole:
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(str(value))
    except ValueError:
        raise ValidationError(f'Invalid role: {value}')


def _check_password(password: Any) -> str:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
    return password


class UserService:

    @staticmethod
    def find_by_email(email: str) -> User | None:
        email = (email or '').strip().lower()
        return db.session.execute(
            select(User).where(func.lower(User.email) == email)
        ).scalar_one_or_none()

    @staticmethod
    def create_user(
        email: str,
        password: str,
        role: UserRole | str = UserRole.LEAGUE_ADMIN,
        full_name: str | None = None,
    ) -> User:
        """Create an active account; emails are stored lower-cased."""
        email = (email or '').strip().lower()
        if not email or '@' not in email:
            raise ValidationError('A valid email is required')
        if UserService.find_by_email(email):
            raise PrerequisiteError(f'User with email "{email}" already exists')

        user = User(email=email, full_name=full_name, role=parse_role(role), active=True)
        user.set_password(_check_password(password))
        db.session.add(user)
        db.session.commit()

        current_app.logger.info(f"Created {user.role.value} account {user.email}")
        return user

    @staticmethod
    def update_user(user_id: str, **updates: Any) -> User:
        """Change role, name or active flag."""
        user = UserService.get_user(user_id)
        if 'role' in updates:
            user.role = parse_role(updates['role'])
        if 'full_name' in updates:
            user.full_name = updates['full_name']
        if 'active' in updates:
            user.active = bool(updates['active'])
        db.session.commit()
        return user

    @staticmethod
    def set_password(user_id: str, password: str) -> User:
        user = UserService.get_user(user_id)
        user.set_password(_check_password(password))
        db.session.commit()
        return user

    @staticmethod
    def get_user(user_id: str) -> User:
        user = db.session.get(User, user_id)
        if not user:
            raise NotFoundError('User not found')
        return user

    @staticmethod
    def list_users(role: UserRole | str | None = None) -> list[User]:
        query = select(User)
        if role:
            query = query.where(User.role == parse_role(role))
        return list(db.session.execute(query.order_by(User.email)).scalars())


def serialize_user(user: User) -> dict:
    return {
        'id': user.id,
        'email': user.email,
        'full_name': user.full_name,
        'role': user.role.value if isinstance(user.role, UserRole) else str(user.role),
        'is_active': user.is_active,
        'last_login_at': user.last_login_at.isoformat() if user.last_login_at else None,
    }


__all__ = ['UserService', 'serialize_user', 'parse_role', 'MIN_PASSWORD_LENGTH']
