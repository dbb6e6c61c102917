"""Audit logging service for security and administrative events."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from flask import current_app, has_request_context, request
from sqlalchemy.exc import SQLAlchemyError

from lcms.extensions import db
from lcms.models import AuditLog

if TYPE_CHECKING:
    from lcms.models import User


def _remote_addr() -> str | None:
    return request.remote_addr if has_request_context() else None


def log_security_event(
    user: User,
    action: str,
    details: str | None = None,
    metadata: dict[str, Any] | None = None
) -> None:
    """
    Log a security-related event to the audit log.

    Args:
        user: User who performed the action
        action: Action performed (e.g., "login_success", "logout")
        details: Optional additional details
        metadata: Additional metadata to store
    """
    meta = dict(metadata or {})
    meta['ip_address'] = _remote_addr()
    if details:
        meta['details'] = details

    _write(AuditLog(
        user_id=user.id,
        action=action,
        entity_type='user',
        entity_id=user.id,
        meta=meta
    ), 'security event')


def log_admin_action(
    user: User | None,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None
) -> None:
    """
    Log an administrative action.

    Args:
        user: User who performed the action (None for CLI runs)
        action: Action performed (e.g., "generate_fixtures", "delete")
        entity_type: Type of entity affected
        entity_id: ID of entity affected
        metadata: Additional metadata
    """
    meta = dict(metadata or {})
    meta['ip_address'] = _remote_addr()

    _write(AuditLog(
        user_id=user.id if user is not None else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta=meta
    ), 'admin action')


def _write(entry: AuditLog, label: str) -> None:
    try:
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError as e:
        # Don't fail the request if audit logging fails
        db.session.rollback()
        current_app.logger.error(f"Failed to log {label}: {e}")


__all__ = ["log_security_event", "log_admin_action"]
