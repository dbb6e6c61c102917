"""System admin blueprint: user accounts and role assignment."""
from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user

from lcms.auth import admin_required
from lcms.blueprints.common.payload import json_body, parse_bool
from lcms.services.audit import log_admin_action
from lcms.services.errors import ValidationError
from lcms.services.users import UserService, serialize_user

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


@admin_bp.route('/api/users', methods=['GET'])
@admin_required
def list_users():
    users = UserService.list_users(role=request.args.get('role') or None)
    return jsonify([serialize_user(user) for user in users])


@admin_bp.route('/api/users', methods=['POST'])
@admin_required
def create_user():
    data = json_body()
    user = UserService.create_user(
        data.get('email'),
        data.get('password'),
        role=data.get('role', 'league_admin'),
        full_name=data.get('full_name'),
    )

    log_admin_action(
        user=current_user,
        action='create',
        entity_type='user',
        entity_id=user.id,
        metadata={'email': user.email, 'role': user.role.value},
    )
    return jsonify(serialize_user(user)), 201


@admin_bp.route('/api/users/<user_id>', methods=['PUT'])
@admin_required
def update_user(user_id):
    """Change a user's role, name or active flag."""
    data = json_body()
    updates = {}
    if 'role' in data:
        updates['role'] = data['role']
    if 'full_name' in data:
        updates['full_name'] = data['full_name']
    if 'is_active' in data:
        updates['active'] = parse_bool(data['is_active'])

    # An admin cannot lock themselves out
    if user_id == current_user.id and ('role' in updates or 'active' in updates):
        raise ValidationError('You cannot change your own role or active status')

    user = UserService.update_user(user_id, **updates)
    log_admin_action(
        user=current_user,
        action='update',
        entity_type='user',
        entity_id=user.id,
        metadata={key: str(value) for key, value in updates.items()},
    )
    return jsonify(serialize_user(user))


@admin_bp.route('/api/users/<user_id>/password', methods=['POST'])
@admin_required
def reset_password(user_id):
    user = UserService.set_password(user_id, json_body().get('password'))
    log_admin_action(user=current_user, action='reset_password', entity_type='user', entity_id=user.id)
    return jsonify({'message': 'Password updated'})
