"""Authentication blueprint: session login for the JSON API."""

from __future__ import annotations

from datetime import datetime, timezone

from flask import Blueprint, jsonify, session
from flask_login import current_user, login_user, logout_user
from flask_wtf import FlaskForm
from flask_wtf.csrf import generate_csrf
from wtforms import BooleanField, PasswordField, StringField
from wtforms.validators import DataRequired, Email

from lcms.auth import active_user_required
from lcms.extensions import db, limiter
from lcms.services.audit import log_security_event
from lcms.services.users import UserService, serialize_user


class LoginForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField("Password", validators=[DataRequired()])
    remember_me = BooleanField("Remember me")


auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/csrf-token", methods=["GET"])
def csrf_token():
    """Token for the X-CSRFToken header on later writes."""
    return jsonify({'csrf_token': generate_csrf()})


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return jsonify({'error': 'Invalid login data', 'fields': form.errors}), 400

    email = form.email.data.strip().lower()
    user = UserService.find_by_email(email)

    if not user or not user.check_password(form.password.data):
        if user:
            log_security_event(user, "login_failed", "Invalid password")
        return jsonify({'error': 'Invalid email or password'}), 401

    if not user.is_active:
        return jsonify({'error': 'Account is inactive. Contact your administrator.'}), 403

    user.last_login_at = datetime.now(timezone.utc)
    db.session.commit()
    log_security_event(user, "login_success", "User logged in successfully")

    login_user(user, remember=form.remember_me.data)
    session["user_role"] = user.role.value
    return jsonify({'user': serialize_user(user)})


@auth_bp.route("/logout", methods=["POST"])
def logout():
    if current_user.is_authenticated:
        log_security_event(current_user, "logout")
        logout_user()
    session.clear()
    return jsonify({'success': True})


@auth_bp.route("/me", methods=["GET"])
@active_user_required
def me():
    return jsonify({'user': serialize_user(current_user)})
