"""Application factory for the League & Cup Management System."""

from __future__ import annotations

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFError

from lcms.blueprints.admin import admin_bp
from lcms.blueprints.api.routes import api_bp
from lcms.blueprints.auth import auth_bp
from lcms.blueprints.cup_mgmt import cup_mgmt_bp
from lcms.blueprints.league_mgmt import league_mgmt_bp
from lcms.blueprints.manager import manager_bp
from lcms.blueprints.officials import officials_bp
from lcms.config import Config
from lcms.extensions import (
    db,
    migrate,
    login_manager,
    csrf,
    limiter,
)
from lcms.models import User
from lcms.security.config import (
    configure_security_headers,
    configure_secure_session,
    validate_input_length
)
from lcms.services.errors import LeagueError


def create_app(config_class=Config):
    """Create Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize Flask extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    # Development safety net when migrations have not been run
    if not app.config.get('SKIP_BOOTSTRAP'):
        with app.app_context():
            db.create_all()

    # Configure security
    configure_security_headers(app)
    configure_secure_session(app)
    validate_input_length(app)

    @login_manager.user_loader
    def load_user(user_id: str):
        return db.session.get(User, user_id)

    @login_manager.unauthorized_handler
    def handle_unauthorized():
        return jsonify({'error': 'Authentication required'}), 401

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(league_mgmt_bp)  # /league-management
    app.register_blueprint(cup_mgmt_bp)  # /cup-management
    app.register_blueprint(officials_bp)  # /official
    app.register_blueprint(manager_bp)  # /manager
    app.register_blueprint(admin_bp)  # /admin
    app.register_blueprint(api_bp, url_prefix='/api/v1')

    @app.teardown_appcontext
    def teardown_db(exception):
        db.session.remove()

    @app.errorhandler(LeagueError)
    def handle_league_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(CSRFError)
    def csrf_failed(error):
        return jsonify({'error': error.description}), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(413)
    def payload_too_large(error):
        return jsonify({'error': 'Payload too large'}), 413

    @app.errorhandler(429)
    def rate_limited(error):
        return jsonify({'error': f'Too many requests: {error.description}'}), 429

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Unhandled error: {error}")
        return jsonify({'error': 'Internal server error'}), 500

    # Register CLI commands
    from lcms.commands import register_commands
    register_commands(app)

    return app
