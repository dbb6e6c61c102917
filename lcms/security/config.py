"""Security headers and request limits for the JSON API."""

from flask import abort, request

MAX_PAYLOAD_BYTES = 1024 * 1024


def configure_security_headers(app):
    """Configure security headers."""

    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses."""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'no-referrer'
        # The API serves JSON only
        response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
        response.headers['Cache-Control'] = 'no-store'

        if request.is_secure:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        return response

    return app


def configure_secure_session(app):
    """Configure secure session settings."""
    app.config.setdefault('PERMANENT_SESSION_LIFETIME', 7200)  # 2 hours
    app.config.setdefault('WTF_CSRF_HEADERS', ['X-CSRFToken', 'X-CSRF-Token'])
    return app


def validate_input_length(app):
    """Reject request bodies over MAX_PAYLOAD_BYTES."""
    @app.before_request
    def limit_request_size():
        if request.content_length and request.content_length > MAX_PAYLOAD_BYTES:
            abort(413)  # Payload Too Large

    return app


__all__ = [
    'configure_security_headers',
    'configure_secure_session',
    'validate_input_length',
]
