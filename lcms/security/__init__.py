"""Security package for LCMS."""

from lcms.security.config import (
    configure_secure_session,
    configure_security_headers,
    validate_input_length,
)

__all__ = [
    'configure_security_headers',
    'configure_secure_session',
    'validate_input_length',
]
