from __future__ import annotations

import logging
import secrets

import bcrypt

from billbook.settings import Settings

logger = logging.getLogger(__name__)

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


class AuthService:
    """Checks login credentials against the single configured admin account."""

    def __init__(self, config: Settings) -> None:
        self.config = config

    def _password_matches(self, password: str) -> bool:
        expected = self.config.admin_password.strip()
        if expected.startswith(_BCRYPT_PREFIXES):
            try:
                return bcrypt.checkpw(password.encode(), expected.encode())
            except ValueError:
                logger.error("BILLBOOK_ADMIN_PASSWORD looks like a bcrypt hash but is malformed")
                return False
        return secrets.compare_digest(password.encode(), expected.encode())

    def authenticate(self, email: str, password: str) -> str | None:
        """Return the owner id for valid credentials, else None."""
        expected_email = self.config.admin_email.strip().lower()
        if not expected_email or not self.config.admin_password.strip():
            logger.warning("Login rejected: admin credentials are not configured")
            return None

        email_ok = secrets.compare_digest(email.strip().lower().encode(), expected_email.encode())
        password_ok = self._password_matches(password.strip())
        if not (email_ok and password_ok):
            logger.info("Login rejected for email=%s", email.strip().lower())
            return None

        logger.info("Admin logged in")
        return self.config.admin_user_id
