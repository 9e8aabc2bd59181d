"""Password authentication and bearer-token sessions.

Only students sign up; admin accounts are created from the CLI. Passwords
are stored as PBKDF2-HMAC-SHA256 digests with a per-user salt.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import structlog

from eduportal.config.app_config import load_app_config
from eduportal.db import profiles_repository
from eduportal.db.database import NotFoundError
from eduportal.db.profiles_repository import ProfileRecord

logger = structlog.get_logger(__name__)

PBKDF2_ITERATIONS = 120_000
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class AuthError(Exception):
    """Authentication failure with a user-facing message."""

    pass


class InvalidCredentialsError(AuthError):
    def __init__(self):
        super().__init__("E-mail ou senha inválidos. Por favor, tente novamente.")


class AlreadyRegisteredError(AuthError):
    def __init__(self):
        super().__init__("Este e-mail já está cadastrado. Tente fazer login.")


class WeakPasswordError(AuthError):
    def __init__(self, min_length: int):
        self.min_length = min_length
        super().__init__(f"A senha deve ter pelo menos {min_length} caracteres.")


class InactiveAccountError(AuthError):
    def __init__(self):
        super().__init__("Sua conta está inativa. Procure a administração.")


@dataclass
class AuthSession:
    """Issued bearer token."""

    token: str
    profile: ProfileRecord
    expires_at: str


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _format(ts: datetime) -> str:
    return ts.strftime(TIMESTAMP_FORMAT)


def hash_password(password: str, salt: str | None = None) -> tuple[str, str]:
    """Return (hex digest, hex salt)."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), bytes.fromhex(salt), PBKDF2_ITERATIONS
    )
    return digest.hex(), salt


def verify_password(password: str, password_hash: str, salt: str) -> bool:
    candidate, _ = hash_password(password, salt)
    return hmac.compare_digest(candidate, password_hash)


def _check_password(password: str) -> None:
    min_length = load_app_config().auth.min_password_length
    if len(password) < min_length:
        raise WeakPasswordError(min_length)


def _issue_session(profile: ProfileRecord) -> AuthSession:
    ttl = timedelta(hours=load_app_config().auth.session_ttl_hours)
    token = secrets.token_urlsafe(32)
    expires_at = _format(_now() + ttl)
    profiles_repository.insert_session(token, profile.id, expires_at)
    return AuthSession(token=token, profile=profile, expires_at=expires_at)


def register_user(name: str, email: str, password: str, role: str = "student") -> ProfileRecord:
    """Create a new profile with credentials.

    An email already on the roster is refused even when that profile has no
    password yet; its first password is set by an admin via set_password.

    Raises:
        WeakPasswordError: Password too short
        AlreadyRegisteredError: A profile with this email exists
    """
    _check_password(password)
    email = email.strip().lower()

    if profiles_repository.get_profile_by_email(email) is not None:
        raise AlreadyRegisteredError()
    try:
        profile = profiles_repository.insert_profile(
            name=name.strip() or email.split("@")[0], email=email, role=role
        )
    except sqlite3.IntegrityError as e:
        raise AlreadyRegisteredError() from e

    password_hash, salt = hash_password(password)
    profiles_repository.set_credentials(profile.id, password_hash, salt)
    logger.info("auth.registered", user_id=profile.id, role=profile.role)
    return profile


def set_password(user_id: str, password: str) -> None:
    """Set or replace a profile's password (admin action).

    Raises:
        WeakPasswordError: Password too short
        NotFoundError: Unknown profile
    """
    _check_password(password)
    if profiles_repository.get_profile(user_id) is None:
        raise NotFoundError("profile", user_id)
    password_hash, salt = hash_password(password)
    profiles_repository.set_credentials(user_id, password_hash, salt)
    logger.info("auth.password_set", user_id=user_id)


def sign_up(email: str, password: str, name: str = "") -> ProfileRecord:
    """Student self-registration."""
    return register_user(name=name, email=email, password=password, role="student")


def sign_in(email: str, password: str) -> AuthSession:
    """Check credentials and issue a session token.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
        InactiveAccountError: Account deactivated by an admin
    """
    profile = profiles_repository.get_profile_by_email(email.strip())
    credentials = profiles_repository.get_credentials(profile.id) if profile else None
    if profile is None or credentials is None or not verify_password(password, *credentials):
        logger.info("auth.sign_in_failed")
        raise InvalidCredentialsError()
    if profile.status != "active":
        raise InactiveAccountError()

    session = _issue_session(profile)
    logger.info("auth.signed_in", user_id=profile.id)
    return session


def authenticate(token: str) -> ProfileRecord | None:
    """Resolve a bearer token to its profile (None when unknown or expired)."""
    if not token:
        return None
    return profiles_repository.get_session_user(token, _format(_now()))


def sign_out(token: str) -> bool:
    return profiles_repository.delete_session(token)
