"""Account creation and credential checks."""
from __future__ import annotations

import hashlib
import hmac
import logging
import secrets

from sqlalchemy import select
from sqlalchemy.orm import Session

from .database import translate_db_errors
from .errors import AuthenticationFailed, ValidationFailed
from .models import Role, User, UserSession
from .sequences import ROLE_ENTITIES, next_id

logger = logging.getLogger(__name__)

_ITERATIONS = 120_000


def hash_password(password: str, *, salt: str | None = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), _ITERATIONS)
    return f"pbkdf2_sha256${_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, expected = encoded.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations)
    )
    return hmac.compare_digest(digest.hex(), expected)


def create_user(session: Session, username: str, password: str, role: Role | str) -> User:
    """Create a user and allocate its role scoped ID exactly once.

    Technicians get ``T001``-style IDs, pilots ``P001``, customers a bare
    integer; management accounts carry no role ID.
    """

    username = (username or "").strip()
    if not username:
        raise ValidationFailed("username is required")
    if not password:
        raise ValidationFailed("password is required")
    if not isinstance(role, Role):
        try:
            role = Role.parse(role)
        except ValueError as exc:
            raise ValidationFailed(str(exc)) from exc

    with translate_db_errors("create_user"):
        with session.begin_nested():
            if session.scalar(select(User.user_id).where(User.username == username)) is not None:
                raise ValidationFailed(f"username '{username}' already exists")
            entity = ROLE_ENTITIES.get(role)
            user = User(
                username=username,
                password_hash=hash_password(password),
                role=role,
                role_id=next_id(session, entity) if entity else None,
            )
            session.add(user)

    logger.info("Created %s account %s (%s)", role.value, username, user.role_id or "-")
    return user


def authenticate(session: Session, username: str, password: str) -> UserSession:
    """Return the authenticated ``(user_id, role, role_id)`` triple."""

    user = session.scalar(select(User).where(User.username == (username or "").strip()))
    if user is None or not verify_password(password or "", user.password_hash):
        logger.warning("Failed login for %s", username)
        raise AuthenticationFailed("invalid username or password")
    return UserSession(user_id=str(user.user_id), role=user.role, role_id=user.role_id or "")


__all__ = ["hash_password", "verify_password", "create_user", "authenticate"]
