from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from orangetv.core.config import settings
from orangetv.core.credentials import CredentialCodec
from orangetv.core.errors import AccountBanned, Unauthorized
from orangetv.db.session import get_db


# Argon2 parameters, same cost profile for every stored credential
_ph = PasswordHasher(
    time_cost=2,
    memory_cost=102400,  # ~100 MB
    parallelism=8,
    hash_len=32,
    salt_len=16,
)


def hash_password(password: str) -> str:
    return _ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def get_codec() -> CredentialCodec:
    return CredentialCodec(settings.PASSWORD)


def set_session_cookie(response: Response, token: str) -> None:
    # Readable by the client (PWA), lax so top-level navigation keeps it
    expires = datetime.now(timezone.utc) + timedelta(days=settings.SESSION_TTL_DAYS)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        expires=expires,
        path="/",
        samesite="lax",
        httponly=False,
        secure=False,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        samesite="lax",
        httponly=False,
        secure=False,
    )


@dataclass(frozen=True)
class CurrentSession:
    role: str
    username: str | None = None

    @property
    def is_privileged(self) -> bool:
        return self.role in ("owner", "admin")


def get_current_session(
    request: Request,
    db: Session = Depends(get_db),
    codec: CredentialCodec = Depends(get_codec),
) -> CurrentSession:
    """
    Dependency: read the session cookie, verify it and resolve the role.
    Only the username is covered by the signature, so the role carried in
    the cookie is ignored and looked up again. Account sessions also need
    the account to still exist and not be banned.
    Raises: Unauthorized / AccountBanned / StorageFailure
    """
    from orangetv.crud.accounts import user_exists  # avoid circular imports
    from orangetv.security.verifier import is_banned, is_owner, load_admin_config, resolve_role

    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        raise Unauthorized("Not logged in")

    claims = codec.parse(token)
    if claims.username is None:
        return CurrentSession(role="user")

    username = claims.username
    if not is_owner(username) and not user_exists(db, username):
        raise Unauthorized("Account no longer exists")

    config = load_admin_config(db)
    if is_banned(db, username, config):
        raise AccountBanned()

    return CurrentSession(role=resolve_role(db, username, config), username=username)


def get_current_user(session: CurrentSession = Depends(get_current_session)) -> CurrentSession:
    """Dependency: like get_current_session but requires an account session."""
    if not session.username:
        raise Unauthorized("Not logged in")
    return session
