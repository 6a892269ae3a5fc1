"""
Password and role verification.

Three identity classes:
- the owner, defined by the USERNAME/PASSWORD deployment settings; never
  depends on the database (its account row is provisioned lazily)
- shared-password mode (STORAGE_TYPE=localstorage): no usernames, only the
  deployment PASSWORD is checked
- ordinary accounts stored in the database

Unknown usernames and wrong passwords fail identically.
"""
from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from orangetv.core.config import settings
from orangetv.core.errors import AccountBanned, ServiceError, Unauthorized
from orangetv.crud import accounts as accounts_crud
from orangetv.crud.admin_config import get_admin_config
from orangetv.schemas.config import AdminConfig

logger = logging.getLogger(__name__)

ELEVATED_ROLES = ("admin",)


@dataclass(frozen=True)
class Verification:
    ok: bool
    role: str
    username: str | None = None


def _same(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def is_owner(username: str) -> bool:
    return bool(settings.USERNAME) and username == settings.USERNAME


def load_admin_config(db: Session) -> AdminConfig:
    return get_admin_config(db) or AdminConfig()


def resolve_role(db: Session, username: str, config: AdminConfig | None = None) -> str:
    if is_owner(username):
        return "owner"
    config = config or load_admin_config(db)
    entry = config.find_user(username)
    if entry is not None and entry.role in ELEVATED_ROLES:
        return entry.role
    return "user"


def is_banned(db: Session, username: str, config: AdminConfig | None = None) -> bool:
    if is_owner(username):
        return False
    config = config or load_admin_config(db)
    entry = config.find_user(username)
    return bool(entry and entry.banned)


def verify_shared_secret(password: str) -> Verification:
    """Shared-password mode. With no PASSWORD configured access is open."""
    if not settings.PASSWORD:
        return Verification(ok=True, role="user")
    if not _same(password, settings.PASSWORD):
        raise Unauthorized("Wrong password")
    return Verification(ok=True, role="user")


def ensure_owner_account(db: Session, username: str, password: str) -> None:
    """Best-effort: create the owner's account row if it is missing."""
    try:
        if not accounts_crud.user_exists(db, username):
            accounts_crud.register(db, username, password)
            logger.info("Created database record for owner %r", username)
    except ServiceError as exc:
        # owner identity does not depend on the database
        logger.error("Failed to sync database record for owner %r: %s", username, exc)


def verify(db: Session, username: str, password: str) -> Verification:
    """
    Check credentials and resolve the role.
    Raises: Unauthorized, AccountBanned, StorageFailure
    """
    if is_owner(username):
        if not settings.PASSWORD or not _same(password, settings.PASSWORD):
            raise Unauthorized()
        ensure_owner_account(db, username, password)
        return Verification(ok=True, role="owner", username=username)

    config = load_admin_config(db)
    if is_banned(db, username, config):
        raise AccountBanned()

    if not accounts_crud.verify_credential(db, username, password):
        raise Unauthorized()

    return Verification(ok=True, role=resolve_role(db, username, config), username=username)
