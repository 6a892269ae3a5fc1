# backend/orangetv/api/routes/auth.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Response, status
from sqlalchemy.orm import Session

from orangetv.core.config import settings
from orangetv.core.credentials import CredentialCodec
from orangetv.core.errors import InvalidInput, PermissionDenied, ServiceError, TooManyAttempts, Unauthorized
from orangetv.core.security import (
    CurrentSession,
    clear_session_cookie,
    get_codec,
    get_current_user,
    set_session_cookie,
)
from orangetv.crud import accounts as accounts_crud
from orangetv.db.session import get_db
from orangetv.schemas.auth import ChangePasswordIn, LoginIn, LoginOut, RegisterIn
from orangetv.schemas.social import StatusOut
from orangetv.security.device_binding import check_and_bind
from orangetv.security.rate_limit import get_rate_limit_delay, is_rate_limited, record_auth_attempt
from orangetv.security.verifier import is_owner, verify, verify_shared_secret

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


def _login_shared_secret(payload: Optional[LoginIn], response: Response, codec: CredentialCodec) -> LoginOut:
    if not settings.PASSWORD:
        # open access, drop whatever cookie the client still holds
        clear_session_cookie(response)
        return LoginOut(ok=True)

    if payload is None:
        raise InvalidInput("Password is required")

    verify_shared_secret(payload.password)
    token = codec.issue(role="user", include_secret=True, shared_secret=payload.password)
    set_session_cookie(response, token)
    return LoginOut(ok=True)


@router.post("/login", response_model=LoginOut, response_model_by_alias=True)
def login(
    response: Response,
    payload: Optional[LoginIn] = Body(default=None),
    db: Session = Depends(get_db),
    codec: CredentialCodec = Depends(get_codec),
):
    if settings.password_mode:
        return _login_shared_secret(payload, response, codec)

    if payload is None or not payload.username:
        raise InvalidInput("Username is required")
    username = payload.username

    if not settings.PASSWORD:
        # sessions are signed with PASSWORD
        raise ServiceError("Server has no PASSWORD configured")

    if is_rate_limited(username):
        delay = get_rate_limit_delay(username)
        raise TooManyAttempts(f"Too many login attempts. Try again in {int(delay)} seconds.")

    try:
        result = verify(db, username, payload.password)
    except Unauthorized:
        record_auth_attempt(username, success=False)
        raise
    record_auth_attempt(username, success=True)

    if result.role == "owner":
        token = codec.issue(role="owner", username=username)
        set_session_cookie(response, token)
        return LoginOut(ok=True, username=username)

    binding = check_and_bind(db, username, payload.machine_code)

    token = codec.issue(role=result.role, username=username)
    set_session_cookie(response, token)
    logger.info("User %r logged in (device bound: %s)", username, binding.bound)
    return LoginOut(ok=True, username=username, machine_code_bound=binding.bound)


@router.post("/logout", response_model=StatusOut)
def logout(response: Response):
    clear_session_cookie(response)
    return StatusOut()


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    if settings.password_mode:
        raise PermissionDenied("Registration is not available in this storage mode")
    if is_owner(payload.username):
        raise PermissionDenied("This username is reserved")

    account = accounts_crud.register(db, payload.username, payload.password)
    return {"ok": True, "username": account.username}


@router.post("/change-password", response_model=StatusOut)
def change_password(
    payload: ChangePasswordIn,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    # owner credentials come from deployment settings
    if session.role == "owner":
        raise PermissionDenied("The owner password cannot be changed here")

    accounts_crud.change_password(db, session.username, payload.new_password)
    return StatusOut()


@router.delete("/users/{username}", response_model=StatusOut)
def delete_user(
    username: str,
    response: Response,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    if is_owner(username):
        raise PermissionDenied("The owner account cannot be deleted")
    if username != session.username and not session.is_privileged:
        raise PermissionDenied()

    accounts_crud.purge(db, username)
    if username == session.username:
        clear_session_cookie(response)
    return StatusOut()
