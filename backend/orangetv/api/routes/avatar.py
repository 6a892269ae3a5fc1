# backend/orangetv/api/routes/avatar.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from orangetv.core.config import settings
from orangetv.core.errors import InvalidInput, PermissionDenied
from orangetv.core.security import CurrentSession, get_current_user
from orangetv.crud import accounts as accounts_crud
from orangetv.db.session import get_db
from orangetv.schemas.avatar import AvatarIn, AvatarOut
from orangetv.security.sanitizer import InputSanitizer

router = APIRouter(prefix="/api/avatar", tags=["avatar"])


def _ensure_can_edit(session: CurrentSession, target: str) -> None:
    if target != session.username and not session.is_privileged:
        raise PermissionDenied()


@router.get("", response_model=AvatarOut)
def get_avatar(
    user: Optional[str] = Query(default=None, max_length=64),
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    # any signed-in user may see any avatar (chat, friends list)
    return AvatarOut(avatar=accounts_crud.get_avatar(db, user or session.username))


@router.post("")
def upload_avatar(
    payload: AvatarIn,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    target = payload.target_user or session.username
    _ensure_can_edit(session, target)

    try:
        avatar = InputSanitizer.validate_avatar(payload.avatar, settings.AVATAR_MAX_BYTES)
    except ValueError as e:
        raise InvalidInput(str(e))

    accounts_crud.set_avatar(db, target, avatar)
    return {"success": True, "message": "Avatar updated"}


@router.delete("")
def delete_avatar(
    user: Optional[str] = Query(default=None, max_length=64),
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    target = user or session.username
    _ensure_can_edit(session, target)

    accounts_crud.delete_avatar(db, target)
    return {"success": True, "message": "Avatar deleted"}
