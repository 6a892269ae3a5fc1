# backend/orangetv/api/routes/media.py
from __future__ import annotations

from typing import Dict, List, Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from orangetv.core.config import settings
from orangetv.core.errors import InvalidInput
from orangetv.core.security import CurrentSession, get_current_user
from orangetv.crud import media as media_crud
from orangetv.db.session import get_db
from orangetv.schemas.media import (
    FavoriteOut,
    FavoriteSaveIn,
    PlayRecordOut,
    PlayRecordSaveIn,
    SearchKeywordIn,
    SkipConfigOut,
    SkipConfigSaveIn,
)
from orangetv.schemas.social import StatusOut
from orangetv.security.sanitizer import InputSanitizer

router = APIRouter(prefix="/api", tags=["media"])


# ---- play records ----

@router.get("/playrecords", response_model=Dict[str, PlayRecordOut])
def list_play_records(
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    return media_crud.get_play_records(db, session.username)


@router.post("/playrecords", response_model=StatusOut)
def save_play_record(
    payload: PlayRecordSaveIn,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    media_crud.set_play_record(db, session.username, payload.key, payload.record)
    return StatusOut()


@router.delete("/playrecords", response_model=StatusOut)
def delete_play_records(
    key: Optional[str] = Query(default=None, max_length=255),
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    """Delete one record by key, or all of them when no key is given."""
    media_crud.delete_play_record(db, session.username, key)
    return StatusOut()


# ---- favorites ----

@router.get("/favorites", response_model=Union[Dict[str, FavoriteOut], Optional[FavoriteOut]])
def get_favorites(
    key: Optional[str] = Query(default=None, max_length=255),
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    favorites = media_crud.get_favorites(db, session.username)
    if key is not None:
        return favorites.get(key)
    return favorites


@router.post("/favorites", response_model=StatusOut)
def save_favorite(
    payload: FavoriteSaveIn,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    media_crud.set_favorite(db, session.username, payload.key, payload.favorite)
    return StatusOut()


@router.delete("/favorites", response_model=StatusOut)
def delete_favorites(
    key: Optional[str] = Query(default=None, max_length=255),
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    media_crud.delete_favorite(db, session.username, key)
    return StatusOut()


# ---- search history ----

@router.get("/searchhistory", response_model=List[str])
def get_search_history(
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    return media_crud.get_search_history(db, session.username, limit=settings.SEARCH_HISTORY_LIMIT)


@router.post("/searchhistory", response_model=List[str])
def add_search_history(
    payload: SearchKeywordIn,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    try:
        keyword = InputSanitizer.sanitize_string(payload.keyword, max_length=255).strip()
    except ValueError as e:
        raise InvalidInput(str(e))
    if not keyword:
        raise InvalidInput("Keyword cannot be empty")

    media_crud.add_search_history(db, session.username, keyword, limit=settings.SEARCH_HISTORY_LIMIT)
    return media_crud.get_search_history(db, session.username, limit=settings.SEARCH_HISTORY_LIMIT)


@router.delete("/searchhistory", response_model=StatusOut)
def delete_search_history(
    keyword: Optional[str] = Query(default=None, max_length=255),
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    media_crud.delete_search_history(db, session.username, keyword)
    return StatusOut()


# ---- skip configs ----

@router.get("/skipconfigs", response_model=Union[Dict[str, SkipConfigOut], Optional[SkipConfigOut]])
def get_skip_configs(
    source: Optional[str] = Query(default=None, max_length=128),
    id: Optional[str] = Query(default=None, max_length=128),
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    if source and id:
        return media_crud.get_skip_config(db, session.username, source, id)
    return media_crud.get_skip_configs(db, session.username)


@router.post("/skipconfigs", response_model=StatusOut)
def save_skip_config(
    payload: SkipConfigSaveIn,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    media_crud.set_skip_config(db, session.username, payload.source, payload.id_video, payload.config)
    return StatusOut()


@router.delete("/skipconfigs", response_model=StatusOut)
def delete_skip_config(
    source: str = Query(min_length=1, max_length=128),
    id: str = Query(min_length=1, max_length=128),
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    media_crud.delete_skip_config(db, session.username, source, id)
    return StatusOut()
