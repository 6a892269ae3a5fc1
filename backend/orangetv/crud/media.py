# backend/orangetv/crud/media.py
"""Per-user media tracking: play history, favorites, search history, skip markers."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orangetv.core.errors import StorageFailure
from orangetv.models.media import Favorite, PlayRecord, SearchHistory, SkipConfig
from orangetv.schemas.media import (
    FavoriteIn,
    FavoriteOut,
    PlayRecordIn,
    PlayRecordOut,
    SkipConfigIn,
    SkipConfigOut,
)

logger = logging.getLogger(__name__)


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to %s: %s", what, exc)
        raise StorageFailure(f"Failed to {what}") from exc


def _rows(db: Session, what: str, stmt) -> list:
    try:
        return list(db.execute(stmt).scalars())
    except SQLAlchemyError as exc:
        logger.error("Failed to %s: %s", what, exc)
        raise StorageFailure(f"Failed to {what}") from exc


def _delete(db: Session, what: str, stmt) -> None:
    try:
        db.execute(stmt)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to %s: %s", what, exc)
        raise StorageFailure(f"Failed to {what}") from exc
    _commit(db, what)


def _play_record_out(row: PlayRecord) -> PlayRecordOut:
    return PlayRecordOut(
        title=row.title,
        source_name=row.source_name,
        cover=row.cover,
        year=row.year,
        index=row.index_episode,
        total_episodes=row.total_episodes,
        play_time=row.play_time,
        total_time=row.total_time,
        save_time=row.save_time,
        search_title=row.search_title,
    )


# ---- play records ----

def get_play_records(db: Session, username: str) -> Dict[str, PlayRecordOut]:
    stmt = select(PlayRecord).where(PlayRecord.username == username).order_by(PlayRecord.save_time.desc())
    return {row.key: _play_record_out(row) for row in _rows(db, "get play records", stmt)}


def set_play_record(db: Session, username: str, key: str, record: PlayRecordIn) -> None:
    values = dict(
        title=record.title,
        source_name=record.source_name,
        cover=record.cover,
        year=record.year,
        index_episode=record.index,
        total_episodes=record.total_episodes,
        play_time=record.play_time,
        total_time=record.total_time,
        save_time=record.save_time,
        search_title=record.search_title,
    )
    rows = _rows(db, "get play record", select(PlayRecord).where(PlayRecord.username == username, PlayRecord.key == key))
    if rows:
        for name, value in values.items():
            setattr(rows[0], name, value)
    else:
        db.add(PlayRecord(username=username, key=key, **values))
    _commit(db, "set play record")


def delete_play_record(db: Session, username: str, key: str | None = None) -> None:
    stmt = delete(PlayRecord).where(PlayRecord.username == username)
    if key is not None:
        stmt = stmt.where(PlayRecord.key == key)
    _delete(db, "delete play record", stmt)


# ---- favorites ----

def get_favorites(db: Session, username: str) -> Dict[str, FavoriteOut]:
    stmt = select(Favorite).where(Favorite.username == username).order_by(Favorite.save_time.desc())
    return {row.key: FavoriteOut.model_validate(row) for row in _rows(db, "get favorites", stmt)}


def set_favorite(db: Session, username: str, key: str, favorite: FavoriteIn) -> None:
    values = favorite.model_dump()
    rows = _rows(db, "get favorite", select(Favorite).where(Favorite.username == username, Favorite.key == key))
    if rows:
        for name, value in values.items():
            setattr(rows[0], name, value)
    else:
        db.add(Favorite(username=username, key=key, **values))
    _commit(db, "set favorite")


def delete_favorite(db: Session, username: str, key: str | None = None) -> None:
    stmt = delete(Favorite).where(Favorite.username == username)
    if key is not None:
        stmt = stmt.where(Favorite.key == key)
    _delete(db, "delete favorite", stmt)


# ---- search history ----

def get_search_history(db: Session, username: str, limit: int = 20) -> List[str]:
    stmt = (
        select(SearchHistory.keyword)
        .where(SearchHistory.username == username)
        .order_by(SearchHistory.created_at.desc(), SearchHistory.id.desc())
        .limit(limit)
    )
    return _rows(db, "get search history", stmt)


def add_search_history(db: Session, username: str, keyword: str, limit: int = 20) -> None:
    """Move keyword to the front and keep at most `limit` entries."""
    try:
        db.execute(delete(SearchHistory).where(SearchHistory.username == username, SearchHistory.keyword == keyword))
        db.add(SearchHistory(username=username, keyword=keyword, created_at=datetime.utcnow()))
        db.flush()

        keep = (
            select(SearchHistory.id)
            .where(SearchHistory.username == username)
            .order_by(SearchHistory.created_at.desc(), SearchHistory.id.desc())
            .limit(limit)
        )
        db.execute(
            delete(SearchHistory)
            .where(SearchHistory.username == username, SearchHistory.id.not_in(keep))
            .execution_options(synchronize_session=False)
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to add search history: %s", exc)
        raise StorageFailure("Failed to add search history") from exc
    _commit(db, "add search history")


def delete_search_history(db: Session, username: str, keyword: str | None = None) -> None:
    stmt = delete(SearchHistory).where(SearchHistory.username == username)
    if keyword is not None:
        stmt = stmt.where(SearchHistory.keyword == keyword)
    _delete(db, "delete search history", stmt)


# ---- skip configs ----

def get_skip_configs(db: Session, username: str) -> Dict[str, SkipConfigOut]:
    stmt = select(SkipConfig).where(SkipConfig.username == username)
    return {
        f"{row.source}+{row.id_video}": SkipConfigOut.model_validate(row)
        for row in _rows(db, "get skip configs", stmt)
    }


def get_skip_config(db: Session, username: str, source: str, id_video: str) -> SkipConfigOut | None:
    stmt = select(SkipConfig).where(
        SkipConfig.username == username, SkipConfig.source == source, SkipConfig.id_video == id_video
    )
    rows = _rows(db, "get skip config", stmt)
    return SkipConfigOut.model_validate(rows[0]) if rows else None


def set_skip_config(db: Session, username: str, source: str, id_video: str, config: SkipConfigIn) -> None:
    stmt = select(SkipConfig).where(
        SkipConfig.username == username, SkipConfig.source == source, SkipConfig.id_video == id_video
    )
    rows = _rows(db, "get skip config", stmt)
    if rows:
        rows[0].enable = config.enable
        rows[0].intro_time = config.intro_time
        rows[0].outro_time = config.outro_time
    else:
        db.add(SkipConfig(username=username, source=source, id_video=id_video, **config.model_dump()))
    _commit(db, "set skip config")


def delete_skip_config(db: Session, username: str, source: str, id_video: str) -> None:
    stmt = delete(SkipConfig).where(
        SkipConfig.username == username, SkipConfig.source == source, SkipConfig.id_video == id_video
    )
    _delete(db, "delete skip config", stmt)
