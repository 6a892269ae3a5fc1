# backend/orangetv/models/media.py
from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from orangetv.db.base import Base


class PlayRecord(Base):
    __tablename__ = "play_records"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    key: Mapped[str] = mapped_column(String(255), nullable=False)  # "<source>+<id>"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    source_name: Mapped[str] = mapped_column(String(128), nullable=False)
    cover: Mapped[str] = mapped_column(String(1024), nullable=False)
    year: Mapped[str] = mapped_column(String(16), nullable=False)
    index_episode: Mapped[int] = mapped_column(Integer, nullable=False)
    total_episodes: Mapped[int] = mapped_column(Integer, nullable=False)
    play_time: Mapped[int] = mapped_column(Integer, nullable=False)
    total_time: Mapped[int] = mapped_column(Integer, nullable=False)
    save_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    search_title: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (UniqueConstraint("username", "key", name="uq_play_records_username_key"),)


class Favorite(Base):
    __tablename__ = "favorites"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    key: Mapped[str] = mapped_column(String(255), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    source_name: Mapped[str] = mapped_column(String(128), nullable=False)
    cover: Mapped[str] = mapped_column(String(1024), nullable=False)
    year: Mapped[str] = mapped_column(String(16), nullable=False)
    total_episodes: Mapped[int] = mapped_column(Integer, nullable=False)
    save_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    search_title: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (UniqueConstraint("username", "key", name="uq_favorites_username_key"),)


class SearchHistory(Base):
    __tablename__ = "search_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    keyword: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("username", "keyword", name="uq_search_history_username_keyword"),)


class SkipConfig(Base):
    """Per-video intro/outro skip markers, in seconds."""
    __tablename__ = "skip_configs"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    source: Mapped[str] = mapped_column(String(128), nullable=False)
    id_video: Mapped[str] = mapped_column(String(255), nullable=False)

    enable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    intro_time: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    outro_time: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (UniqueConstraint("username", "source", "id_video", name="uq_skip_configs_video"),)
