# backend/orangetv/models/account.py
from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from orangetv.db.base import Base


class Account(Base):
    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(64), primary_key=True)

    # argon2 hash, never the plaintext
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # data:image/...;base64 payload or http(s) URL
    avatar: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
