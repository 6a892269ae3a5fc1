# backend/orangetv/models/conversation.py
from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from orangetv.db.base import Base


class Conversation(Base):
    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # JSON array of usernames, e.g. ["alice", "bob"]
    participants: Mapped[str] = mapped_column(Text, nullable=False)

    type: Mapped[str] = mapped_column(String(16), default="private", nullable=False)

    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, index=True, nullable=False)
