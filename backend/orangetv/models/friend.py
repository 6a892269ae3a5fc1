# backend/orangetv/models/friend.py
from sqlalchemy import BigInteger, CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from orangetv.db.base import Base


class FriendEdge(Base):
    """Undirected friendship; user1 < user2 so each pair has one row."""
    __tablename__ = "friends"

    user1: Mapped[str] = mapped_column(String(64), primary_key=True)
    user2: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)

    status: Mapped[str] = mapped_column(String(16), default="accepted", nullable=False)
    added_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        CheckConstraint("status IN ('accepted', 'blocked')", name="ck_friends_status"),
        CheckConstraint("user1 < user2", name="ck_friends_canonical"),
    )
