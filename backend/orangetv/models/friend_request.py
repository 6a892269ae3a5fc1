# backend/orangetv/models/friend_request.py
from sqlalchemy import BigInteger, CheckConstraint, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from orangetv.db.base import Base


class FriendRequest(Base):
    __tablename__ = "friend_requests"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    from_user: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    to_user: Mapped[str] = mapped_column(String(64), nullable=False)

    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="pending", nullable=False)

    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'accepted', 'rejected')", name="ck_friend_requests_status"),
    )


Index("ix_friend_requests_to_user_status", FriendRequest.to_user, FriendRequest.status)
