# backend/orangetv/models/admin_config.py
from datetime import datetime

from sqlalchemy import DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from orangetv.db.base import Base


class AdminConfigRow(Base):
    __tablename__ = "admin_config"

    # single row, id = 1
    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    config: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )
