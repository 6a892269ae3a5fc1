# backend/orangetv/models/device_binding.py
from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from orangetv.db.base import Base


class DeviceBinding(Base):
    __tablename__ = "machine_codes"

    username: Mapped[str] = mapped_column(String(64), primary_key=True)

    # stored upper-cased; the unique index is what makes binding atomic
    machine_code: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)

    device_info: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    bind_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
