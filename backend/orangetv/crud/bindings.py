# backend/orangetv/crud/bindings.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from orangetv.core.errors import DeviceCodeTaken, StorageFailure
from orangetv.db.batch import AtomicBatch
from orangetv.models.device_binding import DeviceBinding

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BindingRecord:
    username: str
    machine_code: str
    device_info: str
    bind_time: int


def normalize_code(machine_code: str) -> str:
    return machine_code.strip().upper()


def _to_record(row: DeviceBinding) -> BindingRecord:
    return BindingRecord(
        username=row.username,
        machine_code=row.machine_code,
        device_info=row.device_info or "",
        bind_time=row.bind_time,
    )


def get_binding(db: Session, username: str) -> BindingRecord | None:
    """Strict lookup used on the login path; storage errors propagate."""
    try:
        row = db.get(DeviceBinding, username)
    except SQLAlchemyError as exc:
        logger.error("Failed to get machine code for %r: %s", username, exc)
        raise StorageFailure("Failed to load device binding") from exc
    return _to_record(row) if row is not None else None


def get_machine_code(db: Session, username: str) -> str | None:
    """Best-effort: a storage failure reads as "not bound"."""
    try:
        stmt = select(DeviceBinding.machine_code).where(DeviceBinding.username == username)
        return db.execute(stmt).scalar_one_or_none()
    except SQLAlchemyError as exc:
        logger.warning("Failed to get machine code for %r: %s", username, exc)
        return None


def get_code_owner(db: Session, machine_code: str) -> str | None:
    """Username the code is bound to, if any. Best-effort."""
    try:
        stmt = select(DeviceBinding.username).where(DeviceBinding.machine_code == normalize_code(machine_code))
        return db.execute(stmt).scalar_one_or_none()
    except SQLAlchemyError as exc:
        logger.warning("Failed to check if machine code is bound: %s", exc)
        return None


def list_bindings(db: Session) -> list[BindingRecord]:
    """Best-effort: a storage failure reads as an empty list."""
    try:
        rows = db.execute(select(DeviceBinding).order_by(DeviceBinding.bind_time.asc())).scalars().all()
    except SQLAlchemyError as exc:
        logger.warning("Failed to list machine codes: %s", exc)
        return []
    return [_to_record(r) for r in rows]


def bind(db: Session, username: str, machine_code: str, device_info: str = "") -> BindingRecord:
    """
    Bind username to machine_code, replacing any previous code of that user.

    Delete-then-insert runs as one atomic batch; the unique index on
    machine_code rejects the insert when another user already holds the code,
    in which case nothing changes for either user.
    Raises: DeviceCodeTaken, StorageFailure
    """
    code = normalize_code(machine_code)
    bind_time = int(time.time() * 1000)

    batch = AtomicBatch(db, f"bind machine code for {username!r}")
    batch.add(delete(DeviceBinding).where(DeviceBinding.username == username))
    batch.add(
        insert(DeviceBinding).values(
            username=username,
            machine_code=code,
            device_info=device_info or "",
            bind_time=bind_time,
        )
    )
    try:
        batch.apply()
    except IntegrityError:
        owner = get_code_owner(db, code)
        logger.info("Machine code bind for %r refused, code held by %r", username, owner)
        raise DeviceCodeTaken(owner or "another user")

    logger.info("Bound machine code for %r", username)
    return BindingRecord(username=username, machine_code=code, device_info=device_info or "", bind_time=bind_time)


def unbind(db: Session, username: str) -> bool:
    try:
        result = db.execute(delete(DeviceBinding).where(DeviceBinding.username == username))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to delete machine code for %r: %s", username, exc)
        raise StorageFailure("Failed to delete device binding") from exc
    return result.rowcount > 0
