# backend/orangetv/crud/admin_config.py
from __future__ import annotations

import json
import logging

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orangetv.core.errors import StorageFailure
from orangetv.models.admin_config import AdminConfigRow
from orangetv.schemas.config import AdminConfig

logger = logging.getLogger(__name__)


def get_admin_config(db: Session) -> AdminConfig | None:
    """Load and decode the admin settings blob; None when never saved."""
    try:
        raw = db.execute(select(AdminConfigRow.config).where(AdminConfigRow.id == 1)).scalar_one_or_none()
    except SQLAlchemyError as exc:
        logger.error("Failed to get admin config: %s", exc)
        raise StorageFailure("Failed to load admin config") from exc

    if raw is None:
        return None
    try:
        return AdminConfig.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as exc:
        logger.error("Stored admin config is not valid: %s", exc)
        raise StorageFailure("Stored admin config is corrupt") from exc


def set_admin_config(db: Session, config: AdminConfig) -> None:
    payload = config.model_dump_json(by_alias=True)
    try:
        row = db.get(AdminConfigRow, 1)
        if row is None:
            db.add(AdminConfigRow(id=1, config=payload))
        else:
            row.config = payload
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to set admin config: %s", exc)
        raise StorageFailure("Failed to save admin config") from exc
