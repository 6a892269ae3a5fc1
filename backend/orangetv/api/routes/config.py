# backend/orangetv/api/routes/config.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orangetv.core.errors import ServiceError
from orangetv.crud.admin_config import get_admin_config
from orangetv.db.session import get_db
from orangetv.schemas.config import PublicConfigOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["config"])


@router.get("/config", response_model=PublicConfigOut)
def get_public_config(db: Session = Depends(get_db)):
    """Only the settings the client needs. Falls back to defaults on failure."""
    try:
        config = get_admin_config(db)
    except ServiceError as exc:
        logger.warning("Failed to get public config, serving defaults: %s", exc)
        return PublicConfigOut()

    if config is None:
        return PublicConfigOut()
    return PublicConfigOut(EnableChat=config.site.enable_chat)
