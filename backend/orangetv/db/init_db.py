# backend/orangetv/db/init_db.py
from orangetv.db.base import Base
from orangetv.db.session import engine

# models must be imported so their tables are registered on Base.metadata
from orangetv import models  # noqa: F401


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
