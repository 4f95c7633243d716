# =============================================
# File: giftbot/db/repo.py
# Purpose: DB repository bootstrap: configure engine from DB_URL (default SQLite) and expose init_db() to create tables.
# =============================================

from functools import lru_cache
import os

from sqlmodel import SQLModel, create_engine

from giftbot.db import models  # noqa: F401  (registers tables on the metadata)


def db_url() -> str:
    return os.getenv("DB_URL", "sqlite:///./giftbot.db")


@lru_cache(maxsize=None)
def get_engine(url: str | None = None):
    return create_engine(url or db_url(), echo=False)


def init_db(engine=None):
    engine = engine or get_engine()
    SQLModel.metadata.create_all(engine)
    return engine
