# =============================================
# File: giftbot/db/models.py
# Purpose: SQLModel table backing the SQL key-value store (chat history, product feedback).
# =============================================

from sqlmodel import SQLModel, Field
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KVEntry(SQLModel, table=True):
    __tablename__ = "kv_entry"

    key: str = Field(primary_key=True, max_length=255)
    value: str
    updated_at: datetime = Field(default_factory=utcnow)
