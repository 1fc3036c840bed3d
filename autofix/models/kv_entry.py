from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from autofix.core.database import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class KeyValueEntry(Base):
    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utc_now, onupdate=_utc_now)
