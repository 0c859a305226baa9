from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String
from .db import Base


def _utcnow():
    return datetime.now(timezone.utc)


# -----------------------------
# ORM model for stored song records
# -----------------------------
class Song(Base):
    __tablename__ = "songs"
    # One row per stored record. `document` keeps the body in whatever
    # historical shape it was written; the reconciler rewrites it in place.
    row_id     = Column(Integer, primary_key=True, autoincrement=True)   # insertion order
    record_id  = Column(String, unique=True, index=True, nullable=False) # stable public id
    document   = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<Song(record_id={self.record_id}, row_id={self.row_id})>"
