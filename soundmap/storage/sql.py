import logging
from copy import deepcopy
from typing import List

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, OperationalError, StatementError
from sqlalchemy.orm import Session

from soundmap.errors import RecordNotFound, StorageUnavailable, ValidationFailed
from soundmap.models import Song
from soundmap.normalizers.types import StoredRecord
from .base import new_record_id

log = logging.getLogger(__name__)


def _to_record(row: Song) -> StoredRecord:
    doc = row.document if isinstance(row.document, dict) else {}
    return StoredRecord(record_id=row.record_id, document=deepcopy(doc))


class SqlRecordStore:
    """Song documents in the `songs` table, one JSON document per row."""

    def __init__(self, db: Session):
        self.db = db

    def _get(self, record_id: str) -> Song | None:
        return self.db.execute(
            select(Song).where(Song.record_id == record_id)
        ).scalar_one_or_none()

    def fetch_all(self) -> List[StoredRecord]:
        try:
            rows = self.db.execute(select(Song).order_by(Song.row_id)).scalars().all()
        except OperationalError as e:
            self.db.rollback()
            raise StorageUnavailable(f"database unavailable: {e}") from e
        return [_to_record(r) for r in rows]

    def fetch_by_id(self, record_id: str) -> StoredRecord:
        try:
            row = self._get(record_id)
        except OperationalError as e:
            self.db.rollback()
            raise StorageUnavailable(f"database unavailable: {e}") from e
        if row is None:
            raise RecordNotFound(record_id)
        return _to_record(row)

    def upsert(self, record: StoredRecord) -> StoredRecord:
        record_id = record.record_id or new_record_id()
        document = deepcopy(record.document)
        try:
            # per-record savepoint so a bad document doesn't poison the session
            with self.db.begin_nested():
                row = self._get(record_id)
                if row is None:
                    row = Song(record_id=record_id)
                    self.db.add(row)
                row.document = document
            self.db.commit()
        except OperationalError as e:
            self.db.rollback()
            raise StorageUnavailable(f"database unavailable: {e}") from e
        except (IntegrityError, StatementError, TypeError, ValueError) as e:
            self.db.rollback()
            log.exception("song upsert failed: record_id=%s", record_id)
            raise ValidationFailed(f"could not store record {record_id}: {e}") from e
        return StoredRecord(record_id=record_id, document=deepcopy(document))

    def delete_by_id(self, record_id: str) -> None:
        try:
            row = self._get(record_id)
            if row is None:
                raise RecordNotFound(record_id)
            self.db.delete(row)
            self.db.commit()
        except OperationalError as e:
            self.db.rollback()
            raise StorageUnavailable(f"database unavailable: {e}") from e

    def clear(self) -> int:
        """Remove every record; returns how many were removed."""
        try:
            n = self.db.query(Song).delete()
            self.db.commit()
        except OperationalError as e:
            self.db.rollback()
            raise StorageUnavailable(f"database unavailable: {e}") from e
        return n

    def ping(self) -> bool:
        try:
            self.db.execute(text("SELECT 1"))
            return True
        except OperationalError:
            self.db.rollback()
            return False
