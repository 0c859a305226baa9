"""Song documents in a single JSON array file (the songDatabase.json format)."""
import json
import logging
import os
import threading
from copy import deepcopy
from pathlib import Path
from typing import Any, List

from soundmap.errors import RecordNotFound, StorageUnavailable, ValidationFailed
from soundmap.normalizers.types import StoredRecord
from .base import new_record_id

log = logging.getLogger(__name__)

ID_KEY = "_id"


def _document(row: dict) -> dict:
    return {k: deepcopy(v) for k, v in row.items() if k != ID_KEY}


class JsonFileStore:
    """
    Each array element is one stored document. The record id lives in `_id`;
    rows written by the oldest server only carry a numeric top-level `id`,
    which is adopted as their record id. Rows with neither get a fresh id
    the first time the file is loaded, unless `persist_ids` is off, in which
    case they only live in memory and the file is never touched by reads.
    """

    def __init__(self, path, persist_ids: bool = True):
        self.path = Path(path)
        self.persist_ids = persist_ids
        self._lock = threading.Lock()

    # --- file access (callers hold the lock) ---

    def _read(self) -> List[Any]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, json.JSONDecodeError) as e:
            raise StorageUnavailable(f"cannot read {self.path}: {e}") from e
        if not isinstance(data, list):
            raise StorageUnavailable(f"{self.path} does not hold a JSON array")
        return data

    def _write(self, rows: List[Any]) -> None:
        try:
            payload = json.dumps(rows, indent=2)
        except (TypeError, ValueError) as e:
            raise ValidationFailed(f"record is not JSON serializable: {e}") from e
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise StorageUnavailable(f"cannot write {self.path}: {e}") from e

    def _load(self) -> List[Any]:
        """Rows with a unique `_id` on every object; persists assigned ids when allowed."""
        rows = self._read()
        seen = set()
        dirty = False
        for row in rows:
            if not isinstance(row, dict):
                log.warning("skipping non-object row in %s", self.path)
                continue
            rid = row.get(ID_KEY)
            if rid is None and row.get("id") is not None:
                rid = row["id"]
            rid = str(rid) if rid is not None else None
            if rid is None or rid in seen:
                rid = new_record_id()
            if row.get(ID_KEY) != rid:
                row[ID_KEY] = rid
                dirty = True
            seen.add(rid)
        if dirty and self.persist_ids:
            log.info("assigned record ids in %s", self.path)
            self._write(rows)
        return rows

    @staticmethod
    def _index(rows: List[Any], record_id: str) -> int:
        for i, row in enumerate(rows):
            if isinstance(row, dict) and row.get(ID_KEY) == record_id:
                return i
        return -1

    # --- RecordStore ---

    def fetch_all(self) -> List[StoredRecord]:
        with self._lock:
            rows = self._load()
        return [StoredRecord(row[ID_KEY], _document(row)) for row in rows if isinstance(row, dict)]

    def fetch_by_id(self, record_id: str) -> StoredRecord:
        with self._lock:
            rows = self._load()
        i = self._index(rows, record_id)
        if i < 0:
            raise RecordNotFound(record_id)
        return StoredRecord(record_id, _document(rows[i]))

    def upsert(self, record: StoredRecord) -> StoredRecord:
        record_id = record.record_id or new_record_id()
        row = {ID_KEY: record_id, **_document(record.document)}
        with self._lock:
            rows = self._load()
            i = self._index(rows, record_id)
            if i < 0:
                rows.append(row)
            else:
                rows[i] = row
            self._write(rows)
        return StoredRecord(record_id, _document(row))

    def delete_by_id(self, record_id: str) -> None:
        with self._lock:
            rows = self._load()
            i = self._index(rows, record_id)
            if i < 0:
                raise RecordNotFound(record_id)
            rows.pop(i)
            self._write(rows)

    def ping(self) -> bool:
        try:
            with self._lock:
                self._read()
            return True
        except StorageUnavailable:
            return False
