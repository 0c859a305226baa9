# soundmap/storage/base.py
import uuid
from typing import List, Protocol
from soundmap.normalizers.types import StoredRecord


def new_record_id() -> str:
    return uuid.uuid4().hex


class RecordStore(Protocol):
    """
    Interchangeable persistence for stored song documents.
    Failures surface as StorageUnavailable, RecordNotFound or ValidationFailed.
    """
    def fetch_all(self) -> List[StoredRecord]:
        """All records, in storage (insertion) order."""
        ...

    def fetch_by_id(self, record_id: str) -> StoredRecord:
        ...

    def upsert(self, record: StoredRecord) -> StoredRecord:
        """Insert when `record_id` is None or unknown, else overwrite in place."""
        ...

    def delete_by_id(self, record_id: str) -> None:
        ...

    def ping(self) -> bool:
        ...
