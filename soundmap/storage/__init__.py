from .base import RecordStore, new_record_id
from .json_file import JsonFileStore
from .sql import SqlRecordStore

__all__ = ["RecordStore", "new_record_id", "JsonFileStore", "SqlRecordStore"]
