"""Typed failures surfaced by the catalog core and its collaborators."""
from typing import Sequence


class CatalogError(Exception):
    """Base class for failures the catalog reports to its callers."""


class ValidationFailed(CatalogError):
    """A record is missing required fields or cannot be stored."""

    def __init__(self, message: str, fields: Sequence[str] = ()):
        super().__init__(message)
        self.fields = list(fields)


class StorageUnavailable(CatalogError):
    """The storage backend could not be reached or read."""


class RecordNotFound(CatalogError):
    def __init__(self, record_id):
        super().__init__(f"record not found: {record_id}")
        self.record_id = record_id


class DuplicateRecord(CatalogError):
    """A record with the same track id and print number already exists."""


class PartialReconcileFailure(CatalogError):
    """Some records could not be rewritten during a reconcile pass."""

    def __init__(self, report):
        super().__init__(
            f"{report.failed} record(s) failed to rewrite "
            f"({report.rewritten} rewritten)"
        )
        self.report = report


class LookupUnavailable(Exception):
    """The upstream track catalog could not answer. Never surfaced by the core."""
