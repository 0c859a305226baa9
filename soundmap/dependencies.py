"""FastAPI dependencies: the request's record store, track lookup and reconciler."""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from soundmap.db import get_db
from soundmap.lookup.spotify import NullLookup, TrackLookup
from soundmap.reconciler import CatalogReconciler
from soundmap.settings import STORE_BACKEND
from soundmap.storage import RecordStore, SqlRecordStore


def get_store(request: Request, db: Session = Depends(get_db)) -> RecordStore:
    """
    SQL store bound to this request's session, or the process-wide JSON
    file store created at startup.
    """
    if STORE_BACKEND == "json":
        return request.app.state.json_store
    return SqlRecordStore(db)


def get_lookup(request: Request) -> TrackLookup:
    return getattr(request.app.state, "lookup", None) or NullLookup()


def get_reconciler(
    store: RecordStore = Depends(get_store),
    lookup: TrackLookup = Depends(get_lookup),
) -> CatalogReconciler:
    return CatalogReconciler(store, lookup=lookup)
