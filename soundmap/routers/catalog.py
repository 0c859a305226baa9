from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import AliasChoices, BaseModel, Field

from soundmap.browse import paginate, search_entries, sort_entries
from soundmap.dependencies import get_reconciler
from soundmap.errors import (
    CatalogError,
    DuplicateRecord,
    RecordNotFound,
    StorageUnavailable,
    ValidationFailed,
)
from soundmap.reconciler import CatalogReconciler
from soundmap.settings import DISPLAY_BACKFILL

# --------------------------------------------------------------------
# Router setup
# --------------------------------------------------------------------
router = APIRouter(prefix="/catalog", tags=["catalog"])

_STATUS = {
    ValidationFailed: 400,
    RecordNotFound: 404,
    DuplicateRecord: 409,
    StorageUnavailable: 503,
}


def _http_error(e: CatalogError) -> HTTPException:
    """Map a catalog failure onto the HTTP status a client should see."""
    for kind, status in _STATUS.items():
        if isinstance(e, kind):
            return HTTPException(status, str(e))
    return HTTPException(500, str(e))


# Request schema: accepts both the current field names and the
# Spotify-shaped names the add-songs page posts (name/spotifyId/number).
class AddRecordRequest(BaseModel):
    title: Optional[str] = Field(None, validation_alias=AliasChoices("title", "name"))
    trackId: Optional[str] = Field(None, validation_alias=AliasChoices("trackId", "spotifyId"))
    artists: Optional[List[Dict[str, Any]]] = None
    album: Optional[Dict[str, Any]] = None
    uri: Optional[str] = None
    popularity: Optional[int] = None
    printNumber: Optional[Union[int, str]] = Field(
        None, validation_alias=AliasChoices("printNumber", "number")
    )
    owner: Optional[str] = None


@router.get("")
def list_catalog(
    q: Optional[str] = Query(None, description="Search text, case-insensitive"),
    field: str = Query("song", pattern="^(song|number|owner)$", description="Field the search applies to"),
    sort: Optional[str] = Query(None, pattern="^(song|number|popularity)$"),
    direction: str = Query("asc", pattern="^(asc|desc)$"),
    limit: int = Query(100, ge=1, le=2000),
    offset: int = Query(0, ge=0),
    reconciler: CatalogReconciler = Depends(get_reconciler),
) -> List[Dict[str, Any]]:
    """
    List the catalog as flattened entries.
    Storage order unless `sort` is given; search and paging apply after.
    """
    try:
        entries = reconciler.list_catalog(backfill=DISPLAY_BACKFILL)
    except CatalogError as e:
        raise _http_error(e)
    entries = search_entries(entries, q, field)
    if sort:
        entries = sort_entries(entries, sort, direction)
    return [e.to_dict() for e in paginate(entries, limit, offset)]


@router.post("")
def add_record(
    req: AddRecordRequest,
    reconciler: CatalogReconciler = Depends(get_reconciler),
) -> Dict[str, Any]:
    """
    Record a song with its physical print number and owner.

    Request body:
      {"trackId": "...", "title": "...", "printNumber": "12", "owner": "Sam", ...}

    Response JSON:
      {"ok": True, "entry": {<CatalogEntry>}}
    """
    try:
        entry = reconciler.add_record({
            "title": req.title,
            "track_id": req.trackId,
            "artists": req.artists,
            "album": req.album,
            "uri": req.uri,
            "popularity": req.popularity,
            "print_number": req.printNumber,
            "owner": req.owner,
        })
    except CatalogError as e:
        raise _http_error(e)
    return {"ok": True, "entry": entry.to_dict()}


@router.get("/reconcile")
def reconcile(reconciler: CatalogReconciler = Depends(get_reconciler)) -> Dict[str, Any]:
    """
    Rewrite every stored record into the current schema.

    Returns:
        {
          "ok": True when every record that needed it was rewritten,
          "rewritten": <count of rewritten records>,
          "failed": <count of records that could not be rewritten>,
          "errors": [ ... up to 10 sample errors ... ]
        }
    """
    try:
        report = reconciler.reconcile()
    except CatalogError as e:
        raise _http_error(e)
    return {
        "ok": report.ok,
        "rewritten": report.rewritten,
        "failed": report.failed,
        "errors": [f.to_dict() for f in report.failures[:10]],  # limit size of error list
    }


@router.get("/{record_id}")
def get_record(
    record_id: str,
    reconciler: CatalogReconciler = Depends(get_reconciler),
) -> Dict[str, Any]:
    try:
        return reconciler.get_record(record_id).to_dict()
    except CatalogError as e:
        raise _http_error(e)


@router.delete("/{record_id}")
def delete_record(
    record_id: str,
    reconciler: CatalogReconciler = Depends(get_reconciler),
) -> Dict[str, Any]:
    try:
        reconciler.delete_record(record_id)
    except CatalogError as e:
        raise _http_error(e)
    return {"ok": True, "deleted": record_id}
