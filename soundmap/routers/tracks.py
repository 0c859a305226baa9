from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query

from soundmap.dependencies import get_lookup
from soundmap.errors import LookupUnavailable
from soundmap.lookup.spotify import TrackLookup

router = APIRouter(prefix="/tracks", tags=["tracks"])


@router.get("/search")
def search_tracks(
    q: str = Query(..., min_length=1, description="Track search text"),
    limit: int = Query(10, ge=1, le=50),
    lookup: TrackLookup = Depends(get_lookup),
) -> List[Dict[str, Any]]:
    """Search Spotify for tracks to add to the catalog."""
    try:
        tracks = lookup.search(q, limit=limit)
    except LookupUnavailable as e:
        raise HTTPException(503, f"Track search unavailable: {e}")
    return [t.model_dump() for t in tracks]
