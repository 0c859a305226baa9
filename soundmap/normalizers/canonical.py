"""Re-serialize normalized records into the current stored schema."""
import json
from typing import Optional, Union

from .pipeline import NormalizerPipeline, get_default_normalizer
from .rules import clean_text, usable_images
from .types import Record, StoredRecord


def _dimension(v):
    return v if isinstance(v, (int, float)) and not isinstance(v, bool) else None


def canonical_artists(view: Record) -> list[dict]:
    """Artist objects reduced to id/name; a legacy artist string becomes one entry."""
    artists = view.get("artists")
    out = []
    for a in artists if isinstance(artists, list) else []:
        if not isinstance(a, dict):
            continue
        name = clean_text(a.get("name"))
        if not name:
            continue
        item = {"id": clean_text(a.get("id")), "name": name}
        if item["id"] is None:
            del item["id"]
        out.append(item)
    if not out:
        artist = clean_text(view.get("artist"))
        if artist:
            out.append({"name": artist})
    return out


def canonical_album(view: Record) -> dict:
    """Album metadata plus the images the normalizer can actually pick from."""
    album = {k: v for k, v in (view.get("album") or {}).items() if clean_text(v)}
    images = [
        {"height": _dimension(img.get("height")), "width": _dimension(img.get("width")), "url": clean_text(img["url"])}
        for img in usable_images(view.get("images"))
    ]
    if not images:
        legacy = clean_text(view.get("album_image"))
        if legacy:
            images = [{"height": None, "width": None, "url": legacy}]
    album["images"] = images
    return album


def to_canonical_document(
    record: Union[StoredRecord, Record, None],
    normalizer: Optional[NormalizerPipeline] = None,
) -> Record:
    """
    Flattened document equivalent to `record`.
    Scalars come from the normalized entry; artist and image lists are
    carried over from the source so nothing the entry is derived from is lost.
    Normalizing the result yields the same entry, and canonicalizing it again
    yields the same document.
    """
    normalizer = normalizer or get_default_normalizer()
    _, view = normalizer.resolve(record)
    return {
        "spotifyId": view["track_id"],
        "name": view["title"],
        "artists": canonical_artists(view),
        "album": canonical_album(view),
        "uri": clean_text(view.get("uri")),
        "popularity": view["popularity"],
        "number": view["print_number"],
        "owner": view["owner"],
    }


def fingerprint(doc: Record) -> str:
    """Stable text form used to decide whether a stored document must change."""
    return json.dumps(doc, sort_keys=True, default=str)
