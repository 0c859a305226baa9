from copy import deepcopy
from typing import Any
from .base import Normalizer
from .types import Record, Variant


def detect_variant(doc: Any) -> Variant:
    """
    Classify a stored document by shape.
    A `song` sub-object with an artist list or album is the nested form,
    any other `song` sub-object is the legacy simplified form, and
    everything else (including an empty document) is flattened.
    """
    song = doc.get("song") if isinstance(doc, dict) else None
    if isinstance(song, dict):
        if isinstance(song.get("artists"), list) or isinstance(song.get("album"), dict):
            return "nested"
        return "legacy"
    return "flattened"


def _first(*values):
    for v in values:
        if v is not None:
            return v
    return None


def source_fields(variant: Variant, doc: Any) -> Record:
    """Lift any document variant into one flat view with the same keys."""
    if not isinstance(doc, dict):
        doc = {}
    body = doc.get("song") if variant != "flattened" else doc
    if not isinstance(body, dict):
        body = {}
    album = body.get("album")
    if not isinstance(album, dict):
        album = {}

    if variant == "flattened":
        track_id = doc.get("spotifyId")
    else:
        track_id = body.get("id")

    return {
        "variant": variant,
        "track_id": track_id,
        "title": body.get("name"),
        "artists": body.get("artists"),
        "artist": body.get("artist"),
        "album": {k: album[k] for k in ("id", "name") if k in album},
        "images": album.get("images"),
        "album_image": _first(body.get("albumImage"), doc.get("albumImage")),
        "uri": body.get("uri"),
        "popularity": _first(body.get("popularity"), doc.get("popularity")),
        "number": doc.get("number"),
        "owner": doc.get("owner"),
    }


class ShapeNormalizer(Normalizer):
    """First stage: maps every stored variant onto the flat source view."""
    def normalize_record(self, variant: Variant, rec: Record) -> Record:
        return source_fields(variant, deepcopy(rec))
