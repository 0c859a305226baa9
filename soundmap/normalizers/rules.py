from copy import deepcopy
import math
from typing import Any, Optional
from .base import Normalizer
from .types import Record, Variant, UNKNOWN_ARTIST, UNKNOWN_OWNER, UNKNOWN_SONG

# Square artwork size the catalog displays
PREFERRED_IMAGE_SIZE = 300


class RuleNormalizer(Normalizer):
    """
    Rule-based resolution of the flat source view:
    picks one artist string, one image URL and fills every
    scalar with its default so readers never see a missing field.
    """
    def normalize_record(self, variant: Variant, rec: Record) -> Record:
        r = deepcopy(rec)  # work on a copy so we don’t mutate the input
        r["track_id"] = clean_text(r.get("track_id"))
        r["title"] = clean_text(r.get("title")) or UNKNOWN_SONG
        r["artist_display"] = resolve_artist(r.get("artists"), r.get("artist"))
        r["image_url"] = resolve_image(r.get("images"), r.get("album_image"))
        r["print_number"] = clean_text(r.get("number")) or ""
        r["owner"] = clean_text(r.get("owner")) or UNKNOWN_OWNER
        r["popularity"] = norm_popularity(r.get("popularity"))
        return r


# --- Individual field helpers ---

def clean_text(v: Any) -> Optional[str]:
    """Strings and plain numbers as text; empty, blank or other shapes are None."""
    if isinstance(v, bool) or v is None:
        return None
    if isinstance(v, (int, float)):
        return str(v)
    if isinstance(v, str) and v.strip():
        return v
    return None

def artist_names(artists: Any) -> list[str]:
    """Names of the artist objects in a list, skipping entries without one."""
    if not isinstance(artists, list):
        return []
    names = (clean_text(a.get("name")) for a in artists if isinstance(a, dict))
    return [n for n in names if n]

def resolve_artist(artists: Any, artist: Any) -> str:
    names = artist_names(artists)
    if names:
        return ", ".join(names)
    return clean_text(artist) or UNKNOWN_ARTIST

def usable_images(images: Any) -> list[dict]:
    """Image objects that carry a non-empty url, in their original order."""
    if not isinstance(images, list):
        return []
    return [img for img in images if isinstance(img, dict) and clean_text(img.get("url"))]

def resolve_image(images: Any, album_image: Any) -> Optional[str]:
    """
    Medium (300px) image first, then the first image with a url,
    then the legacy single albumImage string.
    """
    candidates = usable_images(images)
    for img in candidates:
        if img.get("height") == PREFERRED_IMAGE_SIZE or img.get("width") == PREFERRED_IMAGE_SIZE:
            return clean_text(img["url"])
    if candidates:
        return clean_text(candidates[0]["url"])
    return clean_text(album_image)

def norm_popularity(v: Any) -> int:
    """Integer popularity clamped to 0..100; anything unparseable is 0."""
    if isinstance(v, bool) or v is None:
        return 0
    if isinstance(v, str):
        try:
            v = float(v.strip())
        except ValueError:
            return 0
    if not isinstance(v, (int, float)) or not math.isfinite(v):
        return 0
    return max(0, min(100, int(v)))
