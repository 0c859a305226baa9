"""Search, sort and paging over normalized catalog entries."""
import re
from typing import List, Optional

from soundmap.normalizers import CatalogEntry

SEARCH_FIELDS = ("song", "number", "owner")
SORT_COLUMNS = ("song", "number", "popularity")


def _leading_int(s: str) -> int:
    m = re.match(r"\s*(-?\d+)", s or "")
    return int(m.group(1)) if m else 0


def search_entries(entries: List[CatalogEntry], query: Optional[str], field: str = "song") -> List[CatalogEntry]:
    """
    Case-insensitive substring match.
    `song` matches title or artists, `number` the print number, `owner` the owner.
    """
    q = (query or "").strip().lower()
    if not q:
        return list(entries)
    if field == "song":
        return [e for e in entries if q in e.title.lower() or q in e.artist_display.lower()]
    if field == "number":
        return [e for e in entries if q in e.print_number.lower()]
    if field == "owner":
        return [e for e in entries if q in e.owner.lower()]
    raise ValueError(f"unknown search field: {field}")


def sort_entries(entries: List[CatalogEntry], column: str, direction: str = "asc") -> List[CatalogEntry]:
    """Stable sort by title, numeric print number, or popularity."""
    if column == "song":
        key = lambda e: e.title.lower()
    elif column == "number":
        key = lambda e: _leading_int(e.print_number)
    elif column == "popularity":
        key = lambda e: e.popularity
    else:
        raise ValueError(f"unknown sort column: {column}")
    return sorted(entries, key=key, reverse=(direction == "desc"))


def paginate(entries: List[CatalogEntry], limit: int = 100, offset: int = 0) -> List[CatalogEntry]:
    return entries[offset:offset + limit]
