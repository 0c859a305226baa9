# soundmap/normalizers/types.py
from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

Record = Dict[str, Any]

# Historical shapes a stored song document can take:
#   nested    {id, song: {id, name, artists[], album: {images[]}, uri, popularity}, number, owner}
#   flattened {spotifyId, name, artists[], album, uri, popularity, number, owner}
#   legacy    {song: {id, name, artist, albumImage}, number, owner}
Variant = Literal["nested", "flattened", "legacy"]

UNKNOWN_SONG = "Unknown Song"
UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_OWNER = "Unknown Owner"


@dataclass(frozen=True)
class StoredRecord:
    """A persisted document plus the id its store assigned to it."""
    record_id: Optional[str]
    document: Record


@dataclass(frozen=True)
class CatalogEntry:
    """Flattened, fully-defaulted read model for one stored record."""
    record_id: Optional[str]
    track_id: Optional[str] = None
    title: str = UNKNOWN_SONG
    artist_display: str = UNKNOWN_ARTIST
    image_url: Optional[str] = None
    print_number: str = ""
    owner: str = UNKNOWN_OWNER
    popularity: int = 0

    def to_dict(self) -> Record:
        return {
            "recordId": self.record_id,
            "trackId": self.track_id,
            "title": self.title,
            "artistDisplay": self.artist_display,
            "imageUrl": self.image_url,
            "printNumber": self.print_number,
            "owner": self.owner,
            "popularity": self.popularity,
        }
