"""
Spotify catalog lookup (client-credentials flow).

Only two calls are used: track search when adding songs, and a single
track fetch to fill fields a caller left out. Every transport or HTTP
failure is raised as LookupUnavailable so callers can fall back to what
they already have.
"""
import base64
import logging
import time
from typing import Any, Dict, List, Optional, Protocol

import requests
from pydantic import BaseModel

from soundmap.errors import LookupUnavailable
from soundmap.settings import SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET, SPOTIFY_TIMEOUT

log = logging.getLogger(__name__)

TOKEN_URL = "https://accounts.spotify.com/api/token"
API_BASE = "https://api.spotify.com/v1"


class TrackSummary(BaseModel):
    id: str
    name: str = ""
    artists: List[Dict[str, Any]] = []
    album: Dict[str, Any] = {}
    uri: Optional[str] = None
    popularity: int = 0

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "TrackSummary":
        """Keep only the parts of a Spotify track object the catalog stores."""
        album = item.get("album") or {}
        return cls(
            id=str(item.get("id")),
            name=item.get("name") or "",
            artists=[
                {"id": a.get("id"), "name": a.get("name")}
                for a in item.get("artists") or []
                if isinstance(a, dict)
            ],
            album={
                "id": album.get("id"),
                "name": album.get("name"),
                "images": [
                    {"height": i.get("height"), "width": i.get("width"), "url": i.get("url")}
                    for i in album.get("images") or []
                    if isinstance(i, dict)
                ],
            },
            uri=item.get("uri"),
            popularity=item.get("popularity") or 0,
        )

    def to_document(self) -> Dict[str, Any]:
        """The track as a flattened stored document (no number/owner)."""
        return {
            "spotifyId": self.id,
            "name": self.name,
            "artists": self.artists,
            "album": self.album,
            "uri": self.uri,
            "popularity": self.popularity,
        }


def _summary(item: Dict[str, Any]) -> TrackSummary:
    """TrackSummary from an API object; malformed payloads count as an outage."""
    try:
        return TrackSummary.from_api(item)
    except (TypeError, ValueError, AttributeError) as e:
        raise LookupUnavailable(f"Spotify returned a malformed track: {e}") from e

class TrackLookup(Protocol):
    def search(self, query: str, limit: int = 10) -> List[TrackSummary]: ...
    def fetch_track(self, track_id: str) -> Optional[TrackSummary]: ...


class NullLookup:
    """Stand-in when no Spotify credentials are configured."""

    def search(self, query: str, limit: int = 10) -> List[TrackSummary]:
        raise LookupUnavailable("Spotify credentials are not configured")

    def fetch_track(self, track_id: str) -> Optional[TrackSummary]:
        return None


class SpotifyLookup:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        session: Optional[requests.Session] = None,
        timeout: float = SPOTIFY_TIMEOUT,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.session = session or requests.Session()
        self.timeout = timeout
        self._access_token: Optional[str] = None
        self._token_expires = 0.0

    def _token(self) -> str:
        """Return a valid access token, reusing the cached one until shortly before expiry."""
        if self._access_token and time.time() < self._token_expires:
            return self._access_token

        credentials = f"{self.client_id}:{self.client_secret}"
        credentials_b64 = base64.b64encode(credentials.encode()).decode()
        try:
            response = self.session.post(
                TOKEN_URL,
                headers={
                    "Authorization": f"Basic {credentials_b64}",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                data={"grant_type": "client_credentials"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            log.warning("Spotify authentication failed: %s", e)
            raise LookupUnavailable(f"Spotify authentication failed: {e}") from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise LookupUnavailable("Spotify token response had no access_token")
        try:
            expires_in = int(data.get("expires_in", 3600))
        except (TypeError, ValueError) as e:
            raise LookupUnavailable(f"Spotify token response had a bad expires_in: {e}") from e
        # 60 second buffer before the advertised expiry
        self._access_token = token
        self._token_expires = time.time() + expires_in - 60
        return token

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        headers = {"Authorization": f"Bearer {self._token()}"}
        try:
            return self.session.get(
                f"{API_BASE}{path}", headers=headers, params=params, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            log.warning("Spotify request failed: %s %s", path, e)
            raise LookupUnavailable(f"Spotify request failed: {e}") from e

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise LookupUnavailable(f"Spotify returned invalid JSON: {e}") from e

    def search(self, query: str, limit: int = 10) -> List[TrackSummary]:
        q = (query or "").strip()
        if not q:
            return []
        response = self._get("/search", {"q": q, "type": "track", "limit": limit})
        if not response.ok:
            raise LookupUnavailable(f"Spotify search failed: HTTP {response.status_code}")
        items = (self._json(response).get("tracks") or {}).get("items") or []
        return [_summary(i) for i in items if isinstance(i, dict) and i.get("id")]

    def fetch_track(self, track_id: str) -> Optional[TrackSummary]:
        response = self._get(f"/tracks/{requests.utils.quote(str(track_id), safe='')}")
        if response.status_code in (400, 404):
            return None
        if not response.ok:
            raise LookupUnavailable(f"Spotify track fetch failed: HTTP {response.status_code}")
        payload = self._json(response)
        if not isinstance(payload, dict):
            raise LookupUnavailable("Spotify returned a non-object track")
        return _summary(payload)


def get_default_lookup() -> TrackLookup:
    """Spotify when credentials are configured, otherwise a null lookup."""
    if SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET:
        return SpotifyLookup(SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET)
    log.info("Spotify credentials not set; track lookup disabled")
    return NullLookup()
