# soundmap/settings.py
import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# .env at the project root fills in anything not already exported
load_dotenv(PROJECT_ROOT / ".env")


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# Storage backend: "sql" (SQLAlchemy) or "json" (single JSON array file)
STORE_BACKEND = os.getenv("SOUNDMAP_STORE", "sql").strip().lower()
DATABASE_URL = os.getenv("SOUNDMAP_DATABASE_URL", "sqlite:///./soundmap.sqlite3")
JSON_PATH = Path(os.getenv("SOUNDMAP_JSON_PATH", str(PROJECT_ROOT / "songDatabase.json")))

LOG_LEVEL = os.getenv("SOUNDMAP_LOG_LEVEL", "INFO")

# Fill missing popularity/artwork from Spotify when listing (never persisted)
DISPLAY_BACKFILL = _flag("SOUNDMAP_DISPLAY_BACKFILL")

# Spotify client-credentials app
SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID", "")
SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET", "")
SPOTIFY_TIMEOUT = float(os.getenv("SPOTIFY_TIMEOUT", "10"))

API_HOST = os.getenv("SOUNDMAP_API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("SOUNDMAP_API_PORT", "8000"))
