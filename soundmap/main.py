from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import Depends, FastAPI

from .db import engine, Base
from .routers.catalog import router as catalog_router
from .routers.tracks import router as tracks_router
from soundmap.dependencies import get_store
from soundmap.lookup.spotify import get_default_lookup
from soundmap.settings import JSON_PATH, LOG_LEVEL, STORE_BACKEND
from soundmap.setup_logging import setup_logging
from soundmap.storage import JsonFileStore, RecordStore

# --------------------------------------------------------------------
# App bootstrap
# --------------------------------------------------------------------
setup_logging(LOG_LEVEL) # Init Logging

# --------------------------------------------------------------------
# FastAPI application with lifespan hook
# --------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Runs once at startup: prepares the configured store and the
    Spotify lookup that requests share for the life of the process.
    """
    if STORE_BACKEND == "json":
        app.state.json_store = JsonFileStore(JSON_PATH)
    else:
        # Create database tables if they don’t exist.
        Base.metadata.create_all(bind=engine)
    app.state.lookup = get_default_lookup()
    yield

app = FastAPI(title="soundmap", lifespan=lifespan)

# --------------------------------------------------------------------
# Routes
# --------------------------------------------------------------------
@app.get("/health")
def health(store: RecordStore = Depends(get_store)):
    """
    Simple health probe for monitoring.
    Returns:
      - ok: static True if the app is alive
      - store: configured backend ("sql" or "json")
      - database: whether the store answered a ping
    """
    return {
        "ok": True,
        "service": "soundmap",
        "store": STORE_BACKEND,
        "database": "connected" if store.ping() else "disconnected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

# Register API routers:
app.include_router(catalog_router)
app.include_router(tracks_router)
