import os
import tempfile
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from soundmap.main import app
from soundmap.db import Base, get_db
from soundmap.dependencies import get_lookup
from soundmap.errors import LookupUnavailable
from soundmap.lookup.spotify import TrackSummary
from soundmap.normalizers import StoredRecord
from soundmap.storage import SqlRecordStore


# --- One document per historical shape ---
NESTED = {
    "id": 1,
    "song": {
        "id": "trk-nested",
        "name": "So What",
        "artists": [{"id": "a1", "name": "Miles Davis"}, {"id": "a2", "name": "John Coltrane"}],
        "album": {
            "id": "alb1",
            "name": "Kind of Blue",
            "images": [
                {"height": 640, "width": 640, "url": "https://img/640"},
                {"height": 300, "width": 300, "url": "https://img/300"},
                {"height": 64, "width": 64, "url": "https://img/64"},
            ],
        },
        "uri": "spotify:track:trk-nested",
        "popularity": 71,
    },
    "number": "12",
    "owner": "Sam",
}

FLATTENED = {
    "spotifyId": "trk-flat",
    "name": "Blue in Green",
    "artists": [{"id": "a1", "name": "Miles Davis"}],
    "album": {"id": "alb1", "name": "Kind of Blue", "images": [{"height": 64, "width": 64, "url": "https://img/small"}]},
    "uri": "spotify:track:trk-flat",
    "popularity": 55,
    "number": "3",
    "owner": "Alex",
}

LEGACY = {
    "song": {"id": "trk-legacy", "name": "Naima", "artist": "John Coltrane", "albumImage": "https://img/legacy"},
    "number": "7",
    "owner": "Jordan",
}


class FakeLookup:
    """In-process stand-in for the Spotify lookup."""
    def __init__(self, tracks=None, down=False):
        self.tracks = {t.id: t for t in (tracks or [])}
        self.down = down
        self.calls = []

    def search(self, query, limit=10):
        self.calls.append(("search", query))
        if self.down:
            raise LookupUnavailable("offline")
        q = query.lower()
        return [t for t in self.tracks.values() if q in t.name.lower()][:limit]

    def fetch_track(self, track_id):
        self.calls.append(("fetch_track", track_id))
        if self.down:
            raise LookupUnavailable("offline")
        return self.tracks.get(track_id)


def make_track(track_id="trk-new", name="Giant Steps", popularity=64):
    return TrackSummary(
        id=track_id,
        name=name,
        artists=[{"id": "a2", "name": "John Coltrane"}],
        album={"id": "alb2", "name": "Giant Steps", "images": [
            {"height": 640, "width": 640, "url": "https://img/gs-640"},
            {"height": 300, "width": 300, "url": "https://img/gs-300"},
        ]},
        uri=f"spotify:track:{track_id}",
        popularity=popularity,
    )


# --- Temporary SQLite DB file for the whole test session ---
@pytest.fixture(scope="session")
def tmp_db_url():
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    url = f"sqlite:///{path}"
    yield url
    try:
        os.remove(path)
    except OSError:
        pass


@pytest.fixture(scope="session")
def engine(tmp_db_url):
    eng = create_engine(tmp_db_url, connect_args={"check_same_thread": False}, future=True)
    Base.metadata.create_all(bind=eng)
    return eng


@pytest.fixture(scope="function")
def db_session(engine):
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
    db = TestingSession()
    # stores commit per write, so start every test from an empty table
    db.execute(text("DELETE FROM songs"))
    db.commit()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture
def sql_store(db_session):
    return SqlRecordStore(db_session)


@pytest.fixture
def fake_lookup():
    return FakeLookup([make_track()])


# --- Override FastAPI's DB and lookup dependencies ---
@pytest.fixture(autouse=True)
def override_dependencies(db_session, fake_lookup):
    def _get_db():
        try:
            yield db_session
        finally:
            pass
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_lookup] = lambda: fake_lookup
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def seed_sample(sql_store):
    """One stored record of each historical shape, in this order."""
    return [
        sql_store.upsert(StoredRecord("rec-nested", NESTED)),
        sql_store.upsert(StoredRecord("rec-flat", FLATTENED)),
        sql_store.upsert(StoredRecord("rec-legacy", LEGACY)),
    ]
