from soundmap.dependencies import get_store
from soundmap.main import app
from soundmap.normalizers import detect_variant

from conftest import FakeLookup


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    out = r.json()
    assert out["ok"] is True
    assert out["database"] == "connected"


def test_list_catalog(client, seed_sample):
    r = client.get("/catalog")
    assert r.status_code == 200
    data = r.json()
    assert [d["recordId"] for d in data] == ["rec-nested", "rec-flat", "rec-legacy"]
    assert data[0]["imageUrl"] == "https://img/300"
    assert data[2]["artistDisplay"] == "John Coltrane"


def test_list_catalog_search_sort_and_page(client, seed_sample):
    r = client.get("/catalog", params={"q": "coltrane"})
    assert {d["title"] for d in r.json()} == {"So What", "Naima"}

    r = client.get("/catalog", params={"q": "ale", "field": "owner"})
    assert [d["owner"] for d in r.json()] == ["Alex"]

    r = client.get("/catalog", params={"sort": "number", "direction": "desc"})
    assert [d["printNumber"] for d in r.json()] == ["12", "7", "3"]

    r = client.get("/catalog", params={"sort": "popularity", "limit": 1, "offset": 1})
    assert [d["title"] for d in r.json()] == ["Blue in Green"]


def test_list_catalog_rejects_unknown_sort(client):
    r = client.get("/catalog", params={"sort": "owner"})
    assert r.status_code == 422


def test_get_record(client, seed_sample):
    r = client.get("/catalog/rec-legacy")
    assert r.status_code == 200
    assert r.json()["title"] == "Naima"
    assert client.get("/catalog/nope").status_code == 404


def test_add_record_with_spotify_shaped_body(client):
    payload = {
        "spotifyId": "trk-x",
        "name": "Moment's Notice",
        "artists": [{"id": "a2", "name": "John Coltrane"}],
        "album": {"images": [{"height": 64, "width": 64, "url": "https://img/mn"}]},
        "uri": "spotify:track:trk-x",
        "popularity": 48,
        "number": "4",
        "owner": "Casey",
    }
    r = client.post("/catalog", json=payload)
    assert r.status_code == 200, r.text
    out = r.json()
    assert out["ok"] is True
    assert out["entry"]["trackId"] == "trk-x"
    assert out["entry"]["imageUrl"] == "https://img/mn"

    r2 = client.get("/catalog")
    assert any(d["recordId"] == out["entry"]["recordId"] for d in r2.json())


def test_add_record_fills_from_lookup(client, fake_lookup):
    r = client.post("/catalog", json={"trackId": "trk-new", "printNumber": 9, "owner": "Morgan"})
    assert r.status_code == 200, r.text
    entry = r.json()["entry"]
    assert entry["title"] == "Giant Steps"
    assert entry["printNumber"] == "9"
    assert ("fetch_track", "trk-new") in fake_lookup.calls


def test_add_record_missing_fields(client):
    r = client.post("/catalog", json={"title": "No owner", "printNumber": "1"})
    assert r.status_code == 400
    assert "owner" in r.json()["detail"]


def test_add_record_duplicate(client, seed_sample):
    r = client.post("/catalog", json={"trackId": "trk-flat", "title": "Blue in Green", "printNumber": "3", "owner": "Alex"})
    assert r.status_code == 409


def test_delete_record(client, seed_sample):
    r = client.delete("/catalog/rec-flat")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "deleted": "rec-flat"}
    assert len(client.get("/catalog").json()) == 2


def test_delete_unknown_record(client, seed_sample):
    r = client.delete("/catalog/missing")
    assert r.status_code == 404
    assert len(client.get("/catalog").json()) == 3


def test_reconcile_endpoint(client, seed_sample, sql_store):
    r = client.get("/catalog/reconcile")
    assert r.status_code == 200
    out = r.json()
    assert out == {"ok": True, "rewritten": 2, "failed": 0, "errors": []}
    assert all(detect_variant(rec.document) == "flattened" for rec in sql_store.fetch_all())

    again = client.get("/catalog/reconcile").json()
    assert again["rewritten"] == 0


def test_storage_outage_is_503(client):
    class DownStore:
        def fetch_all(self):
            from soundmap.errors import StorageUnavailable
            raise StorageUnavailable("database unavailable")

    app.dependency_overrides[get_store] = lambda: DownStore()
    r = client.get("/catalog")
    assert r.status_code == 503


def test_track_search(client):
    r = client.get("/tracks/search", params={"q": "giant"})
    assert r.status_code == 200
    [track] = r.json()
    assert track["id"] == "trk-new"
    assert track["artists"][0]["name"] == "John Coltrane"


def test_track_search_unavailable(client):
    from soundmap.dependencies import get_lookup
    app.dependency_overrides[get_lookup] = lambda: FakeLookup(down=True)
    r = client.get("/tracks/search", params={"q": "giant"})
    assert r.status_code == 503
