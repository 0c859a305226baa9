import json

from soundmap.migrate import main, migrate
from soundmap.normalizers import StoredRecord, detect_variant
from soundmap.reconciler import CatalogReconciler
from soundmap.storage import JsonFileStore, SqlRecordStore

from conftest import LEGACY, NESTED


def _write(path, rows):
    path.write_text(json.dumps(rows))
    return path


def test_migrate_keeps_ids(tmp_path, sql_store):
    path = _write(tmp_path / "songDatabase.json", [NESTED, {"_id": "keep-me", **LEGACY}])
    ok, errors = migrate(JsonFileStore(path), sql_store)
    assert (ok, errors) == (2, [])
    assert [r.record_id for r in sql_store.fetch_all()] == ["1", "keep-me"]
    assert CatalogReconciler(sql_store).reconcile().rewritten == 2


def test_migrate_twice_does_not_duplicate(tmp_path, sql_store):
    path = _write(tmp_path / "songDatabase.json", [NESTED])
    migrate(JsonFileStore(path), sql_store)
    migrate(JsonFileStore(path), sql_store)
    assert len(sql_store.fetch_all()) == 1


def test_migrate_replace_clears_target(tmp_path, sql_store):
    sql_store.upsert(StoredRecord("old", {"name": "Old"}))
    path = _write(tmp_path / "songDatabase.json", [NESTED])
    migrate(JsonFileStore(path), sql_store, replace=True)
    assert [r.record_id for r in sql_store.fetch_all()] == ["1"]


def test_dry_run_writes_nothing(tmp_path, sql_store):
    path = _write(tmp_path / "songDatabase.json", [NESTED, LEGACY])
    raw = path.read_text()
    ok, errors = migrate(JsonFileStore(path), sql_store, dry_run=True)
    assert ok == 2
    assert sql_store.fetch_all() == []
    # rows without an _id must not be stamped into the source file
    assert path.read_text() == raw


def test_main_dry_run_leaves_source_untouched(tmp_path):
    path = _write(tmp_path / "songDatabase.json", [LEGACY])
    raw = path.read_text()
    url = f"sqlite:///{tmp_path / 'target.db'}"
    assert main(["--source", str(path), "--database-url", url, "--dry-run"]) == 0
    assert path.read_text() == raw


def test_main_migrates_and_reconciles(tmp_path):
    path = _write(tmp_path / "songDatabase.json", [NESTED, LEGACY])
    url = f"sqlite:///{tmp_path / 'target.db'}"
    assert main(["--source", str(path), "--database-url", url, "--reconcile"]) == 0

    from sqlalchemy.orm import sessionmaker
    from soundmap.db import make_engine
    db = sessionmaker(bind=make_engine(url), future=True)()
    try:
        records = SqlRecordStore(db).fetch_all()
    finally:
        db.close()
    assert len(records) == 2
    assert all(detect_variant(r.document) == "flattened" for r in records)


def test_main_reports_unreadable_source(tmp_path):
    path = tmp_path / "songDatabase.json"
    path.write_text("{broken")
    url = f"sqlite:///{tmp_path / 'target.db'}"
    assert main(["--source", str(path), "--database-url", url]) == 1
