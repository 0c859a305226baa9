#!/usr/bin/env python3
"""
Copy songs from a songDatabase.json file into the SQL store.

Record ids are kept, so running it twice overwrites rather than duplicates.

Examples:
  python -m soundmap.migrate --source songDatabase.json
  python -m soundmap.migrate --source songDatabase.json --replace --reconcile
"""
import argparse
import logging
import sys

from sqlalchemy.orm import sessionmaker

from soundmap.db import Base, make_engine
from soundmap.errors import CatalogError, PartialReconcileFailure
from soundmap.reconciler import CatalogReconciler
from soundmap.settings import DATABASE_URL, JSON_PATH, LOG_LEVEL
from soundmap.setup_logging import setup_logging
from soundmap.storage import JsonFileStore, SqlRecordStore

log = logging.getLogger("soundmap.migrate")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m soundmap.migrate",
        description="Copy songs from a JSON file store into the SQL store",
        epilog=__doc__.split("Examples:")[1] if __doc__ else "",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--source", default=str(JSON_PATH), help="JSON array file to read")
    parser.add_argument("--database-url", default=DATABASE_URL, help="SQLAlchemy URL of the target")
    parser.add_argument("--replace", action="store_true", help="Delete existing songs in the target first")
    parser.add_argument("--reconcile", action="store_true", help="Rewrite migrated songs to the current schema")
    parser.add_argument("--dry-run", action="store_true", help="Report what would be copied without writing")
    return parser


def migrate(source: JsonFileStore, target: SqlRecordStore, replace: bool = False, dry_run: bool = False) -> tuple[int, list[dict]]:
    """Copy every record; returns (copied, errors) like a batch upsert."""
    if dry_run and source.persist_ids:
        source = JsonFileStore(source.path, persist_ids=False)
    records = source.fetch_all()
    log.info("found %d songs in %s", len(records), source.path)
    if dry_run:
        return len(records), []

    if replace:
        removed = target.clear()
        log.info("cleared %d existing songs", removed)

    ok = 0
    errors: list[dict] = []
    for record in records:
        try:
            target.upsert(record)
            ok += 1
        except CatalogError as e:
            log.warning("song %s not migrated: %s", record.record_id, e)
            errors.append({"recordId": record.record_id, "error": str(e)})
    return ok, errors


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(LOG_LEVEL)

    engine = make_engine(args.database_url)
    Base.metadata.create_all(bind=engine)
    db = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)()
    try:
        target = SqlRecordStore(db)
        try:
            ok, errors = migrate(JsonFileStore(args.source, persist_ids=not args.dry_run), target, replace=args.replace, dry_run=args.dry_run)
        except CatalogError as e:
            log.error("migration failed: %s", e)
            return 1
        log.info("%s %d songs, %d failed", "would copy" if args.dry_run else "copied", ok, len(errors))

        if args.reconcile and not args.dry_run:
            report = CatalogReconciler(target).reconcile()
            try:
                report.raise_for_failures()
            except PartialReconcileFailure as e:
                log.error("%s", e)
                return 1
        return 1 if errors else 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
