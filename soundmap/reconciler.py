import logging
from dataclasses import dataclass, field, replace
from typing import Any, List, Mapping, Optional

from soundmap.errors import (
    CatalogError,
    DuplicateRecord,
    LookupUnavailable,
    PartialReconcileFailure,
    RecordNotFound,
    ValidationFailed,
)
from soundmap.lookup.spotify import TrackLookup
from soundmap.normalizers import (
    CatalogEntry,
    NormalizerPipeline,
    StoredRecord,
    detect_variant,
    fingerprint,
    get_default_normalizer,
    to_canonical_document,
)
from soundmap.normalizers.rules import clean_text
from soundmap.storage.base import RecordStore

log = logging.getLogger(__name__)


@dataclass
class RecordFailure:
    record_id: Optional[str]
    error: str

    def to_dict(self) -> dict:
        return {"recordId": self.record_id, "error": self.error}


@dataclass
class ReconcileReport:
    rewritten: int = 0
    failures: List[RecordFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        if self.failures:
            raise PartialReconcileFailure(self)


class CatalogReconciler:
    """
    Lists, adds, deletes and rewrites stored song records.
    The store (and optional track lookup) are injected per request.
    """

    def __init__(
        self,
        store: RecordStore,
        lookup: Optional[TrackLookup] = None,
        normalizer: Optional[NormalizerPipeline] = None,
    ):
        self.store = store
        self.lookup = lookup
        self.normalizer = normalizer or get_default_normalizer()

    # ------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------
    def list_catalog(self, backfill: bool = False) -> List[CatalogEntry]:
        """Every stored record, normalized, in storage order."""
        entries = [self.normalizer.normalize(r) for r in self.store.fetch_all()]
        if backfill and self.lookup is not None:
            entries = self._backfill(entries)
        return entries

    def get_record(self, record_id: str) -> CatalogEntry:
        return self.normalizer.normalize(self.store.fetch_by_id(record_id))

    def _backfill(self, entries: List[CatalogEntry]) -> List[CatalogEntry]:
        """
        Fill missing artwork / zero popularity from the track lookup.
        Display only: nothing here is written back to storage.
        """
        out = []
        lookup_down = False
        for entry in entries:
            if lookup_down or not entry.track_id or (entry.image_url and entry.popularity):
                out.append(entry)
                continue
            try:
                track = self.lookup.fetch_track(entry.track_id)
            except LookupUnavailable as e:
                # one failure is enough; don't wait on every remaining row
                log.warning("backfill skipped, track lookup unavailable: %s", e)
                lookup_down = True
                out.append(entry)
                continue
            if track is None:
                out.append(entry)
                continue
            fetched = self.normalizer.normalize(track.to_document())
            out.append(replace(
                entry,
                image_url=entry.image_url or fetched.image_url,
                popularity=entry.popularity or fetched.popularity,
            ))
        return out

    # ------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------
    def reconcile(self) -> ReconcileReport:
        """
        Rewrite every record whose stored document differs from its canonical
        form. Idempotent: a second pass over unchanged storage rewrites nothing.
        One record failing does not stop the pass.
        """
        report = ReconcileReport()

        for record in self.store.fetch_all():
            try:
                canonical = to_canonical_document(record, self.normalizer)
                if fingerprint(canonical) == fingerprint(record.document):
                    continue
                # skip rows deleted since the listing rather than resurrecting them
                try:
                    self.store.fetch_by_id(record.record_id)
                except RecordNotFound:
                    log.info("record %s deleted during reconcile, skipping", record.record_id)
                    continue
                self.store.upsert(StoredRecord(record.record_id, canonical))
            except (CatalogError, TypeError, ValueError) as e:
                log.exception("record rewrite failed: record_id=%s", record.record_id)
                report.failures.append(RecordFailure(record.record_id, str(e)))
                continue

            report.rewritten += 1
            log.info(
                "rewrote record %s (%s -> canonical)",
                record.record_id, detect_variant(record.document),
            )

        log.info("reconcile finished: rewritten=%d failed=%d", report.rewritten, report.failed)
        return report

    def add_record(self, fields: Mapping[str, Any]) -> CatalogEntry:
        """
        Store a new song in the current schema.

        `fields` keys: title, track_id, artists, album, uri, popularity,
        print_number, owner. Missing track metadata is filled from the
        lookup when a track id is given; title, print_number and owner
        are required afterwards.
        """
        data = dict(fields)
        track_id = clean_text(data.get("track_id"))
        if track_id and self.lookup is not None and _needs_lookup(data):
            data = self._fill_from_lookup(track_id, data)

        missing = [
            label
            for label, key in (("title", "title"), ("printNumber", "print_number"), ("owner", "owner"))
            if not clean_text(data.get(key))
        ]
        if missing:
            msg = f"missing required field(s): {', '.join(missing)}"
            log.warning("song record rejected: %s (track_id=%s)", msg, track_id)
            raise ValidationFailed(msg, fields=missing)

        document = to_canonical_document({
            "spotifyId": track_id,
            "name": data.get("title"),
            "artists": data.get("artists") or [],
            "album": data.get("album") or {},
            "uri": data.get("uri"),
            "popularity": data.get("popularity"),
            "number": data.get("print_number"),
            "owner": data.get("owner"),
        }, self.normalizer)

        if track_id:
            for existing in self.list_catalog():
                if existing.track_id == track_id and existing.print_number == document["number"]:
                    log.warning(
                        "duplicate song rejected: track_id=%s number=%s", track_id, document["number"]
                    )
                    raise DuplicateRecord(
                        f"track {track_id} with print number {document['number']} already added"
                    )

        saved = self.store.upsert(StoredRecord(None, document))
        log.info("added record %s (%s)", saved.record_id, document["name"])
        return self.normalizer.normalize(saved)

    def _fill_from_lookup(self, track_id: str, data: dict) -> dict:
        try:
            track = self.lookup.fetch_track(track_id)
        except LookupUnavailable as e:
            log.warning("track lookup unavailable for %s: %s", track_id, e)
            return data
        if track is None:
            log.warning("track %s not found upstream", track_id)
            return data
        out = dict(data)
        if not clean_text(out.get("title")):
            out["title"] = track.name
        if not out.get("artists"):
            out["artists"] = track.artists
        if not out.get("album"):
            out["album"] = track.album
        if not out.get("uri"):
            out["uri"] = track.uri
        if out.get("popularity") is None:
            out["popularity"] = track.popularity
        return out

    def delete_record(self, record_id: str) -> None:
        self.store.delete_by_id(record_id)
        log.info("deleted record %s", record_id)


def _needs_lookup(data: Mapping[str, Any]) -> bool:
    return (
        not clean_text(data.get("title"))
        or not data.get("artists")
        or not data.get("album")
        or data.get("popularity") is None
    )
