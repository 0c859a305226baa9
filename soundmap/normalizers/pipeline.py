from copy import deepcopy
from typing import List, Union
from .base import Normalizer
from .types import CatalogEntry, Record, StoredRecord, Variant
from .rules import RuleNormalizer
from .shapes import ShapeNormalizer, detect_variant

class NormalizerPipeline(Normalizer):
    """
    A chain of normalizers.
    Each stage takes the output of the previous stage; the first stage
    sees the raw stored document, the last one produces resolved fields.
    """
    def __init__(self, stages: List[Normalizer]):
        self.stages = stages

    def normalize_record(self, variant: Variant, rec: Record) -> Record:
        out = deepcopy(rec)  # Don't mutate the input
        # Apply each normalizer in a sequence
        for stage in self.stages:
            out = stage.normalize_record(variant, out)
        return out

    def resolve(self, record: Union[StoredRecord, Record, None]) -> tuple:
        """Return (record_id, resolved fields) for a stored record or bare document."""
        if isinstance(record, StoredRecord):
            record_id, doc = record.record_id, record.document
        else:
            record_id, doc = None, record
        if not isinstance(doc, dict):
            doc = {}
        return record_id, self.normalize_record(detect_variant(doc), doc)

    def normalize(self, record: Union[StoredRecord, Record, None]) -> CatalogEntry:
        record_id, out = self.resolve(record)
        return CatalogEntry(
            record_id=record_id,
            track_id=out["track_id"],
            title=out["title"],
            artist_display=out["artist_display"],
            image_url=out["image_url"],
            print_number=out["print_number"],
            owner=out["owner"],
            popularity=out["popularity"],
        )

def get_default_normalizer() -> NormalizerPipeline:
    """Factory for the default pipeline: shape lifting, then rule resolution."""
    return NormalizerPipeline([ShapeNormalizer(), RuleNormalizer()])

def normalize(record: Union[StoredRecord, Record, None]) -> CatalogEntry:
    """Normalize one stored record with the default pipeline."""
    return get_default_normalizer().normalize(record)
