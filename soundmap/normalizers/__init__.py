from .pipeline import get_default_normalizer, normalize, NormalizerPipeline
from .rules import RuleNormalizer
from .shapes import ShapeNormalizer, detect_variant
from .canonical import to_canonical_document, fingerprint
from .types import CatalogEntry, Record, StoredRecord, Variant
from .base import Normalizer

__all__ = [
    "get_default_normalizer",
    "normalize",
    "NormalizerPipeline",
    "RuleNormalizer",
    "ShapeNormalizer",
    "detect_variant",
    "to_canonical_document",
    "fingerprint",
    "CatalogEntry",
    "Record",
    "StoredRecord",
    "Variant",
    "Normalizer",
]
