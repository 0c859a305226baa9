# soundmap/normalizers/base.py
from typing import Protocol
from .types import Record, Variant

class Normalizer(Protocol):
    def normalize_record(self, variant: Variant, rec: Record) -> Record:
        """
        One stage of song-record normalization. `variant` is the stored shape
        the document was detected as; the first stage receives the raw stored
        document, later stages the flat source view. Return a NEW dict, never
        mutate `rec`.
        """
        ...
