"""
Error kinds raised by the scoresheet ingestion pipeline.
"""


class ScorebookError(Exception):
    """Base class for pipeline errors."""
    pass


class ExtractionError(ScorebookError):
    """Raised when the OCR engine is unavailable, fails, or times out."""
    pass


class ValidationError(ScorebookError):
    """Raised when input to confirm is malformed. Nothing has been written."""
    pass


class PersistenceError(ScorebookError):
    """Raised when a database write fails during confirm."""
    pass


class DuplicateScoresheetError(ScorebookError):
    """Raised when a scoresheet that was already confirmed is confirmed again."""

    def __init__(self, source_reference: str):
        self.source_reference = source_reference
        super().__init__(f"Scoresheet {source_reference} has already been processed")
