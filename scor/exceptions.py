"""
Error taxonomy for the scoring pipeline.

Only the normalizer and the fetch boundary raise; scorers never do.
"""
from typing import Optional


class ScorError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message} (caused by: {self.original_error})"
        return self.message


class InvalidSubjectFormat(ScorError):
    """Subject identifier is not a 0x-prefixed 40 hex character address."""

    def __init__(self, subject: str):
        super().__init__(f"Invalid Ethereum address format: {subject!r}")
        self.subject = subject


class UpstreamUnavailable(ScorError):
    """Chain-data or price-data fetch failed."""

    def __init__(
        self,
        message: str,
        source: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_error)
        self.source = source
        self.status_code = status_code


class DataFormatError(ScorError):
    """Fetched data does not match the expected shape."""


class CacheUnavailable(ScorError):
    """The cache backend cannot be reached."""
