"""
Error taxonomy for the summarization pipeline and its collaborators.
"""

import asyncio
from typing import Optional

import requests

TRANSIENT_MARKERS = (
    "429",
    "503",
    "overloaded",
    "rate limit",
    "rate-limit",
    "ratelimit",
    "too many requests",
    "server busy",
    "unavailable",
    "timed out",
    "timeout",
    "connection reset",
)


class BookBriefError(Exception):
    """Base class for all BookBrief errors."""


class ExtractionError(BookBriefError):
    """Text could not be extracted from an uploaded file."""


class UnsupportedFormatError(ExtractionError):
    """The file type is not one we know how to read."""


class ModelError(BookBriefError):
    """A call to the generative model failed."""
    
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransientModelError(ModelError):
    """Retryable failure: overload, rate limiting, timeouts."""


class PermanentModelError(ModelError):
    """Non-retryable failure: bad request, auth, malformed response."""


class EmptyContentError(BookBriefError):
    """The document has no textual content to summarize."""


class SummarizationFailedError(BookBriefError):
    """Summarization could not produce a result."""
    
    def __init__(self, message: str):
        super().__init__(f"Summarization failed: {message}")
        self.original_message = message


class SafetyInvariantViolation(BookBriefError):
    """Summary is longer than the document it summarizes."""
    
    def __init__(self, summary_chars: int, limit_chars: int):
        super().__init__(f"summary has {summary_chars} chars, limit is {limit_chars}")
        self.summary_chars = summary_chars
        self.limit_chars = limit_chars


def classify_model_error(error: BaseException) -> ModelError:
    """
    Map an arbitrary exception raised by a model call to a ModelError.
    
    Errors without an explicit transient signal are treated as permanent.
    """
    if isinstance(error, ModelError):
        return error
    
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, ConnectionError,
                          requests.Timeout, requests.ConnectionError)):
        return TransientModelError(str(error) or type(error).__name__)
    
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int) and (status_code == 429 or status_code >= 500):
        return TransientModelError(str(error), status_code=status_code)
    
    message = str(error)
    lowered = f"{type(error).__name__} {message}".lower()
    if any(marker in lowered for marker in TRANSIENT_MARKERS):
        return TransientModelError(message, status_code=status_code)
    
    return PermanentModelError(message or type(error).__name__, status_code=status_code)
