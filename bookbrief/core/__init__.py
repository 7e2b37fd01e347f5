"""
Core module for the BookBrief summarization system.
"""

from .config import Settings, settings
from .exceptions import (
    BookBriefError,
    EmptyContentError,
    ExtractionError,
    ModelError,
    PermanentModelError,
    SafetyInvariantViolation,
    SummarizationFailedError,
    TransientModelError,
    UnsupportedFormatError,
)
from .models import (
    ChunkSummary,
    DocumentChunk,
    DocumentPreview,
    FinalSummary,
    LengthBudget,
)

__all__ = [
    "Settings",
    "settings",
    "BookBriefError",
    "EmptyContentError",
    "ExtractionError",
    "ModelError",
    "PermanentModelError",
    "SafetyInvariantViolation",
    "SummarizationFailedError",
    "TransientModelError",
    "UnsupportedFormatError",
    "ChunkSummary",
    "DocumentChunk",
    "DocumentPreview",
    "FinalSummary",
    "LengthBudget",
]
