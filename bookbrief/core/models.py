"""
Data models for the BookBrief summarization system.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class DocumentChunk(BaseModel):
    """Contiguous piece of a document, tagged with its position."""
    chunk_index: int = Field(ge=0)
    content: str
    size: int = Field(ge=0)


class ChunkSummary(BaseModel):
    """Partial summary of one chunk."""
    chunk_index: int = Field(ge=0)
    summary: str
    failed: bool = False


class LengthBudget(BaseModel):
    """Size plan for one summarization request, in characters."""
    model_config = ConfigDict(frozen=True)
    
    document_chars: int = Field(ge=0)
    total_target_chars: int = Field(gt=0)
    ceiling_chars: int = Field(gt=0)
    chunk_count: int = Field(default=1, ge=1)
    per_chunk_target_chars: int = Field(gt=0)
    target_words: int = Field(gt=0)
    per_chunk_target_words: int = Field(gt=0)


class FinalSummary(BaseModel):
    """Final summary returned to the caller, with size metadata."""
    model_config = ConfigDict(frozen=True)
    
    text: str
    original_chars: int
    summary_chars: int
    summary_bytes: int
    chunk_count: int = 1
    failed_chunks: int = 0
    single_call: bool = True
    compressed: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    
    @property
    def ratio(self) -> float:
        """Summary length as a fraction of the original."""
        if not self.original_chars:
            return 0.0
        return self.summary_chars / self.original_chars


class DocumentPreview(BaseModel):
    """Leading excerpt of an extracted document."""
    preview: str
    full_length: int
    source: Optional[str] = None
