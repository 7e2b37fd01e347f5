"""
Per-chunk summarization with retry and placeholder fallback.
"""

from typing import Tuple

import structlog

from ..core.exceptions import ModelError
from ..core.models import ChunkSummary, DocumentChunk
from .model_client import ModelCapability, call_with_retry

logger = structlog.get_logger(__name__)

FAILURE_MARKER = "[Error summarizing this section: {error}]"


class ChunkSummarizer:
    """Summarizes single chunks of a document against a word budget."""
    
    def __init__(self,
                 model: ModelCapability,
                 max_attempts: int = 3,
                 retry_base_delay: float = 1.0):
        self.model = model
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        
        self.prompt_template = """You are an expert at writing precise summaries. Extract only the most important insights, key findings and essential information, and leave out examples, anecdotes and minor details.

Summarize the following text in {target_words} words or less. Be brief and focused.

Text:
{content}

Summary ({target_words} words max):"""
    
    def build_prompt(self, text: str, target_words: int) -> str:
        return self.prompt_template.format(content=text, target_words=target_words)
    
    async def generate(self, text: str, target_words: int) -> str:
        """
        Summarize text, raising if the model fails.
        
        Used by the single-call path, where there is no fallback content.
        """
        return await call_with_retry(
            self.model,
            self.build_prompt(text, target_words),
            max_attempts=self.max_attempts,
            base_delay=self.retry_base_delay,
            stage="summarize",
        )
    
    async def _summarize_or_placeholder(self, text: str, target_words: int,
                                        **log_fields) -> Tuple[str, bool]:
        """Return (summary, failed); on model failure the summary is the placeholder."""
        try:
            return await self.generate(text, target_words), False
        except ModelError as e:
            logger.error("Failed to summarize chunk", error=str(e), **log_fields)
            return FAILURE_MARKER.format(error=e), True
    
    async def summarize(self, text: str, target_words: int) -> str:
        """
        Summarize text, never raising on model failure.
        
        Args:
            text: Chunk text
            target_words: Word budget for the summary
        
        Returns:
            The summary, or a tagged placeholder embedding the error
        """
        summary, _ = await self._summarize_or_placeholder(text, target_words, chars=len(text))
        return summary
    
    async def summarize_chunk(self, chunk: DocumentChunk, target_words: int) -> ChunkSummary:
        """Summarize an indexed chunk, keeping its position."""
        logger.debug("Summarizing chunk", chunk_index=chunk.chunk_index, size=chunk.size)
        summary, failed = await self._summarize_or_placeholder(
            chunk.content, target_words, chunk_index=chunk.chunk_index)
        
        return ChunkSummary(
            chunk_index=chunk.chunk_index,
            summary=summary,
            failed=failed,
        )
