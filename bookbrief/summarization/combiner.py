"""
Merging of partial summaries into one summary.
"""

from typing import List, Sequence

import structlog

from ..core.exceptions import ModelError
from .model_client import ModelCapability, call_with_retry

logger = structlog.get_logger(__name__)

SECTION_SEPARATOR = "\n\n---\n\n"
FALLBACK_SEPARATOR = "\n\n"


class SummaryCombiner:
    """Combines ordered partial summaries with a second model call."""
    
    def __init__(self,
                 model: ModelCapability,
                 max_attempts: int = 3,
                 retry_base_delay: float = 1.0):
        self.model = model
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        
        self.prompt_template = """You are an expert at writing precise final summaries. The sections below summarize consecutive parts of one document, in order.

Combine them into one coherent summary of {target_words} words or less. Keep the most important insights and key points, remove anything repeated across sections, and keep the order of the original.

Sections:
{sections}

Final summary ({target_words} words max):"""
    
    async def combine(self, summaries: Sequence[str], target_words: int) -> str:
        """
        Merge partial summaries.
        
        Args:
            summaries: Partial summaries in chunk order
            target_words: Word budget for the merged summary
            
        Returns:
            The merged summary; a single summary is returned untouched and
            model failures fall back to plain concatenation
        """
        parts: List[str] = list(summaries)
        if not parts:
            return ""
        if len(parts) == 1:
            return parts[0]
        
        prompt = self.prompt_template.format(
            sections=SECTION_SEPARATOR.join(parts),
            target_words=target_words,
        )
        
        try:
            combined = await call_with_retry(
                self.model,
                prompt,
                max_attempts=self.max_attempts,
                base_delay=self.retry_base_delay,
                stage="combine",
            )
        except ModelError as e:
            logger.error("Failed to combine summaries, concatenating",
                         sections=len(parts), error=str(e))
            return FALLBACK_SEPARATOR.join(parts)
        
        logger.info("Combined summaries", sections=len(parts), chars=len(combined))
        return combined
