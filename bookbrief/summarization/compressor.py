"""
Final compression and the summary length safety bound.
"""

import structlog

from ..core.exceptions import ModelError, SafetyInvariantViolation
from .model_client import ModelCapability, call_with_retry

logger = structlog.get_logger(__name__)

ELLIPSIS = "..."


def truncate(text: str, max_chars: int) -> str:
    """
    Hard-truncate text to at most max_chars characters, marking the cut.
    """
    if max_chars <= 0:
        return ""
    if len(text) <= max_chars:
        return text
    if max_chars <= len(ELLIPSIS):
        return text[:max_chars]
    return text[:max_chars - len(ELLIPSIS)].rstrip() + ELLIPSIS


def check_bound(text: str, limit: int) -> None:
    """Raise SafetyInvariantViolation if text is longer than limit."""
    if len(text) > limit:
        raise SafetyInvariantViolation(len(text), limit)


class FinalCompressor:
    """Shrinks summaries that exceed their allowed length."""
    
    def __init__(self,
                 model: ModelCapability,
                 chars_per_word: int = 5,
                 max_attempts: int = 3,
                 retry_base_delay: float = 1.0):
        self.model = model
        self.chars_per_word = chars_per_word
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        
        self.prompt_template = """You are an expert at writing precise summaries. Keep only the most important insights and key points.

Compress this summary to {target_words} words or less. Be extremely brief.

Summary:
{summary}

Compressed summary ({target_words} words max):"""
    
    async def compress(self, text: str, max_chars: int) -> str:
        """
        Compress text to at most max_chars characters.
        
        Asks the model for a word budget derived from max_chars. If the model
        fails or still overshoots, the text is truncated with an ellipsis.
        """
        target_words = max(1, max_chars // self.chars_per_word)
        prompt = self.prompt_template.format(summary=text, target_words=target_words)
        
        try:
            compressed = await call_with_retry(
                self.model,
                prompt,
                max_attempts=self.max_attempts,
                base_delay=self.retry_base_delay,
                stage="compress",
            )
        except ModelError as e:
            logger.error("Failed to compress summary, truncating",
                         chars=len(text), max_chars=max_chars, error=str(e))
            return truncate(text, max_chars)
        
        if len(compressed) > max_chars:
            logger.warning("Compressed summary still too long, truncating",
                           chars=len(compressed), max_chars=max_chars)
            return truncate(compressed, max_chars)
        return compressed
    
    async def enforce_bound(self, summary: str, original_chars: int,
                            emergency_chars: int) -> str:
        """
        Guarantee the summary is no longer than the original document.
        
        Args:
            summary: Candidate final summary
            original_chars: Length of the source document
            emergency_chars: Target for the corrective compression pass
            
        Returns:
            Summary of at most original_chars characters
        """
        try:
            check_bound(summary, original_chars)
            return summary
        except SafetyInvariantViolation as e:
            logger.warning("Summary longer than original, applying emergency compression",
                           summary_chars=e.summary_chars, original_chars=e.limit_chars)
        
        corrected = await self.compress(summary, min(emergency_chars, original_chars))
        try:
            check_bound(corrected, original_chars)
        except SafetyInvariantViolation:
            corrected = truncate(corrected, original_chars)
        return corrected
