"""
Length budgets for summaries, derived from document size.
"""

from typing import Optional

from ..core.config import Settings, settings as default_settings
from ..core.models import LengthBudget


class LengthBudgetPlanner:
    """Computes target and ceiling sizes for one summarization request."""
    
    def __init__(self,
                 target_ratio: float = 0.50,
                 ceiling_ratio: float = 0.55,
                 min_target_chars: int = 200,
                 min_chunk_target: int = 50,
                 chars_per_word: int = 5,
                 emergency_ratio: float = 0.50):
        if not 0 < target_ratio <= ceiling_ratio:
            raise ValueError("target_ratio must be positive and not exceed ceiling_ratio")
        if chars_per_word < 1:
            raise ValueError("chars_per_word must be positive")
        self.target_ratio = target_ratio
        self.ceiling_ratio = ceiling_ratio
        self.min_target_chars = min_target_chars
        self.min_chunk_target = min_chunk_target
        self.chars_per_word = chars_per_word
        self.emergency_ratio = emergency_ratio
    
    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "LengthBudgetPlanner":
        config = config or default_settings
        return cls(
            target_ratio=config.target_ratio,
            ceiling_ratio=config.ceiling_ratio,
            min_target_chars=config.min_target_chars,
            min_chunk_target=config.min_chunk_target,
            chars_per_word=config.chars_per_word,
            emergency_ratio=config.emergency_ratio,
        )
    
    def plan(self, document_chars: int, chunk_count: int = 1) -> LengthBudget:
        """
        Build the budget for a document.
        
        Args:
            document_chars: Length of the document in characters
            chunk_count: Number of chunks the document was split into
            
        Returns:
            LengthBudget with overall, per-chunk and ceiling sizes
        """
        if document_chars < 0:
            raise ValueError("document_chars must not be negative")
        chunk_count = max(1, chunk_count)
        
        total_target = max(self.min_target_chars, int(document_chars * self.target_ratio))
        ceiling = max(self.min_target_chars, int(document_chars * self.ceiling_ratio))
        per_chunk = max(self.min_chunk_target, total_target // chunk_count)
        
        return LengthBudget(
            document_chars=document_chars,
            total_target_chars=total_target,
            ceiling_chars=ceiling,
            chunk_count=chunk_count,
            per_chunk_target_chars=per_chunk,
            target_words=max(1, self.to_words(total_target)),
            per_chunk_target_words=max(self.min_chunk_target, self.to_words(per_chunk)),
        )
    
    def to_words(self, chars: int) -> int:
        """Convert a character budget to a word budget."""
        return chars // self.chars_per_word
    
    def emergency_target(self, document_chars: int) -> int:
        """Corrective target used when a summary outgrows its source."""
        return max(1, int(document_chars * self.emergency_ratio))
    
    @staticmethod
    def input_token_limit(target_summary_tokens: int,
                          model_context_tokens: int = 16000,
                          reserve_tokens: int = 1000,
                          minimum: int = 500) -> int:
        """
        Largest chunk, in tokens, that leaves room for the prompt and the summary.
        """
        return max(minimum, model_context_tokens - target_summary_tokens - reserve_tokens)
