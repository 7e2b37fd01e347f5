"""
Size estimation for text spans in model units.
"""

import math
from typing import Optional

import structlog
import tiktoken

logger = structlog.get_logger(__name__)

WORDS_PER_TOKEN = 0.75
CHARS_PER_TOKEN = 4


class HeuristicEstimator:
    """Approximates token counts without a tokenizer."""
    
    def __init__(self, mode: str = "words"):
        if mode not in ("words", "chars"):
            raise ValueError(f"Unknown estimation mode: {mode}")
        self.mode = mode
    
    def estimate(self, text: str) -> int:
        if not text or not text.strip():
            return 0
        if self.mode == "chars":
            return math.ceil(len(text) / CHARS_PER_TOKEN)
        return math.ceil(len(text.split()) / WORDS_PER_TOKEN)
    
    __call__ = estimate


class TiktokenEstimator:
    """
    Exact token counts from a tiktoken encoding.
    
    Falls back to the heuristic estimator when the encoding cannot be loaded
    or encoding fails, so estimate() never raises.
    """
    
    def __init__(self, model_name: str = "gpt-3.5-turbo",
                 fallback: Optional[HeuristicEstimator] = None):
        self.model_name = model_name
        self.fallback = fallback or HeuristicEstimator("words")
        self._encoding = self._load_encoding(model_name)
    
    def _load_encoding(self, model_name: str):
        try:
            return tiktoken.encoding_for_model(model_name)
        except KeyError:
            # Unknown model name, use the common encoding
            pass
        except Exception as e:
            logger.warning("Failed to load tokenizer, using heuristic estimate",
                           model=model_name, error=str(e))
            return None
        
        try:
            return tiktoken.get_encoding("cl100k_base")
        except Exception as e:
            logger.warning("Failed to load tokenizer, using heuristic estimate",
                           model=model_name, error=str(e))
            return None
    
    @property
    def precise(self) -> bool:
        """Whether a real tokenizer is in use."""
        return self._encoding is not None
    
    def estimate(self, text: str) -> int:
        if not text:
            return 0
        if self._encoding is None:
            return self.fallback.estimate(text)
        try:
            return len(self._encoding.encode(text, disallowed_special=()))
        except Exception as e:
            logger.debug("Tokenizer failed, using heuristic estimate", error=str(e))
            return self.fallback.estimate(text)
    
    __call__ = estimate
