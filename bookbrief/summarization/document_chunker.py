"""
Document chunking for summarization.
"""

import re
from typing import Callable, List

import structlog

from ..core.models import DocumentChunk

logger = structlog.get_logger(__name__)

# Heuristic boundary: whitespace after terminal punctuation. Abbreviations
# and decimals will occasionally split early; sizes stay bounded regardless.
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


class DocumentChunker:
    """Splits a document into ordered chunks no larger than max_size."""
    
    def __init__(self,
                 max_size: int = 8000,
                 separator: str = "\n\n",
                 length_function: Callable[[str], int] = len):
        """
        Initialize document chunker.
        
        Args:
            max_size: Largest allowed chunk, measured by length_function
            separator: Paragraph separator
            length_function: Size measure, characters by default
        """
        if max_size < 1:
            raise ValueError("max_size must be positive")
        if not separator:
            raise ValueError("separator must not be empty")
        self.max_size = max_size
        self.separator = separator
        self.length_function = length_function
    
    def split(self, text: str) -> List[DocumentChunk]:
        """
        Split text into indexed chunks.
        
        Args:
            text: Full document text
            
        Returns:
            Chunks in document order; empty for blank input
        """
        return [
            DocumentChunk(chunk_index=i, content=content, size=self.length_function(content))
            for i, content in enumerate(self.split_text(text))
        ]
    
    def split_text(self, text: str) -> List[str]:
        """Split text into chunk strings, preserving paragraph boundaries where possible."""
        if not text or not text.strip():
            return []
        
        chunks: List[str] = []
        current = ""
        
        for paragraph in text.split(self.separator):
            paragraph = paragraph.strip()
            if not paragraph:
                continue
            
            tentative = f"{current}{self.separator}{paragraph}" if current else paragraph
            if self._fits(tentative):
                current = tentative
                continue
            
            if current:
                chunks.append(current)
                current = ""
            
            if self._fits(paragraph):
                current = paragraph
                continue
            
            # Oversized paragraph: fall back to sentences
            pieces = self._split_sentences(paragraph)
            # The last piece may still absorb following paragraphs
            chunks.extend(pieces[:-1])
            current = pieces[-1] if pieces else ""
        
        if current:
            chunks.append(current)
        
        chunks = [c.strip() for c in chunks if c.strip()]
        logger.debug("Split document", chunk_count=len(chunks), max_size=self.max_size)
        return chunks
    
    def _fits(self, text: str) -> bool:
        return self.length_function(text) <= self.max_size
    
    def _split_sentences(self, paragraph: str) -> List[str]:
        pieces: List[str] = []
        current = ""
        
        for sentence in SENTENCE_BOUNDARY.split(paragraph):
            if not sentence:
                continue
            
            tentative = f"{current} {sentence}" if current else sentence
            if self._fits(tentative):
                current = tentative
                continue
            
            if current:
                pieces.append(current)
                current = ""
            
            if self._fits(sentence):
                current = sentence
            else:
                pieces.extend(self._hard_split(sentence))
        
        if current:
            pieces.append(current)
        
        return [p.strip() for p in pieces if p.strip()]
    
    def _hard_split(self, sentence: str) -> List[str]:
        """Last resort: slice at fixed character offsets."""
        width = self.max_size
        while True:
            slices = [sentence[i:i + width] for i in range(0, len(sentence), width)]
            slices = [s.strip() for s in slices if s.strip()]
            if width == 1 or all(self._fits(s) for s in slices):
                return slices
            width = max(1, width // 2)
