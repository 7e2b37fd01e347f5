"""
Main summarization pipeline: budget, chunk, summarize, combine, compress.
"""

import asyncio
import math
from typing import List, Optional, Tuple

import structlog

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import (
    EmptyContentError,
    ModelError,
    SummarizationFailedError,
)
from ..core.models import ChunkSummary, DocumentChunk, FinalSummary, LengthBudget
from ..summarization.budget_planner import LengthBudgetPlanner
from ..summarization.chunk_summarizer import ChunkSummarizer
from ..summarization.combiner import SummaryCombiner
from ..summarization.compressor import FinalCompressor
from ..summarization.document_chunker import DocumentChunker
from ..summarization.length_estimator import WORDS_PER_TOKEN, TiktokenEstimator
from ..summarization.model_client import ModelCapability

logger = structlog.get_logger(__name__)


class SummarizationPipeline:
    """Turns one document into a bounded-length summary."""
    
    def __init__(self,
                 model: ModelCapability,
                 config: Optional[Settings] = None,
                 estimator=None):
        """
        Initialize the pipeline.
        
        Args:
            model: Model capability used for every generation step
            config: Settings; the process-wide settings when omitted
            estimator: Token estimator; tiktoken-based when omitted
        """
        self.model = model
        self.config = config or default_settings
        self.estimator = estimator or TiktokenEstimator(self.config.tokenizer_model)
        
        self.planner = LengthBudgetPlanner.from_settings(self.config)
        retry = {
            "max_attempts": self.config.max_attempts,
            "retry_base_delay": self.config.retry_base_delay_seconds,
        }
        self.chunk_summarizer = ChunkSummarizer(model, **retry)
        self.combiner = SummaryCombiner(model, **retry)
        self.compressor = FinalCompressor(model, chars_per_word=self.config.chars_per_word, **retry)
    
    def build_chunker(self, budget: LengthBudget) -> DocumentChunker:
        """Chunker sized in characters or model tokens, per CHUNK_UNIT."""
        if self.config.chunk_unit == "tokens":
            target_tokens = math.ceil(budget.target_words / WORDS_PER_TOKEN)
            max_tokens = self.planner.input_token_limit(
                target_tokens,
                model_context_tokens=self.config.model_context_tokens,
                reserve_tokens=self.config.context_reserve_tokens,
            )
            return DocumentChunker(
                max_size=max_tokens,
                separator=self.config.paragraph_separator,
                length_function=self.estimator.estimate,
            )
        return DocumentChunker(
            max_size=self.config.chunk_size,
            separator=self.config.paragraph_separator,
        )
    
    async def summarize(self, text: str) -> str:
        """
        Summarize a document.
        
        Raises:
            EmptyContentError: The document has no content
            SummarizationFailedError: Any other unrecoverable failure
        """
        result = await self.run(text)
        return result.text
    
    def summarize_sync(self, text: str) -> str:
        """Blocking wrapper around summarize() for synchronous callers."""
        return asyncio.run(self.summarize(text))
    
    async def run(self, text: str) -> FinalSummary:
        """
        Summarize a document and report size metadata.
        
        Args:
            text: Extracted document text
            
        Returns:
            FinalSummary no longer than the document
        """
        text = text or ""
        if not text.strip():
            raise EmptyContentError("No text content to summarize")
        
        try:
            return await asyncio.wait_for(self._run(text), timeout=self.config.pipeline_timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.error("Summarization timed out",
                         timeout_seconds=self.config.pipeline_timeout_seconds)
            raise SummarizationFailedError("timed out") from e
        except (EmptyContentError, SummarizationFailedError):
            raise
        except Exception as e:
            logger.error("Error in summarization", error=str(e))
            raise SummarizationFailedError(str(e)) from e
    
    async def _run(self, text: str) -> FinalSummary:
        original_chars = len(text)
        logger.info("Starting summarization",
                    chars=original_chars,
                    estimated_tokens=self.estimator.estimate(text))
        
        budget = self.planner.plan(original_chars)
        if original_chars < self.config.single_call_threshold:
            summary = await self._single_call(text, budget)
            chunk_count, failed_chunks, single_call = 1, 0, True
        else:
            chunks = self.build_chunker(budget).split(text)
            if not chunks:
                raise EmptyContentError("No text content to summarize")
            
            budget = self.planner.plan(original_chars, chunk_count=len(chunks))
            logger.info("Split text into chunks",
                        chunk_count=len(chunks),
                        per_chunk_target_words=budget.per_chunk_target_words)
            
            partials = await self._summarize_chunks(chunks, budget.per_chunk_target_words)
            failed_chunks = sum(1 for p in partials if p.failed)
            if failed_chunks == len(partials):
                logger.warning("Every chunk failed to summarize", chunk_count=len(partials))
            
            logger.info("Combining summaries", target_words=budget.target_words)
            summary = await self.combiner.combine([p.summary for p in partials], budget.target_words)
            chunk_count, single_call = len(chunks), False
        
        summary, compressed = await self._finalize(summary, original_chars, budget)
        
        result = FinalSummary(
            text=summary,
            original_chars=original_chars,
            summary_chars=len(summary),
            summary_bytes=len(summary.encode("utf-8")),
            chunk_count=chunk_count,
            failed_chunks=failed_chunks,
            single_call=single_call,
            compressed=compressed,
        )
        logger.info("Summarization complete",
                    summary_chars=result.summary_chars,
                    percent_of_original=round(result.ratio * 100),
                    chunk_count=chunk_count,
                    failed_chunks=failed_chunks)
        return result
    
    async def _single_call(self, text: str, budget: LengthBudget) -> str:
        logger.info("Processing small text with single call", target_words=budget.target_words)
        try:
            return await self.chunk_summarizer.generate(text, budget.target_words)
        except ModelError as e:
            raise SummarizationFailedError(str(e)) from e
    
    async def _summarize_chunks(self, chunks: List[DocumentChunk],
                                target_words: int) -> List[ChunkSummary]:
        """Fan out one call per chunk and reassemble results by chunk index."""
        limit = self.config.max_concurrent_requests
        semaphore = asyncio.Semaphore(limit) if limit > 0 else None
        
        async def summarize_one(chunk: DocumentChunk) -> ChunkSummary:
            if semaphore is None:
                return await self.chunk_summarizer.summarize_chunk(chunk, target_words)
            async with semaphore:
                return await self.chunk_summarizer.summarize_chunk(chunk, target_words)
        
        results = await asyncio.gather(*(summarize_one(c) for c in chunks))
        return sorted(results, key=lambda r: r.chunk_index)
    
    async def _finalize(self, summary: str, original_chars: int,
                        budget: LengthBudget) -> Tuple[str, bool]:
        """Apply the ceiling, then the original-length bound."""
        compressed = len(summary) > min(budget.ceiling_chars, original_chars)
        if len(summary) > budget.ceiling_chars:
            logger.info("Final summary too long, applying compression",
                        chars=len(summary), ceiling_chars=budget.ceiling_chars)
            summary = await self.compressor.compress(summary, budget.ceiling_chars)
        
        summary = await self.compressor.enforce_bound(
            summary,
            original_chars,
            self.planner.emergency_target(original_chars),
        )
        return summary, compressed
