"""
Document summarization: chunking, budgeting, per-chunk summaries,
combination and final compression.
"""

from .budget_planner import LengthBudgetPlanner
from .chunk_summarizer import ChunkSummarizer
from .combiner import SummaryCombiner
from .compressor import FinalCompressor, truncate
from .document_chunker import DocumentChunker
from .length_estimator import HeuristicEstimator, TiktokenEstimator
from .model_client import (
    ModelCapability,
    OllamaModel,
    OpenRouterModel,
    call_with_retry,
    create_model,
)

__all__ = [
    "LengthBudgetPlanner",
    "ChunkSummarizer",
    "SummaryCombiner",
    "FinalCompressor",
    "truncate",
    "DocumentChunker",
    "HeuristicEstimator",
    "TiktokenEstimator",
    "ModelCapability",
    "OllamaModel",
    "OpenRouterModel",
    "call_with_retry",
    "create_model",
]
