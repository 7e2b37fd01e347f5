"""
Pipeline orchestration for document summarization.
"""

from .pipeline import SummarizationPipeline

__all__ = ["SummarizationPipeline"]
