"""
Document ingestion: text extraction from uploaded files.
"""

from .text_extractor import extract, extract_file, preview

__all__ = ["extract", "extract_file", "preview"]
