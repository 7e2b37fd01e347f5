"""
BookBrief - long document summarization

Splits arbitrarily long documents into bounded chunks, summarizes them
through a generative model, and merges the partial summaries into a
single summary that never exceeds the length of the source.
"""

__version__ = "1.0.0"
__author__ = "BookBrief"
