"""Inverted-index retrieval engine with blended BM25 / cosine / header ranking."""

__version__ = "0.1.0"
