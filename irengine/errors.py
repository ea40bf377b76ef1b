# irengine/errors.py
"""
Exception types raised by the engine.

Not-found situations (unknown term, unknown docNo, a query that filters down
to nothing) are never errors; they come back as empty values.
"""


class IREngineError(Exception):
    """Base class for all engine errors."""


class IndexNotFoundError(IREngineError, FileNotFoundError):
    """The requested index variant (dictionary, postings or doc table) is not on disk."""


class CorruptIndexError(IREngineError, ValueError):
    """A dictionary line or postings block could not be decoded."""


class DocumentStoreError(IREngineError, OSError):
    """Every partition of the document store failed to read."""


class EngineStateError(IREngineError, RuntimeError):
    """Operation attempted while the engine is not loaded or is being reset."""
