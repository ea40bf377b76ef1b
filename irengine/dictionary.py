"""
irengine/dictionary.py

Dictionary maps each term to its aggregate statistics and a pointer into
the postings region:

    term -> DictionaryEntry(total_count, document_frequency, pointer)

    total_count         occurrences of the term across the whole corpus
    document_frequency  number of documents containing the term
    pointer             byte offset of the term's postings in index.postings

Two independent dictionaries live side by side on disk (stemmed / unstemmed).
A Dictionary handle carries its own stemming mode, so the query path takes
the mode from the table it actually loaded instead of from a separate flag.

Stored as a sorted TSV, one term per line, so it loads as a stream:
    term \t total_count \t document_frequency \t pointer
"""

from __future__ import annotations

import logging
import os
from typing import Iterator, NamedTuple

from irengine import paths
from irengine.errors import CorruptIndexError, IndexNotFoundError
from irengine.listio import ListReader, Posting

logger = logging.getLogger(__name__)


class DictionaryEntry(NamedTuple):
    total_count: int
    document_frequency: int
    pointer: int


class Dictionary:
    """
    Read-only term table for one index variant.

    Typical usage:
        d = Dictionary.load("data/index", stemming=False)
        entry = d.get("hello")         # None when absent
        plist = d.postings("hello")    # [] when absent
    """

    def __init__(self, stemming: bool, entries: dict[str, DictionaryEntry] | None = None,
                 postings_path: str | None = None):
        self._stemming = stemming
        self.map: dict[str, DictionaryEntry] = entries if entries is not None else {}
        self._reader = ListReader(postings_path) if postings_path else None

    @property
    def stemming(self) -> bool:
        return self._stemming

    def __len__(self):
        return len(self.map)

    def __contains__(self, term):
        return term in self.map

    def get(self, term: str) -> DictionaryEntry | None:
        return self.map.get(term)

    def postings(self, term: str) -> list[Posting]:
        """
        Read a term's postings from disk.
        Unknown terms (and terms whose block fails to decode) yield [].
        """
        entry = self.map.get(term)
        if entry is None or self._reader is None:
            return []
        try:
            return self._reader.read_postings(entry.pointer)
        except CorruptIndexError as e:
            logger.warning("[Dictionary] skipping postings for %r: %s", term, e)
            return []

    def sorted_entries(self) -> list[tuple[str, int]]:
        """(term, total_count) pairs sorted by term, for browsing the dictionary."""
        return [(term, self.map[term].total_count) for term in sorted(self.map)]

    def save(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            for term in sorted(self.map):
                e = self.map[term]
                f.write(f"{term}\t{e.total_count}\t{e.document_frequency}\t{e.pointer}\n")
        logger.info("[Dictionary] saved %d terms to %s", len(self.map), path)

    @staticmethod
    def iter_file(path: str) -> Iterator[tuple[str, DictionaryEntry]]:
        with open(path, "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, 1):
                line = line.rstrip("\n")
                if not line:
                    continue
                parts = line.split("\t")
                if len(parts) != 4:
                    raise CorruptIndexError(f"{path}:{lineno}: expected 4 fields, got {len(parts)}")
                term, total, df, ptr = parts
                try:
                    yield term, DictionaryEntry(int(total), int(df), int(ptr))
                except ValueError as e:
                    raise CorruptIndexError(f"{path}:{lineno}: {e}") from e

    @classmethod
    def load(cls, index_dir: str, stemming: bool) -> "Dictionary":
        """
        Load the stemmed or unstemmed variant from index_dir.
        Raises IndexNotFoundError when that variant was never built.
        """
        dict_path = paths.dictionary_path(index_dir, stemming)
        post_path = paths.postings_path(index_dir, stemming)
        for p in (dict_path, post_path):
            if not os.path.exists(p):
                raise IndexNotFoundError(f"no {'stemmed' if stemming else 'unstemmed'} index at {p}")
        entries = dict(cls.iter_file(dict_path))
        d = cls(stemming, entries, postings_path=post_path)
        logger.info("[Dictionary] loaded %d terms from %s", len(entries), dict_path)
        return d

    def close(self):
        if self._reader is not None:
            self._reader.close()
            self._reader = None
