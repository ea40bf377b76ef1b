# irengine/engine.py
"""
SearchEngine: the object that owns one index variant for its whole lifetime.

    engine = SearchEngine(EngineConfig(index_dir="data/index", stemming=True))
    engine.build(read_corpus("data/corpus.tsv"))   # or engine.load()
    results = engine.search(["falkland petroleum", "hubble telescope"])
    engine.reset()                                  # deletes the index on disk

Searches run concurrently. build / load / reset are exclusive phases: they
wait for in-flight searches to drain and hold new ones back until done.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterable, Mapping, Optional, Sequence

from irengine import paths
from irengine.analyzer import Analyzer, ParsedDocument
from irengine.config import EngineConfig
from irengine.dictionary import Dictionary
from irengine.docstore import DocumentStore
from irengine.errors import EngineStateError
from irengine.expansion import NeighborTable
from irengine.indexer import Indexer, reset_index
from irengine.results import SINGLE_QUERY_ID, write_results
from irengine.searcher import Searcher, SearchResult
from irengine.utils import load_doc_table

logger = logging.getLogger(__name__)


class SearchEngine:
    def __init__(self, config: EngineConfig | None = None, stop_words=(), neighbors: NeighborTable | None = None):
        self.config = config or EngineConfig()
        self.stop_words = frozenset(stop_words)
        self.neighbors = neighbors
        self.dictionary: Optional[Dictionary] = None
        self.doc_store: Optional[DocumentStore] = None
        self.searcher: Optional[Searcher] = None
        self._cond = threading.Condition()
        self._active = 0
        self._exclusive_held = False

    # ----------------------------
    # Phase control
    # ----------------------------

    @contextmanager
    def _query_phase(self):
        with self._cond:
            while self._exclusive_held:
                self._cond.wait()
            if self.searcher is None:
                raise EngineStateError("no index loaded; call build() or load() first")
            self._active += 1
            searcher = self.searcher
        try:
            yield searcher
        finally:
            with self._cond:
                self._active -= 1
                self._cond.notify_all()

    @contextmanager
    def _exclusive_phase(self):
        with self._cond:
            while self._exclusive_held:
                self._cond.wait()
            self._exclusive_held = True
            while self._active:
                self._cond.wait()
        try:
            yield
        finally:
            with self._cond:
                self._exclusive_held = False
                self._cond.notify_all()

    @property
    def loaded(self) -> bool:
        return self.searcher is not None

    # ----------------------------
    # Lifecycle
    # ----------------------------

    def _drop(self):
        if self.dictionary is not None:
            self.dictionary.close()
        if self.doc_store is not None:
            self.doc_store.clear()
        self.dictionary = None
        self.doc_store = None
        self.searcher = None

    def _open(self, dictionary: Dictionary | None = None):
        c = self.config
        self._drop()
        dictionary = dictionary or Dictionary.load(c.index_dir, c.stemming)
        doc_table = load_doc_table(paths.doc_table_path(c.index_dir, c.stemming))
        doc_store = DocumentStore.for_index(c.index_dir, c.stemming, c.num_partitions)
        if c.preload_documents:
            doc_store.preload()
        self.dictionary = dictionary
        self.doc_store = doc_store
        self.searcher = Searcher(dictionary, doc_table, doc_store, self.stop_words, c, self.neighbors)

    def build(self, docs: Iterable[ParsedDocument], codec: str = "raw") -> Dictionary:
        """Index the corpus for the configured variant, persist it, and serve from it."""
        c = self.config
        with self._exclusive_phase():
            self._drop()
            indexer = Indexer(Analyzer(self.stop_words, stemming=c.stemming), num_partitions=c.num_partitions)
            dictionary = indexer.build(docs, c.index_dir, codec=codec)
            self._open(dictionary)
            logger.info("[Engine] built %s index at %s", "stemmed" if c.stemming else "unstemmed", c.index_dir)
            return dictionary

    def load(self) -> Dictionary:
        with self._exclusive_phase():
            self._open()
            return self.dictionary

    def reset(self) -> bool:
        """Drop in-memory state and delete the persisted index (both variants)."""
        with self._exclusive_phase():
            self._drop()
            return reset_index(self.config.index_dir)

    def close(self):
        with self._exclusive_phase():
            self._drop()

    # ----------------------------
    # Queries
    # ----------------------------

    def search(self, queries: Sequence[str]) -> list[list[SearchResult]]:
        with self._query_phase() as searcher:
            return searcher.search(queries)

    def search_text(self, query: str) -> list[SearchResult]:
        return self.search([query])[0]

    def run_queries(self, queries: Mapping[str, str], output: str | None = None) -> dict[str, list[SearchResult]]:
        """
        Run an ordered {queryId: text} mapping; optionally write a TREC result file.
        """
        ids = list(queries)
        answers = self.search([queries[q] for q in ids])
        by_id = dict(zip(ids, answers))
        if output:
            n = write_results(output, by_id)
            logger.info("[Engine] wrote %d result lines to %s", n, output)
        return by_id

    def run_single(self, query: str, output: str | None = None) -> list[SearchResult]:
        return self.run_queries({SINGLE_QUERY_ID: query}, output)[SINGLE_QUERY_ID]

    def dictionary_listing(self) -> list[tuple[str, int]]:
        with self._query_phase():
            return self.dictionary.sorted_entries()
