# irengine/searcher.py
"""
Query pipeline.

Per query:
  1) analyze the raw text (stop words out, stem if the dictionary is stemmed)
  2) look each term up in the Dictionary; unknown terms contribute nothing
  3) candidates = union of the postings of all resolved terms
  4) with semantic expansion, resolve neighbor terms and keep their stats apart
  5) build a DocRankData per candidate and score it with the Ranker
  6) stable sort by score desc (ties keep discovery order), truncate
  7) resolve date / entities through the DocumentStore when asked for
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import NamedTuple, Optional, Sequence

from irengine.analyzer import Analyzer
from irengine.config import EngineConfig
from irengine.dictionary import Dictionary, DictionaryEntry
from irengine.docstore import DocumentStore
from irengine.errors import DocumentStoreError, EngineStateError
from irengine.expansion import NeighborTable
from irengine.listio import Posting
from irengine.ranker import DocRankData, Ranker

logger = logging.getLogger(__name__)


class SearchResult(NamedTuple):
    doc_no: str
    score: float
    date: Optional[str] = None
    entities: Optional[tuple] = None


class QueryTerm(NamedTuple):
    raw: str                 # unstemmed token, used for the header match
    term: str                # dictionary key
    entry: DictionaryEntry


class Searcher:
    """
    Ranks documents for free-text queries against one loaded index variant.

    - The Dictionary decides stemming: queries are analyzed with the same mode.
    - doc_table maps internal docid -> (docNo, length, header terms).
    - The DocumentStore is only consulted for result metadata.
    """

    def __init__(self, dictionary: Dictionary, doc_table, doc_store: DocumentStore | None = None,
                 stop_words=(), config: EngineConfig | None = None, neighbors: NeighborTable | None = None):
        if dictionary is None:
            raise EngineStateError("dictionary not loaded; build or load an index first")
        self.dictionary = dictionary
        self.doc_table = doc_table
        self.doc_store = doc_store
        self.config = config or EngineConfig(stemming=dictionary.stemming)
        self.analyzer = Analyzer(stop_words, stemming=dictionary.stemming)
        self.neighbors = neighbors or NeighborTable()
        self.semantic = self.config.semantic
        self.ranker = Ranker(self.config.ranking, semantic=self.semantic)
        if len(dictionary) == 0:
            logger.warning("[Searcher] dictionary (%s) is empty; every query will come back empty",
                           "stemmed" if dictionary.stemming else "unstemmed")

    # ----------------------------
    # Term resolution
    # ----------------------------

    def _resolve(self, pairs, exclude=()) -> list[QueryTerm]:
        """Keep first occurrence of each term that the dictionary knows."""
        out: list[QueryTerm] = []
        seen = set(exclude)
        for raw, term in pairs:
            if term in seen:
                continue
            seen.add(term)
            entry = self.dictionary.get(term)
            if entry is not None:
                out.append(QueryTerm(raw, term, entry))
        return out

    def query_terms(self, query: str) -> list[QueryTerm]:
        return self._resolve(self.analyzer.terms(query))

    def neighbor_terms(self, terms: Sequence[QueryTerm]) -> list[QueryTerm]:
        pairs = []
        for qt in terms:
            for n in self.neighbors.neighbors(qt.raw) or self.neighbors.neighbors(qt.term):
                n = n.lower()
                if n in self.analyzer.stop_words:
                    continue
                pairs.append((n, self.analyzer.stem(n)))
        return self._resolve(pairs, exclude={qt.term for qt in terms})

    def _postings(self, terms: Sequence[QueryTerm]) -> list[dict[int, Posting]]:
        return [{p.doc_id: p for p in self.dictionary.postings(qt.term)} for qt in terms]

    @staticmethod
    def _candidates(postings: Sequence[dict[int, Posting]]) -> list[int]:
        """Union of docids in discovery order (term order, then docid order)."""
        seen: dict[int, None] = {}
        for pmap in postings:
            for docid in pmap:
                seen.setdefault(docid, None)
        return list(seen)

    def candidates(self, query: str) -> list[str]:
        """docNos of every document holding at least one surviving query term."""
        docids = self._candidates(self._postings(self.query_terms(query)))
        return [self.doc_table[d][0] for d in docids]

    # ----------------------------
    # Ranking
    # ----------------------------

    @staticmethod
    def _stats(terms, postings, docid):
        tfs = [pmap[docid].tf if docid in pmap else 0 for pmap in postings]
        dfs = [qt.entry.document_frequency for qt in terms]
        return tfs, dfs

    def rank(self, query: str) -> list[tuple[str, float]]:
        """
        Score every candidate for `query`.
        Returns [(docNo, score)] sorted by score desc, untruncated.
        """
        terms = self.query_terms(query)
        if not terms:
            return []
        postings = self._postings(terms)
        docids = self._candidates(postings)

        sim_terms: list[QueryTerm] = []
        sim_postings: list[dict[int, Posting]] = []
        if self.semantic:
            sim_terms = self.neighbor_terms(terms)
            sim_postings = self._postings(sim_terms)

        raw_terms = [qt.raw for qt in terms]
        sim_raw = [qt.raw for qt in sim_terms]
        scored = []
        for docid in docids:
            doc_no, length, header = self.doc_table[docid]
            tfs, dfs = self._stats(terms, postings, docid)
            s_tfs, s_dfs = self._stats(sim_terms, sim_postings, docid)
            data = DocRankData(raw_terms, tfs, dfs, length, frozenset(header), sim_raw, s_tfs, s_dfs)
            scored.append((doc_no, self.ranker.score(data)))

        # sorted() is stable: equal scores keep candidate discovery order
        return sorted(scored, key=lambda x: x[1], reverse=True)

    # ----------------------------
    # Results
    # ----------------------------

    def _attach_metadata(self, ranked: list[tuple[str, float]]) -> list[SearchResult]:
        c = self.config
        if not ranked or not c.wants_metadata or self.doc_store is None:
            return [SearchResult(d, s) for d, s in ranked]
        try:
            records = self.doc_store.get_many(d for d, _ in ranked)
        except DocumentStoreError as e:
            logger.error("[Searcher] metadata lookup failed, returning bare results: %s", e)
            return [SearchResult(d, s) for d, s in ranked]

        out = []
        for doc_no, score in ranked:
            rec = records.get(doc_no)
            date = (rec.date if rec else "") if c.show_dates else None
            ents = (tuple(rec.entity_names()) if rec else ()) if c.show_entities else None
            out.append(SearchResult(doc_no, score, date, ents))
        return out

    def search_one(self, query: str) -> list[SearchResult]:
        ranked = self.rank(query)
        limit = self.config.result_limit
        if limit is not None:
            ranked = ranked[:limit]
        return self._attach_metadata(ranked)

    def search(self, queries: Sequence[str]) -> list[list[SearchResult]]:
        """One ranked result list per query, in input order."""
        queries = list(queries)
        workers = self.config.query_workers
        if len(queries) <= 1 or workers <= 1:
            return [self.search_one(q) for q in queries]
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="query") as ex:
            return list(ex.map(self.search_one, queries))
