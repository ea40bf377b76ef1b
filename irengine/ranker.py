# irengine/ranker.py
import math
from typing import NamedTuple, Sequence

from irengine.config import RankingConfig


class DocRankData(NamedTuple):
    """
    Everything needed to score one (query, document) pair.

    The query_* sequences are aligned: query_tfs[i] / query_dfs[i] belong to
    query_terms[i]. Same for the similar_* sequences (semantic neighbors).
    header_terms are the document's unstemmed header tokens.
    """
    query_terms: Sequence[str]
    query_tfs: Sequence[int]
    query_dfs: Sequence[int]
    doc_length: int
    header_terms: frozenset = frozenset()
    similar_terms: Sequence[str] = ()
    similar_tfs: Sequence[int] = ()
    similar_dfs: Sequence[int] = ()


class Ranker:
    """
    Blended scorer: BM25 + cosine over tf*idf + header-term match, optionally
    mixed with the same blend computed over semantic neighbor terms.

    The scorer holds only constants, so one instance can score documents from
    many threads at once.
    """

    def __init__(self, config: RankingConfig = None, semantic: bool = False):
        self.config = config or RankingConfig()
        self.semantic = semantic

    def idf(self, df):
        """
        log2((N - df + 0.5) / (df + 0.5)). Negative for terms in more than
        half the corpus; not clamped.
        """
        n = self.config.num_docs
        return math.log2((n - df + 0.5) / (df + 0.5))

    def bm25_term(self, tf, df, dl):
        """
        BM25 contribution of a single term.

        Args:
            tf: term frequency in this document
            df: document frequency of the term
            dl: document length of this document
        """
        k1, b = self.config.k1, self.config.b
        numerator = tf * (k1 + 1.0)
        denominator = tf + k1 * (1.0 - b + b * (dl / self.config.avg_doc_length))
        return self.idf(df) * (numerator / denominator)

    def bm25(self, tfs, dfs, dl):
        return sum(self.bm25_term(tf, df, dl) for tf, df in zip(tfs, dfs))

    @staticmethod
    def header_score(terms, header_terms):
        """Fraction of terms found verbatim in the header; 0 for no terms."""
        if not terms:
            return 0.0
        hits = sum(1 for t in terms if t in header_terms)
        return hits / len(terms)

    def cos_sim(self, tfs, dfs):
        """
        Cosine between an all-ones query vector and the document vector
        tf_i * idf(df_i). 0 when either vector has zero norm.
        """
        doc_vec = [tf * self.idf(df) for tf, df in zip(tfs, dfs)]
        if not doc_vec:
            return 0.0
        dot = sum(doc_vec)
        norm_q = math.sqrt(len(doc_vec))
        norm_d = math.sqrt(sum(x * x for x in doc_vec))
        if norm_d == 0.0:
            return 0.0
        return dot / (norm_q * norm_d)

    def _blend(self, terms, tfs, dfs, dl, header_terms):
        c = self.config
        return (c.w_bm25 * self.bm25(tfs, dfs, dl)
                + c.w_header * self.header_score(terms, header_terms)
                + c.w_cos * self.cos_sim(tfs, dfs))

    def score(self, data: DocRankData) -> float:
        query_score = self._blend(data.query_terms, data.query_tfs, data.query_dfs,
                                  data.doc_length, data.header_terms)
        if not self.semantic:
            return query_score
        semantic_score = self._blend(data.similar_terms, data.similar_tfs, data.similar_dfs,
                                     data.doc_length, data.header_terms)
        w = self.config.w_query
        return w * query_score + (1.0 - w) * semantic_score
