# tests/test_searcher.py
import pytest

from irengine import paths
from irengine.analyzer import Analyzer
from irengine.config import EngineConfig, RankingConfig
from irengine.dictionary import Dictionary
from irengine.docstore import DocumentStore
from irengine.errors import DocumentStoreError, EngineStateError
from irengine.expansion import NeighborTable
from irengine.indexer import Indexer
from irengine.ranker import Ranker
from irengine.searcher import Searcher
from irengine.utils import load_doc_table

from conftest import STOP_WORDS


@pytest.fixture
def loaded(toy_index):
    d = Dictionary.load(toy_index, stemming=False)
    table = load_doc_table(paths.doc_table_path(toy_index, False))
    store = DocumentStore.for_index(toy_index, False)
    yield d, table, store
    d.close()


class ExplodingStore:
    def get_many(self, doc_nos):
        raise AssertionError("document store must not be consulted")


class FailingStore:
    def get_many(self, doc_nos):
        list(doc_nos)
        raise DocumentStoreError("disk gone")


def test_candidates_are_union_of_term_postings(loaded):
    d, table, _ = loaded
    s = Searcher(d, table, stop_words=STOP_WORDS)
    expected = set()
    for term in ("coffee", "brain"):
        expected |= {table[p.doc_id][0] for p in d.postings(term)}
    assert set(s.candidates("Coffee brain")) == expected == {"FT-1", "FT-6", "FT-7"}


def test_stop_word_query_yields_nothing(loaded):
    d, table, _ = loaded
    config = EngineConfig(show_dates=True)
    s = Searcher(d, table, ExplodingStore(), stop_words=STOP_WORDS, config=config)
    assert s.candidates("the of and") == []
    assert s.search_one("the of and") == []


def test_unknown_term_contributes_nothing(loaded):
    d, table, _ = loaded
    s = Searcher(d, table, stop_words=STOP_WORDS)
    assert s.rank("coffee zzzquux") == s.rank("coffee")
    assert s.rank("zzzquux") == []


def test_header_match_ranks_heading_document_first(loaded):
    d, table, _ = loaded
    s = Searcher(d, table, stop_words=STOP_WORDS)
    ranked = s.rank("coffee")
    assert [doc for doc, _ in ranked] == ["FT-1", "FT-7"]
    assert ranked[0][1] > ranked[1][1]


def test_multiple_queries_keep_input_order(loaded):
    d, table, _ = loaded
    s = Searcher(d, table, stop_words=STOP_WORDS, config=EngineConfig(query_workers=4))
    queries = ["cat", "coffee", "great wall china", "neurons", "quantum"]
    together = s.search(queries)
    assert [[r.doc_no for r in res] for res in together] == \
           [[r.doc_no for r in s.search_one(q)] for q in queries]
    assert together[0][0].doc_no == "FT-8"
    assert together[-1] == []


def test_result_limit_truncates(loaded):
    d, table, _ = loaded
    s = Searcher(d, table, stop_words=STOP_WORDS, config=EngineConfig(result_limit=1))
    assert [r.doc_no for r in s.search_one("caffeine")] == ["FT-1"]


def test_metadata_only_when_requested(loaded):
    d, table, store = loaded
    bare = Searcher(d, table, store, stop_words=STOP_WORDS).search_one("coffee")
    assert bare[0].date is None and bare[0].entities is None

    config = EngineConfig(show_dates=True, show_entities=True)
    full = Searcher(d, table, store, stop_words=STOP_WORDS, config=config).search_one("coffee")
    assert full[0].doc_no == "FT-1"
    assert full[0].date == "1994-01-01"
    assert full[0].entities[0] == "Coffee"


def test_metadata_failure_keeps_other_queries(loaded, caplog):
    d, table, _ = loaded
    config = EngineConfig(show_dates=True, query_workers=1)
    s = Searcher(d, table, FailingStore(), stop_words=STOP_WORDS, config=config)
    results = s.search(["coffee", "brain"])
    assert [r.doc_no for r in results[0]] == ["FT-1", "FT-7"]
    assert [r.doc_no for r in results[1]] == ["FT-6"]
    assert all(r.date is None for res in results for r in res)
    assert "metadata lookup failed" in caplog.text


def test_undecodable_partition_keeps_batch_going(loaded, tmp_path):
    d, table, store = loaded
    bad = tmp_path / "docFileBad"
    bad.write_bytes(b"\xff\xfeFT-1;1994-01-01;10;\n")
    damaged = DocumentStore(store.partition_paths + [str(bad)])
    config = EngineConfig(show_dates=True, query_workers=2)
    results = Searcher(d, table, damaged, stop_words=STOP_WORDS, config=config).search(["coffee", "brain"])
    assert [(r.doc_no, r.date) for r in results[0]] == [("FT-1", "1994-01-01"), ("FT-7", "1994-01-07")]
    assert [(r.doc_no, r.date) for r in results[1]] == [("FT-6", "1994-01-06")]


def test_semantic_neighbors_blend_scores(loaded):
    d, table, _ = loaded
    plain = dict(Searcher(d, table, stop_words=STOP_WORDS).rank("coffee"))
    semantic_searcher = Searcher(d, table, stop_words=STOP_WORDS, config=EngineConfig(semantic=True),
                                 neighbors=NeighborTable({"coffee": ["tea", "coffee", "zzzquux"]}))
    semantic = dict(semantic_searcher.rank("coffee"))

    assert set(semantic) == set(plain), "neighbors must not add candidates"
    assert [qt.term for qt in semantic_searcher.neighbor_terms(semantic_searcher.query_terms("coffee"))] == ["tea"]

    c = RankingConfig()
    r = Ranker(c)
    tea_df = d.get("tea").document_frequency
    tea_length = table[6][1]
    tea_part = (c.w_bm25 * r.bm25([2], [tea_df], tea_length)
                + c.w_header * 1.0
                + c.w_cos * r.cos_sim([2], [tea_df]))
    assert semantic["FT-7"] == pytest.approx(c.w_query * plain["FT-7"] + (1 - c.w_query) * tea_part)
    assert semantic["FT-1"] == pytest.approx(c.w_query * plain["FT-1"])


def test_stemmed_dictionary_drives_query_analysis(toy_index):
    d = Dictionary.load(toy_index, stemming=True)
    table = load_doc_table(paths.doc_table_path(toy_index, True))
    try:
        s = Searcher(d, table, stop_words=STOP_WORDS)
        assert s.analyzer.stemming is True
        (qt,) = s.query_terms("Cats")
        assert (qt.raw, qt.term) == ("cats", "cat")
        assert [doc for doc, _ in s.rank("cats")] == ["FT-8"]
    finally:
        d.close()


def test_scenario_tf_three_beats_tf_one(tmp_path):
    indexer = Indexer(Analyzer())
    indexer.add_postings("doc1", [("cat", "doc1", 3, False)], 250)
    indexer.add_postings("doc2", [("cat", "doc2", 1, False)], 250)
    d = indexer.save_to_disk(str(tmp_path))
    try:
        results = Searcher(d, indexer.doc_table).search_one("cat")
        assert [r.doc_no for r in results] == ["doc1", "doc2"]
        assert results[0].score > results[1].score
    finally:
        d.close()


def test_ties_keep_discovery_order(tmp_path):
    indexer = Indexer(Analyzer())
    indexer.add_postings("B", [("dog", "B", 1, False)], 100)
    indexer.add_postings("A", [("dog", "A", 1, False)], 100)
    d = indexer.save_to_disk(str(tmp_path))
    try:
        ranked = Searcher(d, indexer.doc_table).rank("dog")
        assert ranked[0][1] == ranked[1][1]
        assert [doc for doc, _ in ranked] == ["B", "A"]
    finally:
        d.close()


def test_empty_dictionary_warns(caplog):
    Searcher(Dictionary(stemming=True), [])
    assert "empty" in caplog.text


def test_missing_dictionary_is_precondition_violation():
    with pytest.raises(EngineStateError):
        Searcher(None, [])
