# tests/test_engine.py
import os
import threading

import pytest

from irengine.config import EngineConfig
from irengine.engine import SearchEngine
from irengine.errors import EngineStateError, IndexNotFoundError


def test_search_before_load_is_rejected(tmp_path):
    engine = SearchEngine(EngineConfig(index_dir=str(tmp_path)))
    with pytest.raises(EngineStateError):
        engine.search_text("coffee")


def test_load_missing_index(tmp_path):
    engine = SearchEngine(EngineConfig(index_dir=str(tmp_path / "nope")))
    with pytest.raises(IndexNotFoundError):
        engine.load()
    assert not engine.loaded


def test_engine_search_with_metadata(engine):
    results = engine.search_text("great wall china")
    assert results[0].doc_no == "FT-4"
    assert results[0].date == "1994-01-04"
    assert "Great Wall" in results[0].entities


def test_engine_preloads_documents(engine):
    assert engine.doc_store.preloaded


def test_run_single_writes_trec_line(scratch_engine, tmp_path):
    out = str(tmp_path / "results.txt")
    results = scratch_engine.run_single("photosynthesis", output=out)
    assert [r.doc_no for r in results] == ["FT-3"]
    with open(out, encoding="utf-8") as f:
        assert f.read() == "000 0 FT-3 1 1.1 mt\n"


def test_run_queries_by_id(engine):
    by_id = engine.run_queries({"402": "neurons", "401": "machine learning"})
    assert list(by_id) == ["402", "401"]
    assert by_id["401"][0].doc_no == "FT-5"
    assert by_id["402"][0].doc_no == "FT-6"


def test_dictionary_listing(engine):
    listing = engine.dictionary_listing()
    assert listing == sorted(listing)
    assert ("wall", 3) in listing


def test_reset_deletes_index_and_unloads(scratch_engine):
    index_dir = scratch_engine.config.index_dir
    assert os.path.exists(index_dir)
    assert scratch_engine.reset() is True
    assert not os.path.exists(index_dir)
    assert not scratch_engine.loaded
    with pytest.raises(EngineStateError):
        scratch_engine.search_text("coffee")
    with pytest.raises(IndexNotFoundError):
        scratch_engine.load()
    assert scratch_engine.reset() is False


def test_reset_waits_for_in_flight_search(scratch_engine):
    index_dir = scratch_engine.config.index_dir
    with scratch_engine._query_phase():
        t = threading.Thread(target=scratch_engine.reset)
        t.start()
        t.join(timeout=0.2)
        assert t.is_alive(), "reset must wait for the active search"
        assert os.path.exists(index_dir)
    t.join(timeout=5)
    assert not t.is_alive()
    assert not os.path.exists(index_dir)


def test_rebuild_after_reset(scratch_engine, corpus_path):
    from irengine.analyzer import read_corpus

    scratch_engine.reset()
    scratch_engine.build(read_corpus(corpus_path))
    assert scratch_engine.search_text("milk")[0].doc_no == "FT-8"
