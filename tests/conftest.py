# tests/conftest.py
import pytest

from irengine.analyzer import Analyzer, read_corpus
from irengine.config import EngineConfig
from irengine.engine import SearchEngine
from irengine.indexer import Indexer

# docNo, date, header, text
TOY_DOCS = [
    ("FT-1", "1994-01-01", "Coffee and caffeine", "Coffee contains caffeine which gives energy. Coffee is popular in Brazil."),
    ("FT-2", "1994-01-02", "Paris", "Paris is the capital of France. France is in Europe."),
    ("FT-3", "1994-01-03", "Photosynthesis", "Plants convert light into energy through photosynthesis."),
    ("FT-4", "1994-01-04", "Great Wall", "The Great Wall of China is a famous wall in China."),
    ("FT-5", "1994-01-05", "Machine learning", "Machine learning is a field of computer science about learning from data."),
    ("FT-6", "1994-01-06", "Brain", "The human brain contains billions of neurons."),
    ("FT-7", "1994-01-07", "Tea", "Tea also contains caffeine but less than coffee."),
    ("FT-8", "1994-01-08", "Cats", "The cat sat on the mat. A cat likes milk."),
]

STOP_WORDS = {"the", "is", "a", "of", "and", "in", "on", "which", "into", "about", "from", "than", "but", "also"}


def write_corpus(path, docs=TOY_DOCS):
    with open(path, "w", encoding="utf-8") as f:
        for doc in docs:
            f.write("\t".join(doc) + "\n")
    return str(path)


@pytest.fixture(scope="session")
def corpus_path(tmp_path_factory):
    return write_corpus(tmp_path_factory.mktemp("corpus") / "toy.tsv")


@pytest.fixture(scope="session")
def toy_index(tmp_path_factory, corpus_path):
    """Both variants of the toy index, built once per session (read-only for tests)."""
    index_dir = str(tmp_path_factory.mktemp("index"))
    for stemming in (False, True):
        indexer = Indexer(Analyzer(STOP_WORDS, stemming=stemming))
        indexer.build(read_corpus(corpus_path), index_dir).close()
    return index_dir


@pytest.fixture
def engine(toy_index):
    config = EngineConfig(index_dir=toy_index, show_dates=True, show_entities=True)
    e = SearchEngine(config, stop_words=STOP_WORDS)
    e.load()
    yield e
    e.close()


@pytest.fixture
def scratch_engine(tmp_path, corpus_path):
    """An engine over a private index the test may reset or rebuild."""
    config = EngineConfig(index_dir=str(tmp_path / "index"), show_dates=True)
    e = SearchEngine(config, stop_words=STOP_WORDS)
    e.build(read_corpus(corpus_path))
    yield e
    e.close()
