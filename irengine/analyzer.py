"""
irengine/analyzer.py

Text front end shared by indexing and querying.

What it does:
  - Turns dirty html code and mojibake into regular chars (ftfy + html)
  - Tokenization: lowercase, keep tokens like 'u.s' or '3.14' whole
  - Drops stop words
  - Optional Porter stemming (nltk), which selects the stemmed index variant

Also reads the external inputs the engine consumes:
  - corpus TSV:   docNo \t date \t header \t text
  - stop words:   one word per line
  - query files:  TREC topics (<num>/<title>) or TSV  queryId \t text
"""

from __future__ import annotations

import html
import re
from collections import Counter
from typing import Iterable, Iterator, NamedTuple

from ftfy import fix_text
from nltk.stem import PorterStemmer

TOKEN_RE = re.compile(r"[a-z0-9]+(?:[.-][a-z0-9]+)*")  # keep U.S., 3.14, etc whole words
ENTITY_RE = re.compile(r"\b[A-Z][A-Za-z]+(?:[ \t]+[A-Z][A-Za-z]+)*")
TREC_NUM_RE = re.compile(r"<num>\s*(?:Number:)?\s*(.*)", re.IGNORECASE)
TREC_TITLE_RE = re.compile(r"<title>\s*(.*)", re.IGNORECASE)


class ParsedDocument(NamedTuple):
    doc_no: str
    date: str
    header: str
    text: str


def clean(text: str) -> str:
    return fix_text(html.unescape(text))


def tokenize(text: str) -> list[str]:
    """
    Clean and tokenize a raw text string.
    Returns [] if nothing remains after tokenization.
    """
    return TOKEN_RE.findall(clean(text).lower())


class Analyzer:
    """
    Maps raw text to index terms for one index variant.

    `terms()` keeps the unstemmed token next to each index term because the
    header match is done on unstemmed tokens even in the stemmed variant.
    """

    def __init__(self, stop_words: Iterable[str] = (), stemming: bool = False):
        self.stop_words = frozenset(w.lower() for w in stop_words)
        self.stemming = stemming
        self._stemmer = PorterStemmer() if stemming else None
        self._stem_cache: dict[str, str] = {}

    def stem(self, token: str) -> str:
        if self._stemmer is None:
            return token
        s = self._stem_cache.get(token)
        if s is None:
            s = self._stemmer.stem(token)
            self._stem_cache[token] = s
        return s

    def terms(self, text: str) -> list[tuple[str, str]]:
        """Ordered (raw_token, index_term) pairs for every non-stop-word token."""
        return [(tok, self.stem(tok)) for tok in tokenize(text) if tok not in self.stop_words]

    def normalize(self, text: str) -> list[str]:
        return [term for _, term in self.terms(text)]


def extract_entities(text: str, top: int = 5) -> list[tuple[str, int]]:
    """
    Most frequent runs of capitalized words, e.g. "New York Times".
    Ties keep first-appearance order.
    """
    counts = Counter(m.group(0) for m in ENTITY_RE.finditer(clean(text)))
    return counts.most_common(top)


def load_stop_words(path: str) -> set[str]:
    with open(path, "r", encoding="utf-8") as f:
        return {line.strip().lower() for line in f if line.strip()}


def parse_corpus_line(line: str) -> ParsedDocument | None:
    """
    Parse a single corpus line: docNo \t date \t header \t text.
    Returns None if the line is malformed.
    """
    parts = line.rstrip("\n").split("\t", 3)
    if len(parts) != 4:
        return None
    doc_no, date, header, text = (p.strip() for p in parts)
    if not doc_no:
        return None
    return ParsedDocument(doc_no, date, header, text)


def read_corpus(path: str, limit: int | None = None) -> Iterator[ParsedDocument]:
    """Stream ParsedDocument records from a corpus TSV without loading it whole."""
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        for i, line in enumerate(f):
            if limit is not None and i >= limit:
                break
            doc = parse_corpus_line(line)
            if doc is not None:
                yield doc


def read_queries(path: str) -> dict[str, str]:
    """
    Read a query file into an ordered {queryId: text} mapping.
    TREC topic files are detected by a <num> tag; anything else is read as TSV.
    """
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        content = f.read()

    queries: dict[str, str] = {}
    if "<num>" in content.lower():
        qid = None
        for line in content.splitlines():
            m = TREC_NUM_RE.match(line.strip())
            if m:
                qid = m.group(1).strip()
                continue
            m = TREC_TITLE_RE.match(line.strip())
            if m and qid is not None:
                queries[qid] = m.group(1).strip()
                qid = None
        return queries

    for line in content.splitlines():
        parts = line.split("\t", 1)
        if len(parts) == 2 and parts[0].strip():
            queries[parts[0].strip()] = parts[1].strip()
    return queries
