"""
irengine/indexer.py

Builds the inverted index for one variant (stemmed or unstemmed) in a single
pass over the corpus and writes it under index_dir/<variant>/.

Output files:
    - dictionary.tsv : term -> total_count, document_frequency, pointer
    - index.postings : blocked postings, one contiguous run per term
    - doc_table.pkl  : internal docid -> (docNo, length, header terms)
    - docs/docFileN  : document-store partitions, one record per line
"""

from __future__ import annotations

import logging
import os
import shutil
from collections import defaultdict
from typing import Iterable, Sequence, Tuple

from irengine import paths
from irengine.analyzer import Analyzer, ParsedDocument, extract_entities
from irengine.dictionary import Dictionary, DictionaryEntry
from irengine.docstore import DocumentRecord
from irengine.listio import ListWriter
from irengine.utils import write_doc_table

logger = logging.getLogger(__name__)

# (term, docNo, count, is_header): the per-document stream the index consumes
TermOccurrence = Tuple[str, str, int, bool]


class Indexer:
    """
    In-memory inverted index builder.
    Maintains a temporary mapping:
        term -> {docid: [term_frequency, in_header]}

    Postings for a term are buffered until save_to_disk(), which writes them
    contiguously so a query needs one seek per term.
    """

    def __init__(self, analyzer: Analyzer, num_partitions: int = paths.NUM_PARTITIONS):
        if num_partitions <= 0:
            raise ValueError("num_partitions must be positive")
        self.analyzer = analyzer
        self.num_partitions = num_partitions
        self.index = defaultdict(dict)
        self.total_counts = defaultdict(int)
        self.doc_table: list[tuple[str, int, tuple[str, ...]]] = []
        self.partitions: list[list[DocumentRecord]] = [[] for _ in range(num_partitions)]
        self._seen: set[str] = set()

    @property
    def stemming(self) -> bool:
        return self.analyzer.stemming

    def add_postings(self, doc_no: str, stream: Iterable[TermOccurrence], length: int,
                     header_terms: Sequence[str] = (), date: str = "", entities=()) -> int | None:
        """
        Consume one document's (term, docNo, count, is_header) stream.
        Returns the internal docid, or None if doc_no was already indexed.
        """
        if doc_no in self._seen:
            logger.warning("[Indexer] duplicate docNo %r skipped", doc_no)
            return None
        self._seen.add(doc_no)

        docid = len(self.doc_table)
        for term, _, count, is_header in stream:
            slot = self.index[term].get(docid)
            if slot is None:
                self.index[term][docid] = [count, bool(is_header)]
            else:
                slot[0] += count
                slot[1] = slot[1] or bool(is_header)
            self.total_counts[term] += count

        self.doc_table.append((doc_no, length, tuple(header_terms)))
        # partition by corpus position; fixed at build time
        self.partitions[docid % self.num_partitions].append(
            DocumentRecord(doc_no, date, (str(length),), tuple(entities))
        )
        return docid

    def add_document(self, doc: ParsedDocument) -> int | None:
        """Analyze a parsed document and feed its term stream to add_postings()."""
        header = self.analyzer.terms(doc.header)
        body = self.analyzer.terms(doc.text)

        counts: dict[str, list] = {}
        for raw, term in header:
            slot = counts.setdefault(term, [0, False])
            slot[0] += 1
            slot[1] = True
        for raw, term in body:
            counts.setdefault(term, [0, False])[0] += 1

        stream = ((term, doc.doc_no, c, h) for term, (c, h) in counts.items())
        header_terms = tuple(dict.fromkeys(raw for raw, _ in header))
        entities = extract_entities(f"{doc.header}\n{doc.text}")
        return self.add_postings(doc.doc_no, stream, len(header) + len(body), header_terms, doc.date, entities)

    def build_inverted_index(self, docs: Iterable[ParsedDocument]):
        for doc in docs:
            self.add_document(doc)
        return self.index

    def get_postings(self, term: str):
        """
        Retrieve the in-memory postings for a term as {docid: [tf, in_header]}.
        Returns an empty dict if term not found.
        """
        return self.index.get(term, {})

    def save_to_disk(self, index_dir: str, codec: str = "raw") -> Dictionary:
        """
        Write this variant's dictionary, postings, doc table and partitions.
        Returns the Dictionary handle, open on the new postings file.
        """
        vdir = paths.variant_dir(index_dir, self.stemming)
        os.makedirs(os.path.join(vdir, paths.DOCS_DIR), exist_ok=True)

        post_path = paths.postings_path(index_dir, self.stemming)
        writer = ListWriter(post_path, codec=codec)
        entries: dict[str, DictionaryEntry] = {}
        try:
            for term in sorted(self.index):
                postings = self.index[term]
                ptr = writer.add_term({d: (tf, h) for d, (tf, h) in postings.items()})
                entries[term] = DictionaryEntry(self.total_counts[term], len(postings), ptr)
        finally:
            size = writer.close()
        logger.info("[Indexer] wrote postings -> %s (%d bytes)", post_path, size)

        Dictionary(self.stemming, entries).save(paths.dictionary_path(index_dir, self.stemming))
        write_doc_table(self.doc_table, paths.doc_table_path(index_dir, self.stemming))

        for path, records in zip(paths.partition_paths(index_dir, self.stemming, self.num_partitions), self.partitions):
            with open(path, "w", encoding="utf-8") as f:
                for rec in records:
                    f.write(rec.to_line() + "\n")
        logger.info("[Indexer] wrote %d documents into %d partitions", len(self.doc_table), self.num_partitions)

        return Dictionary(self.stemming, entries, postings_path=post_path)

    def build(self, docs: Iterable[ParsedDocument], index_dir: str, codec: str = "raw") -> Dictionary:
        """One pass over the corpus, then persist."""
        self.build_inverted_index(docs)
        logger.info("[Indexer] indexed %d docs, %d terms", len(self.doc_table), len(self.index))
        return self.save_to_disk(index_dir, codec=codec)


def reset_index(index_dir: str) -> bool:
    """
    Delete every persisted index file under index_dir (both variants).
    Returns False when there was nothing to delete.
    """
    if not os.path.exists(index_dir):
        logger.info("[Indexer] nothing to delete at %s", index_dir)
        return False
    shutil.rmtree(index_dir)
    logger.info("[Indexer] deleted index at %s", index_dir)
    return True
