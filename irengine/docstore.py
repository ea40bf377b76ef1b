# irengine/docstore.py
"""
Partitioned document store.

Documents are spread over a fixed number of partition files (docFile0 ..
docFile{N-1}), one semicolon-delimited record per line:

    docNo;date;length;Entity:count|Entity:count

The partition a document went to was decided at build time and cannot be
recomputed from its docNo, so a lookup scans every partition. Lookups fan
out one worker per partition and join all of them: each worker returns the
matching record or None, and the caller takes the single non-empty result.

The whole store can instead be preloaded once into a docNo -> record table;
both paths return the same mapping.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, NamedTuple, Optional, Sequence

from irengine import paths
from irengine.errors import DocumentStoreError

logger = logging.getLogger(__name__)

FIELD_SEP = ";"
ENTITY_SEP = "|"
# undecodable bytes count as an unreadable partition
READ_ERRORS = (OSError, UnicodeDecodeError)


def _clean_field(value: str) -> str:
    return value.replace(FIELD_SEP, " ").replace("\n", " ").strip()


class DocumentRecord(NamedTuple):
    doc_no: str
    date: str = ""
    raw_fields: tuple = ()
    entities: tuple = ()    # ((name, count), ...)

    @classmethod
    def parse(cls, line: str) -> "DocumentRecord":
        fields = line.rstrip("\n").split(FIELD_SEP)
        doc_no = fields[0]
        date = fields[1] if len(fields) > 1 else ""
        raw = tuple(fields[2:-1]) if len(fields) > 3 else tuple(fields[2:3])
        entities = []
        if len(fields) > 3 and fields[-1]:
            for item in fields[-1].split(ENTITY_SEP):
                name, _, count = item.rpartition(":")
                if name and count.isdigit():
                    entities.append((name, int(count)))
                elif item:
                    entities.append((item, 0))
        return cls(doc_no, date, raw, tuple(entities))

    def to_line(self) -> str:
        ents = ENTITY_SEP.join(f"{_clean_field(n).replace(ENTITY_SEP, ' ')}:{c}" for n, c in self.entities)
        fields = [_clean_field(self.doc_no), _clean_field(self.date)]
        fields.extend(_clean_field(str(f)) for f in self.raw_fields)
        fields.append(ents)
        return FIELD_SEP.join(fields)

    def entity_names(self) -> list[str]:
        return [n for n, _ in self.entities]


class DocumentStore:
    """
    Lookup of DocumentRecord by docNo over N partition files.

    Partition files are only read, never written, while queries are served,
    so workers share nothing but the target docNo.
    """

    def __init__(self, partition_paths: Sequence[str]):
        if not partition_paths:
            raise ValueError("DocumentStore needs at least one partition")
        self.partition_paths = list(partition_paths)
        self._table: Optional[dict[str, DocumentRecord]] = None

    @classmethod
    def for_index(cls, index_dir: str, stemming: bool, num_partitions: int = paths.NUM_PARTITIONS):
        return cls(paths.partition_paths(index_dir, stemming, num_partitions))

    @property
    def preloaded(self) -> bool:
        return self._table is not None

    # ----------------------------
    # Concurrent scan path
    # ----------------------------

    @staticmethod
    def _scan_partition(path: str, doc_no: str, cancel: Optional[threading.Event]) -> Optional[DocumentRecord]:
        """Scan one partition line by line; stop at the first record whose docNo matches."""
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                if cancel is not None and cancel.is_set():
                    return None
                if line.rstrip("\n").split(FIELD_SEP, 1)[0] == doc_no:
                    return DocumentRecord.parse(line)
        return None

    def lookup(self, doc_no: str, cancel: Optional[threading.Event] = None) -> Optional[DocumentRecord]:
        """
        Find doc_no by scanning every partition concurrently.

        Returns None when no partition holds it, which is only known once all
        partitions are exhausted. Setting `cancel` abandons the scan and also
        yields None. A partition that cannot be read counts as "no match"; if
        none can be read, DocumentStoreError is raised.
        """
        n = len(self.partition_paths)
        hits: list[tuple[str, DocumentRecord]] = []
        failures = 0
        with ThreadPoolExecutor(max_workers=n, thread_name_prefix="docstore") as ex:
            futures = [(p, ex.submit(self._scan_partition, p, doc_no, cancel)) for p in self.partition_paths]
            for path, fut in futures:
                try:
                    rec = fut.result()
                except READ_ERRORS as e:
                    failures += 1
                    logger.warning("[DocStore] partition %s unreadable: %s", path, e)
                    continue
                if rec is not None:
                    hits.append((path, rec))

        if failures == n:
            raise DocumentStoreError(f"no readable partition among {n} while looking up {doc_no!r}")
        if cancel is not None and cancel.is_set():
            return None
        if len(hits) > 1:
            logger.warning("[DocStore] integrity: docNo %r found in %d partitions: %s",
                           doc_no, len(hits), ", ".join(p for p, _ in hits))
        return hits[0][1] if hits else None

    # ----------------------------
    # Preloaded table path
    # ----------------------------

    @staticmethod
    def _read_partition(path: str) -> list[DocumentRecord]:
        with open(path, "r", encoding="utf-8") as f:
            return [DocumentRecord.parse(line) for line in f if line.strip()]

    def preload(self) -> int:
        """Materialize every partition into an in-memory docNo -> record table."""
        table: dict[str, DocumentRecord] = {}
        failures = 0
        with ThreadPoolExecutor(max_workers=len(self.partition_paths), thread_name_prefix="docstore") as ex:
            futures = [(p, ex.submit(self._read_partition, p)) for p in self.partition_paths]
            for path, fut in futures:
                try:
                    records = fut.result()
                except READ_ERRORS as e:
                    failures += 1
                    logger.warning("[DocStore] partition %s unreadable: %s", path, e)
                    continue
                for rec in records:
                    if rec.doc_no in table:
                        logger.warning("[DocStore] integrity: docNo %r appears in more than one partition", rec.doc_no)
                        continue
                    table[rec.doc_no] = rec
        if failures == len(self.partition_paths):
            raise DocumentStoreError("no readable partition to preload")
        self._table = table
        logger.info("[DocStore] preloaded %d documents from %d partitions", len(table), len(self.partition_paths))
        return len(table)

    def clear(self) -> None:
        self._table = None

    def get(self, doc_no: str) -> Optional[DocumentRecord]:
        if self._table is not None:
            return self._table.get(doc_no)
        return self.lookup(doc_no)

    def get_many(self, doc_nos: Iterable[str]) -> dict[str, Optional[DocumentRecord]]:
        return {d: self.get(d) for d in doc_nos}
