# irengine/results.py
"""
TREC-style result file:  queryId 0 docNo 1 1.1 mt   (one line per pair)
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

SINGLE_QUERY_ID = "000"


def format_line(query_id: str, doc_no: str) -> str:
    return f"{query_id.rstrip(' ')} 0 {doc_no} 1 1.1 mt"


def result_lines(results_by_query: Mapping[str, Sequence]) -> Iterable[str]:
    """Lines sorted by query id; within a query, rank order is kept."""
    for qid in sorted(results_by_query, key=lambda q: q.rstrip(" ")):
        for r in results_by_query[qid]:
            doc_no = r.doc_no if hasattr(r, "doc_no") else r
            yield format_line(qid, doc_no)


def write_results(path: str, results_by_query: Mapping[str, Sequence]) -> int:
    """Replace `path` with the result lines. Returns the number of lines written."""
    n = 0
    with open(path, "w", encoding="utf-8") as f:
        for line in result_lines(results_by_query):
            f.write(line + "\n")
            n += 1
    return n
