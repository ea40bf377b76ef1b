# irengine/config.py
"""
Tunable configuration.

RankingConfig carries the scoring constants. They are fixed values describing
the indexed corpus (N, average document length), not recomputed at runtime.
EngineConfig carries everything a query session needs to know.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from irengine.paths import INDEX_DIR, NUM_PARTITIONS


@dataclass(frozen=True)
class RankingConfig:
    k1: float = 1.2
    b: float = 0.865
    num_docs: int = 472522        # N, size of the indexed corpus
    avg_doc_length: float = 250.0
    w_bm25: float = 0.6
    w_header: float = 0.05
    w_query: float = 0.85         # weight of the original query vs. semantic neighbors

    def __post_init__(self):
        if self.k1 < 0:
            raise ValueError(f"k1 must be >= 0, got {self.k1}")
        if not 0.0 <= self.b <= 1.0:
            raise ValueError(f"b must be in [0, 1], got {self.b}")
        if self.num_docs <= 0:
            raise ValueError(f"num_docs must be positive, got {self.num_docs}")
        if self.avg_doc_length <= 0:
            raise ValueError(f"avg_doc_length must be positive, got {self.avg_doc_length}")
        for name in ("w_bm25", "w_header", "w_query"):
            w = getattr(self, name)
            if not 0.0 <= w <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {w}")
        if self.w_bm25 + self.w_header > 1.0:
            raise ValueError("w_bm25 + w_header must not exceed 1")

    @property
    def w_cos(self) -> float:
        """Remaining weight goes to the cosine component."""
        return 1.0 - self.w_bm25 - self.w_header


@dataclass(frozen=True)
class EngineConfig:
    index_dir: str = INDEX_DIR
    stemming: bool = False
    semantic: bool = False
    num_partitions: int = NUM_PARTITIONS
    result_limit: Optional[int] = 50   # None keeps every candidate
    show_dates: bool = False
    show_entities: bool = False
    preload_documents: bool = True
    query_workers: int = 4
    ranking: RankingConfig = field(default_factory=RankingConfig)

    def __post_init__(self):
        if self.num_partitions <= 0:
            raise ValueError(f"num_partitions must be positive, got {self.num_partitions}")
        if self.result_limit is not None and self.result_limit < 0:
            raise ValueError(f"result_limit must be >= 0 or None, got {self.result_limit}")
        if self.query_workers <= 0:
            raise ValueError(f"query_workers must be positive, got {self.query_workers}")

    @property
    def wants_metadata(self) -> bool:
        return self.show_dates or self.show_entities
