# irengine/expansion.py
"""
Semantic-neighbor table.

Which terms count as "similar" is decided outside the engine (word vectors,
a thesaurus, ...). The engine only consumes the result: term -> neighbor terms,
stored as TSV lines  term \t n1 n2 n3 ...
"""

from __future__ import annotations

from typing import Mapping, Sequence


class NeighborTable:
    def __init__(self, mapping: Mapping[str, Sequence[str]] | None = None):
        self.map = {k: list(v) for k, v in (mapping or {}).items()}

    def __len__(self):
        return len(self.map)

    def neighbors(self, term: str) -> list[str]:
        return list(self.map.get(term, ()))

    @classmethod
    def load(cls, path: str) -> "NeighborTable":
        mapping: dict[str, list[str]] = {}
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                parts = line.rstrip("\n").split("\t", 1)
                if len(parts) != 2 or not parts[0].strip():
                    continue
                mapping[parts[0].strip().lower()] = parts[1].lower().split()
        return cls(mapping)
