# irengine/listio.py
"""
Blocked binary postings region.

File layout:
    b"IRP1" + uint8 codec                     (0 = raw, 1 = varbyte)
    then, for each term, contiguous at its dictionary pointer:
        uint32 nblocks
        per block:
            uint32 n_in_block
            uint32 last_docid
            uint32 doc_bytes
            uint32 freq_bytes
            uint32 flag_bytes
            [docid segment][tf segment][header-flag segment, one byte per posting]

A term's postings are contiguous, so a query does one seek and a
sequential read per term.
"""

from __future__ import annotations

import struct
import threading
from itertools import accumulate
from typing import Dict, Iterator, List, NamedTuple, Tuple

from irengine.errors import CorruptIndexError

BLOCK_SIZE = 128  # adjustable
MAGIC = b"IRP1"
CODECS = {"raw": 0, "varbyte": 1}
CODEC_NAMES = {v: k for k, v in CODECS.items()}

_NBLOCKS = struct.Struct("<I")
_BLOCK_HDR = struct.Struct("<IIIII")


class Posting(NamedTuple):
    doc_id: int
    tf: int
    in_header: bool


class ListWriter:
    """
    Writes term postings into a binary file in blocked format.
    add_term() returns the byte offset the dictionary stores as the term's pointer.
    """
    def __init__(self, filepath, block_size=BLOCK_SIZE, codec: str = "raw"):
        self.codec = codec.lower()
        if self.codec not in CODECS:
            raise ValueError(f"unknown codec {codec!r}, expected one of {sorted(CODECS)}")
        if block_size <= 0:
            raise ValueError("block_size must be positive")
        self.filepath = filepath
        self.block_size = block_size
        self.file = open(filepath, "wb")
        self.file.write(MAGIC + bytes([CODECS[self.codec]]))

    def add_term(self, postings: Dict[int, Tuple[int, bool]]) -> int:
        """
        Write postings for a single term.
        postings: {docid: (tf, in_header)}
        """
        items = sorted(postings.items(), key=lambda x: x[0])
        start_offset = self.file.tell()
        nblocks = (len(items) + self.block_size - 1) // self.block_size
        self.file.write(_NBLOCKS.pack(nblocks))

        prev_last = 0  # base for the first block
        for i in range(0, len(items), self.block_size):
            chunk = items[i:i + self.block_size]
            docids = [d for d, _ in chunk]
            freqs = [tf for _, (tf, _) in chunk]
            flags = bytes(1 if h else 0 for _, (_, h) in chunk)

            if self.codec == "varbyte":
                doc_bytes = VarByteCodec.encode_docids(docids, base=prev_last)
                freq_bytes = VarByteCodec.encode_freqs(freqs)
            else:
                doc_bytes = struct.pack(f"<{len(docids)}I", *docids)
                freq_bytes = struct.pack(f"<{len(freqs)}I", *freqs)

            last_docid = docids[-1]
            self.file.write(_BLOCK_HDR.pack(len(chunk), last_docid, len(doc_bytes), len(freq_bytes), len(flags)))
            self.file.write(doc_bytes)
            self.file.write(freq_bytes)
            self.file.write(flags)
            prev_last = last_docid

        return start_offset

    def close(self):
        size = self.file.tell()
        self.file.close()
        return size


class ListReader:
    """
    Reads postings from the blocked binary file.
    Safe to share between threads: each term read holds the file for one seek + read.
    """
    def __init__(self, filepath):
        self.filepath = filepath
        self.file = open(filepath, "rb")
        self._lock = threading.Lock()
        head = self.file.read(len(MAGIC) + 1)
        if len(head) != len(MAGIC) + 1 or head[:len(MAGIC)] != MAGIC:
            self.file.close()
            raise CorruptIndexError(f"{filepath}: not a postings file (bad magic)")
        codec = CODEC_NAMES.get(head[-1])
        if codec is None:
            self.file.close()
            raise CorruptIndexError(f"{filepath}: unknown codec id {head[-1]}")
        self.codec = codec

    def _read_exact(self, n: int) -> bytes:
        buf = self.file.read(n)
        if len(buf) != n:
            raise CorruptIndexError(f"{self.filepath}: truncated postings (wanted {n} bytes, got {len(buf)})")
        return buf

    def iter_blocks(self, pointer: int) -> Iterator[Tuple[int, List[int], List[int], List[bool]]]:
        """
        Yield per-block tuples: (last_docid, docids[], freqs[], header_flags[]).
        The whole term is read under the lock, then decoded.
        """
        raw_blocks = []
        with self._lock:
            self.file.seek(pointer)
            (nblocks,) = _NBLOCKS.unpack(self._read_exact(_NBLOCKS.size))
            for _ in range(nblocks):
                n, last_docid, db, fb, hb = _BLOCK_HDR.unpack(self._read_exact(_BLOCK_HDR.size))
                raw_blocks.append((n, last_docid, self._read_exact(db), self._read_exact(fb), self._read_exact(hb)))

        prev_last = 0
        for n, last_docid, docs_buf, freqs_buf, flags_buf in raw_blocks:
            if self.codec == "varbyte":
                docids = VarByteCodec.decode_docids(docs_buf, base=prev_last)
                freqs = VarByteCodec.decode_freqs(freqs_buf)
            else:
                docids = list(struct.unpack(f"<{len(docs_buf) // 4}I", docs_buf))
                freqs = list(struct.unpack(f"<{len(freqs_buf) // 4}I", freqs_buf))
            flags = [b != 0 for b in flags_buf]
            if not (len(docids) == len(freqs) == len(flags) == n):
                raise CorruptIndexError(
                    f"Corrupt block at pointer {pointer}: n={n} docids={len(docids)} "
                    f"freqs={len(freqs)} flags={len(flags)}"
                )
            if docids and docids[-1] != last_docid:
                raise CorruptIndexError(f"Corrupt block at pointer {pointer}: last_docid mismatch")
            yield last_docid, docids, freqs, flags
            prev_last = last_docid

    def read_postings(self, pointer: int) -> List[Posting]:
        """Return the full postings list stored at `pointer`, in docid order."""
        out: List[Posting] = []
        for _, docids, freqs, flags in self.iter_blocks(pointer):
            out.extend(Posting(d, f, h) for d, f, h in zip(docids, freqs, flags))
        return out

    def close(self):
        self.file.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def _vb_bytes(value: int) -> bytes:
    """One integer as 7-bit groups, low group first; 0x80 flags the final byte."""
    if value < 0:
        raise ValueError(f"VarByte cannot encode negative value {value}")
    groups = [value & 0x7F]
    value >>= 7
    while value:
        groups.append(value & 0x7F)
        value >>= 7
    groups[-1] |= 0x80
    return bytes(groups)


def _vb_values(data: bytes) -> Iterator[int]:
    value = shift = 0
    for byte in data:
        value |= (byte & 0x7F) << shift
        if byte & 0x80:
            yield value
            value = shift = 0
        else:
            shift += 7
    if shift:
        raise CorruptIndexError("VarByte stream ends inside a number")


class VarByteCodec:
    """
    Block-local gap coding for docids, plain VarByte for term frequencies.

    The first gap of a block is taken against `base`, the previous block's
    last_docid (0 for the first block), so every block decodes on its own.
    """

    @staticmethod
    def encode_docids(docids: List[int], base: int) -> bytes:
        gaps = [b - a for a, b in zip([base] + docids[:-1], docids)]
        if any(g < 0 for g in gaps):
            raise ValueError(f"docids must ascend from base {base}: {docids}")
        return b"".join(map(_vb_bytes, gaps))

    @staticmethod
    def decode_docids(data: bytes, base: int) -> List[int]:
        return list(accumulate(_vb_values(data), initial=base))[1:]

    @staticmethod
    def encode_freqs(freqs: List[int]) -> bytes:
        return b"".join(map(_vb_bytes, freqs))

    @staticmethod
    def decode_freqs(data: bytes) -> List[int]:
        return list(_vb_values(data))
