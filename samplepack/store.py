from __future__ import annotations

import struct
from collections import Counter
from pathlib import Path
from typing import Any, Iterator

import numpy as np

from .errors import StoreFormatError
from .records import Record

MAGIC = b"SPR1"
# magic, total_size, label, label2, id, has_id, n_fields, reserved
_HEADER = struct.Struct("<4sIffIBBH")
_LENGTH = struct.Struct("<I")
ALIGNMENT = 512


def _padded_size(size: int, *, compact: bool) -> int:
    if compact:
        return size
    return (size + ALIGNMENT - 1) // ALIGNMENT * ALIGNMENT


def encode_record(record: Record, *, compact: bool = False) -> bytes:
    lengths = b"".join(_LENGTH.pack(len(f)) for f in record.fields)
    body = lengths + b"".join(record.fields)
    size = _HEADER.size + len(body)
    total = _padded_size(size, compact=compact)
    if total >= 2**32:
        raise ValueError("record too large for the store format")
    header = _HEADER.pack(
        MAGIC,
        total,
        record.label,
        record.label2,
        0 if record.id is None else int(record.id),
        0 if record.id is None else 1,
        len(record.fields),
        0,
    )
    return header + body + b"\x00" * (total - size)


def decode_record(buf: bytes, *, where: str = "record") -> Record:
    if len(buf) < _HEADER.size:
        raise StoreFormatError(f"{where}: truncated header")
    magic, _size, label, label2, rec_id, has_id, n_fields, _ = _HEADER.unpack_from(buf, 0)
    if magic != MAGIC:
        raise StoreFormatError(f"{where}: bad magic {magic!r}")
    if n_fields == 0:
        raise StoreFormatError(f"{where}: record without payload fields")
    pos = _HEADER.size
    lengths = []
    for _ in range(n_fields):
        if pos + _LENGTH.size > len(buf):
            raise StoreFormatError(f"{where}: truncated field table")
        (n,) = _LENGTH.unpack_from(buf, pos)
        lengths.append(n)
        pos += _LENGTH.size
    fields = []
    for n in lengths:
        if pos + n > len(buf):
            raise StoreFormatError(f"{where}: truncated payload")
        fields.append(buf[pos : pos + n])
        pos += n
    return Record(label=label, fields=tuple(fields), label2=label2, id=rec_id if has_id else None)


class StoreWriter:
    """Append-only writer. Compact mode is fixed when the store is opened."""

    def __init__(self, path: str | Path, *, compact: bool = False):
        self.path = Path(path)
        self.compact = bool(compact)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = self.path.open("wb")
        self.count = 0

    def append(self, record: Record) -> None:
        self._fh.write(encode_record(record, compact=self.compact))
        self.count += 1

    def close(self) -> None:
        if not self._fh.closed:
            self._fh.close()

    def __enter__(self) -> "StoreWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class StoreReader:
    """Random access by ordinal over a store written by StoreWriter."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        if not self.path.is_file():
            raise FileNotFoundError(f"store not found: {self.path}")
        self._offsets, self._sizes = self._scan()

    def _scan(self) -> tuple[np.ndarray, np.ndarray]:
        offsets: list[int] = []
        sizes: list[int] = []
        file_size = self.path.stat().st_size
        pos = 0
        with self.path.open("rb") as fh:
            while pos < file_size:
                head = fh.read(_HEADER.size)
                if len(head) < _HEADER.size:
                    raise StoreFormatError(f"{self.path}: truncated header at offset {pos}")
                magic, total = head[:4], _HEADER.unpack(head)[1]
                if magic != MAGIC:
                    raise StoreFormatError(f"{self.path}: bad magic at offset {pos}")
                if total < _HEADER.size or pos + total > file_size:
                    raise StoreFormatError(f"{self.path}: bad record size at offset {pos}")
                offsets.append(pos)
                sizes.append(total)
                pos += total
                fh.seek(pos)
        return np.asarray(offsets, dtype=np.int64), np.asarray(sizes, dtype=np.int64)

    def size(self) -> int:
        return int(self._offsets.shape[0])

    def __len__(self) -> int:
        return self.size()

    def read(self, index: int) -> Record:
        index = int(index)
        if index < 0 or index >= self.size():
            raise IndexError(f"record index out of range: {index}")
        with self.path.open("rb") as fh:
            fh.seek(int(self._offsets[index]))
            buf = fh.read(int(self._sizes[index]))
        return decode_record(buf, where=f"{self.path}[{index}]")

    def __getitem__(self, index: int) -> Record:
        return self.read(index)

    def __iter__(self) -> Iterator[Record]:
        for i in range(self.size()):
            yield self.read(i)


def summarize_store(reader: StoreReader) -> dict[str, Any]:
    field_counts: Counter[int] = Counter()
    labels: Counter[float] = Counter()
    with_id = 0
    payload_bytes = 0
    for record in reader:
        field_counts[len(record)] += 1
        labels[record.label] += 1
        payload_bytes += sum(len(f) for f in record.fields)
        if record.id is not None:
            with_id += 1
    return {
        "path": str(reader.path),
        "records": len(reader),
        "fields": {str(k): v for k, v in sorted(field_counts.items())},
        "labels": {f"{k:g}": v for k, v in sorted(labels.items())},
        "records_with_id": with_id,
        "payload_bytes": payload_bytes,
    }
