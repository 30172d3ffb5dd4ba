from __future__ import annotations

import tarfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator


@dataclass(frozen=True)
class ArchiveEntry:
    name: str
    size: int


class ArchiveStream:
    """Sequential reader over the regular files of a TAR archive.

    Opened in stream mode, so entries come out strictly in archive order and
    compressed archives (gz/bz2/xz) are read transparently.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._tar = tarfile.open(str(self.path), mode="r|*")

    def __iter__(self) -> Iterator[tuple[ArchiveEntry, bytes]]:
        for member in self._tar:
            if not member.isfile():
                continue
            f = self._tar.extractfile(member)
            data = f.read() if f is not None else b""
            yield ArchiveEntry(name=member.name, size=int(member.size)), data

    def close(self) -> None:
        self._tar.close()

    def __enter__(self) -> "ArchiveStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
