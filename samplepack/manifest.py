from __future__ import annotations

from pathlib import Path
from typing import Iterator

MANIFEST_FIELDS = 2


def parse_manifest_line(line: str) -> tuple[str, str] | None:
    """Split one tab-separated manifest line into (source, value).

    Consecutive tabs are not merged, so "a\\t\\tb" has three fields.
    Returns None when the line does not have exactly two fields.
    """

    fields = line.rstrip("\r\n").split("\t")
    if len(fields) != MANIFEST_FIELDS:
        return None
    return fields[0], fields[1]


def iter_manifest_lines(path: str | Path) -> Iterator[tuple[int, str | None]]:
    """Yield (lineno, text) per line; text is None when the line is not valid UTF-8."""
    with Path(path).open("rb") as f:
        for lineno, raw in enumerate(f, 1):
            try:
                text = raw.rstrip(b"\r\n").decode("utf-8")
            except UnicodeDecodeError:
                text = None
            yield lineno, text
