from __future__ import annotations

from enum import Enum


class ImportFormat(str, Enum):
    DIR = "dir"
    LIST = "list"
    SUBDIRS = "subdirs"
    ANNO_JSON = "anno-json"
    ANNO_IMAGE = "anno-image"
    STORE = "store"
    TARS = "tars"

    @property
    def code(self) -> int:
        return _CODES[self]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_CODES = {
    ImportFormat.DIR: 0,
    ImportFormat.LIST: 1,
    ImportFormat.SUBDIRS: 2,
    ImportFormat.ANNO_JSON: 3,
    ImportFormat.ANNO_IMAGE: 4,
    ImportFormat.STORE: 5,
    ImportFormat.TARS: 6,
}

_DESCRIPTIONS = {
    ImportFormat.DIR: "scan one directory; every file gets label 0",
    ImportFormat.LIST: "list of <image\\tlabel>",
    ImportFormat.SUBDIRS: "scan subdirectories named 0..N-1; the directory name is the label",
    ImportFormat.ANNO_JSON: "list of <image\\tjson-annotation>",
    ImportFormat.ANNO_IMAGE: "list of <image\\tannotation-image>",
    ImportFormat.STORE: "re-encode the images of an existing sample store",
    ImportFormat.TARS: "list of tar archives; the line number is the label",
}

DEFAULT_FORMAT = ImportFormat.LIST


def parse_format(value: str | int | ImportFormat) -> ImportFormat:
    if isinstance(value, ImportFormat):
        return value
    raw = str(value).strip().lower().replace("_", "-")
    if raw.isdigit():
        for fmt, code in _CODES.items():
            if code == int(raw):
                return fmt
    else:
        for fmt in ImportFormat:
            if fmt.value == raw:
                return fmt
    names = ", ".join(f"{f.value} ({f.code})" for f in ImportFormat)
    raise ValueError(f"unknown format: {value!r} (expected one of: {names})")


def format_help() -> str:
    lines = ["Formats:"]
    for fmt in ImportFormat:
        lines.append(f"  {fmt.code}, {fmt.value:<11} {fmt.description}")
    return "\n".join(lines)
