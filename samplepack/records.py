from __future__ import annotations

import struct
from dataclasses import dataclass

MAX_FIELDS = 255
_FLOAT32 = struct.Struct("<f")


def _float32(value: float, *, name: str) -> float:
    number = float(value)
    try:
        _FLOAT32.pack(number)
    except OverflowError as exc:
        raise ValueError(f"{name} out of float32 range: {value!r}") from exc
    return number


@dataclass(frozen=True)
class Record:
    """One sample of the store: a label, its payloads and optional metadata.

    Importers build records with one payload or two (primary + secondary).
    The payload count is fixed at construction; readers get back exactly the
    fields that were written.
    """

    label: float
    fields: tuple[bytes, ...]
    label2: float = 0.0
    id: int | None = None

    def __post_init__(self) -> None:
        fields = tuple(bytes(f) for f in self.fields)
        if not 1 <= len(fields) <= MAX_FIELDS:
            raise ValueError(f"record must have 1..{MAX_FIELDS} payload fields (got {len(fields)})")
        if self.id is not None and not 0 <= int(self.id) < 2**32:
            raise ValueError("record id must fit in an unsigned 32-bit integer")
        object.__setattr__(self, "fields", fields)
        object.__setattr__(self, "label", _float32(self.label, name="label"))
        object.__setattr__(self, "label2", _float32(self.label2, name="label2"))

    def __len__(self) -> int:
        return len(self.fields)

    @property
    def primary(self) -> bytes:
        return self.fields[0]

    @property
    def secondary(self) -> bytes | None:
        return self.fields[1] if len(self.fields) > 1 else None
