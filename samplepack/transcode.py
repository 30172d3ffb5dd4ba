from __future__ import annotations

import io
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from PIL import Image

DECODE_MODES = ("unchanged", "color", "gray")
DEFAULT_ENCODE = ".jpg"

_PIL_MODES = {"color": "RGB", "gray": "L"}


class TranscodeStatus(str, Enum):
    DECODED = "decoded"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class TranscodeResult:
    status: TranscodeStatus
    payload: bytes = b""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is TranscodeStatus.DECODED

    @classmethod
    def decoded(cls, payload: bytes) -> "TranscodeResult":
        return cls(TranscodeStatus.DECODED, bytes(payload))

    @classmethod
    def empty(cls) -> "TranscodeResult":
        return cls(TranscodeStatus.EMPTY)

    @classmethod
    def failed(cls, error: str) -> "TranscodeResult":
        return cls(TranscodeStatus.FAILED, error=str(error))


@dataclass(frozen=True)
class TranscodeConfig:
    """Settings shared by every ingestion path that re-encodes images.

    max_size/resize use -1 (or any value <= 0) for "disabled".
    """

    max_size: int = -1
    resize: int = -1
    mode: str = "unchanged"
    encode: str | None = None
    quality: int | None = None

    def __post_init__(self) -> None:
        if self.mode not in DECODE_MODES:
            raise ValueError(f"mode must be one of: {', '.join(DECODE_MODES)}")
        if self.encode is not None:
            ext = normalize_extension(self.encode)
            resolve_pil_format(ext)
            object.__setattr__(self, "encode", ext)
        if self.quality is not None and not 1 <= int(self.quality) <= 100:
            raise ValueError("quality must be in [1, 100]")


def normalize_extension(value: str) -> str:
    ext = str(value).strip().lower()
    if not ext:
        raise ValueError("encode extension must not be empty")
    if not ext.startswith("."):
        ext = "." + ext
    return ext


def resolve_pil_format(ext: str) -> str:
    fmt = Image.registered_extensions().get(ext)
    if fmt is None or fmt not in Image.SAVE:
        raise ValueError(f"unsupported encode format: {ext}")
    return fmt


class ImageTranscoder:
    """Decode an image, apply size/mode limits and re-encode it.

    Undecodable input never raises; it comes back as a FAILED result.
    """

    def __init__(self, config: TranscodeConfig | None = None):
        self.config = config or TranscodeConfig()

    def read(self, path: str | Path) -> TranscodeResult:
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            return TranscodeResult.failed(f"{path}: {exc}")
        return self.transcode(data)

    def transcode(self, data: bytes) -> TranscodeResult:
        if not data:
            return TranscodeResult.empty()
        try:
            with Image.open(io.BytesIO(data)) as src:
                src.load()
                image, changed = self._apply(src)
                if not changed and self.config.encode is None:
                    return TranscodeResult.decoded(data)
                return TranscodeResult.decoded(self._encode(image))
        except Exception as exc:
            # corrupt files surface as arbitrary exception types from the plugins
            return TranscodeResult.failed(f"{type(exc).__name__}: {exc}")

    def _apply(self, image: Image.Image) -> tuple[Image.Image, bool]:
        cfg = self.config
        changed = False
        target = _PIL_MODES.get(cfg.mode)
        if target is not None and image.mode != target:
            image = image.convert(target)
            changed = True
        w, h = image.size
        if cfg.resize > 0:
            if (w, h) != (cfg.resize, cfg.resize):
                image = image.resize((cfg.resize, cfg.resize), Image.Resampling.BILINEAR)
                changed = True
        elif cfg.max_size > 0 and max(w, h) > cfg.max_size:
            scale = cfg.max_size / float(max(w, h))
            size = (max(1, round(w * scale)), max(1, round(h * scale)))
            image = image.resize(size, Image.Resampling.BILINEAR)
            changed = True
        return image, changed

    def _encode(self, image: Image.Image) -> bytes:
        ext = self.config.encode or DEFAULT_ENCODE
        fmt = resolve_pil_format(ext)
        if fmt == "JPEG" and image.mode not in ("RGB", "L", "CMYK"):
            image = image.convert("RGB")
        params = {}
        if self.config.quality is not None:
            params["quality"] = int(self.config.quality)
        out = io.BytesIO()
        image.save(out, format=fmt, **params)
        return out.getvalue()
