from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from .cli_args import require_log_level, require_non_negative_int, require_quality, require_size_limit
from .download import DEFAULT_CACHE_DIR
from .formats import DEFAULT_FORMAT, ImportFormat, parse_format
from .transcode import TranscodeConfig

# config-file spellings accepted for each option
_ALIASES = {
    "max": "max_size",
    "max_size": "max_size",
    "resize": "resize",
    "format": "format",
    "cache": "cache",
    "cache_dir": "cache",
    "compact": "compact",
    "limit": "limit",
    "encode": "encode",
    "quality": "quality",
    "jpeg_quality": "quality",
    "mode": "mode",
    "log_level": "log_level",
}


def load_config(path: str | Path) -> dict[str, Any]:
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"config must contain a mapping: {path}")
    return normalize_options(data, where=str(path))


def normalize_options(data: Mapping[str, Any], *, where: str = "config") -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in data.items():
        name = _ALIASES.get(str(key).strip().replace("-", "_"))
        if name is None:
            raise ValueError(f"{where}: unknown option: {key}")
        out[name] = value
    return out


def merge_options(defaults: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Values in override win unless they are None (option not given)."""
    merged = dict(defaults)
    for key, value in override.items():
        if value is not None:
            merged[key] = value
    return merged


@dataclass(frozen=True)
class ImportSettings:
    input: Path
    output: Path
    format: ImportFormat = DEFAULT_FORMAT
    cache: Path = Path(DEFAULT_CACHE_DIR)
    compact: bool = False
    limit: int = 0
    transcode: TranscodeConfig = TranscodeConfig()
    log_level: str = "INFO"

    @classmethod
    def from_options(cls, input: str | Path, output: str | Path, options: Mapping[str, Any]) -> "ImportSettings":
        opts = normalize_options(options, where="options")
        max_size = require_size_limit(opts.get("max_size"), flag_name="--max")
        resize = require_size_limit(opts.get("resize"), flag_name="--resize")
        encode = opts.get("encode")
        transcode = TranscodeConfig(
            max_size=-1 if max_size is None else max_size,
            resize=-1 if resize is None else resize,
            mode=str(opts.get("mode") or "unchanged"),
            encode=str(encode) if encode else None,
            quality=require_quality(opts.get("quality")),
        )
        fmt = opts.get("format")
        limit = require_non_negative_int(opts.get("limit"), flag_name="--limit")
        return cls(
            input=Path(input),
            output=Path(output),
            format=DEFAULT_FORMAT if fmt is None else parse_format(fmt),
            cache=Path(opts.get("cache") or DEFAULT_CACHE_DIR),
            compact=bool(opts.get("compact") or False),
            limit=limit or 0,
            transcode=transcode,
            log_level=require_log_level(opts.get("log_level")) or "INFO",
        )
