from __future__ import annotations

import hashlib
import http.client
import os
import shutil
import tempfile
import urllib.parse
import urllib.request
from pathlib import Path

from loguru import logger

from .errors import DownloadError

REMOTE_SCHEMES = ("http", "https", "ftp")
DEFAULT_CACHE_DIR = ".samplepack_cache"


def _cache_name(url: str) -> str:
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()
    suffix = Path(urllib.parse.urlparse(url).path).suffix.lower()
    # keep odd query-string junk out of file names
    if len(suffix) > 8 or not suffix[1:].isalnum():
        suffix = ""
    return digest + suffix


class CachedDownloader:
    """Map a locator (URL or local path) to a local file, fetching URLs once."""

    def __init__(self, cache_dir: str | Path = DEFAULT_CACHE_DIR, *, timeout: float = 60.0):
        self.cache_dir = Path(cache_dir)
        self.timeout = float(timeout)

    def cached_path(self, url: str) -> Path:
        return self.cache_dir / _cache_name(url)

    def download(self, locator: str) -> Path:
        locator = str(locator).strip()
        if not locator:
            raise DownloadError(locator, "empty locator")
        parsed = urllib.parse.urlparse(locator)
        scheme = parsed.scheme.lower()
        if scheme in REMOTE_SCHEMES:
            return self._fetch(locator)
        if scheme == "file":
            path = Path(urllib.request.url2pathname(parsed.path))
        else:
            path = Path(locator).expanduser()
        if not path.is_file():
            raise DownloadError(locator, "no such file")
        return path

    def _fetch(self, url: str) -> Path:
        dst = self.cached_path(url)
        if dst.is_file():
            return dst
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(self.cache_dir), suffix=".part")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f, urllib.request.urlopen(url, timeout=self.timeout) as r:
                shutil.copyfileobj(r, f)
            os.replace(tmp_path, dst)
        except (OSError, ValueError, http.client.HTTPException) as exc:
            tmp_path.unlink(missing_ok=True)
            raise DownloadError(url, str(exc)) from exc
        logger.debug(f"cached {url} -> {dst}")
        return dst
