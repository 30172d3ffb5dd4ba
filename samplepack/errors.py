from __future__ import annotations


class SamplepackError(Exception):
    pass


class CategoryLayoutError(SamplepackError, ValueError):
    """Category subdirectories are not named 0..N-1 with N >= 2."""


class StoreFormatError(SamplepackError):
    pass


class DownloadError(SamplepackError):
    def __init__(self, locator: str, reason: str):
        super().__init__(f"failed to fetch {locator}: {reason}")
        self.locator = locator
        self.reason = reason
