from __future__ import annotations

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def require_non_negative_int(value: int | None, *, flag_name: str) -> int | None:
    if value is None:
        return None
    number = int(value)
    if number < 0:
        raise ValueError(f"{flag_name} must be >= 0")
    return number


def require_size_limit(value: int | None, *, flag_name: str) -> int | None:
    """Pixel limits: a positive size, or -1/0 to disable."""
    if value is None:
        return None
    number = int(value)
    if number < -1:
        raise ValueError(f"{flag_name} must be > 0 (or -1 to disable)")
    return number if number > 0 else -1


def require_quality(value: int | None, *, flag_name: str = "--quality") -> int | None:
    if value is None:
        return None
    number = int(value)
    if number < 1 or number > 100:
        raise ValueError(f"{flag_name} must be in [1, 100]")
    return number


def require_log_level(value: str | None, *, flag_name: str = "--log-level") -> str | None:
    if value is None:
        return None
    level = str(value).strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"{flag_name} must be one of: {', '.join(LOG_LEVELS)}")
    return level
