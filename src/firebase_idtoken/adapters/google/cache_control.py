from __future__ import annotations

from typing import Optional


class CacheControlError(ValueError):
    """Raised when a Cache-Control value carries no usable max-age."""

    NO_MAX_AGE = "no_max_age"
    EMPTY_MAX_AGE = "empty_max_age"
    NON_NUMERIC_MAX_AGE = "non_numeric_max_age"

    def __init__(self, reason: str, value: str) -> None:
        super().__init__(f"{reason}: {value!r}")
        self.reason = reason
        self.value = value


def parse_max_age(value: str) -> int:
    """
    Extract `max-age` (seconds) from a Cache-Control header value.

    e.g. "public, max-age=20045, must-revalidate, no-transform" -> 20045
    """
    for directive in value.split(","):
        name, sep, raw = directive.partition("=")
        if name.strip().lower() != "max-age":
            continue

        raw = raw.strip().strip('"')
        if not sep or not raw:
            raise CacheControlError(CacheControlError.EMPTY_MAX_AGE, value)
        if not (raw.isascii() and raw.isdigit()):
            raise CacheControlError(CacheControlError.NON_NUMERIC_MAX_AGE, value)
        return int(raw)

    raise CacheControlError(CacheControlError.NO_MAX_AGE, value)


def clamp_ttl(
    max_age: Optional[float],
    *,
    default: float,
    minimum: float,
    maximum: float,
) -> float:
    ttl = default if max_age is None else max_age
    return float(min(max(ttl, minimum), maximum))
