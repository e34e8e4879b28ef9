from __future__ import annotations

from dataclasses import dataclass

from .domain.constants import FIREBASE_ISSUER_PREFIX, FIREBASE_JWKS_URL

MAX_CLOCK_SKEW = 300.0


@dataclass(slots=True)
class VerifierSettings:
    """
    Firebase ID token verification settings.

    Host code decides how to construct this (env, config file, etc.).
    All durations are in seconds.
    """
    project_id: str
    jwks_url: str = FIREBASE_JWKS_URL
    issuer_prefix: str = FIREBASE_ISSUER_PREFIX

    # Key cache TTL: Cache-Control max-age clamped to [min, max];
    # default is used when the response carries no usable max-age.
    min_cache_ttl: float = 60.0
    max_cache_ttl: float = 86400.0
    default_cache_ttl: float = 60.0

    clock_skew: float = 5.0
    fetch_timeout: float = 10.0

    def __post_init__(self) -> None:
        self.project_id = (self.project_id or "").strip()
        if not self.project_id:
            raise ValueError("project_id must not be empty")
        if self.min_cache_ttl <= 0:
            raise ValueError("min_cache_ttl must be positive")
        if self.max_cache_ttl < self.min_cache_ttl:
            raise ValueError("max_cache_ttl must be >= min_cache_ttl")
        if self.default_cache_ttl <= 0:
            raise ValueError("default_cache_ttl must be positive")
        if not 0 <= self.clock_skew <= MAX_CLOCK_SKEW:
            raise ValueError(f"clock_skew must be between 0 and {MAX_CLOCK_SKEW:g}")
        if self.fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")

    @property
    def expected_issuer(self) -> str:
        return f"{self.issuer_prefix}{self.project_id}"
