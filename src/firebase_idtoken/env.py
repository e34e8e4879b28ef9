from __future__ import annotations

import os
from typing import Any, Dict

from .settings import VerifierSettings


def settings_from_env() -> VerifierSettings:
    def _float(key: str) -> float | None:
        raw = os.getenv(key)
        if raw is None or not raw.strip():
            return None
        try:
            return float(raw)
        except ValueError as exc:
            raise RuntimeError(f"{key} must be a number, got {raw!r}") from exc

    project_id = os.getenv("FIREBASE_PROJECT_ID")
    if not project_id or not project_id.strip():
        raise RuntimeError("Missing Firebase settings: FIREBASE_PROJECT_ID")

    kwargs: Dict[str, Any] = {}
    for key, env_name in [
        ("jwks_url", "FIREBASE_JWKS_URL"),
        ("issuer_prefix", "FIREBASE_ISSUER_PREFIX"),
    ]:
        raw = os.getenv(env_name)
        if raw:
            kwargs[key] = raw.strip()

    for key, env_name in [
        ("min_cache_ttl", "FIREBASE_MIN_CACHE_TTL"),
        ("max_cache_ttl", "FIREBASE_MAX_CACHE_TTL"),
        ("default_cache_ttl", "FIREBASE_DEFAULT_CACHE_TTL"),
        ("clock_skew", "FIREBASE_CLOCK_SKEW"),
        ("fetch_timeout", "FIREBASE_FETCH_TIMEOUT"),
    ]:
        value = _float(env_name)
        if value is not None:
            kwargs[key] = value

    return VerifierSettings(project_id=project_id, **kwargs)
