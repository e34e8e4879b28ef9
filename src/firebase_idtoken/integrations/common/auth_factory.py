from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

import httpx

from ...adapters.google.key_fetcher import GoogleKeyFetcher
from ...application.claims import ClaimsValidator
from ...application.key_store import KeyStore
from ...application.use_cases.authenticate import AuthenticateTokenUseCase
from ...application.verifier import Verifier
from ...domain.entities import AccessContext, VerifiedClaims
from ...domain.ports import Clock, KeyFetcher
from ...env import settings_from_env
from ...settings import VerifierSettings


@dataclass(slots=True)
class AuthDependencies:
    """
    Framework-agnostic auth facade.

    Integrations (FastAPI, etc.) adapt this to their own dependency
    systems. Create it once per process and share it: the KeyStore inside
    is the process-wide key cache.
    """

    verifier: Verifier
    key_store: KeyStore
    auth_use_case: AuthenticateTokenUseCase
    key_fetcher: KeyFetcher

    # --- Core operations --------------------------------------------------

    async def verify(self, token: str) -> VerifiedClaims:
        """Token -> VerifiedClaims (or raise auth exceptions)."""
        return await self.verifier.verify(token)

    async def authenticate(self, token: str) -> AccessContext:
        """Token -> AccessContext (or raise auth exceptions)."""
        return await self.auth_use_case.execute(token)

    # --- Lifecycle ----------------------------------------------------------

    async def startup(self) -> None:
        """Fetch keys before the first request (raises KeyFetchError)."""
        await self.key_store.warm_up()

    async def shutdown(self) -> None:
        close = getattr(self.key_fetcher, "close", None)
        if close is not None:
            await close()


def create_auth_dependencies(
        settings: VerifierSettings,
        *,
        key_fetcher: Optional[KeyFetcher] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Clock = time.time,
) -> AuthDependencies:
    """
    High-level factory: VerifierSettings -> AuthDependencies.

    - builds a GoogleKeyFetcher (unless a fetcher is injected)
    - wires KeyStore + ClaimsValidator into a Verifier
    - wraps it in AuthenticateTokenUseCase
    """
    fetcher: KeyFetcher = key_fetcher or GoogleKeyFetcher(
        settings.jwks_url,
        min_cache_ttl=settings.min_cache_ttl,
        max_cache_ttl=settings.max_cache_ttl,
        default_cache_ttl=settings.default_cache_ttl,
        timeout=settings.fetch_timeout,
        client=http_client,
    )

    key_store = KeyStore(fetcher, fetch_timeout=settings.fetch_timeout, clock=clock)
    validator = ClaimsValidator(
        project_id=settings.project_id,
        clock_skew=settings.clock_skew,
        issuer_prefix=settings.issuer_prefix,
    )
    verifier = Verifier(key_store=key_store, claims_validator=validator, clock=clock)

    return AuthDependencies(
        verifier=verifier,
        key_store=key_store,
        auth_use_case=AuthenticateTokenUseCase(token_verifier=verifier),
        key_fetcher=fetcher,
    )


def create_auth_dependencies_from_firebase(
        *,
        project_id: str,
        **overrides,
) -> AuthDependencies:
    """Convenience wrapper: just a project id plus optional setting overrides."""
    return create_auth_dependencies(VerifierSettings(project_id=project_id, **overrides))


def create_auth_dependencies_from_env() -> AuthDependencies:
    """Convenience wrapper using env-configured settings."""
    return create_auth_dependencies(settings_from_env())
