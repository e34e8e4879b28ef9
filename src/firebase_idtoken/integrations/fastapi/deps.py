from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from typing import Any, AsyncIterator

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials

from .security import BEARER_CHALLENGE, DEFAULT_COOKIE_NAME, bearer_scheme, extract_token_from_request
from ..common.auth_factory import AuthDependencies
from ...domain.entities import AccessContext, VerifiedClaims
from ...domain.exceptions import (
    AuthenticationError,
    KeyFetchError,
    TokenExpiredError,
)


def _to_http(exc: AuthenticationError) -> HTTPException:
    if isinstance(exc, KeyFetchError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to verify token right now",
        )
    if isinstance(exc, TokenExpiredError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers=BEARER_CHALLENGE,
        )
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=exc.code.value,
        headers=BEARER_CHALLENGE,
    )


@dataclass(slots=True)
class FastAPIAuthorization:
    """
    FastAPI integration for firebase_idtoken.

    Built on top of the framework-agnostic AuthDependencies facade.
    """

    auth: AuthDependencies
    cookie_name: str = DEFAULT_COOKIE_NAME

    # ------------------------------------------------------------------ #
    # Base dependencies
    # ------------------------------------------------------------------ #

    async def get_current_user(
            self,
            request: Request,
            credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    ) -> AccessContext:
        """Dependency: Require authentication."""
        token = extract_token_from_request(request, credentials, self.cookie_name)
        try:
            return await self.auth.authenticate(token)
        except AuthenticationError as exc:
            raise _to_http(exc) from exc

    async def get_optional_user(
            self,
            request: Request,
            credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    ) -> AccessContext | None:
        """Dependency: Optional authentication."""
        try:
            token = extract_token_from_request(request, credentials, self.cookie_name)
        except HTTPException:
            # no token anywhere -> anonymous
            return None

        try:
            return await self.auth.authenticate(token)
        except KeyFetchError as exc:
            # cannot tell a good token from a bad one
            raise _to_http(exc) from exc
        except AuthenticationError:
            # bad token -> treat as anonymous
            return None

    async def get_verified_claims(
            self,
            request: Request,
            credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    ) -> VerifiedClaims:
        """Dependency: Require authentication, return the raw verified claims."""
        token = extract_token_from_request(request, credentials, self.cookie_name)
        try:
            return await self.auth.verify(token)
        except AuthenticationError as exc:
            raise _to_http(exc) from exc

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @contextlib.asynccontextmanager
    async def lifespan(
            self,
            app: Any = None,
            *,
            background_refresh: bool = True,
    ) -> AsyncIterator[None]:
        """
        Lifespan hook: fetch keys at startup and keep them fresh.

            app = FastAPI(lifespan=fastapi_auth.lifespan)
        """
        await self.auth.startup()
        refresher = None
        if background_refresh:
            refresher = asyncio.create_task(self.auth.key_store.run_periodic_refresh())
        try:
            yield
        finally:
            if refresher is not None:
                refresher.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await refresher
            await self.auth.shutdown()
