from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ...domain.entities import AccessContext, IdentityInfo, SessionInfo, VerifiedClaims
from ...domain.exceptions import AuthenticationError
from ...domain.ports import TokenVerifier
from ...domain.value_objects import EmailAddress, Subject


@dataclass(slots=True)
class AuthenticateTokenUseCase:
    """
    Application use case:
    - Verify a Firebase ID token via the TokenVerifier port
    - Map Firebase claims -> AccessContext

    Framework-agnostic. No authorization happens here: the context only
    describes who the caller is.
    """

    token_verifier: TokenVerifier

    async def execute(self, token: str) -> AccessContext:
        """
        Authenticate a token and return an AccessContext.

        Raises:
            TokenExpiredError
            InvalidTokenError
            KeyFetchError
            AuthenticationError
        """
        try:
            verified = await self.token_verifier.verify(token)
        except AuthenticationError:
            # let callers distinguish the specific subclasses explicitly
            raise
        except Exception as exc:
            # Wrap unexpected errors in a generic AuthenticationError
            raise AuthenticationError(f"Token validation failed: {exc}") from exc

        return self._build_context(verified)

    # ------------------------------------------------------------------ #
    # Internal: claims -> AccessContext mapping (Firebase-specific)
    # ------------------------------------------------------------------ #

    def _build_context(self, verified: VerifiedClaims) -> AccessContext:
        claims: Mapping[str, Any] = verified.claims

        # ---- Identity -----------------------------------------------------
        email = claims.get("email")
        email_vo: EmailAddress | None = None
        if isinstance(email, str) and "@" in email:
            email_vo = EmailAddress(email)

        identity = IdentityInfo(
            subject=Subject(verified.subject),
            email=email_vo,
            email_verified=verified.email_verified,
            name=claims.get("name"),
            picture=claims.get("picture"),
            phone_number=claims.get("phone_number"),
        )

        # ---- Session ------------------------------------------------------
        firebase = claims.get("firebase") or {}
        if not isinstance(firebase, Mapping):
            firebase = {}

        session = SessionInfo(
            issued_at=verified.issued_at,
            expires_at=verified.expires_at,
            auth_time=verified.auth_time,
            sign_in_provider=firebase.get("sign_in_provider"),
            tenant=firebase.get("tenant"),
        )

        return AccessContext(identity=identity, session=session, claims=claims)
