from __future__ import annotations

import time
from dataclasses import dataclass, field
from types import MappingProxyType

import structlog

from ..domain.entities import VerifiedClaims
from ..domain.exceptions import AuthenticationError, InvalidSignatureError
from ..domain.ports import Clock, TokenVerifier
from .claims import ClaimsValidator
from .key_store import KeyStore
from .signature import SignatureVerifier
from .token_parser import parse_token

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class Verifier(TokenVerifier):
    """
    Verifies Firebase ID tokens.

    parse -> resolve key by `kid` -> check signature -> validate claims.
    The first failing stage raises its own error; nothing is returned
    unless every stage passes.
    """

    key_store: KeyStore
    claims_validator: ClaimsValidator
    signature_verifier: SignatureVerifier = field(default_factory=SignatureVerifier)
    clock: Clock = time.time

    async def verify(self, token: str) -> VerifiedClaims:
        """
        Raises:
            MalformedTokenError, UnsupportedAlgorithmError, UnknownKeyIdError,
            KeyFetchError, InvalidSignatureError, TokenExpiredError,
            TokenNotYetValidError, InvalidAudienceError, InvalidIssuerError,
            InvalidAuthTimeError, MissingSubjectError
        """
        kid = None
        try:
            parsed = parse_token(token)
            kid = parsed.header.kid

            self.signature_verifier.ensure_supported(parsed.header.alg)
            key = await self.key_store.get(kid)

            if not self.signature_verifier.verify(
                parsed.raw.signing_input,
                parsed.raw.signature,
                key,
                parsed.header.alg,
            ):
                raise InvalidSignatureError("Token signature does not match")

            now = self.clock()
            self.claims_validator.validate(parsed.payload, now)
        except AuthenticationError as exc:
            logger.info("token.rejected", code=exc.code.value, kid=kid)
            raise

        subject = parsed.payload.subject
        logger.debug("token.verified", kid=kid, sub=subject)
        return VerifiedClaims(
            subject=subject,
            claims=MappingProxyType(dict(parsed.payload.claims)),
        )
