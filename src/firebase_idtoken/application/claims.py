from __future__ import annotations

from dataclasses import dataclass

from ..domain.constants import FIREBASE_ISSUER_PREFIX, MAX_SUBJECT_LENGTH
from ..domain.entities import DecodedPayload
from ..domain.exceptions import (
    InvalidAudienceError,
    InvalidAuthTimeError,
    InvalidIssuerError,
    InvalidSubjectError,
    MissingSubjectError,
    TokenExpiredError,
    TokenNotYetValidError,
)


@dataclass(frozen=True, slots=True)
class ClaimsValidator:
    """
    Validates the registered claims of a Firebase ID token.

    Checks run in a fixed order and stop at the first failure:
      exp -> iat -> aud -> iss -> auth_time -> sub

    `clock_skew` (seconds) only relaxes the "not in the future" checks;
    expiry is strict.
    """

    project_id: str
    clock_skew: float = 5.0
    issuer_prefix: str = FIREBASE_ISSUER_PREFIX

    @property
    def expected_issuer(self) -> str:
        return f"{self.issuer_prefix}{self.project_id}"

    def validate(self, payload: DecodedPayload, now: float) -> None:
        if not payload.expires_at > now:
            raise TokenExpiredError("Token has expired")

        if payload.issued_at > now + self.clock_skew:
            raise TokenNotYetValidError("Token issued in the future")

        if payload.audience != self.project_id:
            raise InvalidAudienceError(
                f"Invalid audience: expected {self.project_id!r}, got {payload.audience!r}"
            )

        if payload.issuer != self.expected_issuer:
            raise InvalidIssuerError(
                f"Invalid issuer: expected {self.expected_issuer!r}, got {payload.issuer!r}"
            )

        if payload.auth_time > now + self.clock_skew:
            raise InvalidAuthTimeError("Token auth_time is in the future")

        subject = payload.subject
        if not isinstance(subject, str) or not subject:
            raise MissingSubjectError("Token has no subject")
        if len(subject) > MAX_SUBJECT_LENGTH:
            raise InvalidSubjectError(
                f"Token subject longer than {MAX_SUBJECT_LENGTH} characters"
            )
