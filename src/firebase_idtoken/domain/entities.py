from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .value_objects import EmailAddress, SigningKey, Subject


@dataclass(frozen=True, slots=True)
class KeySet:
    """
    Snapshot of the provider's published signing keys.

    Either empty and already expired, or fully populated and valid until
    `expires_at`. A KeySet is never edited: refreshing builds a new one.
    """
    keys: Mapping[str, SigningKey] = field(
        default_factory=lambda: MappingProxyType({})
    )
    fetched_at: float = 0.0
    expires_at: float = 0.0

    @classmethod
    def empty(cls) -> "KeySet":
        return cls()

    @classmethod
    def build(
        cls,
        keys: Mapping[str, SigningKey],
        *,
        fetched_at: float,
        ttl: float,
    ) -> "KeySet":
        return cls(
            keys=MappingProxyType(dict(keys)),
            fetched_at=fetched_at,
            expires_at=fetched_at + ttl,
        )

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def get(self, kid: str) -> Optional[SigningKey]:
        return self.keys.get(kid)

    def __contains__(self, kid: object) -> bool:
        return kid in self.keys

    def __len__(self) -> int:
        return len(self.keys)


@dataclass(frozen=True, slots=True)
class DecodedPayload:
    """
    Typed core of an ID token payload.

    The registered claims needed for validation are lifted into fields;
    `claims` keeps the whole payload verbatim, provider-specific extras
    included. Nothing in here is trusted until the Verifier says so.
    """
    issuer: Any
    audience: Any
    subject: Any
    issued_at: float
    expires_at: float
    auth_time: float
    claims: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class VerifiedClaims:
    """
    Result of a successful verification: the Firebase uid plus every claim.

    The mapping is a private copy owned by the caller.
    """
    subject: str
    claims: Mapping[str, Any]

    @property
    def uid(self) -> str:
        return self.subject

    @property
    def email(self) -> Optional[str]:
        return self.claims.get("email")

    @property
    def email_verified(self) -> bool:
        return bool(self.claims.get("email_verified") or False)

    @property
    def sign_in_provider(self) -> Optional[str]:
        firebase = self.claims.get("firebase") or {}
        if isinstance(firebase, Mapping):
            return firebase.get("sign_in_provider")
        return None

    @property
    def issued_at(self) -> Optional[int]:
        return self.claims.get("iat")

    @property
    def expires_at(self) -> Optional[int]:
        return self.claims.get("exp")

    @property
    def auth_time(self) -> Optional[int]:
        return self.claims.get("auth_time")

    def get(self, name: str, default: Any = None) -> Any:
        return self.claims.get(name, default)


@dataclass(slots=True)
class IdentityInfo:
    """
    Identity-related information about the authenticated principal.
    Purely based on Firebase ID token claims.
    """
    subject: Subject | None = None
    email: EmailAddress | None = None
    email_verified: bool = False

    name: Optional[str] = None
    picture: Optional[str] = None
    phone_number: Optional[str] = None


@dataclass(slots=True)
class SessionInfo:
    """
    Session and token metadata.
    """
    issued_at: Optional[int] = None
    expires_at: Optional[int] = None
    auth_time: Optional[int] = None
    sign_in_provider: Optional[str] = None
    tenant: Optional[str] = None


@dataclass(slots=True)
class AccessContext:
    """
    Aggregate that bundles identity, session information and the raw claims.
    """
    identity: IdentityInfo = field(default_factory=IdentityInfo)
    session: SessionInfo = field(default_factory=SessionInfo)
    claims: Mapping[str, Any] = field(default_factory=dict)

    # --- Read-only shortcuts for common identity/session fields -----------

    @property
    def uid(self) -> Optional[str]:
        return str(self.identity.subject) if self.identity.subject else None

    @property
    def email(self) -> Optional[str]:
        return str(self.identity.email) if self.identity.email else None

    @property
    def name(self) -> Optional[str]:
        return self.identity.name

    @property
    def sign_in_provider(self) -> Optional[str]:
        return self.session.sign_in_provider
