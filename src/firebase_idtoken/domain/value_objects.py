# src/firebase_idtoken/domain/value_objects.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey


# --- Key material ---------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SigningKey:
    """
    One of the provider's public signing keys, selected by a token's `kid`.
    """
    kid: str
    public_key: RSAPublicKey
    algorithm: str


# --- Token structure ------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawToken:
    """
    The three base64url segments of a compact token.

    `signing_input` is the exact byte span covered by the signature
    (header + "." + payload), `signature` the decoded signature bytes.
    """
    header_segment: str
    payload_segment: str
    signature_segment: str
    signing_input: bytes
    signature: bytes


@dataclass(frozen=True, slots=True)
class DecodedHeader:
    alg: str
    kid: str
    typ: Optional[str] = None


# --- Identity value objects ----------------------------------------------


@dataclass(frozen=True, slots=True)
class EmailAddress:
    """
    Simple email value object.

    You can keep validation light here on purpose to avoid being too strict.
    """
    value: str

    def __post_init__(self) -> None:
        if "@" not in self.value:
            raise ValueError(f"Invalid email address: {self.value!r}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Subject:
    """
    Represents the Firebase uid (`sub` claim).

    Kept as a separate type so you don't accidentally treat it as your
    internal user ID.
    """
    value: str

    def __str__(self) -> str:
        return self.value
