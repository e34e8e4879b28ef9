# tests/conftest.py
import asyncio
import datetime
import json
from typing import Any, Dict, Optional

import jwt
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from jwt.algorithms import RSAAlgorithm

from firebase_idtoken.application.claims import ClaimsValidator
from firebase_idtoken.application.key_store import KeyStore
from firebase_idtoken.application.verifier import Verifier
from firebase_idtoken.domain.constants import FIREBASE_ISSUER_PREFIX
from firebase_idtoken.domain.exceptions import KeyFetchError
from firebase_idtoken.domain.value_objects import SigningKey

PROJECT_ID = "demo-project"
NOW = 1_700_000_000.0
KID = "kid-0"
OTHER_KID = "kid-1"


# --- Keys ----------------------------------------------------------------


def _generate_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key() -> rsa.RSAPrivateKey:
    return _generate_key()


@pytest.fixture(scope="session")
def other_private_key() -> rsa.RSAPrivateKey:
    return _generate_key()


def signing_key(private: rsa.RSAPrivateKey, kid: str = KID) -> SigningKey:
    return SigningKey(kid=kid, public_key=private.public_key(), algorithm="RS256")


def public_jwk(private: rsa.RSAPrivateKey, kid: str = KID) -> Dict[str, Any]:
    jwk = json.loads(RSAAlgorithm.to_jwk(private.public_key()))
    jwk.update({"kid": kid, "alg": "RS256", "use": "sig"})
    return jwk


def self_signed_pem(private: rsa.RSAPrivateKey) -> str:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "securetoken.system.gserviceaccount.com")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(private, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


# --- Tokens --------------------------------------------------------------


def make_claims(**overrides: Any) -> Dict[str, Any]:
    claims: Dict[str, Any] = {
        "iss": f"{FIREBASE_ISSUER_PREFIX}{PROJECT_ID}",
        "aud": PROJECT_ID,
        "sub": "user-123",
        "iat": int(NOW) - 60,
        "exp": int(NOW) + 3600,
        "auth_time": int(NOW) - 120,
        "email": "jane@example.com",
        "email_verified": True,
        "firebase": {"sign_in_provider": "password", "identities": {}},
    }
    for name, value in overrides.items():
        if value is None:
            claims.pop(name, None)
        else:
            claims[name] = value
    return claims


def make_token(
    private: rsa.RSAPrivateKey,
    claims: Optional[Dict[str, Any]] = None,
    *,
    kid: Optional[str] = KID,
    algorithm: str = "RS256",
) -> str:
    headers = {"kid": kid} if kid is not None else {}
    return jwt.encode(claims or make_claims(), private, algorithm=algorithm, headers=headers)


# --- Fakes ---------------------------------------------------------------


class FakeClock:
    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFetcher:
    """
    In-memory KeyFetcher. `gate` (if set) holds every fetch until released.
    """

    def __init__(self, keys=None, ttl: float = 3600.0) -> None:
        self.keys = dict(keys or {})
        self.ttl = ttl
        self.error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return dict(self.keys), self.ttl

    def fail_with(self, message: str = "provider unavailable") -> None:
        self.error = KeyFetchError(message)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fetcher(private_key) -> FakeFetcher:
    return FakeFetcher({KID: signing_key(private_key)})


@pytest.fixture
def key_store(fetcher, clock) -> KeyStore:
    return KeyStore(fetcher, fetch_timeout=1.0, clock=clock)


@pytest.fixture
def verifier(key_store, clock) -> Verifier:
    return Verifier(
        key_store=key_store,
        claims_validator=ClaimsValidator(project_id=PROJECT_ID, clock_skew=5.0),
        clock=clock,
    )
