from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

import httpx
import structlog
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from jwt.algorithms import RSAAlgorithm
from jwt.exceptions import InvalidKeyError

from ...domain.constants import FIREBASE_JWKS_URL, SUPPORTED_ALGORITHM
from ...domain.exceptions import KeyFetchError
from ...domain.ports import KeyFetcher
from ...domain.value_objects import SigningKey
from .cache_control import CacheControlError, clamp_ttl, parse_max_age

logger = structlog.get_logger(__name__)


class GoogleKeyFetcher(KeyFetcher):
    """
    Adapter implementing the KeyFetcher port over HTTPS.

    Infrastructure layer:
    - Knows how to talk to Google's published key endpoints.
    - Understands both JWKS documents and `kid -> PEM certificate` maps.
    - Derives the key set's TTL from the response's Cache-Control max-age.
    """

    def __init__(
        self,
        url: str = FIREBASE_JWKS_URL,
        *,
        min_cache_ttl: float = 60.0,
        max_cache_ttl: float = 86400.0,
        default_cache_ttl: float = 60.0,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._url = url
        self._min_cache_ttl = min_cache_ttl
        self._max_cache_ttl = max_cache_ttl
        self._default_cache_ttl = default_cache_ttl
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def url(self) -> str:
        return self._url

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Port implementation
    # ------------------------------------------------------------------ #

    async def fetch(self) -> Tuple[Dict[str, SigningKey], float]:
        """
        Retrieve and parse the published key set.

        Raises:
            KeyFetchError
        """
        try:
            resp = await self._client.get(
                self._url, headers={"Accept": "application/json"}
            )
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPStatusError as exc:
            raise KeyFetchError(
                f"Key endpoint returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise KeyFetchError(f"Key endpoint request failed: {exc!r}") from exc
        except ValueError as exc:
            raise KeyFetchError("Key endpoint returned invalid JSON") from exc

        keys = parse_key_document(body)
        return keys, self._ttl_from_headers(resp.headers)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _ttl_from_headers(self, headers: httpx.Headers) -> float:
        max_age: Optional[int] = None
        cache_control = headers.get("Cache-Control")
        if cache_control is None:
            logger.debug("keys.cache_control_missing", url=self._url)
        else:
            try:
                max_age = parse_max_age(cache_control)
            except CacheControlError as exc:
                logger.debug("keys.max_age_unusable", url=self._url, reason=exc.reason)

        return clamp_ttl(
            max_age,
            default=self._default_cache_ttl,
            minimum=self._min_cache_ttl,
            maximum=self._max_cache_ttl,
        )


def parse_key_document(body: Any) -> Dict[str, SigningKey]:
    """
    Parse a key document into SigningKeys, all or nothing.

    Accepted shapes:
      {"keys": [{"kid": ..., "kty": "RSA", "n": ..., "e": ...}, ...]}
      {"<kid>": "-----BEGIN CERTIFICATE-----...", ...}
    """
    if not isinstance(body, Mapping):
        raise KeyFetchError("Key document is not a JSON object")

    if "keys" in body:
        entries = body["keys"]
        if not isinstance(entries, list):
            raise KeyFetchError("JWKS 'keys' is not a list")
        parsed = [_key_from_jwk(entry) for entry in entries]
    else:
        parsed = [_key_from_certificate(kid, pem) for kid, pem in body.items()]

    if not parsed:
        raise KeyFetchError("Key document contains no keys")

    keys: Dict[str, SigningKey] = {}
    for key in parsed:
        if key.kid in keys:
            raise KeyFetchError(f"Duplicate kid {key.kid!r} in key document")
        keys[key.kid] = key
    return keys


def _key_from_jwk(entry: Any) -> SigningKey:
    if not isinstance(entry, Mapping):
        raise KeyFetchError("JWK entry is not an object")

    kid = entry.get("kid")
    if not isinstance(kid, str) or not kid:
        raise KeyFetchError("JWK entry has no kid")
    if entry.get("kty") != "RSA":
        raise KeyFetchError(f"JWK {kid!r} is not an RSA key")
    if entry.get("alg", SUPPORTED_ALGORITHM) != SUPPORTED_ALGORITHM:
        raise KeyFetchError(f"JWK {kid!r} declares unsupported alg {entry.get('alg')!r}")
    if entry.get("use", "sig") != "sig":
        raise KeyFetchError(f"JWK {kid!r} is not a signing key")

    try:
        public_key = RSAAlgorithm.from_jwk(dict(entry))
    except (InvalidKeyError, ValueError, TypeError, KeyError) as exc:
        raise KeyFetchError(f"JWK {kid!r} could not be loaded") from exc

    if not isinstance(public_key, RSAPublicKey):
        raise KeyFetchError(f"JWK {kid!r} is not a public key")

    return SigningKey(kid=kid, public_key=public_key, algorithm=SUPPORTED_ALGORITHM)


def _key_from_certificate(kid: Any, pem: Any) -> SigningKey:
    if not isinstance(kid, str) or not kid:
        raise KeyFetchError("Certificate entry has no kid")
    if not isinstance(pem, str):
        raise KeyFetchError(f"Certificate {kid!r} is not a PEM string")

    try:
        cert = x509.load_pem_x509_certificate(pem.encode("utf-8"))
    except ValueError as exc:
        raise KeyFetchError(f"Certificate {kid!r} could not be loaded") from exc

    public_key = cert.public_key()
    if not isinstance(public_key, RSAPublicKey):
        raise KeyFetchError(f"Certificate {kid!r} does not hold an RSA key")

    return SigningKey(kid=kid, public_key=public_key, algorithm=SUPPORTED_ALGORITHM)
