from __future__ import annotations

from typing import Callable, Mapping, Protocol, Tuple

from .entities import VerifiedClaims
from .value_objects import SigningKey

# Returns the current time as epoch seconds.
Clock = Callable[[], float]


class KeyFetcher(Protocol):
    """
    Port for retrieving the provider's published signing keys.

    Implementations live in the adapters layer (e.g. the Google HTTPS fetcher).
    """

    async def fetch(self) -> Tuple[Mapping[str, SigningKey], float]:
        """
        Fetch the complete key set once.

        Returns:
            (keys by kid, ttl in seconds)
        Raises:
            KeyFetchError on any transport or parse failure. A single bad
            entry fails the whole fetch.
        """
        ...


class TokenVerifier(Protocol):
    """
    Port for verifying an ID token into claims.
    """

    async def verify(self, token: str) -> VerifiedClaims:
        """
        Verify the given token.

        Should:
          - verify signature
          - check expiry and basic claims
        Raises:
          - TokenExpiredError
          - InvalidTokenError (and subclasses)
          - KeyFetchError
        """
        ...
