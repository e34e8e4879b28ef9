from __future__ import annotations

from dataclasses import dataclass, field

from jwt.algorithms import RSAAlgorithm

from ..domain.constants import SUPPORTED_ALGORITHM
from ..domain.exceptions import UnsupportedAlgorithmError
from ..domain.value_objects import SigningKey


@dataclass(slots=True)
class SignatureVerifier:
    """
    Checks an RS256 signature over the exact signed bytes of a token.

    Only RS256 is accepted. Any other algorithm, whether named by the token
    header or by the key, is rejected before the key material is used.
    """

    algorithm: str = SUPPORTED_ALGORITHM
    _rsa: RSAAlgorithm = field(
        init=False,
        repr=False,
        default_factory=lambda: RSAAlgorithm(RSAAlgorithm.SHA256)
    )

    def ensure_supported(self, algorithm: str) -> None:
        if algorithm != self.algorithm:
            raise UnsupportedAlgorithmError(
                f"Unsupported algorithm {algorithm!r}, expected {self.algorithm}"
            )

    def verify(
        self,
        signing_input: bytes,
        signature: bytes,
        key: SigningKey,
        algorithm: str,
    ) -> bool:
        """
        Returns False on a signature mismatch.

        Raises:
            UnsupportedAlgorithmError
        """
        self.ensure_supported(algorithm)
        self.ensure_supported(key.algorithm)
        return self._rsa.verify(signing_input, key.public_key, signature)
