"""
firebase_idtoken

Firebase ID token verification core: rotating key cache, RS256 signature
checks and claim validation, with a thin FastAPI integration.
"""

__version__ = "0.1.0"

from .domain.entities import AccessContext, IdentityInfo, SessionInfo, KeySet, VerifiedClaims
from .domain.constants import ErrorCode, FIREBASE_ISSUER_PREFIX, FIREBASE_JWKS_URL
from .domain.exceptions import (
    AuthenticationError,
    InvalidTokenError,
    KeyFetchError,
    TokenExpiredError,
    MalformedTokenError,
    UnsupportedAlgorithmError,
    UnknownKeyIdError,
    InvalidSignatureError,
    TokenNotYetValidError,
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidAuthTimeError,
    MissingSubjectError,
    InvalidSubjectError,
)
from .domain.value_objects import SigningKey, Subject, EmailAddress
from .domain.ports import KeyFetcher, TokenVerifier

from .application.claims import ClaimsValidator
from .application.key_store import KeyStore
from .application.signature import SignatureVerifier
from .application.token_parser import ParsedToken, parse_token
from .application.verifier import Verifier
from .application.use_cases.authenticate import AuthenticateTokenUseCase

from .settings import VerifierSettings
from .env import settings_from_env

# Google HTTPS adapter
from .adapters.google.key_fetcher import GoogleKeyFetcher

from .integrations.common.auth_factory import (
    AuthDependencies,
    create_auth_dependencies,
    create_auth_dependencies_from_env,
    create_auth_dependencies_from_firebase,
)

__all__ = [
    "__version__",
    # domain core
    "AccessContext",
    "IdentityInfo",
    "SessionInfo",
    "KeySet",
    "VerifiedClaims",
    "SigningKey",
    "Subject",
    "EmailAddress",
    "ErrorCode",
    "FIREBASE_ISSUER_PREFIX",
    "FIREBASE_JWKS_URL",
    "KeyFetcher",
    "TokenVerifier",
    # exceptions
    "AuthenticationError",
    "InvalidTokenError",
    "KeyFetchError",
    "TokenExpiredError",
    "MalformedTokenError",
    "UnsupportedAlgorithmError",
    "UnknownKeyIdError",
    "InvalidSignatureError",
    "TokenNotYetValidError",
    "InvalidAudienceError",
    "InvalidIssuerError",
    "InvalidAuthTimeError",
    "MissingSubjectError",
    "InvalidSubjectError",
    # engine
    "ClaimsValidator",
    "KeyStore",
    "SignatureVerifier",
    "ParsedToken",
    "parse_token",
    "Verifier",
    "AuthenticateTokenUseCase",
    # config
    "VerifierSettings",
    "settings_from_env",
    # adapters
    "GoogleKeyFetcher",
    # wiring
    "AuthDependencies",
    "create_auth_dependencies",
    "create_auth_dependencies_from_env",
    "create_auth_dependencies_from_firebase",
]
