from .constants import ErrorCode


class AuthenticationError(Exception):
    """Raised when authentication fails."""
    code: ErrorCode = ErrorCode.AUTHENTICATION_FAILED


class KeyFetchError(AuthenticationError):
    """Raised when the provider's signing keys could not be retrieved."""
    code = ErrorCode.KEY_FETCH_FAILED


class TokenExpiredError(AuthenticationError):
    """Raised when token has expired."""
    code = ErrorCode.TOKEN_EXPIRED


class InvalidTokenError(AuthenticationError):
    """Raised when token is malformed or invalid."""
    code = ErrorCode.AUTHENTICATION_FAILED


class MalformedTokenError(InvalidTokenError):
    """Raised when token is not a well-formed three-segment JWT."""
    code = ErrorCode.MALFORMED_TOKEN


class UnsupportedAlgorithmError(InvalidTokenError):
    """Raised when token or key declares an algorithm other than RS256."""
    code = ErrorCode.UNSUPPORTED_ALGORITHM


class UnknownKeyIdError(InvalidTokenError):
    """Raised when no published key matches the token's `kid`."""
    code = ErrorCode.UNKNOWN_KEY_ID

    def __init__(self, kid: str) -> None:
        super().__init__(f"No signing key found for kid {kid!r}")
        self.kid = kid


class InvalidSignatureError(InvalidTokenError):
    """Raised when the RS256 signature does not match the signing key."""
    code = ErrorCode.INVALID_SIGNATURE


class TokenNotYetValidError(InvalidTokenError):
    """Raised when `iat` lies in the future."""
    code = ErrorCode.TOKEN_NOT_YET_VALID


class InvalidAudienceError(InvalidTokenError):
    """Raised when `aud` is not the configured project id."""
    code = ErrorCode.INVALID_AUDIENCE


class InvalidIssuerError(InvalidTokenError):
    """Raised when `iss` is not the project's securetoken issuer."""
    code = ErrorCode.INVALID_ISSUER


class InvalidAuthTimeError(InvalidTokenError):
    """Raised when `auth_time` lies in the future."""
    code = ErrorCode.INVALID_AUTH_TIME


class MissingSubjectError(InvalidTokenError):
    """Raised when `sub` is absent, empty or not a string."""
    code = ErrorCode.MISSING_SUBJECT


class InvalidSubjectError(MissingSubjectError):
    """Raised when `sub` is longer than Firebase allows."""
    code = ErrorCode.INVALID_SUBJECT
