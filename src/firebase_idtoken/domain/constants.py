from enum import Enum

SUPPORTED_ALGORITHM = "RS256"

FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"
FIREBASE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/"
    "securetoken@system.gserviceaccount.com"
)

# Firebase uids are at most 128 characters.
MAX_SUBJECT_LENGTH = 128


class ErrorCode(Enum):
    MALFORMED_TOKEN = "malformed_token"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"
    UNKNOWN_KEY_ID = "unknown_key_id"
    KEY_FETCH_FAILED = "key_fetch_failed"
    INVALID_SIGNATURE = "invalid_signature"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_NOT_YET_VALID = "token_not_yet_valid"
    INVALID_AUDIENCE = "invalid_audience"
    INVALID_ISSUER = "invalid_issuer"
    INVALID_AUTH_TIME = "invalid_auth_time"
    MISSING_SUBJECT = "missing_subject"
    INVALID_SUBJECT = "invalid_subject"
    AUTHENTICATION_FAILED = "authentication_failed"
