from __future__ import annotations

import binascii
import json
import re
from dataclasses import dataclass
from typing import Any, Dict

from jwt.utils import base64url_decode

from ..domain.entities import DecodedPayload
from ..domain.exceptions import MalformedTokenError
from ..domain.value_objects import DecodedHeader, RawToken

_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True, slots=True)
class ParsedToken:
    raw: RawToken
    header: DecodedHeader
    payload: DecodedPayload


def parse_token(token: str) -> ParsedToken:
    """
    Structurally decode a compact token. No trust is placed in the content.

    Raises:
        MalformedTokenError
    """
    if not isinstance(token, str):
        raise MalformedTokenError("Token must be a string")

    segments = token.split(".")
    if len(segments) != 3:
        raise MalformedTokenError(
            f"Token must have 3 segments, got {len(segments)}"
        )
    for name, segment in zip(("header", "payload", "signature"), segments):
        if not segment or not _SEGMENT_RE.match(segment):
            raise MalformedTokenError(f"Token {name} is not base64url")

    header_seg, payload_seg, signature_seg = segments
    raw = RawToken(
        header_segment=header_seg,
        payload_segment=payload_seg,
        signature_segment=signature_seg,
        signing_input=f"{header_seg}.{payload_seg}".encode("ascii"),
        signature=_decode_segment(signature_seg, "signature"),
    )

    header = _decode_header(_decode_json(header_seg, "header"))
    payload = _decode_payload(_decode_json(payload_seg, "payload"))
    return ParsedToken(raw=raw, header=header, payload=payload)


# ---------------------------------------------------------------------- #
# Internal helpers
# ---------------------------------------------------------------------- #


def _decode_segment(segment: str, name: str) -> bytes:
    try:
        return base64url_decode(segment)
    except (binascii.Error, ValueError) as exc:
        raise MalformedTokenError(f"Token {name} is not base64url") from exc


def _decode_json(segment: str, name: str) -> Dict[str, Any]:
    data = _decode_segment(segment, name)
    try:
        obj = json.loads(data)
    except ValueError as exc:
        raise MalformedTokenError(f"Token {name} is not valid JSON") from exc
    if not isinstance(obj, dict):
        raise MalformedTokenError(f"Token {name} is not a JSON object")
    return obj


def _decode_header(header: Dict[str, Any]) -> DecodedHeader:
    alg = header.get("alg")
    kid = header.get("kid")
    if not isinstance(alg, str) or not alg:
        raise MalformedTokenError("Token header has no 'alg'")
    if not isinstance(kid, str) or not kid:
        raise MalformedTokenError("Token header has no 'kid'")

    typ = header.get("typ")
    return DecodedHeader(alg=alg, kid=kid, typ=typ if isinstance(typ, str) else None)


def _numeric_claim(payload: Dict[str, Any], name: str) -> float:
    value = payload.get(name)
    # bool is an int subclass but never a timestamp
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedTokenError(f"Token claim {name!r} must be a number")
    return value


def _decode_payload(payload: Dict[str, Any]) -> DecodedPayload:
    return DecodedPayload(
        issuer=payload.get("iss"),
        audience=payload.get("aud"),
        subject=payload.get("sub"),
        issued_at=_numeric_claim(payload, "iat"),
        expires_at=_numeric_claim(payload, "exp"),
        auth_time=_numeric_claim(payload, "auth_time"),
        claims=payload,
    )
