"""Issue and verify HS256 bearer tokens.

``auth_service`` issues a token on register and login. ``require_auth``
verifies the token on every ``/api`` request when auth is enabled.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

ISSUER = "problembox"
_HEADER = {"alg": "HS256", "typ": "JWT"}


@dataclass(frozen=True)
class TokenPayload:
    sub: str
    exp: datetime


def _encode_segment(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _decode_segment(data: bytes) -> bytes:
    return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))


def _json_segment(obj: dict) -> bytes:
    return _encode_segment(json.dumps(obj, separators=(",", ":")).encode())


def _sign(secret: str, signing_input: bytes) -> bytes:
    return hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()


def create_token(subject: str, secret: str, algorithm: str = "HS256", expires_hours: int = 24) -> str:
    """Sign a token whose ``sub`` claim is the user id.

    Raises:
        ValueError: *algorithm* is not HS256.
    """
    if algorithm != "HS256":
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    issued_at = int(time.time())
    claims = {"sub": subject, "iat": issued_at, "exp": issued_at + expires_hours * 3600, "iss": ISSUER}
    signing_input = _json_segment(_HEADER) + b"." + _json_segment(claims)
    return (signing_input + b"." + _encode_segment(_sign(secret, signing_input))).decode()


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Optional[TokenPayload]:
    """Return the claims of a valid token, or ``None``.

    A token is invalid when it is malformed, signed with another key, issued
    by someone else, expired, or has no subject.
    """
    if algorithm != "HS256":
        return None
    try:
        header_b64, claims_b64, sig_b64 = token.encode().split(b".")
    except ValueError:
        return None

    try:
        if not hmac.compare_digest(_sign(secret, header_b64 + b"." + claims_b64), _decode_segment(sig_b64)):
            return None
        claims = json.loads(_decode_segment(claims_b64))
    except (ValueError, TypeError, UnicodeDecodeError):
        return None

    if not isinstance(claims, dict) or claims.get("iss") != ISSUER:
        return None
    exp = claims.get("exp")
    subject = claims.get("sub")
    if not isinstance(exp, (int, float)) or exp < time.time() or not subject:
        return None
    return TokenPayload(sub=subject, exp=datetime.fromtimestamp(exp, tz=timezone.utc))
