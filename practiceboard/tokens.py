"""
Practice Board - Session payload codec

A session payload travels as compact JSON (``{"u": subject, "exp": seconds}``)
encoded with the URL-safe base64 alphabet and no ``=`` padding, so the
result never contains the ``.`` that separates it from its signature.
"""

import base64
import binascii
import json
import re
from dataclasses import dataclass
from typing import Optional

from loguru import logger

_B64URL_RE = re.compile(r"^[A-Za-z0-9_-]*$")


@dataclass(frozen=True)
class SessionPayload:
    subject: str
    expires_at: Optional[int] = None


def b64url_encode(raw: bytes) -> str:
    """URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def b64url_decode(text: str) -> bytes:
    """Inverse of :func:`b64url_encode`.  Raises ``ValueError`` on bad input."""
    if not _B64URL_RE.match(text):
        raise ValueError("not url-safe base64")
    padded = text + "=" * (-len(text) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except binascii.Error as e:
        raise ValueError(str(e)) from e


def encode_payload(payload: SessionPayload) -> str:
    data = {"u": payload.subject}
    if payload.expires_at is not None:
        data["exp"] = payload.expires_at
    raw = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    return b64url_encode(raw.encode("utf-8"))


def decode_payload(text: str) -> Optional[SessionPayload]:
    """Decode an encoded payload, or return None if it is malformed."""
    if not text:
        return None
    try:
        data = json.loads(b64url_decode(text).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        logger.debug("Malformed session payload: {}", e)
        return None

    if not isinstance(data, dict) or not isinstance(data.get("u"), str):
        logger.debug("Session payload has an unexpected shape")
        return None

    exp = data.get("exp")
    if exp is not None and (isinstance(exp, bool) or not isinstance(exp, int)):
        logger.debug("Session payload expiry is not an integer")
        return None

    return SessionPayload(subject=data["u"], expires_at=exp)
