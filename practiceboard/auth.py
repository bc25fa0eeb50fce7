"""
Practice Board - Session Auth

Single-admin authentication using stateless signed session tokens.

A token is ``<encoded payload>.<signature>`` where the signature is an
HMAC-SHA256 over the encoded payload, URL-safe base64 without padding.
Nothing is stored server side: rotating ``SESSION_SECRET`` is the only way
to revoke outstanding sessions before they expire.

Usage:
    - Build one ``SessionAuthenticator`` per app from ``Settings``.
    - ``issue()`` on a successful login, then ``set_session_cookie``.
    - ``verify()`` on every protected request (see ``practiceboard.gate``).
"""

import hashlib
import hmac
import time
from typing import Callable, Optional
from urllib.parse import urlsplit

from fastapi import Response

from practiceboard.config import SESSION_MAX_AGE, Settings
from practiceboard.errors import ConfigurationError
from practiceboard.tokens import (
    SessionPayload,
    b64url_encode,
    decode_payload,
    encode_payload,
)

TOKEN_SEPARATOR = "."

# ---------------------------------------------------------------------------
# Signing helpers
# ---------------------------------------------------------------------------


def _sign(value: str, secret: str) -> str:
    """HMAC-SHA256 of *value*, URL-safe base64 without padding."""
    digest = hmac.new(
        secret.encode("utf-8"),
        value.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return b64url_encode(digest)


def timing_safe_equal(a: str, b: str) -> bool:
    """Compare two strings in time independent of where they first differ."""
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


# ---------------------------------------------------------------------------
# Authenticator
# ---------------------------------------------------------------------------


class SessionAuthenticator:
    """Issues and verifies signed session tokens for one secret."""

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = SESSION_MAX_AGE,
        clock: Callable[[], float] = time.time,
    ):
        self._secret = secret or ""
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    @property
    def configured(self) -> bool:
        return bool(self._secret)

    def issue(self, subject: str, ttl_seconds: Optional[int] = None) -> str:
        """Create a token for *subject* valid for *ttl_seconds*.

        Raises ``ConfigurationError`` when no secret is configured.
        """
        if not self._secret:
            raise ConfigurationError("Server auth is not configured.")

        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        payload = SessionPayload(
            subject=subject, expires_at=int(self._clock()) + ttl
        )
        encoded = encode_payload(payload)
        return f"{encoded}{TOKEN_SEPARATOR}{_sign(encoded, self._secret)}"

    def verify(self, token: str) -> Optional[SessionPayload]:
        """Return the payload of a valid, unexpired token, otherwise None."""
        if not token or not self._secret:
            return None

        parts = token.split(TOKEN_SEPARATOR)
        if len(parts) != 2:
            return None
        encoded, sig = parts
        if not encoded or not sig:
            return None

        expected = _sign(encoded, self._secret)
        if not timing_safe_equal(sig, expected):
            return None

        payload = decode_payload(encoded)
        if payload is None or payload.expires_at is None:
            return None
        if payload.expires_at <= int(self._clock()):
            return None
        return payload


def issue_session_token(subject: str, secret: str, ttl_seconds: int) -> str:
    return SessionAuthenticator(secret, ttl_seconds).issue(subject)


def verify_session_token(token: str, secret: str) -> Optional[SessionPayload]:
    return SessionAuthenticator(secret).verify(token)


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


def verify_credentials(settings: Settings, username: str, password: str) -> bool:
    """Check login credentials against the configured admin account."""
    if not settings.admin_user or not settings.admin_pass:
        return False

    user_ok = hmac.compare_digest(
        username.encode("utf-8"), settings.admin_user.encode("utf-8")
    )
    pass_ok = hmac.compare_digest(
        password.encode("utf-8"), settings.admin_pass.encode("utf-8")
    )
    return user_ok and pass_ok


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    """Set the signed session cookie on a response."""
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=settings.session_max_age,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    """Expire the session cookie immediately."""
    response.set_cookie(
        key=settings.cookie_name,
        value="",
        max_age=0,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )


def safe_next_path(value: Optional[str]) -> str:
    """Return *value* if it is a local path, otherwise ``/``."""
    if not value or not value.startswith("/") or value.startswith("//"):
        return "/"
    if "\\" in value:
        return "/"
    parts = urlsplit(value)
    if parts.scheme or parts.netloc:
        return "/"
    return value
