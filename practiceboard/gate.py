"""
Practice Board - Request gate

Every inbound request passes through here.  Public paths go straight
through; everything else needs a valid session cookie or gets redirected
to ``/login?next=<original path>``.

The gate fails closed: a missing secret, a malformed cookie or any error
raised while verifying means "not authenticated".
"""

from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse
from loguru import logger

from practiceboard.auth import SessionAuthenticator
from practiceboard.config import SESSION_COOKIE_NAME

LOGIN_PATH = "/login"

# Paths that don't require authentication
PUBLIC_PREFIXES = (
    "/login",
    "/api/login",
    "/api/logout",
    "/api/health",
    "/static",
    "/assets",
)

PUBLIC_FILES = ("/favicon.ico", "/robots.txt")


def is_public(path: str) -> bool:
    """Return True if the path does not require authentication."""
    for pub in PUBLIC_PREFIXES:
        if path == pub or path.startswith(pub + "/"):
            return True
    return path in PUBLIC_FILES


def has_valid_session(
    request: Request,
    authenticator: SessionAuthenticator,
    cookie_name: str = SESSION_COOKIE_NAME,
) -> bool:
    """True only if the request carries a verifiable, unexpired token."""
    token = request.cookies.get(cookie_name, "")
    if not token:
        return False
    try:
        return authenticator.verify(token) is not None
    except Exception as e:
        logger.warning("⚠️ Session verification error, treating as logged out: {}", e)
        return False


def auth_required(
    request: Request,
    authenticator: SessionAuthenticator,
    cookie_name: str = SESSION_COOKIE_NAME,
) -> bool:
    """
    Return True if this request requires auth and the user is NOT logged in
    (i.e. the request should be redirected to the login page).
    """
    if is_public(request.url.path):
        return False
    return not has_valid_session(request, authenticator, cookie_name)


def login_redirect(request: Request) -> RedirectResponse:
    """Redirect to the login page, remembering where the user was going."""
    url = f"{LOGIN_PATH}?{urlencode({'next': request.url.path})}"
    return RedirectResponse(url=url, status_code=302)
