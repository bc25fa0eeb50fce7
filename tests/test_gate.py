"""
Practice Board - Request gate tests

Validates:
- Public path classification
- Protected paths with no / invalid / expired / valid cookies
- Fail-closed behavior when verification itself raises or no secret is set
- Login redirect carries the original path as ``next``
"""

from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlsplit

import pytest

from practiceboard.auth import SessionAuthenticator
from practiceboard.gate import (
    auth_required,
    has_valid_session,
    is_public,
    login_redirect,
)
from tests.conftest import make_request


class TestIsPublic:
    @pytest.mark.parametrize(
        "path",
        [
            "/login",
            "/api/login",
            "/api/logout",
            "/api/health",
            "/static/style.css",
            "/assets/logo.png",
            "/favicon.ico",
        ],
    )
    def test_public(self, path):
        assert is_public(path) is True

    @pytest.mark.parametrize(
        "path", ["/", "/api/songs", "/songs", "/loginx", "/api/loginfoo", "/staticfile"]
    )
    def test_protected(self, path):
        assert is_public(path) is False


class TestAuthRequired:
    def test_public_path_without_cookie(self, authenticator):
        assert auth_required(make_request(path="/login"), authenticator) is False

    def test_protected_path_without_cookie(self, authenticator):
        assert auth_required(make_request(path="/api/songs"), authenticator) is True

    def test_protected_path_with_garbage_cookie(self, authenticator):
        request = make_request(cookies={"pb_session": "garbage"}, path="/")
        assert auth_required(request, authenticator) is True

    def test_protected_path_with_expired_cookie(self, authenticator):
        token = authenticator.issue("admin", -1)
        request = make_request(cookies={"pb_session": token}, path="/")
        assert auth_required(request, authenticator) is True

    def test_protected_path_with_valid_cookie(self, authenticator):
        token = authenticator.issue("admin")
        request = make_request(cookies={"pb_session": token}, path="/api/songs")
        assert auth_required(request, authenticator) is False

    def test_cookie_under_other_name_ignored(self, authenticator):
        token = authenticator.issue("admin")
        request = make_request(cookies={"session": token}, path="/")
        assert auth_required(request, authenticator) is True

    def test_custom_cookie_name(self, authenticator):
        token = authenticator.issue("admin")
        request = make_request(cookies={"other": token}, path="/")
        assert auth_required(request, authenticator, cookie_name="other") is False

    def test_missing_secret_fails_closed(self, authenticator):
        token = authenticator.issue("admin")
        request = make_request(cookies={"pb_session": token}, path="/")
        assert auth_required(request, SessionAuthenticator("")) is True


class TestHasValidSession:
    def test_verification_error_is_not_authenticated(self):
        broken = MagicMock()
        broken.verify.side_effect = RuntimeError("crypto exploded")
        request = make_request(cookies={"pb_session": "a.b"})
        assert has_valid_session(request, broken) is False

    def test_no_cookie_skips_verify(self):
        auth = MagicMock()
        assert has_valid_session(make_request(), auth) is False
        auth.verify.assert_not_called()


class TestLoginRedirect:
    def test_redirects_with_next(self):
        response = login_redirect(make_request(path="/api/songs"))
        assert response.status_code == 302
        location = urlsplit(response.headers["location"])
        assert location.path == "/login"
        assert parse_qs(location.query) == {"next": ["/api/songs"]}
