"""
Practice Board - JSON API Routes

Provides:
- Login / logout (session cookie issue and clear)
- Songs CRUD (list, create, merge-update, delete)
- Health check

Bodies that are not valid JSON are treated as an empty object, so a
missing field is always reported as a 400 with an ``error`` message.
"""

import time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from practiceboard.auth import (
    SessionAuthenticator,
    clear_session_cookie,
    set_session_cookie,
    verify_credentials,
)
from practiceboard.config import Settings
from practiceboard.database import SongStore
from practiceboard.errors import (
    AuthenticationFailure,
    ConfigurationError,
    ValidationError,
)

router = APIRouter(prefix="/api", tags=["API"])

# Track startup time for health check
_START_TIME = time.time()


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------
class LoginRequest(BaseModel):
    username: Optional[Any] = None
    password: Optional[Any] = None


class SongLink(BaseModel):
    type: str = "other"
    url: str
    label: Optional[str] = None


class SongCreate(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    status: Optional[str] = None
    progress: Optional[Any] = None
    lyrics: Optional[str] = None
    links: Optional[List[SongLink]] = None


class SongFields(BaseModel):
    title: Optional[str] = None
    status: Optional[str] = None
    progress: Optional[Any] = None
    lyrics: Optional[str] = None
    links: Optional[List[SongLink]] = None


class SongUpdateRequest(BaseModel):
    id: Optional[str] = None
    updates: Optional[SongFields] = None


class SongDeleteRequest(BaseModel):
    id: Optional[str] = None


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> SongStore:
    return request.app.state.store


def get_authenticator(request: Request) -> SessionAuthenticator:
    return request.app.state.authenticator


async def _read_json(request: Request) -> Dict[str, Any]:
    """Parse the request body, falling back to ``{}`` when it is not a JSON object."""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _parse(model: type[BaseModel], data: Dict[str, Any]):
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or "body"
        raise ValidationError(f"Invalid {field}: {first.get('msg', 'bad value')}") from e


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check endpoint for the service."""
    return {
        "status": "ok",
        "auth_configured": settings.auth_configured,
        "uptime_seconds": round(time.time() - _START_TIME, 2),
        "version": settings.app_version,
    }


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------
@router.post("/login")
async def api_login(
    request: Request,
    settings: Settings = Depends(get_settings),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
):
    """Check the admin credentials and set the session cookie."""
    if not settings.auth_configured:
        raise ConfigurationError("Server auth is not configured.")

    body = _parse(LoginRequest, await _read_json(request))
    username = str(body.username or "").strip()
    password = str(body.password or "")

    if not verify_credentials(settings, username, password):
        logger.warning("🔒 Failed login attempt for '{}'", username)
        raise AuthenticationFailure("Invalid username or password.")

    token = authenticator.issue(username, settings.session_max_age)
    response = JSONResponse({"ok": True})
    set_session_cookie(response, token, settings)
    logger.info("🔓 User '{}' logged in", username)
    return response


@router.post("/logout")
async def api_logout(
    request: Request,
    settings: Settings = Depends(get_settings),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
):
    """Clear the session cookie."""
    payload = authenticator.verify(request.cookies.get(settings.cookie_name, ""))
    if payload:
        logger.info("🔒 User '{}' logged out", payload.subject)
    response = JSONResponse({"ok": True})
    clear_session_cookie(response, settings)
    return response


# ---------------------------------------------------------------------------
# Songs CRUD
# ---------------------------------------------------------------------------
@router.get("/songs")
async def api_list_songs(store: SongStore = Depends(get_store)):
    """All songs, ordered by creation time."""
    return {"songs": await store.list_songs()}


@router.post("/songs")
async def api_create_song(request: Request, store: SongStore = Depends(get_store)):
    """Create a song from a partial record; defaults are filled in."""
    body = _parse(SongCreate, await _read_json(request))
    song = await store.create_song(body.model_dump(exclude_none=True))
    return {"song": song}


@router.put("/songs")
async def api_update_song(request: Request, store: SongStore = Depends(get_store)):
    """Merge ``updates`` into the song with ``id``."""
    body = _parse(SongUpdateRequest, await _read_json(request))
    if not body.id or body.updates is None:
        raise ValidationError("Missing id or updates")

    song = await store.update_song(body.id, body.updates.model_dump(exclude_none=True))
    return {"song": song}


@router.delete("/songs")
async def api_delete_song(request: Request, store: SongStore = Depends(get_store)):
    """Delete a song.  Deleting an unknown id is not an error."""
    body = _parse(SongDeleteRequest, await _read_json(request))
    if not body.id:
        raise ValidationError("Missing id")

    await store.delete_song(body.id)
    return {"ok": True}
