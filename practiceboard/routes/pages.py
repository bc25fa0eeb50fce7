"""
Practice Board - Page Routes

Serves the two browser-facing views: the login form and the song board.
The board is rendered server side from the song store and split into the
"current" and "future" buckets; edits go through the JSON API.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse

from practiceboard.auth import SessionAuthenticator, safe_next_path
from practiceboard.config import Settings
from practiceboard.database import SongStore
from practiceboard.gate import has_valid_session
from practiceboard.routes.api import get_authenticator, get_settings, get_store

router = APIRouter(tags=["Pages"])


@router.get("/login")
async def login_page(
    request: Request,
    next_param: Optional[str] = Query(None, alias="next"),
    settings: Settings = Depends(get_settings),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
):
    """Show the login form, or skip it when already logged in."""
    next_path = safe_next_path(next_param)
    if has_valid_session(request, authenticator, settings.cookie_name):
        return RedirectResponse(url=next_path, status_code=302)

    return request.app.state.templates.TemplateResponse(
        request,
        "login.html",
        {"next_path": next_path, "auth_configured": settings.auth_configured},
    )


@router.get("/")
async def board_page(request: Request, store: SongStore = Depends(get_store)):
    """The song board: songs being learned now, and songs for later."""
    songs = await store.list_songs()
    return request.app.state.templates.TemplateResponse(
        request,
        "index.html",
        {
            "current_songs": [s for s in songs if s["status"] == "current"],
            "future_songs": [s for s in songs if s["status"] == "future"],
        },
    )
