"""
HTTP routes for the movie backend API.

Every handler validates its required fields before touching a remote client
and answers remote failures with a fixed message; provider detail is logged
only.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from cinema_backend.auth import AuthClient
from cinema_backend.db import DataClient
from cinema_backend.dependencies import (
    get_auth_client,
    get_data_client,
    get_sheet_client,
    require_session,
)
from cinema_backend.errors import (
    ApiError,
    AuthClientError,
    DataClientError,
    SheetClientError,
)
from cinema_backend.schemas import (
    AuthDataResponse,
    CredentialsPayload,
    MessageResponse,
    RefreshPayload,
    SuggestionPayload,
    WatchedTogglePayload,
    WatchedToggleResponse,
)
from cinema_backend.sheets import SheetClient, Suggestion
from cinema_backend.watched import ToggleError, toggle_watched

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["auth"])
movies_router = APIRouter(
    prefix="/movies", tags=["movies"], dependencies=[Depends(require_session)]
)

MISSING_CREDENTIALS = "Missing email or password"


def _require(value: Any, message: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ApiError(400, message)
    return value


@auth_router.post("/register", response_model=MessageResponse)
def register(
    payload: Optional[CredentialsPayload] = None,
    auth: AuthClient = Depends(get_auth_client),
):
    payload = payload or CredentialsPayload()
    email = _require(payload.email, MISSING_CREDENTIALS)
    password = _require(payload.password, MISSING_CREDENTIALS)
    try:
        auth.sign_up(email, password)
    except AuthClientError as exc:
        logger.error("Signup error: %s", exc)
        raise ApiError(500, "Signup failed") from exc
    return MessageResponse(message="Signup successful")


@auth_router.post("/login", response_model=AuthDataResponse)
def login(
    payload: Optional[CredentialsPayload] = None,
    auth: AuthClient = Depends(get_auth_client),
):
    """
    Exchange email and password for a provider session. The provider's
    user/session payload is relayed as ``data``.
    """
    payload = payload or CredentialsPayload()
    email = _require(payload.email, MISSING_CREDENTIALS)
    password = _require(payload.password, MISSING_CREDENTIALS)
    try:
        data = auth.sign_in_with_password(email, password)
    except AuthClientError as exc:
        logger.error("Login error: %s", exc)
        raise ApiError(401, "Invalid email or password") from exc
    return AuthDataResponse(message="Login successful", data=data)


@auth_router.post("/refresh", response_model=AuthDataResponse)
def refresh(
    payload: Optional[RefreshPayload] = None,
    auth: AuthClient = Depends(get_auth_client),
):
    payload = payload or RefreshPayload()
    refresh_token = _require(payload.refresh_token, "Missing refresh token")
    try:
        result = auth.refresh_session(refresh_token, payload.access_token)
    except AuthClientError as exc:
        logger.error("Error refreshing token: %s", exc)
        raise ApiError(401, "Invalid refresh token") from exc
    session = result.get("session") or {}
    return AuthDataResponse(
        message="Access token refreshed successfully",
        data={
            "access_token": session.get("access_token"),
            "refresh_token": session.get("refresh_token"),
        },
    )


@movies_router.get("", response_model=list[dict])
def list_movies(db: DataClient = Depends(get_data_client)):
    try:
        return db.list_movies()
    except DataClientError as exc:
        logger.error("Error fetching movies: %s", exc)
        raise ApiError(500, "Failed to retrieve movies") from exc


@movies_router.get("/title", response_model=list[dict])
def search_movies(
    title: Optional[str] = Query(None, description="Case-insensitive title fragment"),
    db: DataClient = Depends(get_data_client),
):
    title = _require(title, "Missing title parameter")
    try:
        return db.search_movies_by_title(title.strip())
    except DataClientError as exc:
        logger.error("Error searching movies for %r: %s", title, exc)
        raise ApiError(500, "Failed to retrieve movies") from exc


@movies_router.post("/watched", response_model=WatchedToggleResponse)
def toggle_watched_movie(
    payload: Optional[WatchedTogglePayload] = None,
    session_user: Optional[dict] = Depends(require_session),
    db: DataClient = Depends(get_data_client),
):
    """
    Flip the watched-mark for a movie: an existing mark is removed, otherwise
    one is created. The session user, when present, takes precedence over
    ``user_uuid``.
    """
    payload = payload or WatchedTogglePayload()
    movie_id = _require(payload.movie_id, "Missing movie ID")
    user_id = session_user["id"] if session_user else payload.user_uuid
    user_id = _require(user_id, "Missing user UUID")
    try:
        result = toggle_watched(db, user_id, movie_id)
    except ToggleError as exc:
        raise ApiError(500, exc.message) from exc
    return WatchedToggleResponse(message=result.message, action=result.action)


@movies_router.get("/watched", response_model=list[dict])
def list_watched_movies(
    user_uuid: Optional[str] = Query(None),
    session_user: Optional[dict] = Depends(require_session),
    db: DataClient = Depends(get_data_client),
):
    user_id = session_user["id"] if session_user else user_uuid
    user_id = _require(user_id, "Missing user UUID")
    try:
        return db.list_watched(user_id)
    except DataClientError as exc:
        logger.error("Error fetching watched movies: %s", exc)
        raise ApiError(500, "Failed to retrieve watched movies") from exc


@movies_router.post("/suggest", response_model=MessageResponse)
def suggest_movie(
    payload: Optional[SuggestionPayload] = None,
    sheets: SheetClient = Depends(get_sheet_client),
):
    payload = payload or SuggestionPayload()
    titulo = _require(payload.titulo, "Missing movie title")
    suggestion = Suggestion(titulo=titulo.strip(), usuario=(payload.usuario or "").strip())
    try:
        sheets.append_suggestion(suggestion)
    except SheetClientError as exc:
        logger.error("Error adding suggestion: %s", exc)
        raise ApiError(500, "Error adding suggestion!") from exc
    logger.info("Suggestion %r recorded for %r", suggestion.titulo, suggestion.usuario)
    return MessageResponse(message="Movie suggestion added successfully!")
