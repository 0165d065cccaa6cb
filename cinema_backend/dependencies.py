"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client, create_client

from cinema_backend.auth import AuthClient, InMemoryAuthClient, SupabaseAuthClient
from cinema_backend.config import Settings, get_settings
from cinema_backend.db import (
    DataClient,
    InMemoryDataClient,
    SqlAlchemyDataClient,
    SupabaseDataClient,
)
from cinema_backend.errors import ApiError, AuthClientError
from cinema_backend.sheets import GoogleSheetClient, InMemorySheetClient, SheetClient

logger = logging.getLogger(__name__)

BEARER = HTTPBearer(auto_error=False)

_supabase: Client | None = None
_data_client: DataClient | None = None
_auth_client: AuthClient | None = None
_sheet_client: SheetClient | None = None


def _supabase_configured(settings: Settings) -> bool:
    return bool(settings.supabase_url and settings.supabase_key)


def get_supabase() -> Client:
    """Return the shared Supabase client used by the auth and data wrappers."""
    global _supabase
    if _supabase:
        return _supabase

    settings = get_settings()
    _supabase = create_client(settings.supabase_url, settings.supabase_key)
    return _supabase


def get_data_client() -> DataClient:
    """
    Return a singleton data client. A direct DATABASE_URL wins over the
    Supabase REST API; with neither configured, an in-memory store is used.
    """
    global _data_client
    if _data_client:
        return _data_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _data_client = InMemoryDataClient()
    elif settings.database_url:
        _data_client = SqlAlchemyDataClient(settings.database_url)
    elif _supabase_configured(settings):
        _data_client = SupabaseDataClient(get_supabase())
    else:
        logger.warning("No database configured, using in-memory data client")
        _data_client = InMemoryDataClient()
    return _data_client


def get_auth_client() -> AuthClient:
    global _auth_client
    if _auth_client:
        return _auth_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _auth_client = InMemoryAuthClient()
    elif not _supabase_configured(settings):
        logger.warning("Supabase not configured, using in-memory auth client")
        _auth_client = InMemoryAuthClient()
    else:
        _auth_client = SupabaseAuthClient(get_supabase())
    return _auth_client


def get_sheet_client() -> SheetClient:
    global _sheet_client
    if _sheet_client:
        return _sheet_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _sheet_client = InMemorySheetClient()
    elif not settings.sheets_url:
        logger.warning("SHEETS_URL not set, suggestions are kept in memory")
        _sheet_client = InMemorySheetClient()
    else:
        _sheet_client = GoogleSheetClient(
            spreadsheet=settings.sheets_url,
            credentials_file=settings.google_credentials_file,
        )
    return _sheet_client


def require_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(BEARER),
    settings: Settings = Depends(get_settings),
    auth: AuthClient = Depends(get_auth_client),
) -> Optional[dict]:
    """
    Resolve the bearer session for the request.

    Returns the session user, or None when no token was sent and sessions are
    not required. Raises a 401 when AUTH_REQUIRED is set and the token is
    missing or rejected by the provider.
    """
    if credentials is None:
        if settings.auth_required:
            raise ApiError(401, "Unauthorized")
        return None
    try:
        return auth.get_user(credentials.credentials)
    except AuthClientError as exc:
        logger.error("Session check failed: %s", exc)
        if settings.auth_required:
            raise ApiError(401, "Unauthorized") from exc
        return None
