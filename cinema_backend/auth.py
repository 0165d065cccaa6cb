"""
Auth abstraction for Supabase Auth and an in-memory test implementation.
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from supabase import Client
from supabase_auth.errors import AuthError

from cinema_backend.errors import AuthClientError

ACCESS_TOKEN_TTL_SECONDS = 3600


class AuthClient(Protocol):
    """Operations the API needs from the auth provider.

    Each call returns the provider payload as a plain dict with ``user`` and
    ``session`` keys.
    """

    def sign_up(self, email: str, password: str) -> dict:
        ...

    def sign_in_with_password(self, email: str, password: str) -> dict:
        ...

    def refresh_session(
        self, refresh_token: str, access_token: Optional[str] = None
    ) -> dict:
        ...

    def get_user(self, access_token: str) -> dict:
        ...


class SupabaseAuthClient:
    """Pass-through wrapper around ``supabase.auth``."""

    def __init__(self, client: Client):
        self._auth = client.auth

    def sign_up(self, email: str, password: str) -> dict:
        try:
            response = self._auth.sign_up({"email": email, "password": password})
        except AuthError as exc:
            raise AuthClientError(f"sign up failed: {exc}") from exc
        return response.model_dump(mode="json")

    def sign_in_with_password(self, email: str, password: str) -> dict:
        try:
            response = self._auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            raise AuthClientError(f"sign in failed: {exc}") from exc
        return response.model_dump(mode="json")

    def refresh_session(
        self, refresh_token: str, access_token: Optional[str] = None
    ) -> dict:
        try:
            if access_token:
                response = self._auth.set_session(access_token, refresh_token)
            else:
                response = self._auth.refresh_session(refresh_token)
        except AuthError as exc:
            raise AuthClientError(f"refresh failed: {exc}") from exc
        if response.session is None:
            raise AuthClientError("refresh returned no session")
        return response.model_dump(mode="json")

    def get_user(self, access_token: str) -> dict:
        try:
            response = self._auth.get_user(access_token)
        except AuthError as exc:
            raise AuthClientError(f"get user failed: {exc}") from exc
        if response is None or response.user is None:
            raise AuthClientError("no user for access token")
        return response.user.model_dump(mode="json")


@dataclass
class InMemoryAuthClient:
    """Test double for the auth provider with rotating refresh tokens."""

    users: Dict[str, dict] = field(default_factory=dict)
    access_tokens: Dict[str, str] = field(default_factory=dict)
    refresh_tokens: Dict[str, str] = field(default_factory=dict)

    def _user_payload(self, email: str) -> dict:
        user = self.users[email]
        return {"id": user["id"], "email": email}

    def _issue_session(self, email: str) -> dict:
        access_token = secrets.token_hex(16)
        refresh_token = secrets.token_hex(16)
        self.access_tokens[access_token] = email
        self.refresh_tokens[refresh_token] = email
        return {
            "user": self._user_payload(email),
            "session": {
                "access_token": access_token,
                "refresh_token": refresh_token,
                "token_type": "bearer",
                "expires_in": ACCESS_TOKEN_TTL_SECONDS,
            },
        }

    def sign_up(self, email: str, password: str) -> dict:
        if email in self.users:
            raise AuthClientError("User already registered")
        self.users[email] = {"id": str(uuid.uuid4()), "password": password}
        return {"user": self._user_payload(email), "session": None}

    def sign_in_with_password(self, email: str, password: str) -> dict:
        user = self.users.get(email)
        if not user or user["password"] != password:
            raise AuthClientError("Invalid login credentials")
        return self._issue_session(email)

    def refresh_session(
        self, refresh_token: str, access_token: Optional[str] = None
    ) -> dict:
        email = self.refresh_tokens.pop(refresh_token, None)
        if email is None:
            raise AuthClientError("Invalid Refresh Token")
        if access_token:
            self.access_tokens.pop(access_token, None)
        return self._issue_session(email)

    def get_user(self, access_token: str) -> dict:
        email = self.access_tokens.get(access_token)
        if email is None:
            raise AuthClientError("Invalid access token")
        return self._user_payload(email)
