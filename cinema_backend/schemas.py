"""
Pydantic schemas for the movie backend.

Request fields are optional at the schema level so handlers can answer a
missing field with a 400 and a fixed message.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, Field


class CredentialsPayload(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshPayload(BaseModel):
    refresh_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("refresh_token", "refreshToken")
    )
    access_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("access_token", "accessToken")
    )


class WatchedTogglePayload(BaseModel):
    user_uuid: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("user_uuid", "userUuid")
    )
    movie_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("movie_id", "movieId")
    )


class SuggestionPayload(BaseModel):
    titulo: Optional[str] = Field(default=None, max_length=256)
    usuario: Optional[str] = Field(default=None, max_length=256)


class MessageResponse(BaseModel):
    message: str


class AuthDataResponse(BaseModel):
    message: str
    data: dict


class WatchedToggleResponse(BaseModel):
    message: str
    action: Literal["added", "removed"]
