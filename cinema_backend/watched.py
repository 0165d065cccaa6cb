"""
Watched-mark toggle.

The existence check and the following delete/insert are separate calls to
the data client. Against the Supabase REST API two concurrent toggles for the
same (user, movie) pair can both see "absent" and both insert; the SQLAlchemy
client rejects the second insert when the watched table carries the
(user_id, filme_id) unique constraint.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from cinema_backend.db import DataClient
from cinema_backend.errors import DataClientError

logger = logging.getLogger(__name__)

CHECK_FAILED = "Failed to check watched status"
REMOVE_FAILED = "Failed to remove movie from watched list"
ADD_FAILED = "Failed to mark movie as watched"

ADDED_MESSAGE = "Movie marked as watched successfully"
REMOVED_MESSAGE = "Movie removed from watched list successfully"


class ToggleError(Exception):
    """One of the toggle's remote calls failed; ``message`` is caller-safe."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass
class ToggleResult:
    action: Literal["added", "removed"]

    @property
    def message(self) -> str:
        return ADDED_MESSAGE if self.action == "added" else REMOVED_MESSAGE


def toggle_watched(db: DataClient, user_id: str, movie_id: int) -> ToggleResult:
    """Remove the user's watched-mark for ``movie_id`` if present, else create it."""
    try:
        mark = db.find_watched(user_id, movie_id)
    except DataClientError as exc:
        logger.error("Error checking watched movies: %s", exc)
        raise ToggleError(CHECK_FAILED) from exc

    if mark is not None:
        try:
            db.delete_watched(mark.id)
        except DataClientError as exc:
            logger.error("Error removing watched movie: %s", exc)
            raise ToggleError(REMOVE_FAILED) from exc
        logger.info("User %s unmarked movie %s", user_id, movie_id)
        return ToggleResult(action="removed")

    try:
        db.insert_watched(user_id, movie_id)
    except DataClientError as exc:
        logger.error("Error marking movie as watched: %s", exc)
        raise ToggleError(ADD_FAILED) from exc
    logger.info("User %s marked movie %s as watched", user_id, movie_id)
    return ToggleResult(action="added")
