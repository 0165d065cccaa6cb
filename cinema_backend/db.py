"""
Data access for movies and watched-marks.

Three implementations share the ``DataClient`` interface: the Supabase REST
query API, a direct SQLAlchemy connection to the same Postgres database, and
an in-memory store for development and tests.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from postgrest.exceptions import APIError
from sqlalchemy import (
    Column,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    create_engine,
    inspect,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from supabase import Client

from cinema_backend.errors import DataClientError

logger = logging.getLogger(__name__)

MOVIES_TABLE = "filmes"
WATCHED_TABLE = "assistido"


class DataClient(Protocol):
    """Interface for the remote movie database."""

    def list_movies(self) -> list[dict]:
        ...

    def search_movies_by_title(self, title: str) -> list[dict]:
        ...

    def find_watched(self, user_id: str, movie_id: int) -> Optional["WatchedMark"]:
        ...

    def insert_watched(self, user_id: str, movie_id: int) -> "WatchedMark":
        ...

    def delete_watched(self, mark_id: int) -> None:
        ...

    def list_watched(self, user_id: str) -> list[dict]:
        ...


@dataclass
class WatchedMark:
    id: int
    user_id: str
    movie_id: int

    @classmethod
    def from_row(cls, row: dict) -> "WatchedMark":
        return cls(id=row["id"], user_id=row["user_id"], movie_id=row["filme_id"])

    def as_dict(self) -> dict:
        return {"id": self.id, "user_id": self.user_id, "filme_id": self.movie_id}


class InMemoryDataClient:
    """Simple in-memory movie database for development and tests."""

    def __init__(self, movies: Optional[List[dict]] = None):
        self.movies: List[dict] = list(movies or [])
        self.watched: Dict[int, WatchedMark] = {}
        self._ids = itertools.count(1)

    def list_movies(self) -> list[dict]:
        return [dict(movie) for movie in self.movies]

    def search_movies_by_title(self, title: str) -> list[dict]:
        needle = title.lower()
        return [
            dict(movie)
            for movie in self.movies
            if needle in str(movie.get("titulo", "")).lower()
        ]

    def find_watched(self, user_id: str, movie_id: int) -> Optional[WatchedMark]:
        for mark in self.watched.values():
            if mark.user_id == user_id and str(mark.movie_id) == str(movie_id):
                return mark
        return None

    def insert_watched(self, user_id: str, movie_id: int) -> WatchedMark:
        mark = WatchedMark(id=next(self._ids), user_id=user_id, movie_id=movie_id)
        self.watched[mark.id] = mark
        return mark

    def delete_watched(self, mark_id: int) -> None:
        self.watched.pop(mark_id, None)

    def list_watched(self, user_id: str) -> list[dict]:
        return [m.as_dict() for m in self.watched.values() if m.user_id == user_id]


class SupabaseDataClient:
    """
    Pass-through wrapper around the Supabase REST query builder.

    The watched-mark check and the following write are separate round-trips,
    so two concurrent toggles for the same pair can both insert.
    """

    def __init__(self, client: Client):
        self._client = client

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except APIError as exc:
            raise DataClientError(f"{action} failed: {exc}") from exc

    def list_movies(self) -> list[dict]:
        query = self._client.table(MOVIES_TABLE).select("*")
        return self._execute(query, "list movies").data

    def search_movies_by_title(self, title: str) -> list[dict]:
        query = self._client.table(MOVIES_TABLE).select("*").ilike("titulo", f"%{title}%")
        return self._execute(query, "search movies").data

    def find_watched(self, user_id: str, movie_id: int) -> Optional[WatchedMark]:
        query = (
            self._client.table(WATCHED_TABLE)
            .select("*")
            .eq("filme_id", movie_id)
            .eq("user_id", user_id)
        )
        rows = self._execute(query, "find watched").data
        if not rows:
            return None
        return WatchedMark.from_row(rows[0])

    def insert_watched(self, user_id: str, movie_id: int) -> WatchedMark:
        query = self._client.table(WATCHED_TABLE).insert(
            {"filme_id": movie_id, "user_id": user_id}
        )
        rows = self._execute(query, "insert watched").data
        if not rows:
            raise DataClientError("insert watched returned no rows")
        return WatchedMark.from_row(rows[0])

    def delete_watched(self, mark_id: int) -> None:
        query = self._client.table(WATCHED_TABLE).delete().eq("id", mark_id)
        self._execute(query, "delete watched")

    def list_watched(self, user_id: str) -> list[dict]:
        query = self._client.table(WATCHED_TABLE).select("*").eq("user_id", user_id)
        return self._execute(query, "list watched").data


class SqlAlchemyDataClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., the
    provider's Postgres connection string or SQLite for tests).

    The movies table belongs to the provider and is reflected as-is, so rows
    are returned with every column it has. The watched-marks table is created
    with a (user_id, filme_id) unique constraint only when it does not exist
    yet; ``unique_marks`` reports whether the database enforces one pair per
    mark, which is what keeps concurrent toggles from inserting duplicates.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlAlchemyDataClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        self._movies: Optional[Table] = None
        Base.metadata.create_all(self.engine, tables=[WatchedRow.__table__])
        self.unique_marks = self._has_unique_marks()
        if not self.unique_marks:
            logger.warning(
                "Table %s has no unique constraint on (user_id, filme_id); "
                "concurrent toggles can insert duplicate watched-marks",
                WATCHED_TABLE,
            )

    def _has_unique_marks(self) -> bool:
        inspector = inspect(self.engine)
        pair = {"user_id", "filme_id"}
        constraints = inspector.get_unique_constraints(WATCHED_TABLE)
        indexes = [i for i in inspector.get_indexes(WATCHED_TABLE) if i.get("unique")]
        return any(set(c["column_names"]) == pair for c in constraints + indexes)

    def _movies_table(self) -> Table:
        if self._movies is None:
            self._movies = Table(MOVIES_TABLE, MetaData(), autoload_with=self.engine)
        return self._movies

    def _select_movies(self, where=None) -> list[dict]:
        table = self._movies_table()
        stmt = select(table).order_by(*table.primary_key.columns)
        if where is not None:
            stmt = stmt.where(where(table))
        with self.engine.connect() as conn:
            return [dict(row._mapping) for row in conn.execute(stmt)]

    @staticmethod
    def _to_mark(row: "WatchedRow") -> WatchedMark:
        return WatchedMark(id=row.id, user_id=row.user_id, movie_id=row.filme_id)

    def list_movies(self) -> list[dict]:
        try:
            return self._select_movies()
        except SQLAlchemyError as exc:
            raise DataClientError(f"list movies failed: {exc}") from exc

    def search_movies_by_title(self, title: str) -> list[dict]:
        try:
            return self._select_movies(lambda t: t.c.titulo.ilike(f"%{title}%"))
        except SQLAlchemyError as exc:
            raise DataClientError(f"search movies failed: {exc}") from exc

    def find_watched(self, user_id: str, movie_id: int) -> Optional[WatchedMark]:
        try:
            with self.Session() as session:
                stmt = (
                    select(WatchedRow)
                    .where(WatchedRow.user_id == user_id, WatchedRow.filme_id == movie_id)
                    .limit(1)
                )
                row = session.execute(stmt).scalar_one_or_none()
                return self._to_mark(row) if row else None
        except SQLAlchemyError as exc:
            raise DataClientError(f"find watched failed: {exc}") from exc

    def insert_watched(self, user_id: str, movie_id: int) -> WatchedMark:
        try:
            with self.Session() as session:
                row = WatchedRow(user_id=user_id, filme_id=movie_id)
                session.add(row)
                session.commit()
                session.refresh(row)
                return self._to_mark(row)
        except SQLAlchemyError as exc:
            raise DataClientError(f"insert watched failed: {exc}") from exc

    def delete_watched(self, mark_id: int) -> None:
        try:
            with self.Session() as session:
                row = session.get(WatchedRow, mark_id)
                if row:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError as exc:
            raise DataClientError(f"delete watched failed: {exc}") from exc

    def list_watched(self, user_id: str) -> list[dict]:
        try:
            with self.Session() as session:
                stmt = (
                    select(WatchedRow)
                    .where(WatchedRow.user_id == user_id)
                    .order_by(WatchedRow.id)
                )
                return [
                    self._to_mark(row).as_dict()
                    for row in session.execute(stmt).scalars()
                ]
        except SQLAlchemyError as exc:
            raise DataClientError(f"list watched failed: {exc}") from exc


Base = declarative_base()


class WatchedRow(Base):
    __tablename__ = WATCHED_TABLE
    __table_args__ = (UniqueConstraint("user_id", "filme_id", name="uq_assistido_user_filme"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False, index=True)
    filme_id = Column(Integer, nullable=False, index=True)
