import logging
from pathlib import Path
from typing import Protocol

from sqlalchemy import create_engine, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from phimgg.core.errors import ConflictError, StorageError
from phimgg.models.movie import EpisodeRecord, MovieRecord
from phimgg.models.tables import Base, Episode, Movie

logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION_SQLSTATE = "23505"


class MovieStore(Protocol):
    def exists_by_slug(self, slug: str) -> bool: ...

    def insert_movie(self, movie: MovieRecord) -> None: ...

    def insert_episode(self, episode: EpisodeRecord) -> None: ...


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == _UNIQUE_VIOLATION_SQLSTATE
    # sqlite3 has no sqlstate
    return "UNIQUE constraint failed" in str(orig)


class SqlMovieStore:
    """Insert-only movie and episode storage over SQLAlchemy.

    PostgreSQL in production, SQLite for local runs and tests. Unique-key
    violations surface as ``ConflictError``; every other database failure as
    ``StorageError``. Methods block; async callers run them in a worker thread.
    """

    def __init__(self, database_url: str, engine: Engine | None = None):
        self.database_url = database_url
        self._engine = engine or self._create_engine(database_url)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    @staticmethod
    def _create_engine(database_url: str) -> Engine:
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, calls arrive from worker threads
            return create_engine(
                database_url,
                echo=False,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        if database_url.startswith("sqlite:///"):
            Path(database_url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(database_url, echo=False, pool_pre_ping=True)

    def _session(self) -> Session:
        return self._session_factory()

    def close(self) -> None:
        self._engine.dispose()

    def ping(self) -> None:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StorageError("Database unreachable", details={"error": str(exc)}, code="database_unavailable") from exc

    def exists_by_slug(self, slug: str) -> bool:
        try:
            with self._session() as session:
                found = session.execute(select(Movie.id).where(Movie.slug == slug).limit(1)).first()
        except SQLAlchemyError as exc:
            raise StorageError("Movie lookup failed", details={"slug": slug, "error": str(exc)}) from exc
        return found is not None

    def insert_movie(self, movie: MovieRecord) -> None:
        row = Movie(**movie.model_dump(mode="json"))
        self._insert(row, {"table": "movies", "slug": movie.slug})

    def insert_episode(self, episode: EpisodeRecord) -> None:
        row = Episode(**episode.model_dump())
        self._insert(
            row,
            {
                "table": "episodes",
                "movie_slug": episode.movie_slug,
                "server_name": episode.server_name,
                "slug": episode.slug,
            },
        )

    def _insert(self, row: Movie | Episode, details: dict[str, str]) -> None:
        with self._session() as session:
            try:
                session.add(row)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if _is_unique_violation(exc):
                    logger.debug("Duplicate key on insert", extra=details)
                    raise ConflictError("Duplicate key", details=details) from exc
                raise StorageError("Insert rejected by database", details={**details, "error": str(exc.orig)}) from exc
            except SQLAlchemyError as exc:
                session.rollback()
                raise StorageError("Insert failed", details={**details, "error": str(exc)}) from exc
