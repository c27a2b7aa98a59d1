from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Movie(Base):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    movie_id = Column(String(64), nullable=False, default="")
    slug = Column(String(255), nullable=False, unique=True)
    name = Column(Text, nullable=False)
    origin_name = Column(Text)
    type = Column(String(20))
    status = Column(String(50))
    poster_url = Column(Text)
    thumb_url = Column(Text)
    trailer_url = Column(Text)
    year = Column(Integer)
    view = Column(Integer, default=0)
    quality = Column(String(50))
    lang = Column(String(100))
    time = Column(String(100))
    episode_current = Column(String(100))
    episode_total = Column(String(100))
    description = Column(Text)
    actors = Column(JSON, default=list)
    directors = Column(JSON, default=list)
    categories = Column(JSON, default=list)
    countries = Column(JSON, default=list)
    modified_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)


class Episode(Base):
    __tablename__ = "episodes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    movie_slug = Column(String(255), nullable=False)
    server_name = Column(String(255), nullable=False)
    name = Column(Text, nullable=False)
    slug = Column(String(255), nullable=False)
    filename = Column(Text)
    link_embed = Column(Text)
    link_m3u8 = Column(Text)

    __table_args__ = (
        UniqueConstraint("movie_slug", "server_name", "slug", name="uq_episode_movie_server_slug"),
        Index("idx_episode_movie_slug", "movie_slug"),
    )
