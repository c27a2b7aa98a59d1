from pydantic import BaseModel, Field


class Taxonomy(BaseModel):
    id: str = ""
    name: str
    slug: str = ""


class MovieRecord(BaseModel):
    movie_id: str = ""
    slug: str
    name: str
    origin_name: str | None = None
    type: str = "movie"
    status: str | None = None
    poster_url: str | None = None
    thumb_url: str | None = None
    trailer_url: str | None = None
    year: int | None = None
    view: int | None = None
    quality: str | None = None
    lang: str | None = None
    time: str | None = None
    episode_current: str | None = None
    episode_total: str | None = None
    description: str | None = None
    actors: list[str] = Field(default_factory=list)
    directors: list[str] = Field(default_factory=list)
    categories: list[Taxonomy] = Field(default_factory=list)
    countries: list[Taxonomy] = Field(default_factory=list)


class EpisodeRecord(BaseModel):
    movie_slug: str
    server_name: str
    name: str
    slug: str
    filename: str | None = None
    link_embed: str | None = None
    link_m3u8: str | None = None


class TransformedMovie(BaseModel):
    movie: MovieRecord
    episodes: list[EpisodeRecord] = Field(default_factory=list)


class ValidationResult(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)


class MovieStats(BaseModel):
    episode_count: int
    server_count: int
    episodes_per_server: dict[str, int] = Field(default_factory=dict)
    uses_placeholder_image: bool = False
