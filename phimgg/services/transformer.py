from typing import Any

from phimgg.models.movie import EpisodeRecord, MovieRecord, MovieStats, Taxonomy, TransformedMovie, ValidationResult
from phimgg.models.ophim import MovieDetail, OphimTaxonomy

DEFAULT_IMAGE_BASE_URL = "https://img.ophim.live/uploads/movies"
PLACEHOLDER_IMAGE = "/placeholder-movie.svg"

_TV_TYPES = {"series", "tvshows"}


def _safe_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _optional_str(value: Any) -> str | None:
    return _safe_str(value) or None


def _safe_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        if isinstance(value, float):
            return int(value)
        return int(_safe_str(value))
    except (ValueError, OverflowError):
        # NaN, inf, "1,5k", "--2024", "²"
        return None


def _clean_names(values: list[Any]) -> list[str]:
    names = []
    for value in values:
        name = _safe_str(value)
        if name:
            names.append(name)
    return names


def _taxonomies(values: list[OphimTaxonomy]) -> list[Taxonomy]:
    return [Taxonomy(id=value.id, name=value.name.strip(), slug=value.slug) for value in values if value.name.strip()]


def _movie_type(raw_type: str) -> str:
    return "tv" if raw_type.strip().lower() in _TV_TYPES else "movie"


def resolve_image_url(value: str, cdn_domain: str | None = None, base_url: str = DEFAULT_IMAGE_BASE_URL) -> str:
    """Turn an Ophim image file name into an absolute URL."""
    filename = _safe_str(value)
    if not filename:
        return PLACEHOLDER_IMAGE
    if filename.startswith(("http://", "https://")):
        return filename
    if cdn_domain:
        base_url = f"{cdn_domain.rstrip('/')}/uploads/movies"
    return f"{base_url.rstrip('/')}/{filename.lstrip('/')}"


def transform_ophim_movie(detail: MovieDetail, image_base_url: str = DEFAULT_IMAGE_BASE_URL) -> TransformedMovie:
    item = detail.item
    slug = _safe_str(item.slug)

    movie = MovieRecord(
        movie_id=_safe_str(item.id),
        slug=slug,
        name=_safe_str(item.name),
        origin_name=_optional_str(item.origin_name),
        type=_movie_type(item.type),
        status=_optional_str(item.status),
        poster_url=resolve_image_url(item.poster_url, detail.cdn_image_domain, image_base_url),
        thumb_url=resolve_image_url(item.thumb_url, detail.cdn_image_domain, image_base_url),
        trailer_url=_optional_str(item.trailer_url),
        year=_safe_int(item.year),
        view=_safe_int(item.view),
        quality=_optional_str(item.quality),
        lang=_optional_str(item.lang),
        time=_optional_str(item.time),
        episode_current=_optional_str(item.episode_current),
        episode_total=_optional_str(item.episode_total),
        description=_optional_str(item.content),
        actors=_clean_names(item.actor),
        directors=_clean_names(item.director),
        categories=_taxonomies(item.category),
        countries=_taxonomies(item.country),
    )

    episodes: list[EpisodeRecord] = []
    for server in item.episodes:
        server_name = _safe_str(server.server_name)
        for entry in server.server_data:
            episodes.append(
                EpisodeRecord(
                    movie_slug=slug,
                    server_name=server_name,
                    name=_safe_str(entry.name),
                    slug=_safe_str(entry.slug),
                    filename=_optional_str(entry.filename),
                    link_embed=_optional_str(entry.link_embed),
                    link_m3u8=_optional_str(entry.link_m3u8),
                )
            )

    return TransformedMovie(movie=movie, episodes=episodes)


def validate_movie_data(movie: MovieRecord) -> ValidationResult:
    errors = []
    if not _safe_str(movie.name):
        errors.append("name is required")
    if not _safe_str(movie.slug):
        errors.append("slug is required")
    return ValidationResult(valid=not errors, errors=errors)


def validate_episode_data(episode: EpisodeRecord) -> ValidationResult:
    errors = []
    if not _safe_str(episode.name):
        errors.append("name is required")
    if not _safe_str(episode.slug):
        errors.append("slug is required")
    if not _safe_str(episode.server_name):
        errors.append("server_name is required")
    if not _safe_str(episode.link_embed) and not _safe_str(episode.link_m3u8):
        errors.append("link_embed or link_m3u8 is required")
    return ValidationResult(valid=not errors, errors=errors)


def movie_stats(transformed: TransformedMovie) -> MovieStats:
    per_server: dict[str, int] = {}
    for episode in transformed.episodes:
        per_server[episode.server_name] = per_server.get(episode.server_name, 0) + 1
    movie = transformed.movie
    return MovieStats(
        episode_count=len(transformed.episodes),
        server_count=len(per_server),
        episodes_per_server=per_server,
        uses_placeholder_image=PLACEHOLDER_IMAGE in {movie.poster_url, movie.thumb_url},
    )
