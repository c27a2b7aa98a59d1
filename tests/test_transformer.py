import pytest

from phimgg.models.movie import EpisodeRecord, MovieRecord
from phimgg.models.ophim import MovieDetail
from phimgg.services.transformer import (
    PLACEHOLDER_IMAGE,
    movie_stats,
    resolve_image_url,
    transform_ophim_movie,
    validate_episode_data,
    validate_movie_data,
)


def _episode(name: str, server: str = "vietsub") -> dict:
    slug = name.lower().replace(" ", "-")
    return {
        "name": name,
        "slug": slug,
        "filename": f"{server}-{slug}.mp4",
        "link_embed": f"https://player.example/{server}/{slug}",
        "link_m3u8": f"https://cdn.example/{server}/{slug}/index.m3u8",
    }


def _detail(**overrides) -> MovieDetail:
    item = {
        "_id": "66a1f0",
        "name": "Cuộc Chiến Thượng Lưu",
        "slug": "cuoc-chien-thuong-luu",
        "origin_name": "The Penthouse",
        "content": "<p>Drama</p>",
        "type": "series",
        "status": "completed",
        "thumb_url": "cuoc-chien-thuong-luu-thumb.jpg",
        "poster_url": "cuoc-chien-thuong-luu-poster.jpg",
        "year": 2020,
        "view": 1532,
        "actor": ["Lee Ji Ah", "", None],
        "director": ["Joo Dong Min"],
        "category": [{"id": "1", "name": "Chính kịch", "slug": "chinh-kich"}],
        "country": [{"id": "9", "name": "Hàn Quốc", "slug": "han-quoc"}],
        "episodes": [
            {"server_name": "Vietsub #1", "server_data": [_episode("Tap 1"), _episode("Tap 2"), _episode("Tap 3")]},
            {"server_name": "Thuyết Minh #1", "server_data": [_episode("Tap 1", "tm"), _episode("Tap 2", "tm")]},
        ],
    }
    item.update(overrides)
    return MovieDetail.model_validate({"item": item, "APP_DOMAIN_CDN_IMAGE": "https://img.ophim.live"})


def test_transform_flattens_servers_in_order() -> None:
    transformed = transform_ophim_movie(_detail())

    assert len(transformed.episodes) == 5
    assert [episode.server_name for episode in transformed.episodes] == ["Vietsub #1"] * 3 + ["Thuyết Minh #1"] * 2
    assert [episode.slug for episode in transformed.episodes] == ["tap-1", "tap-2", "tap-3", "tap-1", "tap-2"]
    assert {episode.movie_slug for episode in transformed.episodes} == {"cuoc-chien-thuong-luu"}


def test_transform_is_deterministic() -> None:
    detail = _detail()

    assert transform_ophim_movie(detail) == transform_ophim_movie(detail)


def test_transform_maps_movie_fields() -> None:
    movie = transform_ophim_movie(_detail()).movie

    assert movie.movie_id == "66a1f0"
    assert movie.type == "tv"
    assert movie.year == 2020
    assert movie.view == 1532
    assert movie.actors == ["Lee Ji Ah"]
    assert movie.directors == ["Joo Dong Min"]
    assert movie.categories[0].name == "Chính kịch"
    assert movie.countries[0].slug == "han-quoc"
    assert movie.poster_url == "https://img.ophim.live/uploads/movies/cuoc-chien-thuong-luu-poster.jpg"


def test_transform_coerces_bad_numbers_to_none() -> None:
    movie = transform_ophim_movie(_detail(year="unknown", view="1,5k", type="single")).movie

    assert movie.year is None
    assert movie.view is None
    assert movie.type == "movie"


@pytest.mark.parametrize("raw", ["--2024", "²", "20 24", "2024.5", float("nan"), float("inf"), True, [2024]])
def test_transform_malformed_year_becomes_none(raw) -> None:
    movie = transform_ophim_movie(_detail(year=raw, view=raw)).movie

    assert movie.year is None
    assert movie.view is None


def test_transform_keeps_float_and_signed_numbers() -> None:
    movie = transform_ophim_movie(_detail(year=2021.0, view=" -3 ")).movie

    assert movie.year == 2021
    assert movie.view == -3


def test_transform_coerces_numeric_text_fields() -> None:
    detail = MovieDetail.model_validate(
        {
            "item": {
                "name": "Phim Số",
                "slug": "phim-so",
                "time": 45,
                "episode_total": 12,
                "category": [{"id": 7, "name": "Hành Động", "slug": "hanh-dong"}],
                "episodes": [{"server_name": 1, "server_data": [{"name": 1, "slug": 1, "link_embed": "https://e.example/1"}]}],
            }
        }
    )

    transformed = transform_ophim_movie(detail)

    assert transformed.movie.time == "45"
    assert transformed.movie.episode_total == "12"
    assert transformed.movie.categories[0].id == "7"
    assert transformed.episodes[0].name == "1"
    assert transformed.episodes[0].server_name == "1"
    assert validate_episode_data(transformed.episodes[0]).valid is True


def test_transform_accepts_numeric_strings_and_nulls() -> None:
    transformed = transform_ophim_movie(_detail(year="2019", origin_name=None, episodes=None))

    assert transformed.movie.year == 2019
    assert transformed.movie.origin_name is None
    assert transformed.episodes == []


def test_resolve_image_url_variants() -> None:
    assert resolve_image_url("") == PLACEHOLDER_IMAGE
    assert resolve_image_url("https://other.cdn/poster.jpg") == "https://other.cdn/poster.jpg"
    assert resolve_image_url("poster.jpg") == "https://img.ophim.live/uploads/movies/poster.jpg"
    assert resolve_image_url("poster.jpg", cdn_domain="https://img.example/") == "https://img.example/uploads/movies/poster.jpg"


def test_validate_movie_missing_name() -> None:
    movie = transform_ophim_movie(_detail(name="")).movie

    result = validate_movie_data(movie)

    assert result.valid is False
    assert result.errors == ["name is required"]


def test_validate_movie_blank_record_reports_every_field() -> None:
    result = validate_movie_data(MovieRecord(slug="", name="   "))

    assert result.valid is False
    assert result.errors == ["name is required", "slug is required"]


def test_validate_episode_requires_a_link() -> None:
    episode = EpisodeRecord(movie_slug="m", server_name="Vietsub #1", name="Tap 1", slug="tap-1")

    result = validate_episode_data(episode)

    assert result.valid is False
    assert result.errors == ["link_embed or link_m3u8 is required"]


def test_validate_episode_accepts_hls_only() -> None:
    episode = EpisodeRecord(
        movie_slug="m",
        server_name="Vietsub #1",
        name="Tap 1",
        slug="tap-1",
        link_m3u8="https://cdn.example/tap-1/index.m3u8",
    )

    assert validate_episode_data(episode).valid is True


def test_validate_episode_empty_record() -> None:
    result = validate_episode_data(EpisodeRecord(movie_slug="", server_name="", name="", slug=""))

    assert result.valid is False
    assert len(result.errors) == 4


def test_movie_stats_counts_per_server() -> None:
    stats = movie_stats(transform_ophim_movie(_detail(thumb_url="")))

    assert stats.episode_count == 5
    assert stats.server_count == 2
    assert stats.episodes_per_server == {"Vietsub #1": 3, "Thuyết Minh #1": 2}
    assert stats.uses_placeholder_image is True
