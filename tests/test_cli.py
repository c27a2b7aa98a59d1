import pytest

from phimgg import cli
from phimgg.core.container import AppContainer
from phimgg.core.errors import APIError
from phimgg.core.settings import Settings
from phimgg.models.imports import ImportErrorEntry, ImportStats
from phimgg.models.ophim import MovieDetail, MovieListItem, MovieListPage
from phimgg.services.checkpoint import CheckpointStore
from phimgg.services.movie_store import SqlMovieStore


class _CatalogClientStub:
    def __init__(self, pages: dict[int, list[str]], failing_details: set[str] | None = None):
        self.pages = pages
        self.failing_details = failing_details or set()

    async def fetch_movie_list(self, page: int = 1) -> MovieListPage:
        return MovieListPage(items=[MovieListItem(slug=slug, name=slug) for slug in self.pages.get(page, [])])

    async def fetch_movie_detail(self, slug: str) -> MovieDetail:
        if slug in self.failing_details:
            raise APIError("ophim_request_failed", "Ophim API returned 404", status_code=502)
        return MovieDetail.model_validate(
            {
                "item": {
                    "name": slug.title(),
                    "slug": slug,
                    "episodes": [
                        {
                            "server_name": "Vietsub #1",
                            "server_data": [{"name": "Tap 1", "slug": "tap-1", "link_embed": f"https://embed.example/{slug}"}],
                        }
                    ],
                }
            }
        )

    async def close(self) -> None:
        return None


def _parse(*argv: str):
    return cli.build_parser().parse_args(list(argv))


def test_resolve_page_range_single_page() -> None:
    assert cli.resolve_page_range(_parse("--page", "7")) == (7, 7)


def test_resolve_page_range_defaults() -> None:
    assert cli.resolve_page_range(_parse()) == (1, 1)
    assert cli.resolve_page_range(_parse("--start", "3")) == (3, 3)
    assert cli.resolve_page_range(_parse("-s", "2", "-e", "5")) == (2, 5)


@pytest.mark.parametrize(
    "argv",
    [
        ("--page", "1", "--start", "2"),
        ("--start", "5", "--end", "2"),
        ("--start", "0", "--end", "2"),
    ],
)
def test_resolve_page_range_rejects(argv) -> None:
    with pytest.raises(ValueError):
        cli.resolve_page_range(_parse(*argv))


def test_no_skip_flag_disables_skip_existing() -> None:
    assert _parse().skip_existing is True
    assert _parse("--no-skip").skip_existing is False


def test_main_bad_range_exits_one(capsys) -> None:
    assert cli.main(["--start", "4", "--end", "1"]) == 1
    assert "Start page must be <= end page" in capsys.readouterr().err


def test_main_negative_rate_limit_exits_one(capsys) -> None:
    assert cli.main(["--page", "1", "--rate-limit", "-5"]) == 1
    assert "--rate-limit" in capsys.readouterr().err


def test_format_summary_lists_errors() -> None:
    stats = ImportStats(total_pages=1, movies_processed=2, movies_failed=1, duration_ms=2000)
    stats.errors.append(ImportErrorEntry(slug="phim-x", error="boom"))

    summary = cli.format_summary(stats)

    assert "Movies failed: 1" in summary
    assert "Speed: 1.00 movies/s" in summary
    assert "  - phim-x: boom" in summary


def _patch_runtime(monkeypatch, tmp_path, catalog: _CatalogClientStub) -> list[AppContainer]:
    settings = Settings(
        environment="test",
        database_url="sqlite://",
        checkpoint_path=str(tmp_path / "progress.json"),
        import_rate_limit_ms=0,
        import_max_retries=0,
        import_retry_delay_seconds=0.0,
    )
    built: list[AppContainer] = []

    def build_container(settings: Settings) -> AppContainer:
        container = AppContainer(
            settings,
            client=catalog,
            store=SqlMovieStore("sqlite://"),
            checkpoint_store=CheckpointStore(settings.checkpoint_path),
        )
        built.append(container)
        return container

    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    monkeypatch.setattr(cli, "AppContainer", build_container)
    return built


def test_main_imports_and_prints_summary(monkeypatch, tmp_path, capsys) -> None:
    built = _patch_runtime(monkeypatch, tmp_path, _CatalogClientStub({1: ["phim-mot"], 2: ["phim-hai"]}))

    exit_code = cli.main(["--start", "1", "--end", "2"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Import Summary" in out
    assert "Movies imported: 2" in out
    assert "Episodes imported: 2" in out
    assert built[0].checkpoint_store.load().state.status == "completed"


def test_main_exits_one_when_a_movie_fails(monkeypatch, tmp_path, capsys) -> None:
    _patch_runtime(monkeypatch, tmp_path, _CatalogClientStub({1: ["phim-mot", "phim-loi"]}, failing_details={"phim-loi"}))

    exit_code = cli.main(["--page", "1"])

    out = capsys.readouterr().out
    assert exit_code == 1
    assert "Movies imported: 1" in out
    assert "Movies failed: 1" in out
    assert "phim-loi: Ophim API returned 404" in out


def test_main_checkpoint_flag_overrides_settings(monkeypatch, tmp_path) -> None:
    built = _patch_runtime(monkeypatch, tmp_path, _CatalogClientStub({1: []}))
    custom = tmp_path / "custom" / "run.json"

    assert cli.main(["--page", "1", "--checkpoint", str(custom)]) == 0
    assert built[0].settings.checkpoint_path == str(custom)
    assert custom.exists()
