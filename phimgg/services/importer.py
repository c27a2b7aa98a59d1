import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Protocol, TypeVar

from phimgg.core.errors import APIError, ConflictError, MovieValidationError, StorageError
from phimgg.models.checkpoint import Completed, InProgress
from phimgg.models.imports import ImportConfig, ImportErrorEntry, ImportStats
from phimgg.models.movie import TransformedMovie
from phimgg.models.ophim import MovieDetail, MovieListItem, MovieListPage
from phimgg.services.checkpoint import CheckpointStore
from phimgg.services.movie_store import MovieStore
from phimgg.services.rate_limiter import RateLimiter
from phimgg.services.retry import retry_api_call
from phimgg.services.transformer import (
    movie_stats,
    transform_ophim_movie,
    validate_episode_data,
    validate_movie_data,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MovieCatalogClient(Protocol):
    async def fetch_movie_list(self, page: int = 1) -> MovieListPage: ...

    async def fetch_movie_detail(self, slug: str) -> MovieDetail: ...


class OphimMovieImporter:
    """Sequential page-by-page import of the Ophim catalog.

    Page failures abort the run. Movie failures are recorded in the stats and
    the run moves on. Episode conflicts count as skipped, other episode write
    errors as failed, and neither stops the remaining episodes of the movie.
    Store calls block, so they run in a worker thread off the event loop.
    """

    def __init__(
        self,
        config: ImportConfig,
        client: MovieCatalogClient,
        store: MovieStore,
        checkpoint_store: CheckpointStore | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        self.config = config
        self.client = client
        self.store = store
        self.checkpoint_store = checkpoint_store
        self.rate_limiter = rate_limiter or RateLimiter(config.rate_limit_ms)
        self.stats = ImportStats(total_pages=config.total_pages)
        self._detail_level = logging.INFO if config.verbose else logging.DEBUG

    async def run(self) -> ImportStats:
        config = self.config
        start = time.perf_counter()
        self.stats.started_at = datetime.now(timezone.utc)
        logger.info(
            "Import started",
            extra={
                "page_start": config.page_start,
                "page_end": config.page_end,
                "skip_existing": config.skip_existing,
                "validate_only": config.validate_only,
                "rate_limit_ms": config.rate_limit_ms,
                "resume": config.resume,
            },
        )

        page = config.page_start
        try:
            first_page = self._resolve_first_page()
            if first_page is None:
                logger.info(
                    "Checkpoint shows this range already completed",
                    extra={"page_start": config.page_start, "page_end": config.page_end},
                )
                return self.stats

            for page in range(first_page, config.page_end + 1):
                await self._import_page(page)
                self.stats.pages_processed += 1
                if self._writes_checkpoint:
                    self.checkpoint_store.mark_page_completed(config.page_start, config.page_end, page)

            if self._writes_checkpoint:
                self.checkpoint_store.mark_completed(config.page_start, config.page_end)
        except Exception:
            logger.exception("Import aborted", extra={"page": page})
            raise
        finally:
            self.stats.finished_at = datetime.now(timezone.utc)
            self.stats.duration_ms = int((time.perf_counter() - start) * 1000)
            logger.info(
                "Import finished",
                extra={
                    "pages_processed": self.stats.pages_processed,
                    "movies_processed": self.stats.movies_processed,
                    "movies_imported": self.stats.movies_imported,
                    "movies_skipped": self.stats.movies_skipped,
                    "movies_failed": self.stats.movies_failed,
                    "episodes_imported": self.stats.episodes_imported,
                    "episodes_skipped": self.stats.episodes_skipped,
                    "episodes_failed": self.stats.episodes_failed,
                    "duration_ms": self.stats.duration_ms,
                },
            )

        return self.stats

    @property
    def _writes_checkpoint(self) -> bool:
        return self.checkpoint_store is not None and not self.config.validate_only

    def _resolve_first_page(self) -> int | None:
        config = self.config
        if not config.resume or self.checkpoint_store is None:
            return config.page_start

        state = self.checkpoint_store.load().state
        if isinstance(state, Completed) and (state.page_start, state.page_end) == (config.page_start, config.page_end):
            return None
        if isinstance(state, InProgress) and state.page_end == config.page_end:
            if state.next_page > config.page_end:
                return None
            first_page = max(config.page_start, state.next_page)
            logger.info(
                "Resuming from checkpoint",
                extra={"last_completed_page": state.last_completed_page, "first_page": first_page},
            )
            return first_page
        return config.page_start

    async def _call(self, fn: Callable[[], Awaitable[T]]) -> T:
        config = self.config
        return await self.rate_limiter.execute(
            lambda: retry_api_call(
                fn,
                max_retries=config.max_retries,
                delay_seconds=config.retry_delay_seconds,
                backoff_factor=config.retry_backoff_factor,
            )
        )

    async def _import_page(self, page: int) -> None:
        listing = await self._call(lambda: self.client.fetch_movie_list(page))
        logger.info("Processing page", extra={"page": page, "items": len(listing.items)})

        for item in listing.items:
            await self._import_movie(item)

        logger.info("Page completed", extra={"page": page})

    async def _import_movie(self, item: MovieListItem) -> None:
        slug = item.slug.strip()
        self.stats.movies_processed += 1
        logger.log(self._detail_level, "Processing movie", extra={"slug": slug, "title": item.name})

        try:
            if not slug:
                raise MovieValidationError(slug, ["slug is required"])

            if self.config.skip_existing and await asyncio.to_thread(self.store.exists_by_slug, slug):
                self.stats.movies_skipped += 1
                logger.log(self._detail_level, "Movie already exists, skipping", extra={"slug": slug})
                return

            detail = await self._call(lambda: self.client.fetch_movie_detail(slug))
            transformed = transform_ophim_movie(detail, image_base_url=self.config.image_base_url)

            validation = validate_movie_data(transformed.movie)
            if not validation.valid:
                raise MovieValidationError(slug, validation.errors)

            if self.config.validate_only:
                self.stats.movies_imported += 1
                logger.log(self._detail_level, "Validation passed", extra={"slug": slug})
                return

            await asyncio.to_thread(self.store.insert_movie, transformed.movie)
            await self._import_episodes(transformed)
            self.stats.movies_imported += 1
        except APIError as exc:
            self.stats.movies_failed += 1
            self.stats.errors.append(ImportErrorEntry(slug=slug or item.name or "<unknown>", error=exc.message))
            logger.warning(
                "Movie import failed",
                extra={"slug": slug, "error_code": exc.code, "error": exc.message, "details": exc.details},
            )

    async def _import_episodes(self, transformed: TransformedMovie) -> None:
        slug = transformed.movie.slug
        inserted = skipped = failed = 0

        for episode in transformed.episodes:
            validation = validate_episode_data(episode)
            if not validation.valid:
                failed += 1
                logger.log(
                    self._detail_level,
                    "Episode validation failed",
                    extra={
                        "slug": slug,
                        "episode_slug": episode.slug,
                        "server_name": episode.server_name,
                        "errors": validation.errors,
                    },
                )
                continue

            try:
                await asyncio.to_thread(self.store.insert_episode, episode)
            except ConflictError:
                skipped += 1
                logger.log(
                    self._detail_level,
                    "Episode already exists, skipping",
                    extra={"slug": slug, "episode_slug": episode.slug, "server_name": episode.server_name},
                )
                continue
            except StorageError as exc:
                failed += 1
                logger.error(
                    "Database error for episode",
                    extra={"slug": slug, "episode_slug": episode.slug, "error": exc.message, "details": exc.details},
                )
                continue
            inserted += 1

        self.stats.episodes_imported += inserted
        self.stats.episodes_skipped += skipped
        self.stats.episodes_failed += failed

        stats = movie_stats(transformed)
        logger.log(
            self._detail_level,
            "Movie imported",
            extra={
                "slug": slug,
                "servers": stats.server_count,
                "episodes_per_server": stats.episodes_per_server,
                "episodes_inserted": inserted,
                "episodes_skipped": skipped,
                "episodes_failed": failed,
                "placeholder_image": stats.uses_placeholder_image,
            },
        )
