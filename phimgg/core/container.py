import asyncio
import logging

from phimgg.core.errors import ImportInProgressError
from phimgg.core.settings import Settings
from phimgg.models.imports import ImportConfig, ImportRequest, ImportStats
from phimgg.services.checkpoint import CheckpointStore
from phimgg.services.importer import OphimMovieImporter
from phimgg.services.movie_store import SqlMovieStore
from phimgg.services.ophim_client import OphimClient

logger = logging.getLogger(__name__)


class AppContainer:
    def __init__(
        self,
        settings: Settings,
        client: OphimClient | None = None,
        store: SqlMovieStore | None = None,
        checkpoint_store: CheckpointStore | None = None,
    ):
        self.settings = settings
        self.ophim_client = client or OphimClient(settings)
        self.movie_store = store or SqlMovieStore(settings.database_url)
        self.checkpoint_store = checkpoint_store or CheckpointStore(settings.checkpoint_path)
        self._import_lock = asyncio.Lock()

        logger.info(
            "App container initialized",
            extra={
                "ophim_base_url": settings.ophim_base_url,
                "import_rate_limit_ms": settings.import_rate_limit_ms,
                "import_max_retries": settings.import_max_retries,
                "checkpoint_path": settings.checkpoint_path,
            },
        )

    def build_import_config(self, **overrides) -> ImportConfig:
        settings = self.settings
        values = {
            "rate_limit_ms": settings.import_rate_limit_ms,
            "max_retries": settings.import_max_retries,
            "retry_delay_seconds": settings.import_retry_delay_seconds,
            "retry_backoff_factor": settings.import_retry_backoff_factor,
            "image_base_url": settings.ophim_image_base_url,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return ImportConfig(**values)

    def build_importer(self, config: ImportConfig) -> OphimMovieImporter:
        return OphimMovieImporter(
            config=config,
            client=self.ophim_client,
            store=self.movie_store,
            checkpoint_store=self.checkpoint_store,
        )

    async def run_import(self, payload: ImportRequest) -> ImportStats:
        # one run at a time per process
        if self._import_lock.locked():
            raise ImportInProgressError()
        async with self._import_lock:
            config = self.build_import_config(**payload.model_dump())
            return await self.build_importer(config).run()

    async def close(self) -> None:
        await self.ophim_client.close()
        self.movie_store.close()
