from contextlib import asynccontextmanager

from fastapi import FastAPI

from phimgg.api.health import router as health_router
from phimgg.api.imports import router as imports_router
from phimgg.core.container import AppContainer
from phimgg.core.errors import register_error_handlers
from phimgg.core.logging import configure_logging
from phimgg.core.rate_limit import ImportTriggerRateLimitMiddleware
from phimgg.core.settings import Settings, get_settings


def create_app(settings: Settings | None = None, container: AppContainer | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        app.state.settings = settings
        app.state.container = container or AppContainer(settings)
        yield
        await app.state.container.close()

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
    app.add_middleware(ImportTriggerRateLimitMiddleware, settings=settings)
    register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(imports_router)
    return app


app = create_app()
