from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from phimgg.api.deps import get_movie_store
from phimgg.services.movie_store import SqlMovieStore

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready")
async def readiness(store: SqlMovieStore = Depends(get_movie_store)) -> dict[str, str]:
    # StorageError maps to a 500 error payload
    await run_in_threadpool(store.ping)
    return {"status": "ready", "database": "ok"}
