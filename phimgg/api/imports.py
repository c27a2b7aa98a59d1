from fastapi import APIRouter, Depends

from phimgg.api.deps import get_checkpoint_store, get_container
from phimgg.core.container import AppContainer
from phimgg.models.checkpoint import CheckpointRecord
from phimgg.models.imports import ImportRequest, ImportStats
from phimgg.services.checkpoint import CheckpointStore

router = APIRouter(prefix="/v1", tags=["import"])


@router.post("/import", response_model=ImportStats)
async def import_movies(payload: ImportRequest, container: AppContainer = Depends(get_container)) -> ImportStats:
    return await container.run_import(payload)


@router.get("/import/checkpoint", response_model=CheckpointRecord)
async def import_checkpoint(checkpoint_store: CheckpointStore = Depends(get_checkpoint_store)) -> CheckpointRecord:
    return checkpoint_store.load()
