from fastapi import Depends, Request

from phimgg.core.container import AppContainer
from phimgg.services.checkpoint import CheckpointStore
from phimgg.services.movie_store import SqlMovieStore


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_movie_store(container: AppContainer = Depends(get_container)) -> SqlMovieStore:
    return container.movie_store


def get_checkpoint_store(container: AppContainer = Depends(get_container)) -> CheckpointStore:
    return container.checkpoint_store
