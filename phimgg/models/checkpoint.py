from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

CHECKPOINT_VERSION = 1


class NotStarted(BaseModel):
    status: Literal["not_started"] = "not_started"


class InProgress(BaseModel):
    status: Literal["in_progress"] = "in_progress"
    page_start: int
    page_end: int
    last_completed_page: int

    @property
    def next_page(self) -> int:
        return self.last_completed_page + 1


class Completed(BaseModel):
    status: Literal["completed"] = "completed"
    page_start: int
    page_end: int


RunState = Annotated[Union[NotStarted, InProgress, Completed], Field(discriminator="status")]


class CheckpointRecord(BaseModel):
    version: Literal[1] = CHECKPOINT_VERSION
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    state: RunState = Field(default_factory=NotStarted)
