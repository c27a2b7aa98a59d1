from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class ImportRequest(BaseModel):
    page_start: int = Field(default=1, ge=1, description="first page to import")
    page_end: int = Field(default=1, ge=1, description="last page to import, inclusive")
    skip_existing: bool = Field(default=True, description="skip movies whose slug is already stored")
    validate_only: bool = Field(default=False, description="fetch and validate without writing")
    resume: bool = Field(default=False, description="continue from the saved checkpoint")

    @model_validator(mode="after")
    def check_range(self) -> "ImportRequest":
        if self.page_start > self.page_end:
            raise ValueError("page_start must be <= page_end")
        return self


class ImportErrorEntry(BaseModel):
    slug: str
    error: str


class ImportStats(BaseModel):
    total_pages: int = 0
    pages_processed: int = 0
    movies_processed: int = 0
    movies_imported: int = 0
    movies_skipped: int = 0
    movies_failed: int = 0
    episodes_imported: int = 0
    episodes_skipped: int = 0
    episodes_failed: int = 0
    started_at: datetime | None = None
    finished_at: datetime | None = None
    duration_ms: int = 0
    errors: list[ImportErrorEntry] = Field(default_factory=list)

    @property
    def movies_per_second(self) -> float:
        if self.duration_ms <= 0:
            return 0.0
        return self.movies_processed / (self.duration_ms / 1000)


class ImportConfig(BaseModel):
    page_start: int = Field(default=1, ge=1)
    page_end: int = Field(default=1, ge=1)
    skip_existing: bool = True
    validate_only: bool = False
    verbose: bool = False
    resume: bool = False
    rate_limit_ms: int = Field(default=500, ge=0)
    max_retries: int = Field(default=3, ge=0)
    retry_delay_seconds: float = Field(default=1.0, ge=0.0)
    retry_backoff_factor: float = Field(default=2.0, ge=1.0)
    image_base_url: str = "https://img.ophim.live/uploads/movies"

    @model_validator(mode="after")
    def check_range(self) -> "ImportConfig":
        if self.page_start > self.page_end:
            raise ValueError("page_start must be <= page_end")
        return self

    @property
    def total_pages(self) -> int:
        return self.page_end - self.page_start + 1
