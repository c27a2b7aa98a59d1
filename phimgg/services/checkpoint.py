"""Run-state persistence for resumable imports.

The checkpoint is a single versioned JSON record replaced atomically, so a
reader sees either the previous state or the new one, never a partial write.
"""

import json
import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from phimgg.models.checkpoint import CheckpointRecord, Completed, InProgress, NotStarted

logger = logging.getLogger(__name__)


class CheckpointStore:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> CheckpointRecord:
        if not self.path.exists():
            return CheckpointRecord(state=NotStarted())
        try:
            raw = self.path.read_text(encoding="utf-8")
            return CheckpointRecord.model_validate_json(raw)
        except (OSError, ValidationError, ValueError) as exc:
            backup = self._backup_corrupted()
            logger.warning(
                "Checkpoint unreadable, starting from scratch",
                extra={"path": str(self.path), "backup": str(backup) if backup else None, "error": str(exc)},
            )
            return CheckpointRecord(state=NotStarted())

    def save(self, record: CheckpointRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_name(f"{self.path.name}.tmp")
        payload = record.model_dump(mode="json")
        try:
            with temp_path.open("w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise

    def mark_page_completed(self, page_start: int, page_end: int, page: int) -> CheckpointRecord:
        record = CheckpointRecord(
            state=InProgress(page_start=page_start, page_end=page_end, last_completed_page=page),
        )
        self.save(record)
        return record

    def mark_completed(self, page_start: int, page_end: int) -> CheckpointRecord:
        record = CheckpointRecord(state=Completed(page_start=page_start, page_end=page_end))
        self.save(record)
        return record

    def _backup_corrupted(self) -> Path | None:
        if not self.path.exists():
            return None
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        backup = self.path.with_name(f"{self.path.stem}.corrupted.{timestamp}{self.path.suffix}")
        try:
            shutil.copy2(self.path, backup)
        except OSError:
            logger.exception("Failed to back up corrupted checkpoint", extra={"path": str(self.path)})
            return None
        return backup
