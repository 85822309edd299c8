"""
rental_batch.domain.types -- Frozen dataclasses for batch runs.  ZERO I/O.

A run is reported as one ``BatchRunSummary`` holding a ``BatchItemOutcome``
per prepared item.  Nothing about a run is persisted; the log lines bound
to its ``batch_run_id`` are the audit trail.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class BatchItemStatus(str, Enum):
    """Per-item outcome within a batch run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"  # Nothing to do (e.g. already expired by someone else)


@dataclass(frozen=True)
class BatchItemOutcome:
    item_index: int
    item_key: str
    status: BatchItemStatus
    result_data: dict[str, Any] | None = None
    error_code: str | None = None
    error_message: str | None = None
    duration_ms: int = 0


@dataclass(frozen=True)
class BatchRunSummary:
    """Immutable result of running one task.  Returned by ``run_task()``."""

    run_id: UUID
    task_type: str
    as_of: datetime
    total_items: int
    succeeded: int
    failed: int
    skipped: int
    item_results: tuple[BatchItemOutcome, ...] = ()
    duration_ms: int = 0

    @property
    def has_failures(self) -> bool:
        return self.failed > 0

    def keys_with(self, status: BatchItemStatus) -> tuple[str, ...]:
        return tuple(r.item_key for r in self.item_results if r.status is status)
