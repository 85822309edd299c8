"""
Batch runner -- SAVEPOINT-per-item execution of a ``BatchTask``.

Contract:
    ``run_task()`` prepares the task's items, runs each inside its own
    SAVEPOINT, and commits the outer transaction once at the end.  A failing
    item (returned FAILED or raised) is rolled back to its SAVEPOINT and
    logged; the remaining items still run.

Invariants enforced:
    - One item's failure never undoes another item's work.
    - All log lines of a run carry the same ``batch_run_id``.
    - ``as_of`` comes from the caller (or the injected clock), never from
      ``datetime.now()``.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy.orm import Session

from rental_batch.domain.types import BatchItemOutcome, BatchItemStatus, BatchRunSummary
from rental_batch.tasks.base import BatchTask
from rental_kernel.domain.clock import Clock, SystemClock
from rental_kernel.logging_config import LogContext, get_logger

logger = get_logger("batch.runner")


def run_task(
    task: BatchTask,
    session: Session,
    as_of: datetime | None = None,
    parameters: dict[str, Any] | None = None,
    clock: Clock | None = None,
) -> BatchRunSummary:
    """
    Run ``task`` to completion and return the per-item summary.

    Raises:
        Whatever ``prepare_items`` or the final commit raises; the session
        is rolled back first.
    """
    params = parameters or {}
    as_of = as_of or (clock or SystemClock()).now()
    run_id = uuid4()
    run_start = time.monotonic()

    with LogContext.bind(batch_run_id=run_id):
        logger.info(
            "batch_run_started",
            extra={"task_type": task.task_type, "as_of": as_of.isoformat()},
        )

        try:
            items = task.prepare_items(params, session, as_of)
        except Exception:
            session.rollback()
            logger.exception("batch_prepare_failed", extra={"task_type": task.task_type})
            raise

        outcomes: list[BatchItemOutcome] = []
        for item in items:
            item_start = time.monotonic()
            savepoint = session.begin_nested()
            try:
                result = task.execute_item(item, params, session, as_of)
            except Exception as exc:
                savepoint.rollback()
                logger.warning(
                    "batch_item_failed",
                    extra={"item_key": item.item_key, "error_code": getattr(exc, "code", None)},
                    exc_info=True,
                )
                outcome = BatchItemOutcome(
                    item_index=item.item_index,
                    item_key=item.item_key,
                    status=BatchItemStatus.FAILED,
                    error_code=getattr(exc, "code", "UNHANDLED_EXCEPTION"),
                    error_message=str(exc),
                    duration_ms=int((time.monotonic() - item_start) * 1000),
                )
            else:
                if result.status is BatchItemStatus.SUCCEEDED:
                    savepoint.commit()
                else:
                    savepoint.rollback()
                    if result.status is BatchItemStatus.FAILED:
                        logger.warning(
                            "batch_item_failed",
                            extra={"item_key": item.item_key, "error_code": result.error_code},
                        )
                outcome = BatchItemOutcome(
                    item_index=item.item_index,
                    item_key=item.item_key,
                    status=result.status,
                    result_data=result.result_data,
                    error_code=result.error_code,
                    error_message=result.error_message,
                    duration_ms=int((time.monotonic() - item_start) * 1000),
                )
            outcomes.append(outcome)

        try:
            session.commit()
        except Exception:
            session.rollback()
            raise

        summary = BatchRunSummary(
            run_id=run_id,
            task_type=task.task_type,
            as_of=as_of,
            total_items=len(outcomes),
            succeeded=sum(1 for o in outcomes if o.status is BatchItemStatus.SUCCEEDED),
            failed=sum(1 for o in outcomes if o.status is BatchItemStatus.FAILED),
            skipped=sum(1 for o in outcomes if o.status is BatchItemStatus.SKIPPED),
            item_results=tuple(outcomes),
            duration_ms=int((time.monotonic() - run_start) * 1000),
        )
        logger.info(
            "batch_run_completed",
            extra={
                "task_type": task.task_type,
                "total_items": summary.total_items,
                "succeeded": summary.succeeded,
                "failed": summary.failed,
                "skipped": summary.skipped,
                "duration_ms": summary.duration_ms,
            },
        )
        return summary
