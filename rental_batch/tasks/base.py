"""
Interface for console jobs run by ``rental_batch.runner``.

A job is split in two phases.  ``prepare_items`` picks the records to work
on as of a given instant and describes each one as a ``BatchItemInput``;
``execute_item`` then handles one record inside the SAVEPOINT the runner
opened for it.  Jobs use the session they are handed and never commit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from sqlalchemy.orm import Session

from rental_batch.domain.types import BatchItemStatus


@dataclass(frozen=True)
class BatchItemInput:
    item_index: int
    item_key: str  # contract number or other id shown in the run output
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BatchTaskResult:
    status: BatchItemStatus
    result_data: dict[str, Any] | None = None
    error_code: str | None = None
    error_message: str | None = None


@runtime_checkable
class BatchTask(Protocol):
    """
    ``task_type`` is the registry key (``"contracts.expire"``) and
    ``description`` the label printed by the scripts.  An exception out of
    ``execute_item`` fails that item only.
    """

    @property
    def task_type(self) -> str: ...

    @property
    def description(self) -> str: ...

    def prepare_items(
        self,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> tuple[BatchItemInput, ...]: ...

    def execute_item(
        self,
        item: BatchItemInput,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult: ...


class TaskRegistry:
    """Jobs by ``task_type``."""

    def __init__(self, tasks: tuple[BatchTask, ...] = ()) -> None:
        self._by_type: dict[str, BatchTask] = {}
        for task in tasks:
            self.register(task)

    def register(self, task: BatchTask) -> BatchTask:
        key = task.task_type
        if key in self._by_type:
            raise ValueError(f"Task type '{key}' is already registered")
        self._by_type[key] = task
        return task

    def get(self, task_type: str) -> BatchTask:
        task = self._by_type.get(task_type)
        if task is None:
            known = ", ".join(self.list_tasks()) or "none"
            raise KeyError(f"No task registered for type '{task_type}' (known: {known})")
        return task

    def list_tasks(self) -> tuple[str, ...]:
        return tuple(sorted(self._by_type))

    def __contains__(self, task_type: object) -> bool:
        return task_type in self._by_type


def default_task_registry() -> TaskRegistry:
    from rental_batch.tasks.contract_tasks import ExpireContractsTask

    return TaskRegistry((ExpireContractsTask(),))
