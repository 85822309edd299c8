"""Batch task implementations."""

from rental_batch.tasks.base import (
    BatchItemInput,
    BatchTask,
    BatchTaskResult,
    TaskRegistry,
    default_task_registry,
)
from rental_batch.tasks.contract_tasks import ExpireContractsTask

__all__ = [
    "BatchItemInput",
    "BatchTask",
    "BatchTaskResult",
    "ExpireContractsTask",
    "TaskRegistry",
    "default_task_registry",
]
