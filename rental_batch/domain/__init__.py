"""Pure batch DTOs and enums."""

from rental_batch.domain.types import BatchItemOutcome, BatchItemStatus, BatchRunSummary

__all__ = ["BatchItemOutcome", "BatchItemStatus", "BatchRunSummary"]
