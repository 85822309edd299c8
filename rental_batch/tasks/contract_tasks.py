"""
Batch task: expire contracts whose end date has passed.

Active contracts are not flipped to ``expired`` at midnight; until this
task runs they display as EXPIRED through the lifecycle classifier while
still stored as ``active``.  The task brings the stored status in line.

Parameters:
    kinds: list of contract kinds to process ("rental", "supply").
        Defaults to both.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from rental_batch.domain.types import BatchItemStatus
from rental_batch.tasks.base import BatchItemInput, BatchTaskResult
from rental_kernel.domain.clock import as_calendar_day
from rental_kernel.domain.enums import parse_enum
from rental_kernel.logging_config import LogContext, get_logger
from rental_modules.contracts.models import ContractKind, ContractStatus
from rental_modules.contracts.orm import PropertyContractModel, UnitContractModel
from rental_modules.contracts.selectors import ContractSelector
from rental_modules.contracts.workflows import (
    RENTAL_CONTRACT_LIFECYCLE,
    SUPPLY_CONTRACT_LIFECYCLE,
)

logger = get_logger("batch.tasks.contracts")

_MODELS = {
    ContractKind.RENTAL: UnitContractModel,
    ContractKind.SUPPLY: PropertyContractModel,
}

_WORKFLOWS = {
    ContractKind.RENTAL: RENTAL_CONTRACT_LIFECYCLE,
    ContractKind.SUPPLY: SUPPLY_CONTRACT_LIFECYCLE,
}


def _kinds(parameters: dict[str, Any]) -> tuple[ContractKind, ...]:
    requested = parameters.get("kinds") or [k.value for k in ContractKind]
    return tuple(parse_enum(ContractKind, k) for k in requested)


class ExpireContractsTask:
    """Flip stale active contracts to ``expired``, one contract per item."""

    @property
    def task_type(self) -> str:
        return "contracts.expire"

    @property
    def description(self) -> str:
        return "Mark active contracts whose end date has passed as expired"

    def prepare_items(
        self,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> tuple[BatchItemInput, ...]:
        today = as_calendar_day(as_of)
        items: list[BatchItemInput] = []
        for kind in _kinds(parameters):
            for contract in ContractSelector(session, _MODELS[kind]).stale_active(today):
                items.append(
                    BatchItemInput(
                        item_index=len(items),
                        item_key=contract.contract_number,
                        payload={
                            "contract_id": str(contract.id),
                            "kind": kind.value,
                            "end_date": contract.end_date.isoformat(),
                        },
                    )
                )
        return tuple(items)

    def execute_item(
        self,
        item: BatchItemInput,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult:
        kind = parse_enum(ContractKind, item.payload["kind"])
        contract_id = UUID(item.payload["contract_id"])

        with LogContext.bind(contract_id=contract_id):
            contract = ContractSelector(session, _MODELS[kind]).get(contract_id)
            if contract is None:
                return BatchTaskResult(
                    status=BatchItemStatus.FAILED,
                    error_code="RECORD_NOT_FOUND",
                    error_message=f"{kind.value} contract {contract_id} no longer exists",
                )

            # Re-check: the contract may have been renewed or terminated
            # between prepare and execute.
            today = as_calendar_day(as_of)
            if contract.status is not ContractStatus.ACTIVE or contract.end_date >= today:
                return BatchTaskResult(
                    status=BatchItemStatus.SKIPPED,
                    result_data={"contract_status": contract.contract_status},
                )

            transition = _WORKFLOWS[kind].transition_for(contract.contract_status, "expire")
            contract.contract_status = transition.to_state
            session.flush()

            logger.info(
                "contract_expired",
                extra={
                    "contract_number": contract.contract_number,
                    "contract_kind": kind.value,
                    "end_date": contract.end_date.isoformat(),
                },
            )
            return BatchTaskResult(
                status=BatchItemStatus.SUCCEEDED,
                result_data={
                    "contract_number": contract.contract_number,
                    "contract_status": contract.contract_status,
                },
            )
