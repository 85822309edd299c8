"""
ORM-Level Record Protection.

===============================================================================
WHAT THIS ENFORCES
===============================================================================

Rent installments are the tenant's payment history.  A collected or
postponed installment that disappears takes the evidence with it, so
collection payments are NEVER hard-deleted: every delete attempt is
rejected and the row is left exactly as it was.

    session.delete(payment); session.flush()
         |
         v
    [before_delete] --> _reject_collection_payment_delete() --> RecordDeletionForbiddenError
                                                                  (flush aborted, row intact)

    session.execute(delete(CollectionPaymentModel))
         |
         v
    [do_orm_execute] --> _reject_bulk_collection_payment_delete() --> RecordDeletionForbiddenError

The same registration installs the derivation listeners that keep stored
redundancies consistent with their sources:

Entity                  | Event                  | Derived field
------------------------|------------------------|--------------------------------------
UnitContractModel       | before_insert          | end_date = start + N months - 1 day (if unset)
UnitContractModel       | before_update          | end_date re-derived when start or duration change
PropertyContractModel   | before_insert/update   | same as UnitContractModel
CollectionPaymentModel  | before_insert/update   | total_amount = amount + late_fee
CollectionPaymentModel  | before_insert/update   | month_year = due_date_start "%Y-%m"

Call ``register_delete_guards()`` once at startup, after the ORM models
are imported.  ``unregister_delete_guards()`` exists for tests only.
"""

from decimal import Decimal

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from rental_kernel.exceptions import RecordDeletionForbiddenError
from rental_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


# =============================================================================
# Delete rejection
# =============================================================================


def _reject_collection_payment_delete(mapper, connection, target):
    logger.error(
        "record_deletion_blocked",
        extra={
            "entity_type": "CollectionPayment",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise RecordDeletionForbiddenError(entity_type="CollectionPayment", entity_id=str(target.id))


def _reject_bulk_collection_payment_delete(orm_execute_state):
    if not orm_execute_state.is_delete:
        return
    from rental_modules.collections.orm import CollectionPaymentModel

    mapper = orm_execute_state.bind_mapper
    if mapper is None or not issubclass(mapper.class_, CollectionPaymentModel):
        return
    logger.error(
        "record_deletion_blocked",
        extra={
            "entity_type": "CollectionPayment",
            "entity_id": "*",
            "operation": "BULK_DELETE",
        },
    )
    raise RecordDeletionForbiddenError(entity_type="CollectionPayment", entity_id="*")


# =============================================================================
# Derived fields
# =============================================================================


def _derive_contract_end_date_on_insert(mapper, connection, target):
    from rental_modules.contracts.calculations import derive_end_date

    if target.end_date is None and target.start_date is not None and target.duration_months:
        target.end_date = derive_end_date(target.start_date, target.duration_months)


def _derive_contract_end_date_on_update(mapper, connection, target):
    from rental_modules.contracts.calculations import derive_end_date

    if target.start_date is None or not target.duration_months:
        return
    state = inspect(target)
    if (
        state.attrs.start_date.history.has_changes()
        or state.attrs.duration_months.history.has_changes()
    ):
        target.end_date = derive_end_date(target.start_date, target.duration_months)


def _derive_collection_payment_fields(mapper, connection, target):
    if target.late_fee is None:
        target.late_fee = Decimal("0")
    target.total_amount = (target.amount or Decimal("0")) + target.late_fee
    if not target.month_year and target.due_date_start is not None:
        target.month_year = target.due_date_start.strftime("%Y-%m")


# =============================================================================
# Registration
# =============================================================================


def _listeners():
    from rental_modules.collections.orm import CollectionPaymentModel
    from rental_modules.contracts.orm import PropertyContractModel, UnitContractModel

    return (
        (CollectionPaymentModel, "before_delete", _reject_collection_payment_delete),
        (Session, "do_orm_execute", _reject_bulk_collection_payment_delete),
        (UnitContractModel, "before_insert", _derive_contract_end_date_on_insert),
        (UnitContractModel, "before_update", _derive_contract_end_date_on_update),
        (PropertyContractModel, "before_insert", _derive_contract_end_date_on_insert),
        (PropertyContractModel, "before_update", _derive_contract_end_date_on_update),
        (CollectionPaymentModel, "before_insert", _derive_collection_payment_fields),
        (CollectionPaymentModel, "before_update", _derive_collection_payment_fields),
    )


def register_delete_guards() -> None:
    """Install the delete rejection and derivation listeners.  Idempotent."""
    for target, name, fn in _listeners():
        if not event.contains(target, name, fn):
            event.listen(target, name, fn)
    logger.debug("delete_guards_registered")


def unregister_delete_guards() -> None:
    """
    Remove every listener installed by ``register_delete_guards``.

    WARNING: only for tests that need to bypass the guards.
    """
    for target, name, fn in _listeners():
        if event.contains(target, name, fn):
            event.remove(target, name, fn)
