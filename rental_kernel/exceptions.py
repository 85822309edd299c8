"""
Typed Exception Hierarchy for the Rental Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Status derivation feeds collection desks and owner payouts. A payment that
silently classifies as "upcoming" because its due date was never recorded
is worse than one that refuses to classify. Callers therefore catch by
TYPE and read structured attributes, never parse messages:

    try:
        status = classify_collection_payment(now, due, collected, delay, 7)
    except IncompleteRecordError as e:
        log.warning("skipping payment", extra={"field": e.field_name})

Every exception carries a class-level ``code`` (machine-readable, API-safe)
and stores its context as attributes.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    RentalKernelError (base)
    |
    +-- ScheduleError
    |   +-- InvalidScheduleConfigurationError
    |   +-- PaymentsAlreadyGeneratedError
    |
    +-- RecordError
    |   +-- IncompleteRecordError
    |   +-- UnrecognizedEnumValueError
    |   +-- RecordNotFoundError
    |
    +-- ContractError
    |   +-- InvalidContractTransitionError
    |   +-- UnitUnavailableError
    |
    +-- PaymentError
    |   +-- PaymentAlreadyCollectedError
    |   +-- PaymentNotPostponableError
    |   +-- PaymentNotConfirmableError
    |
    +-- ImmutabilityError
    |   +-- RecordDeletionForbiddenError
    |
    +-- ConfigurationError
        +-- InvalidSettingError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|---------------------------------------
Schedule        | INVALID_SCHEDULE_CONFIGURATION| Duration not divisible by frequency
                | PAYMENTS_ALREADY_GENERATED    | Contract already has installments
----------------|-------------------------------|---------------------------------------
Record          | INCOMPLETE_RECORD             | Required date field is null
                | UNRECOGNIZED_ENUM_VALUE       | Unknown status / frequency string
                | RECORD_NOT_FOUND              | Contract or payment ID doesn't exist
----------------|-------------------------------|---------------------------------------
Contract        | INVALID_CONTRACT_TRANSITION   | e.g. activating a non-draft contract
                | UNIT_UNAVAILABLE              | Overlapping contract on same unit
----------------|-------------------------------|---------------------------------------
Payment         | PAYMENT_ALREADY_COLLECTED     | Collecting / postponing a paid record
                | PAYMENT_NOT_POSTPONABLE       | Record already postponed
                | PAYMENT_NOT_CONFIRMABLE       | Payout not yet due or earlier payouts open
----------------|-------------------------------|---------------------------------------
Immutability    | RECORD_DELETION_FORBIDDEN     | Deleting a collection payment
----------------|-------------------------------|---------------------------------------
Configuration   | INVALID_SETTING               | Setting value out of range / unparsable

===============================================================================
"""

from datetime import date
from typing import Any


class RentalKernelError(Exception):
    """
    Base exception for all rental kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "RENTAL_KERNEL_ERROR"


# Schedule-related exceptions


class ScheduleError(RentalKernelError):
    """Base exception for installment schedule errors."""

    code: str = "SCHEDULE_ERROR"


class InvalidScheduleConfigurationError(ScheduleError):
    """
    Contract duration is not evenly divisible by the payment frequency.

    Raised by the validity gate before any installment schedule is built.
    The lenient payments-count calculator never raises this.
    """

    code: str = "INVALID_SCHEDULE_CONFIGURATION"

    def __init__(self, duration_months: int, frequency: str, months_per_installment: int):
        self.duration_months = duration_months
        self.frequency = frequency
        self.months_per_installment = months_per_installment
        super().__init__(
            f"Contract duration of {duration_months} month(s) is not compatible "
            f"with {frequency} payments ({months_per_installment} month(s) per installment)"
        )


class PaymentsAlreadyGeneratedError(ScheduleError):
    """Contract already has generated installments."""

    code: str = "PAYMENTS_ALREADY_GENERATED"

    def __init__(self, contract_id: str, existing_count: int):
        self.contract_id = contract_id
        self.existing_count = existing_count
        super().__init__(
            f"Contract {contract_id} already has {existing_count} generated payment(s)"
        )


# Record-related exceptions


class RecordError(RentalKernelError):
    """Base exception for malformed or missing records."""

    code: str = "RECORD_ERROR"


class IncompleteRecordError(RecordError):
    """A field required for classification is null."""

    code: str = "INCOMPLETE_RECORD"

    def __init__(self, record_type: str, field_name: str, record_id: str | None = None):
        self.record_type = record_type
        self.field_name = field_name
        self.record_id = record_id
        suffix = f" (id={record_id})" if record_id else ""
        super().__init__(
            f"Cannot classify {record_type}{suffix}: required field '{field_name}' is missing"
        )


class UnrecognizedEnumValueError(RecordError):
    """A stored status or frequency string is not a known member."""

    code: str = "UNRECOGNIZED_ENUM_VALUE"

    def __init__(self, enum_name: str, value: Any, allowed: tuple[str, ...]):
        self.enum_name = enum_name
        self.value = value
        self.allowed = allowed
        super().__init__(
            f"Unrecognized {enum_name} value {value!r}; expected one of {', '.join(allowed)}"
        )


class RecordNotFoundError(RecordError):
    """Contract or payment with the given ID does not exist."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, record_type: str, record_id: str):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(f"{record_type} not found: {record_id}")


# Contract-related exceptions


class ContractError(RentalKernelError):
    """Base exception for contract lifecycle errors."""

    code: str = "CONTRACT_ERROR"


class InvalidContractTransitionError(ContractError):
    """Requested lifecycle action is not allowed from the current status."""

    code: str = "INVALID_CONTRACT_TRANSITION"

    def __init__(self, contract_id: str, current_status: str, action: str):
        self.contract_id = contract_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} contract {contract_id} in status '{current_status}'"
        )


class UnitUnavailableError(ContractError):
    """Another live contract already covers part of the requested period."""

    code: str = "UNIT_UNAVAILABLE"

    def __init__(
        self,
        subject_id: str,
        conflicting_contract_number: str,
        conflict_start: date,
        conflict_end: date,
    ):
        self.subject_id = subject_id
        self.conflicting_contract_number = conflicting_contract_number
        self.conflict_start = conflict_start
        self.conflict_end = conflict_end
        super().__init__(
            f"{subject_id} is already booked by contract {conflicting_contract_number} "
            f"from {conflict_start.isoformat()} to {conflict_end.isoformat()}"
        )


# Payment-related exceptions


class PaymentError(RentalKernelError):
    """Base exception for payment operations."""

    code: str = "PAYMENT_ERROR"


class PaymentAlreadyCollectedError(PaymentError):
    """Payment has a collection date and cannot be changed."""

    code: str = "PAYMENT_ALREADY_COLLECTED"

    def __init__(self, payment_id: str, collection_date: date):
        self.payment_id = payment_id
        self.collection_date = collection_date
        super().__init__(
            f"Payment {payment_id} was already collected on {collection_date.isoformat()}"
        )


class PaymentNotPostponableError(PaymentError):
    """Payment already carries a postponement."""

    code: str = "PAYMENT_NOT_POSTPONABLE"

    def __init__(self, payment_id: str, delay_duration: int):
        self.payment_id = payment_id
        self.delay_duration = delay_duration
        super().__init__(
            f"Payment {payment_id} is already postponed by {delay_duration} day(s)"
        )


class PaymentNotConfirmableError(PaymentError):
    """Owner payout cannot be confirmed yet."""

    code: str = "PAYMENT_NOT_CONFIRMABLE"

    def __init__(self, payment_id: str, reasons: tuple[str, ...]):
        self.payment_id = payment_id
        self.reasons = reasons
        super().__init__(
            f"Payment {payment_id} cannot be confirmed: {'; '.join(reasons)}"
        )


# Immutability exceptions


class ImmutabilityError(RentalKernelError):
    """Base exception for protected-record violations."""

    code: str = "IMMUTABILITY_ERROR"


class RecordDeletionForbiddenError(ImmutabilityError):
    """Attempt to hard-delete a record that must be kept."""

    code: str = "RECORD_DELETION_FORBIDDEN"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} cannot be deleted")


# Configuration exceptions


class ConfigurationError(RentalKernelError):
    """Base exception for settings errors."""

    code: str = "CONFIGURATION_ERROR"


class InvalidSettingError(ConfigurationError):
    """Setting value is unparsable or out of range."""

    code: str = "INVALID_SETTING"

    def __init__(self, key: str, value: Any, reason: str):
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid setting {key}={value!r}: {reason}")
