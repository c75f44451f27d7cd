"""
Typed Exception Hierarchy for the Weighing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers must be able to tell a missing supplier from an overweight ticket
without parsing message strings. Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. A KIND attribute (NOT_FOUND, VALIDATION, CONFLICT, ...) that the
     boundary layer maps onto a transport status
  4. Structured DATA as attributes (not just a message string)

Example:
    try:
        lifecycle.add_item(report_id, command)
    except CapacityExceededError as e:
        notify(f"Ticket over capacity by {e.overflow} qq")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    WeighingKernelError (base)
    |
    +-- NotFoundError
    |   +-- SupplierNotFoundError
    |   +-- ProductNotFoundError
    |   +-- ReportNotFoundError
    |
    +-- ValidationError
    |   +-- InvalidWeightError
    |   +-- InvalidUnitError
    |   +-- InvalidEffectiveWeightError
    |   +-- InvalidTareWeightError
    |   +-- InvalidInputError
    |
    +-- ConflictError
    |   +-- InvalidStateError
    |   +-- AlreadyCancelledError
    |   +-- TareExceedsGrossError
    |   +-- CapacityExceededError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- AuthorizationError
        +-- PermissionDeniedError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Kind          | Code                      | When Raised
--------------|---------------------------|-------------------------------------
NOT_FOUND     | SUPPLIER_NOT_FOUND        | Supplier id does not exist
              | PRODUCT_NOT_FOUND         | Product id missing or inactive
              | REPORT_NOT_FOUND          | Report id does not exist
--------------|---------------------------|-------------------------------------
VALIDATION    | INVALID_WEIGHT            | Weight not a positive number
              | INVALID_UNIT              | Unit not in the conversion table
              | INVALID_EFFECTIVE_WEIGHT  | Deductions leave nothing to price
              | INVALID_TARE_WEIGHT       | Tare weight <= 0
              | INVALID_INPUT             | Malformed boundary payload
--------------|---------------------------|-------------------------------------
CONFLICT      | INVALID_STATE             | Operation not allowed in this state
              | ALREADY_CANCELLED         | Report is cancelled (absorbing)
              | TARE_EXCEEDS_GROSS        | Tare >= gross weight
              | CAPACITY_EXCEEDED         | Items outweigh the capacity bound
--------------|---------------------------|-------------------------------------
CONCURRENCY   | OPTIMISTIC_LOCK_CONFLICT  | Retries exhausted on a stale version
--------------|---------------------------|-------------------------------------
FORBIDDEN     | PERMISSION_DENIED         | Caller lacks the required role
"""

from decimal import Decimal
from enum import Enum


class ErrorKind(str, Enum):
    """Coarse error classification consumed by the boundary layer."""

    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    CONCURRENCY = "concurrency"
    FORBIDDEN = "forbidden"


class WeighingKernelError(Exception):
    """
    Base exception for all weighing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification and a `kind` for transport translation.
    """

    code: str = "WEIGHING_KERNEL_ERROR"
    kind: ErrorKind = ErrorKind.CONFLICT


# Not-found exceptions


class NotFoundError(WeighingKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"
    kind: ErrorKind = ErrorKind.NOT_FOUND


class SupplierNotFoundError(NotFoundError):
    """Supplier with given ID was not found."""

    code: str = "SUPPLIER_NOT_FOUND"

    def __init__(self, supplier_id: str):
        self.supplier_id = str(supplier_id)
        super().__init__(f"Supplier not found: {supplier_id}")


class ProductNotFoundError(NotFoundError):
    """Product with given ID was not found or is inactive."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = str(product_id)
        super().__init__(f"Product not found: {product_id}")


class ReportNotFoundError(NotFoundError):
    """Report with given ID was not found."""

    code: str = "REPORT_NOT_FOUND"

    def __init__(self, report_id: str):
        self.report_id = str(report_id)
        super().__init__(f"Report not found: {report_id}")


# Validation exceptions


class ValidationError(WeighingKernelError):
    """Base exception for malformed input."""

    code: str = "VALIDATION_ERROR"
    kind: ErrorKind = ErrorKind.VALIDATION


class InvalidWeightError(ValidationError):
    """Weight is missing, negative, or zero where a positive value is needed."""

    code: str = "INVALID_WEIGHT"

    def __init__(self, field: str, value: Decimal | str | None):
        self.field = field
        self.value = str(value)
        super().__init__(f"Invalid {field}: {value} (must be a positive number)")


class InvalidUnitError(ValidationError):
    """Weight unit is not recognised."""

    code: str = "INVALID_UNIT"

    def __init__(self, unit: object):
        self.unit = str(unit)
        super().__init__(f"Unsupported weight unit: {unit}")


class InvalidEffectiveWeightError(ValidationError):
    """Deductions reduced the effective weight to zero or below."""

    code: str = "INVALID_EFFECTIVE_WEIGHT"

    def __init__(self, raw_quintals: Decimal, effective_quintals: Decimal):
        self.raw_quintals = raw_quintals
        self.effective_quintals = effective_quintals
        super().__init__(
            f"Effective weight {effective_quintals} qq is not positive "
            f"after deductions (raw {raw_quintals} qq)"
        )


class InvalidTareWeightError(ValidationError):
    """Tare weight must be strictly positive."""

    code: str = "INVALID_TARE_WEIGHT"

    def __init__(self, tare_weight: Decimal | str | None):
        self.tare_weight = str(tare_weight)
        super().__init__(
            f"Tare weight is required and must be greater than 0, got {tare_weight}"
        )


class InvalidInputError(ValidationError):
    """Boundary payload field is missing or malformed."""

    code: str = "INVALID_INPUT"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid input for '{field}': {reason}")


# Conflict exceptions


class ConflictError(WeighingKernelError):
    """Base exception for operations that conflict with current state."""

    code: str = "CONFLICT"
    kind: ErrorKind = ErrorKind.CONFLICT


class InvalidStateError(ConflictError):
    """Operation is not permitted in the report's lifecycle state."""

    code: str = "INVALID_STATE"

    def __init__(self, report_id: str, state: str, operation: str):
        self.report_id = str(report_id)
        self.state = state
        self.operation = operation
        super().__init__(
            f"Cannot {operation} report {report_id} in state {state}"
        )


class AlreadyCancelledError(ConflictError):
    """Report is cancelled; no further lifecycle operation is allowed."""

    code: str = "ALREADY_CANCELLED"

    def __init__(self, report_id: str):
        self.report_id = str(report_id)
        super().__init__(f"Report {report_id} is already cancelled")


class TareExceedsGrossError(ConflictError):
    """Tare weight is greater than or equal to the gross weight."""

    code: str = "TARE_EXCEEDS_GROSS"

    def __init__(self, tare_weight: Decimal, gross_weight: Decimal):
        self.tare_weight = tare_weight
        self.gross_weight = gross_weight
        super().__init__(
            f"Tare weight {tare_weight} must be less than gross weight {gross_weight}"
        )


class CapacityExceededError(ConflictError):
    """Sum of item weights exceeds the report's capacity bound."""

    code: str = "CAPACITY_EXCEEDED"

    def __init__(
        self,
        used_quintals: Decimal,
        incoming_quintals: Decimal,
        capacity_quintals: Decimal,
    ):
        self.used_quintals = used_quintals
        self.incoming_quintals = incoming_quintals
        self.capacity_quintals = capacity_quintals
        self.overflow = used_quintals + incoming_quintals - capacity_quintals
        super().__init__(
            f"Item weight {used_quintals + incoming_quintals} qq exceeds "
            f"capacity {capacity_quintals} qq"
        )


# Concurrency exceptions


class ConcurrencyError(WeighingKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"
    kind: ErrorKind = ErrorKind.CONCURRENCY


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Authorization exceptions


class AuthorizationError(WeighingKernelError):
    """Base exception for authorization failures at the boundary."""

    code: str = "AUTHORIZATION_ERROR"
    kind: ErrorKind = ErrorKind.FORBIDDEN


class PermissionDeniedError(AuthorizationError):
    """Caller does not hold the role required for the operation."""

    code: str = "PERMISSION_DENIED"

    def __init__(self, operation: str, required_role: str, reason: str):
        self.operation = operation
        self.required_role = required_role
        self.reason = reason
        super().__init__(f"Permission denied for {operation}: {reason}")
