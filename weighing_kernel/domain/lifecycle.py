"""
Report lifecycle state machine (``weighing_kernel.domain.lifecycle``).

Responsibility
--------------
Pure definition of the weighing-ticket states and the only transitions
between them.  The lifecycle service consults ``guard_operation`` before it
touches any data, so every operation fails the same way for the same state.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* PENDING is the only initial state.
* APPROVED may only move to CANCELLED.
* CANCELLED is absorbing: every lifecycle operation on it raises
  ``AlreadyCancelledError``.
"""

from __future__ import annotations

from enum import Enum

from weighing_kernel.exceptions import AlreadyCancelledError, InvalidStateError


class ReportState(str, Enum):
    """Weighing ticket lifecycle states."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    CANCELLED = "CANCELLED"


class ReportOperation(str, Enum):
    """Operations that read or change a report's lifecycle."""

    ADD_ITEM = "add_item"
    FINISH = "finish"
    CANCEL = "cancel"
    DELETE = "delete"


REPORT_TRANSITIONS: dict[ReportState, frozenset[ReportState]] = {
    ReportState.PENDING: frozenset({
        ReportState.APPROVED,
        ReportState.CANCELLED,
    }),
    ReportState.APPROVED: frozenset({
        ReportState.CANCELLED,
    }),
    ReportState.CANCELLED: frozenset(),
}

TERMINAL_REPORT_STATES: frozenset[ReportState] = frozenset({
    ReportState.APPROVED,
    ReportState.CANCELLED,
})

# States in which each operation is permitted.
ALLOWED_STATES: dict[ReportOperation, frozenset[ReportState]] = {
    ReportOperation.ADD_ITEM: frozenset({ReportState.PENDING}),
    ReportOperation.FINISH: frozenset({ReportState.PENDING}),
    ReportOperation.CANCEL: frozenset({ReportState.PENDING, ReportState.APPROVED}),
    ReportOperation.DELETE: frozenset({ReportState.PENDING, ReportState.CANCELLED}),
}


def can_transition(current: ReportState, target: ReportState) -> bool:
    """Return True iff ``current -> target`` is a valid transition."""
    return target in REPORT_TRANSITIONS[current]


def guard_operation(report_id: object, state: ReportState, operation: ReportOperation) -> None:
    """Raise if ``operation`` is not allowed for a report in ``state``.

    Raises:
        AlreadyCancelledError: The report is cancelled.
        InvalidStateError: Any other disallowed combination.
    """
    state = ReportState(state)
    if state is ReportState.CANCELLED and operation is not ReportOperation.DELETE:
        raise AlreadyCancelledError(str(report_id))
    if state not in ALLOWED_STATES[operation]:
        raise InvalidStateError(str(report_id), state.value, operation.value)
