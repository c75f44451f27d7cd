"""
Error translation for the service boundary.

Maps the kernel's error kinds to transport statuses and renders a stable
body ``{"code", "message", "details"}``.  Only ``WeighingKernelError``
subclasses are translated; anything else is a defect and propagates.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from weighing_kernel.exceptions import ErrorKind, WeighingKernelError

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.CONCURRENCY: 409,
    ErrorKind.FORBIDDEN: 403,
}


def _detail_value(value: Any) -> Any:
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


def error_details(exc: WeighingKernelError) -> dict[str, Any]:
    """Structured attributes the exception carries, JSON-ready."""
    return {
        key: _detail_value(value)
        for key, value in sorted(vars(exc).items())
        if not key.startswith("_")
    }


def to_error_response(exc: WeighingKernelError) -> tuple[int, dict[str, Any]]:
    """Translate a kernel error into ``(status, body)``."""
    status = STATUS_BY_KIND.get(exc.kind, 500)
    return status, {
        "code": exc.code,
        "message": str(exc),
        "details": error_details(exc),
    }
