"""
weighing_services -- boundary layer around the weighing kernel.

Parses raw requests, checks roles, translates kernel errors to transport
statuses and serializes reports.  Transport-agnostic: any HTTP or RPC
adapter calls ``ReportGateway`` and writes out the ``(status, body)`` pair.
"""

from weighing_services.errors import STATUS_BY_KIND, to_error_response
from weighing_services.rbac_authority import (
    OPERATION_ROLES,
    Role,
    authorize,
    require_role,
)
from weighing_services.report_gateway import (
    Caller,
    ReportGateway,
    serialize_page,
    serialize_report,
)

__all__ = [
    "Caller",
    "OPERATION_ROLES",
    "ReportGateway",
    "Role",
    "STATUS_BY_KIND",
    "authorize",
    "require_role",
    "serialize_page",
    "serialize_report",
    "to_error_response",
]
