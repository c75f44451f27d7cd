"""
weighing_services.rbac_authority -- Role checks at the service boundary.

Responsibility:
    Decide whether a caller holding a set of roles may perform a gateway
    operation.  The lifecycle engine itself is caller-agnostic; this module
    is the only place roles are evaluated.

Architecture position:
    Services layer.  Called by ReportGateway before any parsing or kernel
    call, so a denied request never touches the database.

Invariants:
    - ADMIN implies every role; SUPERVISOR implies OPERATOR.
    - An operation missing from OPERATION_ROLES is denied.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from weighing_kernel.exceptions import PermissionDeniedError


class Role(str, Enum):
    ADMIN = "ADMIN"
    SUPERVISOR = "SUPERVISOR"
    OPERATOR = "OPERATOR"


# role -> roles it implies (besides itself)
IMPLIED_ROLES: dict[Role, frozenset[Role]] = {
    Role.ADMIN: frozenset({Role.SUPERVISOR, Role.OPERATOR}),
    Role.SUPERVISOR: frozenset({Role.OPERATOR}),
    Role.OPERATOR: frozenset(),
}

# gateway operation -> role required
OPERATION_ROLES: dict[str, Role] = {
    "create": Role.OPERATOR,
    "add_item": Role.OPERATOR,
    "finish": Role.OPERATOR,
    "get": Role.OPERATOR,
    "list": Role.OPERATOR,
    "get_config": Role.OPERATOR,
    "cancel": Role.ADMIN,
    "delete": Role.ADMIN,
    "update_config": Role.ADMIN,
}


def _parse_role(value: Role | str) -> Role | None:
    if isinstance(value, Role):
        return value
    # Accept the "ROLE_" prefix identity providers commonly issue
    name = str(value).strip().upper().removeprefix("ROLE_")
    try:
        return Role(name)
    except ValueError:
        return None


def effective_roles(caller_roles: Iterable[Role | str]) -> frozenset[Role]:
    """Expand the caller's roles with every role they imply.  Unknown names are ignored."""
    roles: set[Role] = set()
    for value in caller_roles:
        role = _parse_role(value)
        if role is not None:
            roles.add(role)
            roles |= IMPLIED_ROLES[role]
    return frozenset(roles)


def authorize(
    caller_roles: Iterable[Role | str],
    required_role: Role | str,
) -> tuple[bool, str]:
    """Check whether the caller holds ``required_role`` (directly or implied).

    Returns:
        (allowed, reason). reason is empty when allowed, or a short message
        when denied.
    """
    required = _parse_role(required_role)
    if required is None:
        return (False, f"RBAC: unknown required role '{required_role}'")

    roles = effective_roles(caller_roles)
    if not roles:
        return (False, "RBAC: caller has no recognised roles")
    if required not in roles:
        return (False, f"RBAC: role '{required.value}' not granted to caller")
    return (True, "")


def require_role(operation: str, caller_roles: Iterable[Role | str]) -> None:
    """Raise PermissionDeniedError unless the caller may perform ``operation``."""
    required = OPERATION_ROLES.get(operation)
    if required is None:
        raise PermissionDeniedError(operation, "", f"RBAC: unknown operation '{operation}'")
    allowed, reason = authorize(caller_roles, required)
    if not allowed:
        raise PermissionDeniedError(operation, required.value, reason)
