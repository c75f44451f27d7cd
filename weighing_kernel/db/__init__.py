"""Database layer - engine, base classes and precision helpers."""

from weighing_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from weighing_kernel.db.engine import create_tables, get_engine, get_session
from weighing_kernel.db.types import round_money, round_weight, to_decimal

__all__ = [
    "get_engine",
    "get_session",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "round_money",
    "round_weight",
    "to_decimal",
]
