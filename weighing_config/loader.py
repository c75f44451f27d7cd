"""
Facility settings loader (``weighing_config.loader``).

Responsibility
--------------
Reads the facility YAML document and parses it into the frozen
``weighing_config.schema`` dataclasses.  Runtime callers go through
``weighing_config.get_facility_settings()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; required sections have no silent defaults.
* Decimal values never pass through float: quoted strings are parsed
  directly and unquoted YAML numbers through their text form.
* ``compute_checksum`` is a deterministic SHA-256 of the parsed document.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``facility`` or ``conversion`` section  -> ``KeyError``.
* Out-of-range or non-numeric values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from weighing_config.schema import (
    ConcurrencySection,
    ConversionSection,
    FacilitySection,
    FacilitySettings,
    TicketSection,
)
from weighing_kernel.domain.units import parse_unit
from weighing_kernel.exceptions import InvalidUnitError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


def parse_decimal(value: Any, name: str) -> Decimal:
    """Parse a YAML scalar into a Decimal without going through float."""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{name}: expected a number, got {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{name}: expected a number, got {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"{name}: expected a finite number, got {value!r}")
    return result


def parse_positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name}: expected a positive integer, got {value!r}")
    return value


def parse_facility(data: dict[str, Any]) -> FacilitySection:
    """Parse the ``facility`` section."""
    try:
        unit = parse_unit(data.get("weight_unit", "pounds"))
    except InvalidUnitError as exc:
        raise ValueError(f"facility.weight_unit: {exc}") from None

    moisture = parse_decimal(data.get("moisture_rate", "0.05"), "facility.moisture_rate")
    if not (Decimal("0") <= moisture < Decimal("1")):
        raise ValueError(f"facility.moisture_rate must be in [0, 1), got {moisture}")

    extra = parse_decimal(
        data.get("default_extra_percentage", "0"), "facility.default_extra_percentage"
    )
    if not (Decimal("0") <= extra <= Decimal("100")):
        raise ValueError(
            f"facility.default_extra_percentage must be between 0 and 100, got {extra}"
        )

    return FacilitySection(
        weight_unit=unit,
        moisture_rate=moisture,
        default_extra_percentage=extra,
    )


def parse_conversion(data: dict[str, Any]) -> ConversionSection:
    """Parse the ``conversion`` section.  All three constants are required."""
    values = {}
    for key in ("pounds_per_quintal", "kilograms_per_quintal", "quintals_per_ton"):
        value = parse_decimal(data[key], f"conversion.{key}")
        if value <= 0:
            raise ValueError(f"conversion.{key} must be positive, got {value}")
        values[key] = value
    return ConversionSection(**values)


def parse_tickets(data: dict[str, Any]) -> TicketSection:
    name = data.get("sequence_name", "report_ticket")
    if not isinstance(name, str) or not name:
        raise ValueError(f"tickets.sequence_name: expected a non-empty string, got {name!r}")
    return TicketSection(
        width=parse_positive_int(data.get("width", 6), "tickets.width"),
        sequence_name=name,
    )


def parse_concurrency(data: dict[str, Any]) -> ConcurrencySection:
    return ConcurrencySection(
        max_attempts=parse_positive_int(
            data.get("max_attempts", 5), "concurrency.max_attempts"
        ),
    )


def parse_settings(data: dict[str, Any], source: str = "") -> FacilitySettings:
    """
    Parse a whole facility document.

    ``facility`` and ``conversion`` are required; ``tickets`` and
    ``concurrency`` fall back to their defaults when absent.

    Raises:
        KeyError: if a required section or key is missing.
        ValueError: if any value is malformed or out of range.
    """
    return FacilitySettings(
        facility=parse_facility(data["facility"] or {}),
        conversion=parse_conversion(data["conversion"] or {}),
        tickets=parse_tickets(data.get("tickets") or {}),
        concurrency=parse_concurrency(data.get("concurrency") or {}),
        checksum=compute_checksum(data),
        source=source,
    )


def load_settings(path: Path) -> FacilitySettings:
    """Load and parse the facility document at ``path``."""
    return parse_settings(load_yaml_file(path), source=str(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
