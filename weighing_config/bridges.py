"""
Config -> Kernel bridges.

Converts loaded facility settings into the kernel's ``LifecyclePolicy``.
Lives here because the kernel must never import ``weighing_config``.

Usage:
    from weighing_config import get_facility_settings
    from weighing_config.bridges import to_lifecycle_policy

    policy = to_lifecycle_policy(get_facility_settings())
    lifecycle = ReportLifecycleService(get_session_factory(), SystemClock(), policy)
"""

from __future__ import annotations

from weighing_config.schema import FacilitySettings
from weighing_kernel.domain.policy import LifecyclePolicy
from weighing_kernel.domain.units import ConversionTable


def to_conversion_table(settings: FacilitySettings) -> ConversionTable:
    conversion = settings.conversion
    return ConversionTable(
        pounds_per_quintal=conversion.pounds_per_quintal,
        kilograms_per_quintal=conversion.kilograms_per_quintal,
        quintals_per_ton=conversion.quintals_per_ton,
    )


def to_lifecycle_policy(settings: FacilitySettings) -> LifecyclePolicy:
    """Build the lifecycle engine's parameters from facility settings."""
    return LifecyclePolicy(
        conversion=to_conversion_table(settings),
        facility_unit=settings.facility.weight_unit,
        moisture_rate=settings.facility.moisture_rate,
        default_extra_percentage=settings.facility.default_extra_percentage,
        ticket_width=settings.tickets.width,
        ticket_sequence=settings.tickets.sequence_name,
        max_attempts=settings.concurrency.max_attempts,
    )
