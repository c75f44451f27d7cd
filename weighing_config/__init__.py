"""
weighing_config -- single public entrypoint for facility configuration.

Responsibility:
    Provides the runtime way to obtain facility settings through
    ``get_facility_settings()``.  Returns a frozen ``FacilitySettings``;
    ``bridges.to_lifecycle_policy`` translates it for the kernel.

Architecture position:
    Configuration -- sits above ``weighing_kernel`` and below
    ``weighing_services``.  The kernel MUST NEVER import from
    ``weighing_config``.

Failure modes:
    - ``FileNotFoundError`` -- the requested document does not exist.
    - ``KeyError`` / ``ValueError`` -- schema or range validation failures.

Every successful load emits a ``facility_settings_loaded`` log entry with
the source path and checksum.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from weighing_config.loader import compute_checksum, load_settings, parse_settings
from weighing_config.schema import FacilitySettings

_logger = logging.getLogger("weighing_kernel.config")

CONFIG_PATH_ENV = "WEIGHING_CONFIG_PATH"

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "facility.yaml"


def get_facility_settings(path: Path | str | None = None) -> FacilitySettings:
    """Load facility settings.

    Resolution order: the explicit ``path``; the file named by the
    ``WEIGHING_CONFIG_PATH`` environment variable; the packaged default.
    Settings are not cached; callers hold the returned object.
    """
    if path is None:
        path = os.environ.get(CONFIG_PATH_ENV) or _DEFAULT_CONFIG_PATH
    settings = load_settings(Path(path))

    _logger.info(
        "facility_settings_loaded",
        extra={
            "source": settings.source,
            "checksum": settings.checksum,
            "weight_unit": settings.facility.weight_unit,
            "moisture_rate": settings.facility.moisture_rate,
            "default_extra_percentage": settings.facility.default_extra_percentage,
            "max_attempts": settings.concurrency.max_attempts,
        },
    )
    return settings


__all__ = [
    "CONFIG_PATH_ENV",
    "FacilitySettings",
    "compute_checksum",
    "get_facility_settings",
    "parse_settings",
]
