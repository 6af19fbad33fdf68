"""Configuration: settings, logging setup, transaction provider.

Call :func:`bootstrap` once at application startup.
"""

from __future__ import annotations

from commandkit.config.logging import configure_logging
from commandkit.config.settings import CommandkitSettings
from commandkit.core.telemetry import disable_telemetry, enable_telemetry


def bootstrap(settings: CommandkitSettings | None = None) -> CommandkitSettings:
    """Apply *settings* (default: read from the environment).

    Configures logging and switches telemetry on or off. Returns the
    settings that were applied.
    """
    if settings is None:
        settings = CommandkitSettings.from_env()
    configure_logging(verbose=settings.verbose, log_json=settings.log_json)
    if settings.telemetry:
        enable_telemetry()
    else:
        disable_telemetry()
    return settings


__all__ = ["CommandkitSettings", "bootstrap", "configure_logging"]
