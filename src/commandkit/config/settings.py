"""CommandkitSettings: environment-driven runtime settings.

Priority chain (highest to lowest):
  1. Init kwargs: explicit overrides passed to :meth:`from_env`
  2. Env vars: ``COMMANDKIT_*`` prefix
  3. Code defaults
"""

from __future__ import annotations

from typing import Any

from pydantic_settings import BaseSettings


class CommandkitSettings(BaseSettings):
    """Process-level settings for logging and telemetry.

    Attributes:
        verbose: DEBUG logging for ``commandkit`` loggers.
        log_json: Emit JSON log lines instead of console output.
        telemetry: Collect span trees into ``Outcome.meta``.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "COMMANDKIT_",
    }

    verbose: bool = False
    log_json: bool = False
    telemetry: bool = False

    @classmethod
    def from_env(cls, **overrides: Any) -> CommandkitSettings:
        """Build settings from the environment, with *overrides* taking priority."""
        return cls(**overrides)
