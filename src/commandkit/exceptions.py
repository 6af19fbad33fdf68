"""Exceptions raised for programming and configuration mistakes.

Expected failures (bad input, business rule violations) never raise:
they are recorded in an Outcome. Everything here signals misuse of the
library and is meant to propagate to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from commandkit.core.outcome import Outcome


class CommandkitError(Exception):
    """Base class for all commandkit errors."""


class SchemaDefinitionError(CommandkitError):
    """A command class declared a schema that cannot be parsed."""


class CommandWithNonStaticSchemaError(CommandkitError):
    """A schema was attached to a command instance instead of its class."""


class CommandAlreadyRunError(CommandkitError):
    """``run`` was invoked on a command instance that already started."""


class CommandNotRunError(CommandkitError):
    """The outcome was read before the command completed."""


class CommandStateError(CommandkitError):
    """An error-recording helper was used outside of a run."""


class OutcomeStateError(CommandkitError):
    """A result was stored twice, or stored after errors were recorded."""


class TransactionNotConfiguredError(CommandkitError):
    """Transactional execute was requested without a transaction provider."""


class AsyncHookError(CommandkitError, TypeError):
    """A coroutine hook was used with the synchronous pipeline."""


class MissingInputError(CommandkitError, KeyError, AttributeError):
    """An input that was never supplied (nor defaulted) was read."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Input {self.name!r} was never set"


class CommandFailedError(CommandkitError):
    """Raised by the assert-success entry points when a command fails.

    ``str(exc)`` is exactly the outcome's error sentence.
    """

    def __init__(self, outcome: Outcome) -> None:
        super().__init__(outcome.error_sentence)
        self.outcome = outcome
