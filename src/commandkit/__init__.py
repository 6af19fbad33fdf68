"""commandkit: validate-then-execute commands with a uniform Outcome.

Every command returns exactly one Outcome. Expected failures are
recorded, never raised.
"""

from commandkit.core.command import Command
from commandkit.core.inputs import GuardedInputs
from commandkit.core.outcome import ErrorEntry, Outcome, OutcomeReport, ReportedError
from commandkit.domain.blank import is_blank
from commandkit.domain.schema import (
    AnyInput,
    BooleanInput,
    DateInput,
    EnumInput,
    ListInput,
    MappingInput,
    NumberInput,
    StringInput,
    parse_schema,
)
from commandkit.domain.types import UNDEFINED, ErrorType, InputType
from commandkit.exceptions import (
    AsyncHookError,
    CommandAlreadyRunError,
    CommandFailedError,
    CommandkitError,
    CommandNotRunError,
    CommandStateError,
    CommandWithNonStaticSchemaError,
    MissingInputError,
    OutcomeStateError,
    SchemaDefinitionError,
    TransactionNotConfiguredError,
)

__all__ = [
    # ── Core ──────────────────────────────────────────────────
    "Command",
    "ErrorEntry",
    "GuardedInputs",
    "Outcome",
    "OutcomeReport",
    "ReportedError",
    # ── Schema ────────────────────────────────────────────────
    "AnyInput",
    "BooleanInput",
    "DateInput",
    "EnumInput",
    "ErrorType",
    "InputType",
    "ListInput",
    "MappingInput",
    "NumberInput",
    "StringInput",
    "UNDEFINED",
    "is_blank",
    "parse_schema",
    # ── Errors ────────────────────────────────────────────────
    "AsyncHookError",
    "CommandAlreadyRunError",
    "CommandFailedError",
    "CommandNotRunError",
    "CommandStateError",
    "CommandWithNonStaticSchemaError",
    "CommandkitError",
    "MissingInputError",
    "OutcomeStateError",
    "SchemaDefinitionError",
    "TransactionNotConfiguredError",
]
