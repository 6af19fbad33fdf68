"""Outcome and OutcomeReport: the error ledger every command owns.

INVARIANT: errors are only ever appended, never rewritten or removed.
INVARIANT: an outcome is successful iff it holds no errors; a result is
stored at most once and only while no errors exist.

The Outcome knows nothing about schemas or execution order. Commands
record into it; callers read the derived views once the command has
completed.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, NamedTuple

from pydantic import BaseModel, Field

from commandkit.domain.types import RUNTIME_CATEGORY, ErrorType
from commandkit.exceptions import OutcomeStateError


class ErrorEntry(NamedTuple):
    """One recorded error: a symbolic key and its human-readable message."""

    key: str
    message: str


class ReportedError(BaseModel):
    """Serialisable form of an :class:`ErrorEntry`."""

    model_config = {"frozen": True}

    key: str
    message: str


class OutcomeReport(BaseModel):
    """Frozen, JSON-ready snapshot of an outcome.

    Attributes:
        ok: Whether the command succeeded.
        op: Name of the command that produced the outcome.
        result: The command's result on success, else None.
        errors: Recorded errors grouped by category.
        meta: Optional metadata (telemetry, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    result: Any = None
    errors: dict[str, list[ReportedError]] = Field(default_factory=dict)
    meta: dict[str, Any] | None = None


class Outcome:
    """Append-only error ledger plus a single result slot."""

    def __init__(self) -> None:
        self._errors: dict[str, list[ErrorEntry]] = {}
        self._result: Any = None
        self._has_result = False
        self.meta: dict[str, Any] = {}

    def __repr__(self) -> str:
        state = "success" if self.success else f"errors={self.symbolic_errors!r}"
        return f"<Outcome {state}>"

    # --- recording ---------------------------------------------------------

    def add_input_error(self, category: str, key: str, message: str) -> None:
        """Append ``(key, message)`` under *category*, creating it if needed."""
        self._errors.setdefault(str(category), []).append(ErrorEntry(str(key), str(message)))

    def add_runtime_error(self, key: str, message: str) -> None:
        """Append an error under the reserved ``runtime`` category."""
        self.add_input_error(RUNTIME_CATEGORY, key, message)

    def merge_errors(self, other: Outcome, *, namespace: str | None = None) -> None:
        """Append every error of *other*, keeping categories.

        When *namespace* is given each key becomes ``"<namespace>:<key>"``.
        Messages are copied verbatim.
        """
        for category, entries in other.errors.items():
            for entry in entries:
                key = f"{namespace}:{entry.key}" if namespace else entry.key
                self.add_input_error(category, key, entry.message)

    def set_result(self, value: Any) -> None:
        """Store the successful result.

        Raises:
            OutcomeStateError: If errors exist or a result was already stored.
        """
        if self.has_errors:
            raise OutcomeStateError("Cannot set a result on an outcome with errors")
        if self._has_result:
            raise OutcomeStateError("Outcome result has already been set")
        self._result = value
        self._has_result = True

    # --- derived views -----------------------------------------------------

    @property
    def result(self) -> Any:
        return self._result

    @property
    def has_result(self) -> bool:
        return self._has_result

    @property
    def errors(self) -> Mapping[str, tuple[ErrorEntry, ...]]:
        """Read-only view: category -> entries in insertion order."""
        return MappingProxyType({cat: tuple(entries) for cat, entries in self._errors.items()})

    @property
    def has_errors(self) -> bool:
        return bool(self._errors)

    @property
    def success(self) -> bool:
        return not self._errors

    @property
    def runtime_errors(self) -> tuple[ErrorEntry, ...]:
        return tuple(self._errors.get(RUNTIME_CATEGORY, ()))

    @property
    def input_errors(self) -> dict[str, tuple[ErrorEntry, ...]]:
        return {
            cat: tuple(entries) for cat, entries in self._errors.items() if cat != RUNTIME_CATEGORY
        }

    @property
    def symbolic_errors(self) -> dict[str, list[str]]:
        return {cat: [e.key for e in entries] for cat, entries in self._errors.items()}

    @property
    def english_errors(self) -> dict[str, list[str]]:
        return {cat: [e.message for e in entries] for cat, entries in self._errors.items()}

    @property
    def error_sentence(self) -> str:
        """All messages joined with ``", and "`` and closed with a period.

        Empty string when there are no errors.
        """
        messages = [message for entries in self.english_errors.values() for message in entries]
        if not messages:
            return ""
        return ", and ".join(messages) + "."

    @property
    def not_found_error(self) -> bool:
        """True iff any recorded key equals ``not_found``."""
        return any(
            entry.key == ErrorType.NOT_FOUND for entries in self._errors.values() for entry in entries
        )

    def to_report(self, op: str) -> OutcomeReport:
        """Snapshot this outcome as a frozen :class:`OutcomeReport`."""
        return OutcomeReport(
            ok=self.success,
            op=op,
            result=self._result if self.success else None,
            errors={
                cat: [ReportedError(key=e.key, message=e.message) for e in entries]
                for cat, entries in self._errors.items()
            },
            meta=dict(self.meta) or None,
        )
