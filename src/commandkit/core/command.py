"""Command: validate-then-execute pipeline with a single owned Outcome.

INVARIANT: a command instance runs at most once.
INVARIANT: expected failures (schema violations, explicit halts) end in a
failed Outcome and never raise; unexpected exceptions are recorded under
``runtime``/``unknown`` and then re-raised.

Pipeline order, stopping at the first structural check that records an
error (each check itself reports every violation it finds):

1. ``validate_supported_inputs``: unknown keys  -> ``unsupported``
2. ``validate_blank_inputs``    : blank values  -> ``blank``
3. ``validate_required_inputs`` : absent keys   -> ``missing``
4. ``validate_enums``           : out of domain -> ``invalid``

Defaults are then always applied, whatever the checks found. The
``validate`` hook runs only if no errors exist, and ``execute`` only if
``validate`` added none.
"""

from __future__ import annotations

import copy
import inspect
import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, ClassVar, Self

from structlog.contextvars import bound_contextvars

from commandkit.config.transaction import TransactionProvider, get_transaction_provider
from commandkit.core.inputs import GuardedInputs
from commandkit.core.outcome import ErrorEntry, Outcome
from commandkit.core.telemetry import Span, command_span, trace_span
from commandkit.domain.blank import is_blank
from commandkit.domain.schema import parse_schema
from commandkit.domain.types import ErrorType, InputType
from commandkit.exceptions import (
    AsyncHookError,
    CommandAlreadyRunError,
    CommandFailedError,
    CommandNotRunError,
    CommandStateError,
    CommandWithNonStaticSchemaError,
    SchemaDefinitionError,
)

logger = logging.getLogger(__name__)


class _HaltExecution(Exception):
    """An error was recorded; stop running this command."""


class Command:
    """Base class for all commands.

    Subclasses declare ``schema`` on the class and implement ``execute``.
    ``validate`` is an optional hook for checks the schema cannot express.

    Usage::

        class Greet(Command):
            schema = {"name": {"type": "string", "required": True}}

            def execute(self) -> str:
                return f"Hello {self.inputs.name}"

        outcome = Greet.invoke({"name": "Ada"})
        assert outcome.success and outcome.result == "Hello Ada"
    """

    schema: ClassVar[Mapping[str, Any]] = MappingProxyType({})
    description: ClassVar[str] = ""
    use_transactional_execute: ClassVar[bool] = False

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "schema" not in cls.__dict__:
            return
        raw = cls.__dict__["schema"]
        if not isinstance(raw, Mapping) and hasattr(type(raw), "__get__"):
            # Computed per instance; rejected when the command runs.
            return
        if raw is None:
            raise SchemaDefinitionError(f"{cls.__name__}.schema must be a mapping, got None")
        cls.schema = parse_schema(raw)

    def __init__(
        self,
        inputs: Mapping[str, Any] | None = None,
        *,
        transaction_provider: TransactionProvider | None = None,
    ) -> None:
        self._raw_inputs: Mapping[str, Any] = MappingProxyType(GuardedInputs(inputs).to_dict())
        self._inputs = GuardedInputs(self._raw_inputs)
        self._transaction_provider = transaction_provider
        self._outcome = Outcome()
        self._started = False
        self._completed = False
        self._running = False
        self._run_lock = threading.Lock()

    def __repr__(self) -> str:
        if self._completed:
            state = "completed"
        elif self._started:
            state = "running"
        else:
            state = "not started"
        return f"<{self.name} {state}>"

    # --- class-level entry points -------------------------------------------

    @classmethod
    def create(cls, inputs: Mapping[str, Any] | None = None, **kwargs: Any) -> Self:
        """Build an instance without running it."""
        return cls(inputs, **kwargs)

    @classmethod
    def invoke(cls, inputs: Mapping[str, Any] | None = None, **kwargs: Any) -> Outcome:
        """Run a new instance with *inputs* and return its Outcome."""
        return cls.create(inputs, **kwargs).run()

    @classmethod
    def invoke_and_assert_success(
        cls, inputs: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> Any:
        """Run a new instance and return its result, raising on failure."""
        return cls.create(inputs, **kwargs).run_and_assert_success()

    @classmethod
    async def invoke_async(cls, inputs: Mapping[str, Any] | None = None, **kwargs: Any) -> Outcome:
        return await cls.create(inputs, **kwargs).run_async()

    @classmethod
    async def invoke_and_assert_success_async(
        cls, inputs: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> Any:
        return await cls.create(inputs, **kwargs).run_and_assert_success_async()

    # --- hooks -------------------------------------------------------------

    def validate(self) -> Any:
        """Cross-field or external checks, run after the schema checks pass.

        May call :meth:`add_input_error` (keeps going) or one of the halting
        helpers. May be ``async def`` when the command is run asynchronously.
        """

    def execute(self) -> Any:
        """Domain logic. The return value becomes the outcome's result."""
        raise NotImplementedError(f"{self.name} must implement execute()")

    # --- state -------------------------------------------------------------

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def inputs(self) -> GuardedInputs:
        """Working copy of the inputs, including applied defaults."""
        return self._inputs

    @property
    def raw_inputs(self) -> Mapping[str, Any]:
        """Inputs exactly as supplied by the caller (read-only)."""
        return self._raw_inputs

    @property
    def started(self) -> bool:
        return self._started

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def has_errors(self) -> bool:
        """Whether errors were recorded so far (readable during a run)."""
        return self._outcome.has_errors

    def _require_completed(self, what: str) -> Outcome:
        if not self._completed:
            raise CommandNotRunError(f"Cannot access the {what} of a command that has not been run")
        return self._outcome

    @property
    def outcome(self) -> Outcome:
        return self._require_completed("outcome")

    @property
    def success(self) -> bool:
        return self._require_completed("success status").success

    @property
    def result(self) -> Any:
        return self._require_completed("result").result

    @property
    def errors(self) -> Mapping[str, tuple[ErrorEntry, ...]]:
        return self._require_completed("errors").errors

    @property
    def runtime_errors(self) -> tuple[ErrorEntry, ...]:
        return self._require_completed("runtime errors").runtime_errors

    @property
    def input_errors(self) -> dict[str, tuple[ErrorEntry, ...]]:
        return self._require_completed("input errors").input_errors

    # --- error recording ---------------------------------------------------

    def _require_running(self) -> None:
        if not self._running:
            raise CommandStateError(f"{self.name} can only record errors while it is running")

    def add_input_error(self, category: str, key: str, message: str) -> None:
        """Record an error under *category* and keep going."""
        self._require_running()
        self._outcome.add_input_error(category, key, message)

    def add_input_error_and_halt(self, category: str, key: str, message: str) -> None:
        """Record an error under *category* and stop the command."""
        self.add_input_error(category, key, message)
        raise _HaltExecution

    def add_runtime_error(self, key: str, message: str) -> None:
        """Record a ``runtime`` error and stop the command."""
        self._require_running()
        self._outcome.add_runtime_error(key, message)
        raise _HaltExecution

    # --- structural validation ---------------------------------------------

    def validate_supported_inputs(self) -> None:
        for input_name in self._raw_inputs:
            if input_name not in self.schema:
                self.add_input_error(
                    input_name, ErrorType.UNSUPPORTED, f"{input_name} is not a supported input"
                )

    def validate_blank_inputs(self) -> None:
        for input_name, value in self._raw_inputs.items():
            descriptor = self.schema.get(input_name)
            if descriptor is None or descriptor.allow_blank:
                continue
            if is_blank(value):
                self.add_input_error(
                    input_name, ErrorType.BLANK, f"{input_name} is not allowed to be blank"
                )

    def validate_required_inputs(self) -> None:
        for input_name, descriptor in self.schema.items():
            if descriptor.required and input_name not in self._raw_inputs:
                self.add_input_error(input_name, ErrorType.MISSING, f"{input_name} is missing")

    def validate_enums(self) -> None:
        for input_name, descriptor in self.schema.items():
            if descriptor.type != InputType.ENUM or input_name not in self._raw_inputs:
                continue
            value = self._raw_inputs[input_name]
            if not _is_one_of(value, descriptor.one_of):
                allowed = ", ".join(str(choice) for choice in descriptor.one_of)
                self.add_input_error(
                    input_name,
                    ErrorType.INVALID,
                    f"{value} received but must be one of {allowed}",
                )

    def apply_default_inputs(self) -> None:
        """Fill every absent schema key with its default (UNDEFINED if none).

        Never replaces a key that is already present, whatever its value.
        """
        for input_name, descriptor in self.schema.items():
            if input_name not in self._inputs:
                self._inputs[input_name] = copy.deepcopy(descriptor.default)

    def validate_inputs(self) -> bool:
        """Run the structural checks, then apply defaults.

        Returns True when no errors were recorded.
        """
        for check in (
            self.validate_supported_inputs,
            self.validate_blank_inputs,
            self.validate_required_inputs,
            self.validate_enums,
        ):
            check()
            if self._outcome.has_errors:
                break
        self.apply_default_inputs()
        if self._outcome.has_errors:
            logger.debug(
                "Input validation failed for %s: %s",
                self.name,
                sorted(self._outcome.symbolic_errors),
            )
            return False
        return True

    # --- run lifecycle -----------------------------------------------------

    def _check_static_schema(self) -> None:
        if "schema" in vars(self):
            raise CommandWithNonStaticSchemaError(
                f"{self.name} sets schema on the instance; declare it on the class"
            )
        if not isinstance(inspect.getattr_static(type(self), "schema"), Mapping):
            raise CommandWithNonStaticSchemaError(
                f"{self.name}.schema must be a class-level mapping, not a computed attribute"
            )

    def _resolve_transaction_provider(self) -> TransactionProvider:
        if self._transaction_provider is not None:
            return self._transaction_provider
        return get_transaction_provider()

    def _begin(self) -> None:
        # Check-and-set under the lock so concurrent runs of one instance fail fast.
        with self._run_lock:
            if self._started:
                raise CommandAlreadyRunError("Cannot run a command twice")
            self._check_static_schema()
            if self.use_transactional_execute:
                self._resolve_transaction_provider()
            self._started = True
            self._running = True
        logger.debug("Running command %s", self.name)

    def _finish(self, span: Span | None) -> None:
        self._running = False
        self._completed = True
        if span is not None:
            span.annotate("ok", self._outcome.success)
        logger.debug("Command %s completed (success=%s)", self.name, self._outcome.success)

    def _record_unexpected(self, exc: Exception) -> None:
        self._outcome.add_runtime_error(ErrorType.UNKNOWN, f"{type(exc).__name__}: {exc}")
        logger.debug("Unexpected error in command %s", self.name, exc_info=True)

    def _attach_telemetry(self, span: Span | None) -> None:
        if span is not None and span.is_root:
            self._outcome.meta["telemetry"] = span.to_dict()

    def _ensure_sync(self, value: Any, hook: str) -> Any:
        if inspect.isawaitable(value):
            if inspect.iscoroutine(value):
                value.close()
            raise AsyncHookError(f"{self.name}.{hook}() returned an awaitable; use run_async()")
        return value

    def run(self) -> Outcome:
        """Run the pipeline synchronously and return the Outcome.

        Raises:
            CommandAlreadyRunError: If the command already started.
            CommandWithNonStaticSchemaError: If the schema is not class-level.
            TransactionNotConfiguredError: If transactional execute has no provider.
            AsyncHookError: If ``validate`` or ``execute`` is a coroutine function.
        """
        for hook in ("validate", "execute"):
            if inspect.iscoroutinefunction(getattr(self, hook)):
                raise AsyncHookError(f"{self.name}.{hook}() is async; use run_async()")
        self._begin()
        with bound_contextvars(command=self.name), command_span(self.name) as span:
            try:
                self._run_pipeline()
            except _HaltExecution:
                logger.debug("Command %s halted", self.name)
            except Exception as exc:
                self._record_unexpected(exc)
                raise
            finally:
                self._finish(span)
        self._attach_telemetry(span)
        return self._outcome

    def _run_pipeline(self) -> None:
        result = None
        with trace_span("validate_inputs"):
            valid = self.validate_inputs()
        if valid:
            with trace_span("validate"):
                self._ensure_sync(self.validate(), "validate")
        if not self._outcome.has_errors:
            with trace_span("execute"):
                if self.use_transactional_execute:
                    provider = self._resolve_transaction_provider()
                    result = self._ensure_sync(provider(self._execute_unit), "execute")
                else:
                    result = self._ensure_sync(self.execute(), "execute")
        if not self._outcome.has_errors:
            self._outcome.set_result(result)

    def _execute_unit(self) -> Any:
        # Errors recorded without halting still abort the transaction.
        result = self._ensure_sync(self.execute(), "execute")
        if self._outcome.has_errors:
            raise _HaltExecution
        return result

    async def run_async(self) -> Outcome:
        """Run the pipeline, awaiting ``validate``/``execute`` when they are async.

        A transaction provider used here must return an awaitable that awaits
        the unit of work inside its boundary.
        """
        self._begin()
        with bound_contextvars(command=self.name), command_span(self.name) as span:
            try:
                await self._run_pipeline_async()
            except _HaltExecution:
                logger.debug("Command %s halted", self.name)
            except Exception as exc:
                self._record_unexpected(exc)
                raise
            finally:
                self._finish(span)
        self._attach_telemetry(span)
        return self._outcome

    async def _run_pipeline_async(self) -> None:
        result = None
        with trace_span("validate_inputs"):
            valid = self.validate_inputs()
        if valid:
            with trace_span("validate"):
                await _resolve(self.validate())
        if not self._outcome.has_errors:
            with trace_span("execute"):
                if self.use_transactional_execute:
                    provider = self._resolve_transaction_provider()
                    result = await _resolve(provider(self._execute_unit_async))
                else:
                    result = await _resolve(self.execute())
        if not self._outcome.has_errors:
            self._outcome.set_result(result)

    async def _execute_unit_async(self) -> Any:
        result = await _resolve(self.execute())
        if self._outcome.has_errors:
            raise _HaltExecution
        return result

    def run_and_assert_success(self) -> Any:
        """Run and return the bare result.

        Raises:
            CommandFailedError: With the outcome's error sentence as message.
        """
        outcome = self.run()
        if not outcome.success:
            raise CommandFailedError(outcome)
        return outcome.result

    async def run_and_assert_success_async(self) -> Any:
        outcome = await self.run_async()
        if not outcome.success:
            raise CommandFailedError(outcome)
        return outcome.result

    # --- sub-commands ------------------------------------------------------

    def _adopt(self, command_cls: type[Command], outcome: Outcome) -> Outcome:
        if not outcome.success:
            logger.debug("Sub-command %s of %s failed", command_cls.__name__, self.name)
            self._outcome.merge_errors(outcome, namespace=command_cls.__name__)
        return outcome

    def _create_sub_command(
        self, command_cls: type[Command], inputs: Mapping[str, Any] | None
    ) -> Command:
        self._require_running()
        return command_cls.create(inputs, transaction_provider=self._transaction_provider)

    def run_sub_command(
        self, command_cls: type[Command], inputs: Mapping[str, Any] | None = None
    ) -> Outcome:
        """Run a child command and return its Outcome.

        On failure the child's errors are copied into this command with keys
        namespaced as ``"<ChildName>:<key>"``. This command keeps running;
        check ``has_errors`` or the returned outcome to decide what to do.
        """
        outcome = self._create_sub_command(command_cls, inputs).run()
        return self._adopt(command_cls, outcome)

    def run_sub_command_and_assert_success(
        self, command_cls: type[Command], inputs: Mapping[str, Any] | None = None
    ) -> Any:
        """Run a child command and return its result; halt this command on failure."""
        outcome = self.run_sub_command(command_cls, inputs)
        if not outcome.success:
            raise _HaltExecution
        return outcome.result

    async def run_sub_command_async(
        self, command_cls: type[Command], inputs: Mapping[str, Any] | None = None
    ) -> Outcome:
        outcome = await self._create_sub_command(command_cls, inputs).run_async()
        return self._adopt(command_cls, outcome)

    async def run_sub_command_and_assert_success_async(
        self, command_cls: type[Command], inputs: Mapping[str, Any] | None = None
    ) -> Any:
        outcome = await self.run_sub_command_async(command_cls, inputs)
        if not outcome.success:
            raise _HaltExecution
        return outcome.result


async def _resolve(value: Any) -> Any:
    while inspect.isawaitable(value):
        value = await value
    return value


def _is_one_of(value: Any, choices: tuple[Any, ...]) -> bool:
    # bool is an int subclass: True must not match 1, nor False match 0.
    return any(
        value == choice and isinstance(value, bool) == isinstance(choice, bool)
        for choice in choices
    )
