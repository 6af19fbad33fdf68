"""Shared pytest fixtures and test helpers for commandkit tests."""

from __future__ import annotations

from collections.abc import Generator, Mapping
from typing import Any

import pytest

from commandkit.config.transaction import reset_transaction
from commandkit.core.command import Command
from commandkit.core.telemetry import _current_span, disable_telemetry


@pytest.fixture(autouse=True)
def _clean_process_state() -> Generator[None]:
    """Leave no transaction provider or telemetry switched on between tests."""
    yield
    reset_transaction()
    disable_telemetry()
    _current_span.set(None)


# ---------------------------------------------------------------------------
# Shared command fixtures
# ---------------------------------------------------------------------------


class EchoName(Command):
    """Required string input echoed back as the result."""

    schema = {"name": {"type": "string", "required": True}}

    def execute(self) -> str:
        return self.inputs.name


class SetStatus(Command):
    schema = {"status": {"type": "enum", "oneOf": ["open", "closed"]}}

    def execute(self) -> str:
        return self.inputs.status


@pytest.fixture
def echo_name() -> type[EchoName]:
    return EchoName


@pytest.fixture
def set_status() -> type[SetStatus]:
    return SetStatus


# ---------------------------------------------------------------------------
# Shared test helpers (used across test modules)
# ---------------------------------------------------------------------------


def run_ok(command_cls: type[Command], inputs: Mapping[str, Any] | None = None) -> Any:
    """Run *command_cls*, asserting success, and return its result."""
    outcome = command_cls.invoke(inputs)
    assert outcome.success, outcome.error_sentence
    return outcome.result


def first_key(outcome: Any, category: str) -> str:
    """Symbolic key of the first error recorded under *category*."""
    return outcome.errors[category][0].key
