"""Tests for the SQLAlchemy transaction provider."""

from __future__ import annotations

from collections.abc import Generator

import pytest

pytest.importorskip("sqlalchemy")

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, func, insert, select  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402

from commandkit.config.transaction import transaction_provider  # noqa: E402
from commandkit.core.command import Command  # noqa: E402
from commandkit.exceptions import TransactionNotConfiguredError  # noqa: E402
from commandkit.infrastructure.database import SqlAlchemyTransaction, current_connection  # noqa: E402

metadata = MetaData()
users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String, nullable=False),
)


class CreateUser(Command):
    use_transactional_execute = True
    schema = {"name": {"type": "string", "required": True}}

    def execute(self) -> int:
        conn = current_connection()
        exists = conn.execute(select(users.c.id).where(users.c.name == self.inputs.name)).first()
        row = conn.execute(insert(users).values(name=self.inputs.name))
        if exists is not None:
            self.add_input_error_and_halt("name", "invalid", f"{self.inputs.name} is taken")
        return row.inserted_primary_key[0]


class CreateTwoUsers(Command):
    use_transactional_execute = True
    schema = {"first": {"type": "string"}, "second": {"type": "string"}}

    def execute(self) -> list[int]:
        return [
            self.run_sub_command_and_assert_success(CreateUser, {"name": self.inputs.first}),
            self.run_sub_command_and_assert_success(CreateUser, {"name": self.inputs.second}),
        ]


@pytest.fixture
def engine() -> Generator[Engine]:
    eng = create_engine("sqlite://")
    metadata.create_all(eng)
    try:
        yield eng
    finally:
        eng.dispose()


def count_users(engine: Engine) -> int:
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(users)).scalar_one()


class TestSqlAlchemyTransaction:
    def test_commit_on_success(self, engine: Engine) -> None:
        with transaction_provider(SqlAlchemyTransaction(engine)):
            outcome = CreateUser.invoke({"name": "ada"})
        assert outcome.success is True
        assert outcome.result == 1
        assert count_users(engine) == 1

    def test_rollback_on_halt(self, engine: Engine) -> None:
        provider = SqlAlchemyTransaction(engine)
        CreateUser.invoke({"name": "ada"}, transaction_provider=provider)
        outcome = CreateUser.invoke({"name": "ada"}, transaction_provider=provider)
        assert outcome.symbolic_errors == {"name": ["invalid"]}
        assert count_users(engine) == 1

    def test_rollback_on_unexpected_error(self, engine: Engine) -> None:
        class Crashes(Command):
            use_transactional_execute = True

            def execute(self) -> None:
                current_connection().execute(insert(users).values(name="ghost"))
                raise RuntimeError("disk on fire")

        with pytest.raises(RuntimeError):
            Crashes.invoke(transaction_provider=SqlAlchemyTransaction(engine))
        assert count_users(engine) == 0

    def test_nested_commands_share_outer_transaction(self, engine: Engine) -> None:
        provider = SqlAlchemyTransaction(engine)
        outcome = CreateTwoUsers.invoke(
            {"first": "ada", "second": "ada"}, transaction_provider=provider
        )
        assert outcome.symbolic_errors == {"name": ["CreateUser:invalid"]}
        assert count_users(engine) == 0

    def test_nested_commands_commit_together(self, engine: Engine) -> None:
        provider = SqlAlchemyTransaction(engine)
        outcome = CreateTwoUsers.invoke(
            {"first": "ada", "second": "grace"}, transaction_provider=provider
        )
        assert outcome.result == [1, 2]
        assert count_users(engine) == 2

    def test_tolerated_child_failure_commits_nothing(self, engine: Engine) -> None:
        class InsertThenFail(Command):
            use_transactional_execute = True

            def execute(self) -> None:
                current_connection().execute(insert(users).values(name="orphan"))
                self.add_runtime_error("conflict", "gave up after writing")

        class Parent(Command):
            use_transactional_execute = True

            def execute(self) -> str:
                current_connection().execute(insert(users).values(name="parent"))
                self.run_sub_command(InsertThenFail)
                return "done"

        outcome = Parent.invoke(transaction_provider=SqlAlchemyTransaction(engine))
        assert outcome.success is False
        assert outcome.symbolic_errors == {"runtime": ["InsertThenFail:conflict"]}
        assert count_users(engine) == 0

    def test_non_halting_error_commits_nothing(self, engine: Engine) -> None:
        class WritesAndFlags(Command):
            use_transactional_execute = True

            def execute(self) -> None:
                current_connection().execute(insert(users).values(name="flagged"))
                self.add_input_error("name", "invalid", "name is reserved")

        outcome = WritesAndFlags.invoke(transaction_provider=SqlAlchemyTransaction(engine))
        assert outcome.symbolic_errors == {"name": ["invalid"]}
        assert count_users(engine) == 0

    def test_connection_unavailable_outside_transaction(self) -> None:
        with pytest.raises(TransactionNotConfiguredError):
            current_connection()

    def test_engine_exposed(self, engine: Engine) -> None:
        provider = SqlAlchemyTransaction(engine)
        assert provider.engine is engine
        assert "sqlite" in repr(provider)
