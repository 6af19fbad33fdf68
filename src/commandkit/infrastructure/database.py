"""SQLAlchemy transaction provider for transactional commands.

The provider runs a command's ``execute`` inside ``engine.begin()``:

- **Commit** when the unit of work returns.
- **Rollback** when it raises. A command's unit raises whenever its
  outcome has errors once ``execute`` is done, so a failed command never
  commits, even if it recorded only non-halting errors.

A nested call (a transactional sub-command run from a transactional
parent) joins the transaction that is already open, so the outermost
command owns the commit. A failing child's errors are merged into its
parent, which therefore fails and rolls the whole transaction back.

Usage::

    engine = create_engine("sqlite:///app.db")
    configure_transaction(SqlAlchemyTransaction(engine))

    class CreateUser(Command):
        use_transactional_execute = True

        def execute(self) -> int:
            conn = current_connection()
            return conn.execute(insert(users).values(...)).inserted_primary_key[0]
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from commandkit.exceptions import TransactionNotConfiguredError

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

_current_connection: ContextVar[Connection | None] = ContextVar(
    "_current_connection", default=None
)


class SqlAlchemyTransaction:
    """Transaction provider backed by a SQLAlchemy :class:`Engine`."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def __repr__(self) -> str:
        return f"SqlAlchemyTransaction({self._engine.url!r})"

    def __call__(self, work: Callable[[], Any]) -> Any:
        if _current_connection.get() is not None:
            return work()

        with self._engine.begin() as conn:
            token = _current_connection.set(conn)
            try:
                return work()
            except BaseException:
                logger.debug("Rolling back transaction on %s", self._engine.url)
                raise
            finally:
                _current_connection.reset(token)


def current_connection() -> Connection:
    """Connection of the transaction the current command runs in.

    Raises:
        TransactionNotConfiguredError: If no transaction is open.
    """
    conn = _current_connection.get()
    if conn is None:
        raise TransactionNotConfiguredError("No SQLAlchemy transaction is active")
    return conn
