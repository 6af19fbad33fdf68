"""Process-wide transaction provider.

A provider is any callable ``provider(work) -> result`` that runs the
zero-argument *work* inside a rollback-capable boundary and returns its
result. Commands with ``use_transactional_execute = True`` hand their
``execute`` call to the provider.

Ownership: the application installs a provider once at startup with
:func:`configure_transaction` and removes it at shutdown with
:func:`reset_transaction`. Tests and scoped callers use the
:func:`transaction_provider` context manager, which restores whatever was
installed before. A provider injected into a command's constructor takes
priority over the process-wide one.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from commandkit.exceptions import TransactionNotConfiguredError

logger = logging.getLogger(__name__)

TransactionProvider = Callable[[Callable[[], Any]], Any]

_lock = threading.Lock()
_provider: TransactionProvider | None = None


def configure_transaction(provider: TransactionProvider) -> None:
    """Install *provider* as the process-wide transaction provider."""
    global _provider
    if not callable(provider):
        msg = f"Transaction provider must be callable, got {type(provider).__name__}"
        raise TypeError(msg)
    with _lock:
        _provider = provider
    logger.debug("Transaction provider configured: %r", provider)


def reset_transaction() -> None:
    """Remove the process-wide transaction provider."""
    global _provider
    with _lock:
        _provider = None


def has_transaction_provider() -> bool:
    return _provider is not None


def get_transaction_provider() -> TransactionProvider:
    """Return the installed provider.

    Raises:
        TransactionNotConfiguredError: If no provider is installed.
    """
    provider = _provider
    if provider is None:
        raise TransactionNotConfiguredError(
            "You must configure a transaction provider to use transactional execute"
        )
    return provider


@contextmanager
def transaction_provider(provider: TransactionProvider) -> Iterator[TransactionProvider]:
    """Install *provider* for the duration of a ``with`` block."""
    global _provider
    with _lock:
        previous = _provider
    configure_transaction(provider)
    try:
        yield provider
    finally:
        with _lock:
            _provider = previous
