"""GuardedInputs: an isolated, read-guarded copy of caller inputs.

Reading a key that was never set raises :class:`MissingInputError`
instead of yielding ``None``, so "absent" and "present but empty" stay
distinguishable throughout the pipeline.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any

from commandkit.exceptions import MissingInputError


def isolate(value: Any) -> Any:
    """Copy plain containers recursively; return anything else as is.

    Dicts, lists, tuples and sets are rebuilt so mutating the copy never
    reaches the caller's data. Other objects (locks, connections, clients)
    are shared by reference, since many of them cannot be copied at all.

    >>> src = {"tags": ["a"]}
    >>> isolate(src)["tags"] is src["tags"]
    False
    """
    if isinstance(value, dict):
        return {k: isolate(v) for k, v in value.items()}
    if isinstance(value, list):
        return [isolate(v) for v in value]
    if isinstance(value, tuple) and not hasattr(value, "_fields"):
        return tuple(isolate(v) for v in value)
    if isinstance(value, set):
        return {isolate(v) for v in value}
    return value


class GuardedInputs(MutableMapping[str, Any]):
    """Isolated copy of a keyed structure with guarded reads.

    Plain containers are copied (see :func:`isolate`); other values are
    shared. Supports item access (``inputs["name"]``) and attribute access
    (``inputs.name``). ``get`` and ``in`` behave as for a dict.
    """

    __slots__ = ("_data",)

    def __init__(self, source: Mapping[str, Any] | None = None) -> None:
        if source is None:
            source = {}
        if not isinstance(source, Mapping):
            msg = f"Command inputs must be a mapping, got {type(source).__name__}"
            raise TypeError(msg)
        data = {key: isolate(value) for key, value in source.items()}
        object.__setattr__(self, "_data", data)

    def __getitem__(self, key: str) -> Any:
        try:
            return self._data[key]
        except KeyError:
            raise MissingInputError(key) from None

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        try:
            del self._data[key]
        except KeyError:
            raise MissingInputError(key) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __setattr__(self, name: str, value: Any) -> None:
        self[name] = value

    def __repr__(self) -> str:
        return f"GuardedInputs({self._data!r})"

    def to_dict(self) -> dict[str, Any]:
        """Shallow plain-dict copy of the current values."""
        return dict(self._data)
