"""Error taxonomy and input type tags.

ErrorType values are the symbolic keys recorded in an Outcome. They are
plain strings so callers may compare against either the enum member or
its value.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorType(StrEnum):
    """Symbolic error keys shared by every command."""

    NOT_FOUND = "not_found"
    INVALID = "invalid"
    MISSING = "missing"
    BLANK = "blank"
    UNSUPPORTED = "unsupported"
    RUNTIME = "runtime"
    TYPE_MISMATCH = "type_mismatch"
    UNKNOWN = "unknown"


class InputType(StrEnum):
    """Semantic tags for schema descriptors."""

    STRING = "string"
    DATE = "date"
    NUMBER = "number"
    BOOLEAN = "boolean"
    LIST = "list"
    MAPPING = "mapping"
    ANY = "any"
    ENUM = "enum"


# Category under which runtime (non-input) errors are filed.
RUNTIME_CATEGORY = ErrorType.RUNTIME.value


class _Undefined:
    """Sentinel for "explicitly set to undefined"."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Undefined:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Undefined:
        return self

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED: Any = _Undefined()
