"""Blankness rules for supplied input values.

A value is blank when it is None (or UNDEFINED), a string that is empty or only
whitespace, an empty sequence or set, an empty mapping, or a NaN number.
Zero, False and non-empty containers are never blank.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence, Set
from decimal import Decimal
from typing import Any

from commandkit.domain.types import UNDEFINED


def is_blank(value: Any) -> bool:
    """Return True if *value* counts as blank.

    Examples:
        >>> is_blank("  ")
        True
        >>> is_blank(0)
        False
        >>> is_blank(float("nan"))
        True
    """
    if value is None or value is UNDEFINED:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return math.isnan(value)
    if isinstance(value, Decimal):
        return value.is_nan()
    if isinstance(value, (bytes, bytearray)):
        return len(value) == 0
    if isinstance(value, (Mapping, Sequence, Set)):
        return len(value) == 0
    return False
