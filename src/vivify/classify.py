"""Target classification: which values may be wrapped, and how.

COMMON targets (mappings, sequences, attribute objects) use the keyed trap
set in vivify.proxy. COLLECTION targets (sets) use the membership trap set
in vivify.collection. Everything else is INVALID and is handed back as-is.
"""

from __future__ import annotations

import math
from collections.abc import MutableMapping, MutableSequence, MutableSet
from dataclasses import is_dataclass
from enum import IntEnum
from types import SimpleNamespace
from typing import TypeVar

from vivify import _anchor

T = TypeVar("T")

SKIP_FLAG = "__vivify_skip__"


class TargetType(IntEnum):
    INVALID = 0
    COMMON = 1
    COLLECTION = 2


def mark_raw(value: T) -> T:
    """Flag value so it is never wrapped. Returns value unchanged.

    Builtin containers cannot carry attributes, so the flag lives in a
    side-table that holds the value for the life of the process.
    """
    _anchor.skipped[id(value)] = value
    return value


def is_marked_raw(value: object) -> bool:
    if getattr(value, SKIP_FLAG, False):
        return True
    return _anchor.skipped.get(id(value)) is value


def is_extensible(value: object) -> bool:
    """Frozen dataclass instances are the Python analogue of a frozen object."""
    if is_dataclass(value) and not isinstance(value, type):
        return not value.__dataclass_params__.frozen
    return True


def raw_type(value: object) -> TargetType:
    """Classify by type alone, ignoring skip flags and frozenness."""
    if isinstance(value, (str, bytes, bytearray)):
        return TargetType.INVALID
    if isinstance(value, (MutableMapping, MutableSequence)):
        return TargetType.COMMON
    if isinstance(value, MutableSet):
        return TargetType.COLLECTION
    if isinstance(value, SimpleNamespace):
        return TargetType.COMMON
    if is_dataclass(value) and not isinstance(value, type):
        return TargetType.COMMON
    return TargetType.INVALID


def target_type(value: object) -> TargetType:
    if is_marked_raw(value) or not is_extensible(value):
        return TargetType.INVALID
    return raw_type(value)


def _is_nan(value: object) -> bool:
    return isinstance(value, float) and math.isnan(value)


def has_changed(value: object, old: object) -> bool:
    """Would replacing old with value be observable?

    Containers compare by identity, everything else by type and equality,
    so True over 1 or 1.0 over 1 is a change. NaN is treated as equal to NaN.
    """
    if value is old:
        return False
    if _is_nan(value) and _is_nan(old):
        return False
    if raw_type(value) is not TargetType.INVALID or raw_type(old) is not TargetType.INVALID:
        return True
    return type(value) is not type(old) or value != old
