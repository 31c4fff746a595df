"""Process-wide Croquette instance with a procedural interface.

Only one table is live at a time. Every call resets the last-error slot on
entry and records the code of a failure before re-raising it, so callers can
use either exceptions or ``get_error()``.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, List, Optional, TypeVar

from .contracts.error import (
    AlreadyExistsError,
    ErrorCode,
    TableError,
    UninitializedError,
    coerce_code,
    describe,
)
from .core.table import Croquette

T = TypeVar("T")

_TABLE: Optional[Croquette[Any]] = None
_LAST_ERROR: ErrorCode = ErrorCode.NO_ERROR


def _tracked(fn: Callable[..., T]) -> Callable[..., T]:
    @wraps(fn)
    def _wrapped(*args: Any, **kwargs: Any) -> T:
        global _LAST_ERROR
        _LAST_ERROR = ErrorCode.NO_ERROR
        try:
            return fn(*args, **kwargs)
        except TableError as exc:
            _LAST_ERROR = exc.code
            raise

    return _wrapped


def _live() -> Croquette[Any]:
    if _TABLE is None or not _TABLE.is_live:
        raise UninitializedError()
    return _TABLE


# --------------------------------------------------------------------
# Lifecycle
# --------------------------------------------------------------------
@_tracked
def create(
    capacity: int = 0,
    owns_values: bool = False,
    release: Optional[Callable[[Any], None]] = None,
    equals: Optional[Callable[[Any, Any], bool]] = None,
) -> None:
    global _TABLE
    if _TABLE is not None and _TABLE.is_live:
        raise AlreadyExistsError()
    _TABLE = Croquette.from_callbacks(capacity, owns_values, release, equals)


def destroy() -> None:
    global _TABLE, _LAST_ERROR
    _LAST_ERROR = ErrorCode.NO_ERROR
    if _TABLE is None:
        return
    _TABLE.destroy()
    _TABLE = None


@_tracked
def clear() -> None:
    _live().clear()


def table() -> Croquette[Any]:
    """Return the live handle behind the procedural functions."""

    return _live()


# --------------------------------------------------------------------
# Queries
# --------------------------------------------------------------------
@_tracked
def is_empty() -> bool:
    return _live().is_empty()


@_tracked
def size() -> int:
    return _live().size()


@_tracked
def capacity() -> int:
    return _live().capacity()


@_tracked
def contains_key(key: str) -> bool:
    return _live().contains_key(key)


@_tracked
def contains_value(value: Any) -> bool:
    return _live().contains_value(value)


@_tracked
def get(key: str) -> Any:
    return _live().get(key)


@_tracked
def get_or_default(key: str, default: Any) -> Any:
    return _live().get_or_default(key, default)


# --------------------------------------------------------------------
# Mutation
# --------------------------------------------------------------------
@_tracked
def put(key: str, value: Any) -> None:
    _live().put(key, value)


@_tracked
def put_if_absent(key: str, value: Any) -> Any:
    return _live().put_if_absent(key, value)


@_tracked
def remove(key: str) -> None:
    _live().remove(key)


# --------------------------------------------------------------------
# Diagnostics
# --------------------------------------------------------------------
def get_error() -> ErrorCode:
    return _LAST_ERROR


def set_error(code: int) -> None:
    global _LAST_ERROR
    _LAST_ERROR = coerce_code(code)


def clear_error() -> None:
    set_error(ErrorCode.NO_ERROR)


def is_error() -> bool:
    return _LAST_ERROR != ErrorCode.NO_ERROR


def describe_error(code: Optional[int] = None) -> str:
    return describe(_LAST_ERROR if code is None else code)


def format_error(code: Optional[int] = None) -> str:
    resolved = coerce_code(_LAST_ERROR if code is None else code)
    return f"[Croquette Error {int(resolved):2d}] {describe(resolved)}"


def dump_keys() -> List[str]:
    """Render each stored key as ``[idx] key``; empty when no table is live."""

    if _TABLE is None or not _TABLE.is_live:
        return []
    return [f"[{idx:2d}] {key}" for idx, key in _TABLE.dump_keys()]


__all__ = [
    "capacity",
    "clear",
    "clear_error",
    "contains_key",
    "contains_value",
    "create",
    "describe_error",
    "destroy",
    "dump_keys",
    "format_error",
    "get",
    "get_error",
    "get_or_default",
    "is_empty",
    "is_error",
    "put",
    "put_if_absent",
    "remove",
    "set_error",
    "size",
    "table",
]
