"""Error codes, table exceptions, and CLI error envelopes for Croquette."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from functools import wraps
from typing import Any, ClassVar, NoReturn, TypeVar

logger = logging.getLogger(__name__)
T = TypeVar("T")


class Exit(IntEnum):
    """Stable exit codes shared across the CLI."""

    OK = 0
    BAD_INPUT = 2
    INVARIANT = 3
    POLICY = 4
    IO = 5


class ErrorCode(IntEnum):
    """Outcome codes recorded in the last-error slot."""

    NO_ERROR = 0
    GENERAL_ERROR = 1
    UNINITIALIZED = 2
    UNKNOWN_ERROR = 3
    INVALID_KEY = 4
    INVALID_VALUE = 5
    ENTRY_NULL = 6
    INVALID_CAPACITY = 7
    INVALID_INDEX = 8
    NO_VALUE = 9
    INSUFFICIENT_MEMORY = 10
    FREE_VALUE_MISSING = 11
    VALUE_COMPARE_MISSING = 12
    EXISTS = 13
    NO_SUCH_ERROR = 14


_DESCRIPTIONS: dict[ErrorCode, str] = {
    ErrorCode.NO_ERROR: "No Croquette Errors Encountered",
    ErrorCode.GENERAL_ERROR: "An Unspecified Croquette Error was Encountered",
    ErrorCode.UNINITIALIZED: "The Croquette was not Initialized Properly",
    ErrorCode.UNKNOWN_ERROR: "An Unknown Error was Encountered",
    ErrorCode.INVALID_KEY: "The Key is not Valid",
    ErrorCode.INVALID_VALUE: "The Value Given is not Valid",
    ErrorCode.ENTRY_NULL: "The Entry passed in was Null",
    ErrorCode.INVALID_CAPACITY: "The Capacity Given is not Valid",
    ErrorCode.INVALID_INDEX: "The Index Given is not Valid",
    ErrorCode.NO_VALUE: "The Value Given is not Valid",
    ErrorCode.INSUFFICIENT_MEMORY: "There was a Memory Error (Insufficient Memory)",
    ErrorCode.FREE_VALUE_MISSING: "No Function was Given to Free a Value",
    ErrorCode.VALUE_COMPARE_MISSING: "No Function was Given to Compare two Values",
    ErrorCode.EXISTS: "The Croquette Already Exists",
    ErrorCode.NO_SUCH_ERROR: "No Such Error Exists",
}


def coerce_code(raw: int) -> ErrorCode:
    """Map an arbitrary integer onto a known code, ``NO_SUCH_ERROR`` otherwise."""

    try:
        return ErrorCode(int(raw))
    except ValueError:
        return ErrorCode.NO_SUCH_ERROR


def describe(code: int) -> str:
    return _DESCRIPTIONS[coerce_code(code)]


@dataclass(slots=True)
class ErrorEnvelope:
    """Machine-readable error contract for CLI failures."""

    error: str
    detail: str
    hint: str | None = None
    code: int | None = None

    def to_json(self) -> str:
        payload: dict[str, Any] = {"error": self.error, "detail": self.detail}
        if self.hint:
            payload["hint"] = self.hint
        if self.code is not None:
            payload["code"] = self.code
        return json.dumps(payload, ensure_ascii=False)


def die(
    code: Exit, kind: str, detail: str, hint: str | None = None, error_code: int | None = None
) -> NoReturn:
    """Emit standardized JSON error on stderr and exit with a stable code."""

    env = ErrorEnvelope(error=kind, detail=detail, hint=hint, code=error_code)
    sys.stderr.write(env.to_json() + "\n")
    try:
        sys.stderr.flush()
    finally:
        sys.exit(int(code))


class EnvelopeError(Exception):
    """Base exception that carries an optional hint for the error envelope."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class BadInputError(EnvelopeError):
    """Raised for malformed user input (config, scripts, flags)."""


class InvariantError(EnvelopeError):
    """Raised when internal consistency checks fail."""


class PolicyError(EnvelopeError):
    """Raised for unsupported operations or contract violations."""


class IOErrorEnvelope(EnvelopeError):  # noqa: N818 - public API name
    """Raised for IO errors that should map to Exit.IO."""


class TableError(EnvelopeError):
    """Base class for failures reported by the table engine."""

    code: ClassVar[ErrorCode] = ErrorCode.GENERAL_ERROR

    def __init__(self, message: str | None = None, *, hint: str | None = None) -> None:
        super().__init__(message or describe(self.code), hint=hint)


class UninitializedError(TableError, PolicyError):
    code = ErrorCode.UNINITIALIZED


class AlreadyExistsError(TableError, PolicyError):
    code = ErrorCode.EXISTS


class InvalidKeyError(TableError, BadInputError):
    code = ErrorCode.INVALID_KEY


class InvalidCapacityError(TableError, BadInputError):
    code = ErrorCode.INVALID_CAPACITY


class MissingCapabilityError(TableError, BadInputError):
    """A release or equality capability was required but not supplied."""


class ReleaseFnMissingError(MissingCapabilityError):
    code = ErrorCode.FREE_VALUE_MISSING


class EqualsFnMissingError(MissingCapabilityError):
    code = ErrorCode.VALUE_COMPARE_MISSING


class InvalidIndexError(TableError, InvariantError):
    code = ErrorCode.INVALID_INDEX


class InsufficientMemoryError(TableError, InvariantError):
    code = ErrorCode.INSUFFICIENT_MEMORY


_EXCEPTION_ORDER: tuple[tuple[type[EnvelopeError], Exit, str], ...] = (
    (BadInputError, Exit.BAD_INPUT, "BadInput"),
    (InvariantError, Exit.INVARIANT, "Invariant"),
    (PolicyError, Exit.POLICY, "Policy"),
    (IOErrorEnvelope, Exit.IO, "IO"),
)


def guard_cli(fn: Callable[..., T]) -> Callable[..., T]:
    """Decorate a CLI handler to enforce exit codes and error envelopes."""

    @wraps(fn)
    def _wrapped(*args: Any, **kwargs: Any) -> T:
        try:
            return fn(*args, **kwargs)
        except EnvelopeError as exc:
            error_code = int(exc.code) if isinstance(exc, TableError) else None
            for exc_type, exit_code, label in _EXCEPTION_ORDER:
                if isinstance(exc, exc_type):
                    die(
                        exit_code,
                        label,
                        str(exc),
                        hint=getattr(exc, "hint", None),
                        error_code=error_code,
                    )
            die(Exit.POLICY, "UnhandledEnvelope", str(exc), hint=getattr(exc, "hint", None))
        except FileNotFoundError as exc:
            die(Exit.IO, "FileNotFound", str(exc))
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unhandled CLI exception")
            die(Exit.POLICY, "Unhandled", f"{type(exc).__name__}: {exc}")

    return _wrapped


__all__ = [
    "Exit",
    "ErrorCode",
    "ErrorEnvelope",
    "EnvelopeError",
    "BadInputError",
    "InvariantError",
    "PolicyError",
    "IOErrorEnvelope",
    "TableError",
    "UninitializedError",
    "AlreadyExistsError",
    "InvalidKeyError",
    "InvalidCapacityError",
    "MissingCapabilityError",
    "ReleaseFnMissingError",
    "EqualsFnMissingError",
    "InvalidIndexError",
    "InsufficientMemoryError",
    "coerce_code",
    "describe",
    "guard_cli",
    "die",
]
