"""Contract helpers for Croquette."""

from .error import (
    AlreadyExistsError,
    BadInputError,
    EnvelopeError,
    EqualsFnMissingError,
    ErrorCode,
    ErrorEnvelope,
    Exit,
    InsufficientMemoryError,
    InvalidCapacityError,
    InvalidIndexError,
    InvalidKeyError,
    InvariantError,
    IOErrorEnvelope,
    MissingCapabilityError,
    PolicyError,
    ReleaseFnMissingError,
    TableError,
    UninitializedError,
    coerce_code,
    describe,
    die,
    guard_cli,
)

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
