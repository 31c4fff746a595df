"""Croquette: a string-keyed dictionary on a chained, self-resizing hash table."""

from . import api, config, contracts, core
from .contracts.error import ErrorCode, TableError
from .core.table import Croquette
from .core.values import CallbackValueOps, EqualityValueOps, ValueOps

__all__ = [
    "CallbackValueOps",
    "Croquette",
    "EqualityValueOps",
    "ErrorCode",
    "TableError",
    "ValueOps",
    "api",
    "config",
    "contracts",
    "core",
]
