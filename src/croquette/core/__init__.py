from .hashing import DEFAULT_CAPACITY, MAX_KEY_LENGTH, bucket_index, hash_code, normalize_key
from .policy import grow_target, shrink_target
from .table import Croquette, Entry
from .values import CallbackValueOps, EqualityValueOps, ValueOps

__all__ = [
    "CallbackValueOps",
    "Croquette",
    "DEFAULT_CAPACITY",
    "Entry",
    "EqualityValueOps",
    "MAX_KEY_LENGTH",
    "ValueOps",
    "bucket_index",
    "grow_target",
    "hash_code",
    "normalize_key",
    "shrink_target",
]
