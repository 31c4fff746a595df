from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Generic, List, Optional, Tuple, TypeVar

from croquette.contracts.error import (
    AlreadyExistsError,
    EqualsFnMissingError,
    ErrorCode,
    InsufficientMemoryError,
    InvalidCapacityError,
    InvalidIndexError,
    ReleaseFnMissingError,
    TableError,
    UninitializedError,
)

from .hashing import DEFAULT_CAPACITY, bucket_index, normalize_key
from .policy import grow_target, shrink_target
from .values import CallbackValueOps, ValueOps

logger = logging.getLogger("croquette")

V = TypeVar("V")
T = TypeVar("T")

_Chain = List["Entry[Any]"]


@dataclass(eq=False)
class Entry(Generic[V]):
    key: str
    value: V


def _tracked(fn: Callable[..., T]) -> Callable[..., T]:
    """Reset ``last_error`` on entry and record the code of any table failure."""

    @wraps(fn)
    def _wrapped(self: "Croquette[Any]", *args: Any, **kwargs: Any) -> T:
        self.last_error = ErrorCode.NO_ERROR
        try:
            return fn(self, *args, **kwargs)
        except TableError as exc:
            self.last_error = exc.code
            raise

    return _wrapped


class Croquette(Generic[V]):
    """String-keyed dictionary on a chained hash table that doubles and halves with load."""

    __slots__ = (
        "_ops",
        "_owns_values",
        "_requested_capacity",
        "_buckets",
        "_size",
        "_capacity",
        "_base_capacity",
        "_live",
        "last_error",
    )

    def __init__(
        self,
        value_ops: Optional[ValueOps[V]],
        capacity: int = 0,
        owns_values: bool = False,
    ) -> None:
        self.last_error = ErrorCode.NO_ERROR
        self._live = False
        self._buckets: List[_Chain] = []
        self._size = 0
        self._capacity = 0
        self._base_capacity = 0
        try:
            if value_ops is None:
                raise EqualsFnMissingError()
            if owns_values and not getattr(value_ops, "can_release", True):
                raise ReleaseFnMissingError()
        except TableError as exc:
            self.last_error = exc.code
            raise
        self._ops: ValueOps[V] = value_ops
        self._owns_values = bool(owns_values)
        self._requested_capacity = capacity
        self.create()

    @classmethod
    def from_callbacks(
        cls,
        capacity: int = 0,
        owns_values: bool = False,
        release: Optional[Callable[[V], None]] = None,
        equals: Optional[Callable[[V, V], bool]] = None,
    ) -> "Croquette[V]":
        if owns_values and release is None:
            raise ReleaseFnMissingError()
        if equals is None:
            raise EqualsFnMissingError()
        return cls(CallbackValueOps(equals, release), capacity, owns_values)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def is_live(self) -> bool:
        return self._live

    @property
    def owns_values(self) -> bool:
        return self._owns_values

    @_tracked
    def create(self) -> None:
        if self._live:
            raise AlreadyExistsError()
        capacity = self._requested_capacity
        if capacity <= 0:
            capacity = DEFAULT_CAPACITY
        self._buckets = self._allocate_buckets(capacity)
        self._capacity = capacity
        self._base_capacity = capacity
        self._size = 0
        self._live = True
        logger.info("Croquette created (capacity=%d, owns_values=%s)", capacity, self._owns_values)

    @_tracked
    def clear(self) -> None:
        self._require_live()
        released = [entry.value for chain in self._buckets for entry in chain]
        for chain in self._buckets:
            chain.clear()
        self._size = 0
        try:
            if self._capacity != self._base_capacity:
                self._rehash(self._base_capacity)
        finally:
            if self._owns_values:
                for value in released:
                    self._ops.release(value)
        logger.debug("Croquette cleared (%d entries, capacity=%d)", len(released), self._capacity)

    def destroy(self) -> None:
        if not self._live:
            return
        try:
            self.clear()
        except TableError:
            logger.warning("Clear failed during destroy; dropping buckets anyway", exc_info=True)
        self._buckets = []
        self._size = 0
        self._capacity = 0
        self._live = False
        self.last_error = ErrorCode.NO_ERROR
        logger.info("Croquette destroyed")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @_tracked
    def is_empty(self) -> bool:
        self._require_live()
        return self._size == 0

    @_tracked
    def size(self) -> int:
        self._require_live()
        return self._size

    @_tracked
    def capacity(self) -> int:
        self._require_live()
        return self._capacity

    @_tracked
    def contains_key(self, key: str) -> bool:
        self._require_live()
        return self._find(normalize_key(key)) is not None

    @_tracked
    def contains_value(self, value: V) -> bool:
        self._require_live()
        for chain in self._buckets:
            for entry in chain:
                if self._ops.equals(entry.value, value):
                    return True
        return False

    @_tracked
    def get(self, key: str) -> Optional[V]:
        self._require_live()
        found = self._find(normalize_key(key))
        return None if found is None else found[1].value

    @_tracked
    def get_or_default(self, key: str, default: V) -> V:
        self._require_live()
        found = self._find(normalize_key(key))
        return default if found is None else found[1].value

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    @_tracked
    def put(self, key: str, value: V) -> None:
        self._require_live()
        norm = normalize_key(key)
        found = self._find(norm)
        if found is not None:
            entry = found[1]
            if not self._ops.equals(entry.value, value):
                old = entry.value
                entry.value = value
                if self._owns_values:
                    self._ops.release(old)
            return
        self._insert(norm, value)

    @_tracked
    def put_if_absent(self, key: str, value: V) -> Optional[V]:
        """Store ``value`` only when ``key`` is missing; return the existing value otherwise."""

        self._require_live()
        norm = normalize_key(key)
        found = self._find(norm)
        if found is not None:
            return found[1].value
        self._insert(norm, value)
        return None

    @_tracked
    def remove(self, key: str) -> None:
        self._require_live()
        norm = normalize_key(key)
        index = bucket_index(norm, self._capacity)
        chain = self._buckets[index]
        for pos, entry in enumerate(chain):
            if entry.key == norm:
                del chain[pos]
                self._size -= 1
                if self._owns_values:
                    self._ops.release(entry.value)
                self._resize(shrink_target(self._size, self._capacity))
                return

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str) or not key:
            return False
        return self.contains_key(key)

    @_tracked
    def keys(self) -> List[str]:
        self._require_live()
        return [entry.key for chain in self._buckets for entry in chain]

    @_tracked
    def items(self) -> List[Tuple[str, V]]:
        self._require_live()
        return [(entry.key, entry.value) for chain in self._buckets for entry in chain]

    @_tracked
    def dump_keys(self) -> List[Tuple[int, str]]:
        """Every stored key with the bucket index it lives in."""

        self._require_live()
        return [(idx, entry.key) for idx, chain in enumerate(self._buckets) for entry in chain]

    def __repr__(self) -> str:
        if not self._live:
            return "Croquette(<destroyed>)"
        return f"Croquette(size={self._size}, capacity={self._capacity}, base={self._base_capacity})"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _require_live(self) -> None:
        if not self._live:
            raise UninitializedError()

    def _allocate_buckets(self, capacity: int) -> List[_Chain]:
        return [[] for _ in range(capacity)]

    def _find(self, key: str) -> Optional[Tuple[int, Entry[V]]]:
        index = bucket_index(key, self._capacity)
        for entry in self._buckets[index]:
            if entry.key == key:
                return index, entry
        return None

    def _insert(self, key: str, value: V) -> None:
        try:
            entry: Entry[V] = Entry(key, value)
        except MemoryError as exc:
            raise InsufficientMemoryError() from exc
        self._link(self._buckets, self._capacity, entry)
        self._size += 1
        self._resize(grow_target(self._size, self._capacity))

    @staticmethod
    def _link(buckets: List[_Chain], capacity: int, entry: Entry[Any]) -> None:
        index = bucket_index(entry.key, capacity)
        if not 0 <= index < len(buckets):
            raise InvalidIndexError(f"bucket index {index} outside [0, {len(buckets)})")
        buckets[index].append(entry)

    def _resize(self, target: Optional[int]) -> None:
        if target is not None:
            self._rehash(target)

    def _rehash(self, new_capacity: int) -> None:
        if new_capacity < 1:
            raise InvalidCapacityError(f"rehash target must be >= 1, got {new_capacity}")
        old_capacity = self._capacity
        try:
            buckets = self._allocate_buckets(new_capacity)
            for chain in self._buckets:
                for entry in chain:
                    self._link(buckets, new_capacity, entry)
        except MemoryError as exc:
            logger.warning(
                "Rehash %d -> %d failed; keeping current buckets", old_capacity, new_capacity
            )
            raise InsufficientMemoryError() from exc
        self._buckets = buckets
        self._capacity = new_capacity
        logger.debug("Rehash %d -> %d (size=%d)", old_capacity, new_capacity, self._size)


__all__ = ["Croquette", "Entry"]
