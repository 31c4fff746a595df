from __future__ import annotations

from typing import Any, Callable, List

import pytest

from croquette.contracts.error import (
    AlreadyExistsError,
    EqualsFnMissingError,
    ErrorCode,
    InsufficientMemoryError,
    InvalidCapacityError,
    InvalidIndexError,
    MissingCapabilityError,
    ReleaseFnMissingError,
    UninitializedError,
)
from croquette.core.table import Croquette, Entry
from croquette.core.values import CallbackValueOps, EqualityValueOps


def _eq(a: Any, b: Any) -> bool:
    return a == b


def test_missing_release_capability_is_rejected() -> None:
    with pytest.raises(ReleaseFnMissingError):
        Croquette.from_callbacks(0, True, None, _eq)
    with pytest.raises(ReleaseFnMissingError) as info:
        Croquette(CallbackValueOps(_eq), 0, owns_values=True)
    assert info.value.code == ErrorCode.FREE_VALUE_MISSING


def test_missing_equality_capability_is_rejected() -> None:
    with pytest.raises(EqualsFnMissingError):
        Croquette.from_callbacks(0, False, None, None)
    with pytest.raises(MissingCapabilityError):
        Croquette(None)


def test_release_is_optional_without_ownership() -> None:
    table = Croquette.from_callbacks(0, False, None, _eq)
    assert table.is_live
    assert table.capacity() == 11


def test_create_on_live_handle_fails() -> None:
    table: Croquette[int] = Croquette(EqualityValueOps(), 4)
    table.put("a", 1)
    with pytest.raises(AlreadyExistsError):
        table.create()
    assert table.last_error == ErrorCode.EXISTS
    assert table.get("a") == 1


def test_destroyed_handle_reports_uninitialized_everywhere() -> None:
    table: Croquette[int] = Croquette(EqualityValueOps(), 4)
    table.put("a", 1)
    table.destroy()
    assert not table.is_live

    operations: List[Callable[[], Any]] = [
        table.is_empty,
        table.size,
        table.capacity,
        lambda: table.contains_key("a"),
        lambda: table.contains_value(1),
        lambda: table.get("a"),
        lambda: table.get_or_default("a", 0),
        lambda: table.put("a", 2),
        lambda: table.put_if_absent("a", 2),
        lambda: table.remove("a"),
        table.clear,
        table.keys,
        table.items,
        table.dump_keys,
    ]
    for op in operations:
        with pytest.raises(UninitializedError):
            op()
    assert table.last_error == ErrorCode.UNINITIALIZED
    # uninitialized check wins over key validation
    with pytest.raises(UninitializedError):
        table.put("", 1)


def test_destroy_is_idempotent_and_releases_owned_values() -> None:
    released: List[int] = []
    table: Croquette[int] = Croquette.from_callbacks(1, True, released.append, _eq)
    table.put("a", 1)
    table.put("b", 2)
    table.destroy()
    table.destroy()
    assert sorted(released) == [1, 2]
    assert repr(table) == "Croquette(<destroyed>)"


def test_create_after_destroy_restarts_empty_at_base_capacity() -> None:
    table: Croquette[int] = Croquette(EqualityValueOps(), 1)
    for i in range(5):
        table.put(f"k{i}", i)
    table.destroy()
    table.create()
    assert table.is_live
    assert (table.size(), table.capacity()) == (0, 1)
    assert table.get("k1") is None


class _FlakyAllocator(Croquette[int]):
    fail = False

    def _allocate_buckets(self, capacity: int) -> list:
        if self.fail:
            raise MemoryError
        return super()._allocate_buckets(capacity)


def test_failed_grow_keeps_current_buckets() -> None:
    table = _FlakyAllocator(EqualityValueOps(), 1)
    table.fail = True
    with pytest.raises(InsufficientMemoryError):
        table.put("a", 1)
    assert table.last_error == ErrorCode.INSUFFICIENT_MEMORY

    table.fail = False
    assert table.capacity() == 1
    assert table.size() == 1
    assert table.get("a") == 1

    table.put("b", 2)
    assert (table.size(), table.capacity()) == (2, 2)


def _owned_flaky(released: List[int]) -> _FlakyAllocator:
    table = _FlakyAllocator(CallbackValueOps(_eq, released.append), 1, owns_values=True)
    for i in range(5):
        table.put(f"k{i}", i)
    assert (table.size(), table.capacity()) == (5, 8)
    return table


def test_failed_shrink_keeps_removal_and_old_capacity() -> None:
    released: List[int] = []
    table = _owned_flaky(released)
    table.remove("k0")
    assert (table.size(), table.capacity()) == (4, 8)

    table.fail = True
    with pytest.raises(InsufficientMemoryError):
        table.remove("k1")
    assert table.last_error == ErrorCode.INSUFFICIENT_MEMORY
    assert released == [0, 1]

    table.fail = False
    assert (table.size(), table.capacity()) == (3, 8)
    assert not table.contains_key("k1")
    assert dict(table.items()) == {"k2": 2, "k3": 3, "k4": 4}

    table.remove("k2")
    assert (table.size(), table.capacity()) == (2, 4)
    assert released == [0, 1, 2]


def test_failed_clear_still_releases_owned_values() -> None:
    released: List[int] = []
    table = _owned_flaky(released)

    table.fail = True
    with pytest.raises(InsufficientMemoryError):
        table.clear()
    assert table.last_error == ErrorCode.INSUFFICIENT_MEMORY
    assert sorted(released) == [0, 1, 2, 3, 4]

    table.fail = False
    assert (table.size(), table.capacity()) == (0, 8)
    assert table.is_empty()
    assert table.keys() == []

    table.put("a", 9)
    assert table.get("a") == 9
    table.destroy()
    assert sorted(released) == [0, 1, 2, 3, 4, 9]


def test_destroy_releases_values_when_clear_rehash_fails() -> None:
    released: List[int] = []
    table = _owned_flaky(released)
    table.fail = True
    table.destroy()
    assert not table.is_live
    assert sorted(released) == [0, 1, 2, 3, 4]
    assert table.last_error == ErrorCode.NO_ERROR


def test_rehash_rejects_non_positive_capacity() -> None:
    table: Croquette[int] = Croquette(EqualityValueOps(), 4)
    with pytest.raises(InvalidCapacityError):
        table._rehash(0)
    assert table.capacity() == 4


def test_link_rejects_out_of_range_index() -> None:
    # hash("zz") = (122 << 7) + 122 = 15738, which is 3 mod 5
    with pytest.raises(InvalidIndexError):
        Croquette._link([[]], 5, Entry("zz", 1))
