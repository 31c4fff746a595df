from __future__ import annotations

from typing import Any, Callable, List

import pytest

from croquette import api
from croquette.contracts.error import (
    AlreadyExistsError,
    EqualsFnMissingError,
    ErrorCode,
    InvalidKeyError,
    ReleaseFnMissingError,
    UninitializedError,
)


def _eq(a: Any, b: Any) -> bool:
    return a == b


@pytest.mark.usefixtures("fresh_api")
def test_every_operation_fails_before_create() -> None:
    operations: List[Callable[[], Any]] = [
        api.is_empty,
        api.size,
        api.capacity,
        lambda: api.contains_key("aaa"),
        lambda: api.contains_value(1),
        lambda: api.get("aaa"),
        lambda: api.get_or_default("aaa", 0),
        lambda: api.put("aaa", 1),
        lambda: api.put_if_absent("aaa", 1),
        lambda: api.remove("aaa"),
        api.clear,
        api.table,
    ]
    for op in operations:
        api.clear_error()
        with pytest.raises(UninitializedError):
            op()
        if op is not api.table:
            assert api.get_error() == ErrorCode.UNINITIALIZED
            assert api.is_error()
    api.destroy()
    assert api.dump_keys() == []


@pytest.mark.usefixtures("fresh_api")
def test_create_contracts() -> None:
    with pytest.raises(ReleaseFnMissingError):
        api.create(0, True, None, _eq)
    assert api.get_error() == ErrorCode.FREE_VALUE_MISSING

    api.create(0, False, None, _eq)
    assert api.get_error() == ErrorCode.NO_ERROR
    api.destroy()

    with pytest.raises(EqualsFnMissingError):
        api.create(0, True, lambda _v: None, None)
    assert api.get_error() == ErrorCode.VALUE_COMPARE_MISSING

    api.create(0, True, lambda _v: None, _eq)
    assert api.capacity() == 11
    with pytest.raises(AlreadyExistsError):
        api.create(0, True, lambda _v: None, _eq)
    assert api.get_error() == ErrorCode.EXISTS


@pytest.mark.usefixtures("fresh_api")
def test_scenario_through_procedural_api() -> None:
    released: List[int] = []
    api.create(1, True, released.append, _eq)
    assert api.is_empty()
    assert not api.contains_key("aaa")
    assert api.get("aaa") is None
    assert api.get_or_default("aaa", -1) == -1
    assert not api.is_error()

    api.put("aaa", 21)
    api.put("bee", 22)
    api.put("bee", 22)
    assert (api.size(), api.capacity()) == (2, 4)
    api.put("cee", 23)
    assert (api.size(), api.capacity()) == (3, 4)

    assert api.put_if_absent("dee", 24) is None
    assert api.put_if_absent("dee", 99) == 24
    assert api.contains_value(24)

    api.remove("zzz")
    api.remove("aaa")
    assert released == [21]
    api.clear()
    assert (api.size(), api.capacity()) == (0, 1)
    api.destroy()
    assert sorted(released) == [21, 22, 23, 24]


@pytest.mark.usefixtures("fresh_api")
def test_errors_reset_at_entry_of_next_call() -> None:
    api.create(0, False, None, _eq)
    with pytest.raises(InvalidKeyError):
        api.put("", 1)
    assert api.get_error() == ErrorCode.INVALID_KEY
    api.size()
    assert api.get_error() == ErrorCode.NO_ERROR


@pytest.mark.usefixtures("fresh_api")
def test_set_error_coerces_unknown_codes() -> None:
    api.set_error(ErrorCode.INVALID_INDEX)
    assert api.get_error() == ErrorCode.INVALID_INDEX
    api.set_error(999)
    assert api.get_error() == ErrorCode.NO_SUCH_ERROR
    api.set_error(-3)
    assert api.get_error() == ErrorCode.NO_SUCH_ERROR
    api.clear_error()
    assert not api.is_error()


def test_every_code_has_a_description() -> None:
    for code in ErrorCode:
        assert api.describe_error(code)
    assert api.format_error(ErrorCode.INVALID_KEY) == "[Croquette Error  4] The Key is not Valid"
    assert api.describe_error(1234) == "No Such Error Exists"


@pytest.mark.usefixtures("fresh_api")
def test_dump_keys_formats_index_and_key() -> None:
    api.create(11, False, None, _eq)
    api.put("a", 1)
    assert api.dump_keys() == [f"[{(97 << 7) % 11:2d}] a"]
    assert api.table().size() == 1
