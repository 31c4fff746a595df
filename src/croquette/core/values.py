from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, Protocol, TypeVar

V = TypeVar("V")
V_contra = TypeVar("V_contra", contravariant=True)


class ValueOps(Protocol[V_contra]):
    """Capabilities the table needs from its value type."""

    def equals(self, a: V_contra, b: V_contra) -> bool: ...

    def release(self, value: V_contra) -> None: ...


@dataclass(frozen=True)
class CallbackValueOps(Generic[V]):
    """Adapt a plain equality callable (and optional release callable) to ``ValueOps``."""

    equals_fn: Callable[[V, V], bool]
    release_fn: Optional[Callable[[V], None]] = None

    def equals(self, a: V, b: V) -> bool:
        return bool(self.equals_fn(a, b))

    def release(self, value: V) -> None:
        if self.release_fn is not None:
            self.release_fn(value)

    @property
    def can_release(self) -> bool:
        return self.release_fn is not None


class EqualityValueOps(Generic[V]):
    """Compare with ``==`` and never release anything."""

    can_release = False

    def equals(self, a: V, b: V) -> bool:
        return bool(a == b)

    def release(self, value: V) -> None:
        del value


__all__ = ["CallbackValueOps", "EqualityValueOps", "ValueOps"]
