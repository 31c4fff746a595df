"""Load-factor driven resize thresholds, computed with integer shifts only."""

from __future__ import annotations

from typing import Optional


def grow_target(size: int, capacity: int) -> Optional[int]:
    """Return the doubled capacity once ``size`` passes 75% or fills the table."""

    if size > (capacity >> 1) + (capacity >> 2) or size >= capacity:
        return capacity << 1
    return None


def shrink_target(size: int, capacity: int) -> Optional[int]:
    """Return the halved capacity once ``size`` drops under 50%."""

    if size < (capacity >> 1):
        return max(1, capacity >> 1)
    return None


__all__ = ["grow_target", "shrink_target"]
