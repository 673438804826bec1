"""Fixed-size partitioning of ordered sequences."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """Split ``items`` into consecutive lists of at most ``size`` elements.

    Concatenating the result reproduces ``items``; only the last chunk may be
    shorter than ``size``.  An empty input yields an empty list.

    Raises:
        ValueError: If ``size`` is not a positive integer.
    """
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]
