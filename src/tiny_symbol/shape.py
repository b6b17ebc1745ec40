"""
Array-shape helpers used by operators and the static-graph analyzer.

A shape is a tuple of ints. The empty tuple stands for "not known yet".
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np

from tiny_symbol.errors import ShapeMismatchError

Shape = Tuple[int, ...]

UNKNOWN: Shape = ()


def as_shape(value: Optional[Sequence[int]]) -> Shape:
    if value is None:
        return UNKNOWN
    return tuple(int(dim) for dim in value)


def is_known(shape: Shape) -> bool:
    return len(shape) > 0


def shape_size(shape: Sequence[int]) -> int:
    """Number of elements; 1 for a scalar (empty) shape."""
    return int(np.prod(shape, dtype=np.int64))


def assign_shape(shapes: List[Shape], index: int, value: Shape, *, what: str = "") -> None:
    """
    Fill ``shapes[index]`` with ``value`` if it is unknown, otherwise check that
    both agree. An unknown ``value`` never overwrites anything.
    """
    if not is_known(value):
        return
    current = shapes[index]
    if not is_known(current):
        shapes[index] = value
    elif current != value:
        label = what or f"entry {index}"
        raise ShapeMismatchError(
            f"Shape inconsistent for {label}: expected {current}, inferred {value}"
        )
