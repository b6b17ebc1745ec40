"""
Operator descriptors.

An ``OperatorProperty`` describes *what* an operator node computes at the
graph level: its argument and return names, how shapes propagate through it
and which forward entries its gradient depends on. Numeric kernels live
elsewhere.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, TypeVar

from tiny_symbol.shape import Shape

T = TypeVar("T")


class OperatorProperty(ABC):
    """Base class for operator descriptors."""

    type_name: ClassVar[str] = ""
    # Parameter the front end fills with the number of positional inputs.
    key_var_num_args: ClassVar[Optional[str]] = None

    def __init__(self, **params: Any) -> None:
        self.params: Dict[str, Any] = {}
        self.init(params)

    @abstractmethod
    def init(self, params: Mapping[str, Any]) -> None:
        """Validate ``params`` and store the normalized values in ``self.params``."""

    def copy(self) -> "OperatorProperty":
        return type(self)(**self.params)

    def type_string(self) -> str:
        return self.type_name or type(self).__name__

    def list_arguments(self) -> List[str]:
        return ["data"]

    def list_returns(self) -> List[str]:
        return ["output"]

    def num_returns(self) -> int:
        return len(self.list_returns())

    def num_visible_returns(self) -> int:
        return self.num_returns()

    @abstractmethod
    def infer_shape(self, in_shapes: List[Shape], out_shapes: List[Shape]) -> bool:
        """
        Fill unknown entries of ``in_shapes`` and ``out_shapes`` in place.

        Returns:
            False when not enough is known to resolve the outputs.

        Raises:
            ShapeMismatchError: two known shapes disagree.
        """

    def backward_inputs(
        self, out_grad: Sequence[T], in_data: Sequence[T], out_data: Sequence[T]
    ) -> List[T]:
        """Forward entries the gradient computation reads, in order."""
        return [*out_grad, *in_data, *out_data]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OperatorProperty):
            return NotImplemented
        return type(self) is type(other) and self.params == other.params

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in self.params.items())
        return f"{self.type_string()}({params})"


def positive_int(params: Mapping[str, Any], key: str, op_name: str) -> int:
    if key not in params:
        raise ValueError(f"{op_name} requires parameter `{key}`.")
    value = int(params[key])
    if value <= 0:
        raise ValueError(f"{op_name}: `{key}` must be positive, got {value}.")
    return value


def reject_unknown(params: Mapping[str, Any], allowed: Sequence[str], op_name: str) -> None:
    unknown = sorted(set(params) - set(allowed))
    if unknown:
        raise ValueError(f"{op_name} got unexpected parameters: {', '.join(unknown)}")
