"""
Reference operators: dense layer, elementwise activation, n-ary sum and
channel split.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Sequence, TypeVar

from tiny_symbol.errors import ShapeMismatchError
from tiny_symbol.operators.base import OperatorProperty, positive_int, reject_unknown
from tiny_symbol.operators.registry import register_operator
from tiny_symbol.shape import Shape, assign_shape, is_known, shape_size

T = TypeVar("T")


@register_operator
class FullyConnected(OperatorProperty):
    """Dense layer ``output = data @ weight.T + bias`` over flattened inputs."""

    type_name = "FullyConnected"

    def init(self, params: Mapping[str, Any]) -> None:
        reject_unknown(params, ("num_hidden", "no_bias"), self.type_name)
        self.params = {
            "num_hidden": positive_int(params, "num_hidden", self.type_name),
            "no_bias": bool(params.get("no_bias", False)),
        }

    def list_arguments(self) -> List[str]:
        if self.params["no_bias"]:
            return ["data", "weight"]
        return ["data", "weight", "bias"]

    def infer_shape(self, in_shapes: List[Shape], out_shapes: List[Shape]) -> bool:
        data = in_shapes[0]
        if not is_known(data):
            return False
        num_hidden = self.params["num_hidden"]
        assign_shape(in_shapes, 1, (num_hidden, shape_size(data[1:])), what="weight")
        if not self.params["no_bias"]:
            assign_shape(in_shapes, 2, (num_hidden,), what="bias")
        assign_shape(out_shapes, 0, (data[0], num_hidden), what="output")
        return True

    def backward_inputs(
        self, out_grad: Sequence[T], in_data: Sequence[T], out_data: Sequence[T]
    ) -> List[T]:
        return [out_grad[0], in_data[0], in_data[1]]


@register_operator
class Activation(OperatorProperty):
    """Elementwise nonlinearity."""

    type_name = "Activation"
    act_types = ("relu", "sigmoid", "tanh")

    def init(self, params: Mapping[str, Any]) -> None:
        reject_unknown(params, ("act_type",), self.type_name)
        act_type = params.get("act_type")
        if act_type not in self.act_types:
            raise ValueError(
                f"Activation: act_type must be one of {self.act_types}, got {act_type!r}."
            )
        self.params = {"act_type": act_type}

    def infer_shape(self, in_shapes: List[Shape], out_shapes: List[Shape]) -> bool:
        shape = in_shapes[0] if is_known(in_shapes[0]) else out_shapes[0]
        if not is_known(shape):
            return False
        assign_shape(in_shapes, 0, shape, what="data")
        assign_shape(out_shapes, 0, shape, what="output")
        return True

    def backward_inputs(
        self, out_grad: Sequence[T], in_data: Sequence[T], out_data: Sequence[T]
    ) -> List[T]:
        return [out_grad[0], out_data[0]]


@register_operator
class ElementWiseSum(OperatorProperty):
    type_name = "ElementWiseSum"
    key_var_num_args = "num_args"

    def init(self, params: Mapping[str, Any]) -> None:
        reject_unknown(params, ("num_args",), self.type_name)
        self.params = {"num_args": positive_int(params, "num_args", self.type_name)}

    def list_arguments(self) -> List[str]:
        return [f"arg{i}" for i in range(self.params["num_args"])]

    def infer_shape(self, in_shapes: List[Shape], out_shapes: List[Shape]) -> bool:
        known = [s for s in [*in_shapes, out_shapes[0]] if is_known(s)]
        if not known:
            return False
        for i in range(len(in_shapes)):
            assign_shape(in_shapes, i, known[0], what=f"arg{i}")
        assign_shape(out_shapes, 0, known[0], what="output")
        return True

    def backward_inputs(
        self, out_grad: Sequence[T], in_data: Sequence[T], out_data: Sequence[T]
    ) -> List[T]:
        return [out_grad[0]]


@register_operator
class SliceChannel(OperatorProperty):
    """Split ``data`` evenly along axis 1."""

    type_name = "SliceChannel"

    def init(self, params: Mapping[str, Any]) -> None:
        reject_unknown(params, ("num_outputs",), self.type_name)
        self.params = {"num_outputs": positive_int(params, "num_outputs", self.type_name)}

    def list_returns(self) -> List[str]:
        return [f"output{i}" for i in range(self.params["num_outputs"])]

    def infer_shape(self, in_shapes: List[Shape], out_shapes: List[Shape]) -> bool:
        data = in_shapes[0]
        if not is_known(data):
            return False
        num_outputs = self.params["num_outputs"]
        if len(data) < 2 or data[1] % num_outputs != 0:
            raise ShapeMismatchError(
                f"SliceChannel: cannot split shape {data} into {num_outputs} along axis 1"
            )
        sliced = (data[0], data[1] // num_outputs, *data[2:])
        for i in range(num_outputs):
            assign_shape(out_shapes, i, sliced, what=f"output{i}")
        return True

    def backward_inputs(
        self, out_grad: Sequence[T], in_data: Sequence[T], out_data: Sequence[T]
    ) -> List[T]:
        return list(out_grad)


__all__ = ["FullyConnected", "Activation", "ElementWiseSum", "SliceChannel"]
