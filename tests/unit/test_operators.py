from __future__ import annotations

from typing import Any, List, Mapping

import pytest

from tiny_symbol.errors import OperatorNotFoundError, ShapeMismatchError
from tiny_symbol.operators import (
    OperatorProperty,
    create_operator,
    get_operator,
    list_operators,
    register_operator,
)
from tiny_symbol.shape import Shape


def test_reference_operators_registered() -> None:
    names = list_operators()
    for name in ("Activation", "ElementWiseSum", "FullyConnected", "SliceChannel"):
        assert name in names


def test_unknown_operator() -> None:
    with pytest.raises(OperatorNotFoundError) as info:
        create_operator("Convolution")
    assert info.value.op_name == "Convolution"


@pytest.mark.parametrize(
    "name, params",
    [
        ("FullyConnected", {}),
        ("FullyConnected", {"num_hidden": 0}),
        ("FullyConnected", {"num_hidden": 4, "kernel": 3}),
        ("Activation", {"act_type": "softsign"}),
        ("ElementWiseSum", {}),
        ("SliceChannel", {"num_outputs": -1}),
    ],
)
def test_invalid_parameters(name: str, params: Mapping[str, Any]) -> None:
    with pytest.raises(ValueError):
        create_operator(name, **params)


def test_copy_and_equality() -> None:
    op = create_operator("FullyConnected", num_hidden=4)
    clone = op.copy()
    assert clone is not op
    assert clone == op
    assert op != create_operator("FullyConnected", num_hidden=5)
    assert op.type_string() == "FullyConnected"
    assert repr(op) == "FullyConnected(num_hidden=4, no_bias=False)"


def test_fully_connected_arguments_and_shapes() -> None:
    op = create_operator("FullyConnected", num_hidden=4, no_bias=True)
    assert op.list_arguments() == ["data", "weight"]

    in_shapes: List[Shape] = [(2, 3), ()]
    out_shapes: List[Shape] = [()]
    assert op.infer_shape(in_shapes, out_shapes)
    assert in_shapes == [(2, 3), (4, 3)]
    assert out_shapes == [(2, 4)]

    assert not op.infer_shape([(), ()], [()])


def test_activation_infers_from_output() -> None:
    op = create_operator("Activation", act_type="tanh")
    in_shapes: List[Shape] = [()]
    out_shapes: List[Shape] = [(5, 2)]
    assert op.infer_shape(in_shapes, out_shapes)
    assert in_shapes == [(5, 2)]


def test_elementwise_sum_rejects_conflicting_inputs() -> None:
    op = create_operator("ElementWiseSum", num_args=2)
    assert op.list_arguments() == ["arg0", "arg1"]
    with pytest.raises(ShapeMismatchError):
        op.infer_shape([(2, 2), (2, 3)], [()])


def test_slice_channel_requires_divisible_axis() -> None:
    op = create_operator("SliceChannel", num_outputs=3)
    assert op.num_returns() == 3
    with pytest.raises(ShapeMismatchError):
        op.infer_shape([(2, 4)], [(), (), ()])


def test_default_backward_inputs_take_everything() -> None:
    op = get_operator("ElementWiseSum")(num_args=1)
    assert OperatorProperty.backward_inputs(op, ["g"], ["x"], ["y"]) == ["g", "x", "y"]


def test_register_custom_operator() -> None:
    @register_operator
    class Identity(OperatorProperty):
        type_name = "TestIdentity"

        def init(self, params: Mapping[str, Any]) -> None:
            self.params = dict(params)

        def infer_shape(self, in_shapes: List[Shape], out_shapes: List[Shape]) -> bool:
            out_shapes[0] = in_shapes[0]
            return bool(in_shapes[0])

    assert get_operator("TestIdentity") is Identity
    assert create_operator("TestIdentity").list_arguments() == ["data"]

    with pytest.raises(ValueError):

        @register_operator
        class Other(Identity):
            type_name = "TestIdentity"
