from __future__ import annotations

from tiny_symbol import Group, Variable, ops


def test_two_layer_network_end_to_end() -> None:
    x = Variable("x")
    fc1 = ops.FullyConnected(data=x, num_hidden=16, name="fc1")
    act = ops.Activation(data=fc1, act_type="relu", name="relu1")
    fc2 = ops.FullyConnected(data=act, num_hidden=10, name="fc2")

    shapes = fc2.infer_shape(x=(32, 1, 28, 28))
    assert shapes.complete
    assert dict(zip(fc2.list_arguments(), shapes.arg_shapes)) == {
        "x": (32, 1, 28, 28),
        "fc1_weight": (16, 784),
        "fc1_bias": (16,),
        "fc2_weight": (10, 16),
        "fc2_bias": (10,),
    }
    assert shapes.out_shapes == [(32, 10)]

    weights = [name for name in fc2.list_arguments() if name != "x"]
    grad = fc2.grad(weights)
    assert grad.num_returns() == 4
    assert grad.list_returns() == [
        "fc1_backward_weight_grad",
        "fc1_backward_bias_grad",
        "fc2_backward_weight_grad",
        "fc2_backward_bias_grad",
    ]
    assert fc2.list_arguments() == ["x", *weights]


def test_network_reused_as_function() -> None:
    x = Variable("x")
    fc = ops.FullyConnected(data=x, num_hidden=4, name="fc")
    layer = ops.Activation(data=fc, act_type="relu", name="act")

    left = layer(x=Variable("a"), name="left")
    right = layer(x=Variable("b"), name="right")
    both = Group([left, right])

    assert both.list_returns() == ["left_output", "right_output"]
    assert both.list_arguments() == ["b", "fc_weight", "fc_bias", "a", "fc_weight", "fc_bias"]
    assert both.find_duplicate_args()[1]["fc_weight"] == 2
    assert layer.list_arguments() == ["x", "fc_weight", "fc_bias"]
