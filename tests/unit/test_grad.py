from __future__ import annotations

import pytest

from tiny_symbol import ops
from tiny_symbol.errors import SymbolError, UnknownKeywordError
from tiny_symbol.graph.symbol import Symbol, Variable
from tiny_symbol.operators import create_operator


def test_grad_links_back_to_forward_node() -> None:
    x = Variable("x")
    act = ops.Activation(data=x, act_type="relu", name="act")
    grad = act.grad(["x"])

    assert grad.num_returns() == 1
    backward = grad.heads[0].source
    assert backward.is_backward()
    assert backward.backward_source is act.heads[0].source
    assert backward.backward_source.op.type_string() == "Activation"
    assert "Name: act_backward Type:Activation" in grad.debug_str()


def test_grad_reuses_forward_nodes() -> None:
    x = Variable("x")
    act = ops.Activation(data=x, act_type="relu", name="act")
    grad = act.grad(["x"])

    forward_nodes = set(act.iter_nodes())
    grad_nodes = set(grad.iter_nodes())
    assert forward_nodes <= grad_nodes
    assert grad.list_arguments() == ["act_0_grad", "x"]
    # the forward graph is not modified
    assert act.list_arguments() == ["x"]


def test_grad_of_several_arguments() -> None:
    x = Variable("x")
    fc1 = ops.FullyConnected(data=x, num_hidden=8, name="fc1")
    act = ops.Activation(data=fc1, act_type="relu", name="relu1")
    fc2 = ops.FullyConnected(data=act, num_hidden=3, name="fc2")

    grad = fc2.grad(["x", "fc2_weight"])
    assert grad.list_returns() == ["fc1_backward_data_grad", "fc2_backward_weight_grad"]
    assert grad.heads[0].source.backward_source is fc1.heads[0].source
    assert grad.heads[1].source.backward_source is fc2.heads[0].source
    assert grad.heads[1].index == 1
    assert "fc2_0_grad" in grad.list_arguments()


def test_grad_sums_repeated_uses() -> None:
    x = Variable("x")
    total = ops.ElementWiseSum(x, x, name="sum")
    grad = total.grad(["x"])

    agg = grad.heads[0].source
    assert agg.name == "x_grad_agg"
    assert agg.op.type_string() == "ElementWiseSum"
    assert agg.inputs[0].source is agg.inputs[1].source
    assert agg.inputs[0].source.backward_source is total.heads[0].source
    assert grad.list_arguments() == ["sum_0_grad"]


def test_grad_of_variable_is_its_head_gradient() -> None:
    grad = Variable("x").grad(["x"])
    assert grad.heads[0].source.is_variable()
    assert grad.list_arguments() == ["x_0_grad"]


def test_grad_unknown_names_reported_together() -> None:
    x = Variable("x")
    act = ops.Activation(data=x, act_type="relu", name="act")
    with pytest.raises(UnknownKeywordError) as info:
        act.grad(["z", "x", "w"])
    assert info.value.unmatched == ["z", "w"]
    assert info.value.candidates == ["x"]
    assert "[0]x" in str(info.value)


def test_grad_of_gradient_graph_is_rejected() -> None:
    x = Variable("x")
    act = ops.Activation(data=x, act_type="relu", name="act")
    with pytest.raises(SymbolError):
        act.grad(["x"]).grad(["x"])


def test_grad_of_unbound_template_is_rejected() -> None:
    template = Symbol.create(create_operator("Activation", act_type="relu"))
    with pytest.raises(SymbolError):
        template.grad(["data"])
