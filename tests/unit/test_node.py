from __future__ import annotations

import pytest

from tiny_symbol.errors import SymbolError
from tiny_symbol.graph.node import DataEntry, Node
from tiny_symbol.graph.static import StaticNode
from tiny_symbol.operators import create_operator


def test_node_classification() -> None:
    var = Node(name="x")
    template = Node(op=create_operator("Activation", act_type="relu"))
    applied = Node(op=create_operator("Activation", act_type="relu"), inputs=[DataEntry(var)])
    backward = Node(name="act_backward", backward_source=applied)

    assert var.is_variable() and not var.is_atomic()
    assert template.is_atomic() and not template.is_variable()
    assert not applied.is_atomic() and not applied.is_variable()
    assert backward.is_backward() and not backward.is_variable()


def test_nodes_compare_by_identity() -> None:
    a = Node(name="x")
    b = Node(name="x")
    assert a != b
    assert len({a, b}) == 2
    assert DataEntry(a, 0) == DataEntry(a, 0)
    assert DataEntry(a, 0) != DataEntry(b, 0)


def test_require_op_rejects_nodes_without_operator() -> None:
    op = create_operator("Activation", act_type="relu")
    assert Node(op=op, name="act").require_op() is op
    assert StaticNode(op=op, name="act").require_op() is op

    with pytest.raises(SymbolError, match="`x` carries no operator"):
        Node(name="x").require_op()
    with pytest.raises(SymbolError, match="`x` carries no operator"):
        StaticNode(name="x").require_op()
