"""
Flattened, index-addressed graph used by analysis passes.

``Symbol.to_static_graph`` produces a ``StaticGraph`` whose nodes are
addressed by dense integer ids. This module also carries the reference
analyzer over that form: topological ordering, structural validation,
shape inference and construction of the backward pass.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from tiny_symbol.errors import ArityMismatchError, SymbolError
from tiny_symbol.operators.base import OperatorProperty
from tiny_symbol.operators.registry import create_operator
from tiny_symbol.shape import UNKNOWN, Shape, assign_shape
from tiny_symbol.utils import logger


@dataclass(frozen=True)
class StaticDataEntry:
    source_id: int
    index: int = 0


@dataclass
class StaticNode:
    op: Optional[OperatorProperty] = None
    name: str = ""
    inputs: List[StaticDataEntry] = field(default_factory=list)
    # -1 when the node is not a backward node, or its source was not lowered.
    backward_source_id: int = -1
    # Marks a backward node even when its forward source is out of reach.
    is_backward_node: bool = False

    def is_variable(self) -> bool:
        return self.op is None and not self.is_backward()

    def is_forward(self) -> bool:
        return self.op is not None and not self.is_backward()

    def is_backward(self) -> bool:
        return self.is_backward_node or self.backward_source_id != -1

    def require_op(self) -> OperatorProperty:
        if self.op is None:
            raise SymbolError(f"Node `{self.name}` carries no operator.")
        return self.op


@dataclass(frozen=True)
class BackwardPass:
    """
    Attributes:
        head_grad_nodes: per head, the id of the variable node that feeds its
            output gradient.
        arg_grads: per entry of ``arg_nodes``, the entry holding its gradient.
    """

    head_grad_nodes: List[int]
    arg_grads: List[StaticDataEntry]


@dataclass
class StaticGraph:
    nodes: List[StaticNode] = field(default_factory=list)
    arg_nodes: List[int] = field(default_factory=list)
    heads: List[StaticDataEntry] = field(default_factory=list)

    def validate(self) -> None:
        """
        Validate structural soundness:
        - inputs, heads and backward sources reference existing nodes
        - argument nodes are variables
        - graph is acyclic
        """
        num_nodes = len(self.nodes)
        problems: List[str] = []
        for nid, node in enumerate(self.nodes):
            for e in node.inputs:
                if not 0 <= e.source_id < num_nodes:
                    problems.append(f"{node.name}[{nid}] -> {e.source_id}")
            if not -1 <= node.backward_source_id < num_nodes:
                problems.append(f"{node.name}[{nid}] backward -> {node.backward_source_id}")
        for e in self.heads:
            if not 0 <= e.source_id < num_nodes:
                problems.append(f"head -> {e.source_id}")
        if problems:
            raise ValueError("Graph references unknown nodes:\n" + "\n".join(problems))

        for nid in self.arg_nodes:
            if not 0 <= nid < num_nodes or not self.nodes[nid].is_variable():
                raise ValueError(f"Argument node `{nid}` is not a variable of the graph.")

        # Will raise if a cycle exists.
        self.topological_sort()

    def topological_sort(self) -> List[int]:
        """
        Kahn topo-sort over node ids; ties resolve to the smaller id.

        Returns:
            List of node ids in a valid topological order.
        """
        num_nodes = len(self.nodes)
        indeg = [0] * num_nodes
        succ: List[List[int]] = [[] for _ in range(num_nodes)]

        for nid, node in enumerate(self.nodes):
            for e in node.inputs:
                if not 0 <= e.source_id < num_nodes:
                    raise KeyError(
                        f"Node `{node.name}` depends on unknown predecessor `{e.source_id}`."
                    )
                indeg[nid] += 1
                succ[e.source_id].append(nid)

        ready = deque(nid for nid in range(num_nodes) if indeg[nid] == 0)
        order: List[int] = []

        while ready:
            current = ready.popleft()
            order.append(current)
            for child in sorted(succ[current]):
                indeg[child] -= 1
                if indeg[child] == 0:
                    ready.append(child)

        if len(order) != num_nodes:
            raise ValueError("Graph has cycles or is malformed.")

        return order

    def num_node_outputs(self, nid: int) -> int:
        node = self.nodes[nid]
        if node.is_backward():
            if node.backward_source_id == -1:
                return 1
            return len(self.nodes[node.backward_source_id].inputs)
        if node.op is not None:
            return node.op.num_returns()
        return 1

    # ------------------------------------------------------------------
    # shape inference
    # ------------------------------------------------------------------

    def infer_shape(self, arg_shapes: List[Shape], out_shapes: List[Shape]) -> bool:
        """
        Propagate shapes from ``arg_shapes`` through the graph.

        Both lists are updated in place: ``arg_shapes`` receives any argument
        shape an operator could deduce, ``out_shapes`` is resized to one
        entry per head. Returns False when some node could not be resolved;
        whatever was inferred up to that point is still written out.
        """
        if len(arg_shapes) != len(self.arg_nodes):
            raise ArityMismatchError(len(self.arg_nodes), len(arg_shapes))

        node_shapes: List[List[Shape]] = [
            [UNKNOWN] * self.num_node_outputs(nid) for nid in range(len(self.nodes))
        ]
        for i, nid in enumerate(self.arg_nodes):
            node_shapes[nid][0] = arg_shapes[i]

        complete = self._infer_node_shapes(self.topological_sort(), node_shapes)

        for i, nid in enumerate(self.arg_nodes):
            arg_shapes[i] = node_shapes[nid][0]
        out_shapes[:] = [node_shapes[e.source_id][e.index] for e in self.heads]
        return complete

    def _infer_node_shapes(self, order: List[int], node_shapes: List[List[Shape]]) -> bool:
        for nid in order:
            node = self.nodes[nid]
            if node.is_forward():
                op = node.require_op()
                if len(node.inputs) != len(op.list_arguments()):
                    logger.debug("shape of unbound operator %s cannot be inferred", node.name)
                    return False
                in_shapes = [node_shapes[e.source_id][e.index] for e in node.inputs]
                if not op.infer_shape(in_shapes, node_shapes[nid]):
                    logger.debug("shape inference stopped at %s", node.name)
                    return False
                for e, shape in zip(node.inputs, in_shapes):
                    assign_shape(node_shapes[e.source_id], e.index, shape, what=node.name)
            elif node.is_backward():
                if node.backward_source_id == -1:
                    logger.debug("backward node %s has no forward source", node.name)
                    return False
                if not self._infer_backward_shapes(node, node_shapes[nid], node_shapes):
                    return False
        return True

    def _infer_backward_shapes(
        self, node: StaticNode, in_grad_shapes: List[Shape], node_shapes: List[List[Shape]]
    ) -> bool:
        forward = self.nodes[node.backward_source_id]
        forward_op = forward.require_op()
        # Gradient of input i has the shape of input i.
        for i, e in enumerate(forward.inputs):
            assign_shape(in_grad_shapes, i, node_shapes[e.source_id][e.index], what=node.name)

        out_data = node_shapes[node.backward_source_id]
        out_grad = out_data[: forward_op.num_visible_returns()]
        in_data = [node_shapes[e.source_id][e.index] for e in forward.inputs]
        expected = forward_op.backward_inputs(out_grad, in_data, out_data)
        if len(expected) != len(node.inputs):
            return False
        for e, shape in zip(node.inputs, expected):
            assign_shape(node_shapes[e.source_id], e.index, shape, what=node.name)
        return True

    # ------------------------------------------------------------------
    # backward pass
    # ------------------------------------------------------------------

    def make_backward_pass(self) -> BackwardPass:
        """
        Append gradient nodes to this graph.

        One gradient-input variable is added per head, then one backward node
        per forward node in reverse topological order. Entries that receive
        several gradient contributions are summed by an ``ElementWiseSum``
        node. Returns where the head gradients enter and where each argument
        gradient can be read.
        """
        # Order of the forward graph, before new nodes are added.
        order = self.topological_sort()
        grad_map: Dict[StaticDataEntry, List[StaticDataEntry]] = {}
        head_grad_nodes: List[int] = []

        for head in self.heads:
            nid = len(self.nodes)
            self.nodes.append(
                StaticNode(name=f"{self.nodes[head.source_id].name}_{head.index}_grad")
            )
            head_grad_nodes.append(nid)
            grad_map.setdefault(head, []).append(StaticDataEntry(nid, 0))

        for nid in reversed(order):
            node = self.nodes[nid]
            if node.is_variable():
                continue
            if node.is_backward():
                raise SymbolError("Backward of a backward node is not supported.")
            op = node.require_op()
            out_grad: List[StaticDataEntry] = []
            out_data: List[StaticDataEntry] = []
            num_visible = op.num_visible_returns()
            for i in range(op.num_returns()):
                odata = StaticDataEntry(nid, i)
                out_data.append(odata)
                if i >= num_visible:
                    continue
                grads = grad_map.get(odata)
                if grads is None:
                    # Output never consumed on the way to a head.
                    grads = [self._append_zero_grad(f"{node.name}_{i}_grad")]
                out_grad.append(self._aggregate(grads, f"{node.name}_out_grad_agg"))

            grad_nid = len(self.nodes)
            self.nodes.append(
                StaticNode(
                    name=f"{node.name}_backward",
                    inputs=op.backward_inputs(out_grad, node.inputs, out_data),
                    backward_source_id=nid,
                )
            )
            for i, idata in enumerate(node.inputs):
                grad_map.setdefault(idata, []).append(StaticDataEntry(grad_nid, i))

        arg_grads: List[StaticDataEntry] = []
        for arg_id in self.arg_nodes:
            odata = StaticDataEntry(arg_id, 0)
            grads = grad_map.get(odata)
            if grads is None:
                raise SymbolError(f"Argument `{self.nodes[arg_id].name}` receives no gradient.")
            arg_grads.append(self._aggregate(grads, f"{self.nodes[arg_id].name}_grad_agg"))

        logger.debug(
            "backward pass appended %d nodes to %d forward nodes",
            len(self.nodes) - len(order),
            len(order),
        )
        return BackwardPass(head_grad_nodes=head_grad_nodes, arg_grads=arg_grads)

    def _aggregate(self, grads: List[StaticDataEntry], name: str) -> StaticDataEntry:
        if len(grads) == 1:
            return grads[0]
        nid = len(self.nodes)
        self.nodes.append(
            StaticNode(
                op=create_operator("ElementWiseSum", num_args=len(grads)),
                name=name,
                inputs=list(grads),
            )
        )
        return StaticDataEntry(nid, 0)

    def _append_zero_grad(self, name: str) -> StaticDataEntry:
        nid = len(self.nodes)
        self.nodes.append(StaticNode(name=name))
        return StaticDataEntry(nid, 0)
