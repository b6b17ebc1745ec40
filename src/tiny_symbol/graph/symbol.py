"""
Symbolic computation graphs.

A ``Symbol`` is a list of head entries over a DAG of ``Node`` objects. It is
built from variables and operator templates, grown by composition and
grouping, and lowered to a ``StaticGraph`` for analysis.

Composition mutates nodes in place, so ``compose`` is meant for graphs the
caller owns exclusively. Calling a symbol (``sym(x, w)``) composes a fresh
copy and leaves the callee untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Set, Tuple, Union

from tiny_symbol.errors import (
    ArityMismatchError,
    AmbiguousNameError,
    NonScalarReceiverError,
    SymbolError,
    TupleArgumentError,
    keyword_argument_mismatch,
)
from tiny_symbol.operators.base import OperatorProperty
from tiny_symbol.shape import Shape, as_shape
from tiny_symbol.utils import config, logger

from .node import DataEntry, Node
from .static import StaticDataEntry, StaticGraph, StaticNode
from .traversal import iter_dfs

# Replacement of ``node.inputs[index]`` by an entry, applied after a full scan.
_ReplacePlan = List[Tuple[Node, int, DataEntry]]


@dataclass(frozen=True)
class ShapeInference:
    """
    Result of ``Symbol.infer_shape``.

    Attributes:
        arg_shapes: one shape per argument, in ``list_arguments`` order.
        out_shapes: one shape per output.
        complete: False if some shape could not be resolved; unresolved
            entries are the empty tuple.
    """

    arg_shapes: List[Shape]
    out_shapes: List[Shape]
    complete: bool


class Symbol:
    def __init__(self, heads: Optional[Sequence[DataEntry]] = None) -> None:
        self._heads: List[DataEntry] = list(heads or [])

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------

    @classmethod
    def create_variable(cls, name: str) -> "Symbol":
        return cls([DataEntry(Node(name=name), 0)])

    @classmethod
    def create(cls, op: OperatorProperty) -> "Symbol":
        """Wrap ``op`` as an atomic template with one head per visible output."""
        node = Node(op=op)
        return cls([DataEntry(node, i) for i in range(op.num_visible_returns())])

    @classmethod
    def create_group(cls, symbols: Sequence["Symbol"]) -> "Symbol":
        heads: List[DataEntry] = []
        for sym in symbols:
            heads.extend(sym._heads)
        return cls(heads)

    # ------------------------------------------------------------------
    # introspection
    # ------------------------------------------------------------------

    @property
    def heads(self) -> Tuple[DataEntry, ...]:
        return tuple(self._heads)

    @property
    def name(self) -> Optional[str]:
        if len(self._heads) != 1:
            return None
        return self._heads[0].source.name

    def num_returns(self) -> int:
        return len(self._heads)

    def is_atomic(self) -> bool:
        return len(self._heads) == 1 and self._heads[0].source.is_atomic()

    def iter_nodes(self) -> Iterator[Node]:
        return iter_dfs(self._heads)

    def list_arguments(self) -> List[str]:
        if self.is_atomic():
            return self._heads[0].source.require_op().list_arguments()
        return [node.name for node in self.iter_nodes() if node.is_variable()]

    def list_returns(self) -> List[str]:
        ret: List[str] = []
        for head in self._heads:
            node = head.source
            if node.is_variable():
                ret.append(node.name)
                continue
            rname = _return_name(node, head.index)
            ret.append(f"{node.name}_{rname}" if node.name else rname)
        return ret

    def find_duplicate_args(self) -> Tuple[int, Dict[str, int]]:
        """
        Count the distinct variable nodes carrying each name.

        Returns:
            The largest count and the per-name counts.
        """
        counts: Dict[str, int] = {}
        for node in self.iter_nodes():
            if node.is_variable():
                counts[node.name] = counts.get(node.name, 0) + 1
        return max(counts.values(), default=1), counts

    def __getitem__(self, index: Union[int, str]) -> "Symbol":
        if isinstance(index, str):
            names = self.list_returns()
            keyword_argument_mismatch("Symbol.__getitem__", [index], names)
            index = names.index(index)
        nreturn = len(self._heads)
        if not 0 <= index < nreturn:
            raise IndexError(f"Symbol has {nreturn} outputs, index {index} is out of range")
        if nreturn == 1:
            return self
        return Symbol([self._heads[index]])

    def __iter__(self) -> Iterator["Symbol"]:
        return (self[i] for i in range(len(self._heads)))

    def debug_str(self) -> str:
        lines: List[str] = []
        if self.is_atomic():
            op = self._heads[0].source.require_op()
            lines.append(f"AtomicFunction Type:{op.type_string()}")
            lines.append("Inputs:")
            lines.extend(f"\targ[{i}]={arg}" for i, arg in enumerate(self.list_arguments()))
            return "\n".join(lines) + "\n"

        lines.append("Outputs:")
        for i, head in enumerate(self._heads):
            lines.append(f"\toutput[{i}]={head.source.name}({head.index})")
        for node in self.iter_nodes():
            if node.is_variable():
                lines.append(f"Variable:{node.name}")
                continue
            lines.append(f"Name: {node.name} Type:{_type_string(node)}")
            lines.append("Inputs:")
            for i, e in enumerate(node.inputs):
                lines.append(f"\targ[{i}]={e.source.name}({e.index})")
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.debug_str()

    def __repr__(self) -> str:
        name = self.name
        if name is not None:
            return f"<Symbol {name}>"
        return f"<Symbol group [{', '.join(self.list_returns())}]>"

    # ------------------------------------------------------------------
    # cloning
    # ------------------------------------------------------------------

    def copy(self) -> "Symbol":
        """Deep copy of every reachable node, preserving the sharing topology."""
        old_new: Dict[Node, Node] = {}
        for node in self.iter_nodes():
            op = node.op.copy() if node.op is not None else None
            old_new[node] = Node(op=op, name=node.name)
        for old, new in old_new.items():
            new.inputs = [DataEntry(old_new[e.source], e.index) for e in old.inputs]
            if old.backward_source is not None:
                new.backward_source = old_new.get(old.backward_source, old.backward_source)
        return Symbol([DataEntry(old_new[h.source], h.index) for h in self._heads])

    def __copy__(self) -> "Symbol":
        return self.copy()

    def __deepcopy__(self, memo: Dict[int, object]) -> "Symbol":
        return self.copy()

    # ------------------------------------------------------------------
    # composition
    # ------------------------------------------------------------------

    def compose(self, *args: "Symbol", name: str = "", **kwargs: "Symbol") -> None:
        """
        Bind free arguments of this graph in place.

        Arguments are given either positionally or by keyword, not both.
        The head node is renamed to ``name`` in either case.
        """
        if args and kwargs:
            raise TypeError(
                "compose only accepts input Symbols either as positional "
                "or keyword arguments, not both"
            )
        if args:
            self._compose_positional(list(args), name)
        else:
            self._compose_keyword(kwargs, name)
        if config.debug:
            logger.debug("composed %s\n%s", name, self.debug_str())

    def __call__(self, *args: "Symbol", name: str = "", **kwargs: "Symbol") -> "Symbol":
        sym = self.copy()
        sym.compose(*args, name=name, **kwargs)
        return sym

    def _check_receiver(self, name: str) -> Node:
        if not self._heads:
            raise NonScalarReceiverError("Cannot compose an empty Symbol")
        head = self._heads[0].source
        # A multi-output operator template is still a single node to bind.
        single_template = head.is_atomic() and all(h.source is head for h in self._heads)
        if len(self._heads) != 1 and not single_template:
            raise NonScalarReceiverError(
                "Only composition of value function is supported currently"
            )
        if head.is_variable():
            raise NonScalarReceiverError("Variable cannot be composed")
        head.name = name
        return head

    def _compose_positional(self, args: List["Symbol"], name: str) -> None:
        head = self._check_receiver(name)
        for i, arg in enumerate(args):
            if arg.num_returns() != 1:
                raise TupleArgumentError(i)

        if head.is_atomic():
            req_args = head.require_op().list_arguments()
            if len(args) != len(req_args):
                raise ArityMismatchError(len(req_args), len(args))
            head.inputs = [arg._heads[0] for arg in args]
            return

        # Edges into the same variable share one argument slot.
        replace_map: Dict[Node, DataEntry] = {}
        plan: _ReplacePlan = []
        for node in self.iter_nodes():
            for i, e in enumerate(node.inputs):
                if not e.source.is_variable():
                    continue
                target = replace_map.get(e.source)
                if target is None:
                    if len(replace_map) >= len(args):
                        replace_map[e.source] = e
                        continue
                    target = args[len(replace_map)]._heads[0]
                    replace_map[e.source] = target
                plan.append((node, i, target))
        if len(replace_map) != len(args):
            raise ArityMismatchError(len(replace_map), len(args))
        _apply_plan(plan)

    def _compose_keyword(self, kwargs: Mapping[str, "Symbol"], name: str) -> None:
        head = self._check_receiver(name)
        for key, arg in kwargs.items():
            if arg.num_returns() != 1:
                raise TupleArgumentError(key)

        nmatched = 0
        if head.is_atomic():
            candidates = head.require_op().list_arguments()
            inputs: List[DataEntry] = []
            for req in candidates:
                arg = kwargs.get(req)
                if arg is not None:
                    inputs.append(arg._heads[0])
                    nmatched += 1
                else:
                    var_name = f"{name}_{req}" if name else req
                    inputs.append(DataEntry(Node(name=var_name), 0))
            if nmatched == len(kwargs):
                head.inputs = inputs
        else:
            candidates = self.list_arguments()
            max_dup, counts = self.find_duplicate_args()
            if max_dup > 1:
                raise AmbiguousNameError({k: v for k, v in counts.items() if v > 1})
            plan: _ReplacePlan = []
            matched: Set[Node] = set()
            for node in self.iter_nodes():
                for i, e in enumerate(node.inputs):
                    if not e.source.is_variable() or e.source.name not in kwargs:
                        continue
                    if e.source not in matched:
                        matched.add(e.source)
                        nmatched += 1
                    plan.append((node, i, kwargs[e.source.name]._heads[0]))
            if nmatched == len(kwargs):
                _apply_plan(plan)

        if nmatched != len(kwargs):
            keyword_argument_mismatch("Symbol.compose", list(kwargs), candidates)

    # ------------------------------------------------------------------
    # lowering and analysis
    # ------------------------------------------------------------------

    def to_static_graph(self) -> StaticGraph:
        """Flatten the graph; ids follow DFS discovery order."""
        node_order = list(self.iter_nodes())
        node_index: Dict[Node, int] = {node: nid for nid, node in enumerate(node_order)}

        graph = StaticGraph()
        for nid, node in enumerate(node_order):
            if node.is_variable():
                graph.arg_nodes.append(nid)
            backward_source_id = -1
            if node.backward_source is not None:
                backward_source_id = node_index.get(node.backward_source, -1)
                if backward_source_id == -1:
                    logger.debug("backward source of %s is outside the graph", node.name)
            graph.nodes.append(
                StaticNode(
                    op=node.op.copy() if node.op is not None else None,
                    name=node.name,
                    inputs=[StaticDataEntry(node_index[e.source], e.index) for e in node.inputs],
                    backward_source_id=backward_source_id,
                    is_backward_node=node.is_backward(),
                )
            )
        graph.heads = [StaticDataEntry(node_index[h.source], h.index) for h in self._heads]
        if config.debug:
            graph.validate()
        return graph

    def grad(self, wrt: Sequence[str]) -> "Symbol":
        """
        Build the graph computing gradients of this graph's outputs with
        respect to the arguments named in ``wrt``.

        The returned graph reuses this graph's nodes by reference wherever a
        gradient reads forward values; gradient nodes link back to the
        forward node they were derived from.
        """
        if self.is_atomic():
            raise SymbolError("Cannot take the gradient of an unbound operator, compose it first.")
        arg_list = self.list_arguments()
        keyword_argument_mismatch("Symbol.grad", list(wrt), arg_list)

        graph = self.to_static_graph()
        num_nodes = len(graph.nodes)
        backward = graph.make_backward_pass()

        shared: List[Node] = list(self.iter_nodes())
        for snode in graph.nodes[num_nodes:]:
            node = Node(
                op=snode.op.copy() if snode.op is not None else None,
                name=snode.name,
                inputs=[DataEntry(shared[e.source_id], e.index) for e in snode.inputs],
            )
            if snode.backward_source_id != -1:
                node.backward_source = shared[snode.backward_source_id]
            shared.append(node)

        arg_index = {arg: i for i, arg in enumerate(arg_list)}
        heads: List[DataEntry] = []
        for arg in wrt:
            e = backward.arg_grads[arg_index[arg]]
            heads.append(DataEntry(shared[e.source_id], e.index))
        logger.debug("grad wrt %s added %d nodes", list(wrt), len(shared) - num_nodes)
        return Symbol(heads)

    def infer_shape(
        self, *arg_shapes: Optional[Sequence[int]], **known_shapes: Sequence[int]
    ) -> ShapeInference:
        """
        Infer argument and output shapes from known argument shapes.

        Shapes are given either positionally, one per argument in
        ``list_arguments`` order (None for unknown), or by argument name.
        """
        if arg_shapes and known_shapes:
            raise ValueError(
                "Can only specify known argument shapes either by positional or kwargs way."
            )
        graph = self.to_static_graph()
        if known_shapes:
            shapes: List[Shape] = [as_shape(None)] * len(graph.arg_nodes)
            matched: Set[str] = set()
            for i, nid in enumerate(graph.arg_nodes):
                arg = graph.nodes[nid].name
                if arg in known_shapes:
                    shapes[i] = as_shape(known_shapes[arg])
                    matched.add(arg)
            if len(matched) != len(known_shapes):
                keyword_argument_mismatch(
                    "Symbol.infer_shape", list(known_shapes), self.list_arguments()
                )
        else:
            shapes = [as_shape(s) for s in arg_shapes]
            if not shapes:
                shapes = [as_shape(None)] * len(graph.arg_nodes)

        out_shapes: List[Shape] = []
        complete = graph.infer_shape(shapes, out_shapes)
        if not complete:
            logger.debug("shape inference incomplete for %r", self)
        return ShapeInference(arg_shapes=shapes, out_shapes=out_shapes, complete=complete)


def _apply_plan(plan: _ReplacePlan) -> None:
    for node, index, target in plan:
        node.inputs[index] = target


def _type_string(node: Node) -> str:
    if node.backward_source is not None and node.backward_source.op is not None:
        return node.backward_source.op.type_string()
    return node.require_op().type_string()


def _return_name(node: Node, index: int) -> str:
    if node.op is not None:
        return node.op.list_returns()[index]
    if node.backward_source is None:
        raise SymbolError(f"Node `{node.name}` has no named outputs.")
    return f"{node.backward_source.require_op().list_arguments()[index]}_grad"


def Variable(name: str) -> Symbol:
    """Create a named free variable."""
    return Symbol.create_variable(name)


def Group(symbols: Sequence[Symbol]) -> Symbol:
    """Concatenate the outputs of several symbols into one symbol."""
    return Symbol.create_group(symbols)
