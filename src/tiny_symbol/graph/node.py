from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from tiny_symbol.errors import SymbolError
from tiny_symbol.operators.base import OperatorProperty


@dataclass(eq=False)
class Node:
    """
    Vertex of a symbolic graph. Nodes compare and hash by identity.

    Exactly one of the following holds:
    - Variable: no operator and no backward source; a named placeholder.
    - Atomic operator template: an operator with no inputs bound yet.
    - Applied node: an operator with its inputs bound.
    - Backward node: carries ``backward_source``, the forward node it was
      derived from. That link is never followed by graph traversal.
    """

    op: Optional[OperatorProperty] = None
    name: str = ""
    inputs: List["DataEntry"] = field(default_factory=list, repr=False)
    backward_source: Optional["Node"] = field(default=None, repr=False)

    def is_atomic(self) -> bool:
        return not self.inputs and self.op is not None

    def is_variable(self) -> bool:
        return self.op is None and self.backward_source is None

    def is_backward(self) -> bool:
        return self.backward_source is not None

    def require_op(self) -> OperatorProperty:
        if self.op is None:
            raise SymbolError(f"Node `{self.name}` carries no operator.")
        return self.op


@dataclass(frozen=True)
class DataEntry:
    """Output ``index`` of node ``source``."""

    source: Node
    index: int = 0
