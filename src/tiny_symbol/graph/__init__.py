"""
Symbolic graph representation.

- `Node` and `DataEntry` (see `node.py`)
- `Symbol`, the user-facing graph (see `symbol.py`)
- `StaticGraph`, the flattened form used by analysis (see `static.py`)
- Depth-first traversal helpers (see `traversal.py`)
"""

from .node import DataEntry, Node
from .static import BackwardPass, StaticDataEntry, StaticGraph, StaticNode
from .symbol import Group, ShapeInference, Symbol, Variable
from .traversal import dfs_visit, iter_dfs

__all__ = [
    "DataEntry",
    "Node",
    "BackwardPass",
    "StaticDataEntry",
    "StaticGraph",
    "StaticNode",
    "Group",
    "ShapeInference",
    "Symbol",
    "Variable",
    "dfs_visit",
    "iter_dfs",
]
