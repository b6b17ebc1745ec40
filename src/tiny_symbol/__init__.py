"""
tiny-symbol

Symbolic computation graphs: composition, cloning, lowering to an
index-addressed form, and graph-level automatic differentiation.
"""

from .graph import Group, StaticGraph, Symbol, Variable
from .operators import OperatorProperty, create_operator, register_operator
from .naming import NameManager
from . import errors
from . import ops

__all__ = [
    "Group",
    "StaticGraph",
    "Symbol",
    "Variable",
    "OperatorProperty",
    "create_operator",
    "register_operator",
    "NameManager",
    "errors",
    "ops",
]
