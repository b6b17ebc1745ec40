"""
Operator descriptors and their registry.

Importing this package registers the reference operators in ``nn.py``.
"""

from .base import OperatorProperty
from .registry import create_operator, get_operator, list_operators, register_operator
from .nn import Activation, ElementWiseSum, FullyConnected, SliceChannel

__all__ = [
    "OperatorProperty",
    "create_operator",
    "get_operator",
    "list_operators",
    "register_operator",
    "Activation",
    "ElementWiseSum",
    "FullyConnected",
    "SliceChannel",
]
