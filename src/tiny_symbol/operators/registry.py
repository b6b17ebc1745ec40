"""
Name-keyed registry of operator descriptor classes.
"""

from __future__ import annotations

from typing import Any, Dict, List, Type, TypeVar

from tiny_symbol.errors import OperatorNotFoundError
from tiny_symbol.operators.base import OperatorProperty
from tiny_symbol.utils import logger

_OPERATORS: Dict[str, Type[OperatorProperty]] = {}

OpT = TypeVar("OpT", bound=Type[OperatorProperty])


def register_operator(cls: OpT) -> OpT:
    """Class decorator adding ``cls`` to the registry under its ``type_name``."""
    name = cls.type_name or cls.__name__
    if name in _OPERATORS and _OPERATORS[name] is not cls:
        raise ValueError(f"Duplicate operator name: {name}")
    _OPERATORS[name] = cls
    logger.debug("registered operator %s", name)
    return cls


def get_operator(name: str) -> Type[OperatorProperty]:
    try:
        return _OPERATORS[name]
    except KeyError:
        raise OperatorNotFoundError(name) from None


def create_operator(name: str, **params: Any) -> OperatorProperty:
    return get_operator(name)(**params)


def list_operators() -> List[str]:
    return sorted(_OPERATORS)
