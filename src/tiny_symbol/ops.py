"""
Functional front end: one factory per registered operator.

    x = Variable("x")
    fc = FullyConnected(data=x, num_hidden=10, name="fc1")
    act = Activation(data=fc, act_type="relu")

Keyword values that are Symbols become inputs, everything else is passed
to the operator as a parameter. Inputs left unbound become fresh variables
named ``<name>_<argument>``.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from tiny_symbol.graph.symbol import Symbol
from tiny_symbol.naming import current_name_manager
from tiny_symbol.operators import get_operator


def make_symbol_function(op_name: str) -> Callable[..., Symbol]:
    op_cls = get_operator(op_name)

    def creator(*args: Symbol, name: Optional[str] = None, **kwargs: Any) -> Symbol:
        params: Dict[str, Any] = {}
        symbol_kwargs: Dict[str, Symbol] = {}
        for key, value in kwargs.items():
            if isinstance(value, Symbol):
                symbol_kwargs[key] = value
            else:
                params[key] = value
        if args and symbol_kwargs:
            raise TypeError(
                f"{op_name} only accepts input Symbols either as positional "
                "or keyword arguments, not both"
            )
        for i, arg in enumerate(args):
            if not isinstance(arg, Symbol):
                raise TypeError(f"{op_name}: positional argument {i} must be a Symbol")
        key_var = op_cls.key_var_num_args
        if key_var and key_var not in params:
            num_inputs = len(args) or len(symbol_kwargs)
            if not num_inputs:
                raise TypeError(
                    f"{op_name} takes a variable number of inputs: pass them, "
                    f"or set `{key_var}` explicitly"
                )
            params[key_var] = num_inputs

        sym = Symbol.create(op_cls(**params))
        name = current_name_manager().get(name, op_name.lower())
        sym.compose(*args, name=name, **symbol_kwargs)
        return sym

    creator.__name__ = op_name
    creator.__qualname__ = op_name
    creator.__doc__ = op_cls.__doc__
    return creator


FullyConnected = make_symbol_function("FullyConnected")
Activation = make_symbol_function("Activation")
ElementWiseSum = make_symbol_function("ElementWiseSum")
SliceChannel = make_symbol_function("SliceChannel")

__all__ = [
    "make_symbol_function",
    "FullyConnected",
    "Activation",
    "ElementWiseSum",
    "SliceChannel",
]
