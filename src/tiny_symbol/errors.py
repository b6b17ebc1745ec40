"""
Errors raised while building, composing and lowering symbolic graphs.

Every error derives from ``SymbolError`` (itself a ``ValueError``) and keeps
the structured payload that produced its message, so callers can inspect
what went wrong instead of parsing text.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Union


class SymbolError(ValueError):
    """Base class for graph construction errors."""


class ArityMismatchError(SymbolError):
    def __init__(self, required: int, provided: int) -> None:
        super().__init__(
            f"Incorrect number of arguments, requires {required}, provided {provided}"
        )
        self.required = required
        self.provided = provided


class TupleArgumentError(SymbolError):
    def __init__(self, argument: Union[int, str]) -> None:
        if isinstance(argument, int):
            msg = f"Argument {argument} is a tuple, scalar is required"
        else:
            msg = f"Keyword argument {argument} is a tuple, scalar is required"
        super().__init__(msg)
        self.argument = argument


class AmbiguousNameError(SymbolError):
    def __init__(self, duplicates: Dict[str, int]) -> None:
        lines = [
            f'Argument name="{name}" occurred in {count} places in the Symbol'
            for name, count in duplicates.items()
        ]
        lines.append("Keyword argument call is not supported because of this duplication.")
        super().__init__("\n".join(lines))
        self.duplicates = dict(duplicates)


class UnknownKeywordError(SymbolError):
    def __init__(self, source: str, unmatched: Sequence[str], candidates: Sequence[str]) -> None:
        self.source = source
        self.unmatched = list(unmatched)
        self.candidates = list(candidates)
        names = ", ".join(self.unmatched)
        msg = [f"{source}: Keyword argument name {names} not found.", "Candidate arguments:"]
        msg.extend(f"\t[{i}]{arg}" for i, arg in enumerate(self.candidates))
        super().__init__("\n".join(msg))


class NonScalarReceiverError(SymbolError):
    """Composition on a multi-output graph or on a bare Variable."""


class ShapeMismatchError(SymbolError):
    """Two known shapes for the same entry disagree."""


class OperatorNotFoundError(SymbolError):
    def __init__(self, op_name: str) -> None:
        super().__init__(f"Operator named '{op_name}' not found")
        self.op_name = op_name


def keyword_argument_mismatch(
    source: str, user_args: Sequence[str], candidates: Sequence[str]
) -> None:
    """
    Raise one ``UnknownKeywordError`` listing every user supplied key that is
    absent from ``candidates``. Returns silently when all keys are known.
    """
    keys = set(candidates)
    unmatched: List[str] = [key for key in user_args if key not in keys]
    if unmatched:
        raise UnknownKeywordError(source, unmatched, candidates)
