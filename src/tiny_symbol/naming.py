"""
Automatic naming of operator instances created without an explicit name.
"""

from __future__ import annotations

from collections import defaultdict
from contextlib import AbstractContextManager
from contextvars import ContextVar, Token
from types import TracebackType
from typing import Dict, Optional, Type


class NameManager(AbstractContextManager):
    """
    Hands out ``<hint><counter>`` names, one counter per hint.

    Used as a context manager, the manager becomes the current one for the
    enclosed block and restores the previous one on exit::

        with NameManager():
            fc = ops.FullyConnected(data=x, num_hidden=4)  # "fullyconnected0"
    """

    def __init__(self) -> None:
        self._counter: Dict[str, int] = defaultdict(int)
        self._token: Optional[Token[NameManager]] = None

    def get(self, name: Optional[str], hint: str) -> str:
        if name:
            return name
        generated = f"{hint}{self._counter[hint]}"
        self._counter[hint] += 1
        return generated

    def __enter__(self) -> "NameManager":
        self._token = _CURRENT_NAME_MANAGER.set(self)
        return self

    def __exit__(
        self,
        __exc_type: Optional[Type[BaseException]],
        __exc_value: Optional[BaseException],
        __traceback: Optional[TracebackType],
    ) -> Optional[bool]:
        if self._token is None:
            raise RuntimeError("NameManager exited without being entered")
        _CURRENT_NAME_MANAGER.reset(self._token)
        self._token = None
        return None


_CURRENT_NAME_MANAGER: ContextVar[NameManager] = ContextVar(
    "_CURRENT_NAME_MANAGER", default=NameManager()
)


def current_name_manager() -> NameManager:
    return _CURRENT_NAME_MANAGER.get()
