"""
Global / experimental configuration flags.
"""

import os
from dataclasses import dataclass, field


def _env_flag(name: str) -> bool:
    return os.getenv(name, "0").lower() in ("1", "true", "yes")


@dataclass
class SymbolConfig:
    # Validate every lowered graph and log composed graphs.
    debug: bool = field(default_factory=lambda: _env_flag("TINY_SYMBOL_DEBUG"))


config = SymbolConfig()
