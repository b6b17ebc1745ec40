"""
Miscellaneous utilities shared across tiny-symbol.
"""

from .logging import logger
from .config import config

__all__ = ["logger", "config"]
