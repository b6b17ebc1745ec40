"""
Package-wide logger. Silent unless the application configures logging.
"""

import logging

logger = logging.getLogger("tiny_symbol")
logger.addHandler(logging.NullHandler())
