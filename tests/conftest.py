from __future__ import annotations

import os
import random

import numpy as np
import pytest

from tiny_symbol.naming import NameManager

DEFAULT_SEED = int(os.getenv("TINY_SYMBOL_SEED", "1234"))


def pytest_configure(config) -> None:  # pylint: disable=unused-argument
    random.seed(DEFAULT_SEED)
    np.random.seed(DEFAULT_SEED)


@pytest.fixture(autouse=True)
def _fresh_names():
    # Each test sees generated names starting from 0.
    with NameManager() as manager:
        yield manager
