from __future__ import annotations

import logging

import pytest

from tiny_symbol import ops
from tiny_symbol.errors import (
    AmbiguousNameError,
    SymbolError,
    UnknownKeywordError,
    keyword_argument_mismatch,
)
from tiny_symbol.graph.symbol import Variable
from tiny_symbol.utils import config


def test_keyword_argument_mismatch_lists_candidates() -> None:
    with pytest.raises(UnknownKeywordError) as info:
        keyword_argument_mismatch("Symbol.compose", ["a", "q", "r"], ["a", "b"])
    message = str(info.value)
    assert message.startswith("Symbol.compose: Keyword argument name q, r not found.")
    assert "\t[0]a" in message
    assert "\t[1]b" in message


def test_keyword_argument_mismatch_accepts_known_keys() -> None:
    keyword_argument_mismatch("Symbol.compose", ["b"], ["a", "b"])


def test_errors_are_value_errors() -> None:
    assert issubclass(SymbolError, ValueError)
    err = AmbiguousNameError({"x": 2})
    assert isinstance(err, SymbolError)
    assert 'name="x" occurred in 2 places' in str(err)


def test_debug_config_validates_and_logs(monkeypatch, caplog) -> None:
    monkeypatch.setattr(config, "debug", True)
    caplog.set_level(logging.DEBUG, logger="tiny_symbol")

    x = Variable("x")
    act = ops.Activation(data=x, act_type="relu", name="act")
    act.to_static_graph()

    assert any("composed act" in record.getMessage() for record in caplog.records)
