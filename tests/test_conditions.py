from __future__ import annotations

import numpy as np
import pytest

from biome_maker.core.conditions import Rule, parse_condition


@pytest.mark.parametrize(
    "expr, value, expected",
    [
        ("0.2..0.4", 0.2, True),
        ("0.2..0.4", 0.4, True),
        ("0.2..0.4", 0.41, False),
        (">=0.5", 0.5, True),
        ("<=0.5", 0.5, True),
        ("<=0.5", 0.51, False),
        (">0.5", 0.5, False),
        ("<0.5", 0.49, True),
        ("==0.25", 0.25, True),
        ("0.25", 0.25, True),
        ("0.25", 0.26, False),
        (" > 0.7 ", 0.8, True),
    ],
)
def test_condition_forms(expr, value, expected):
    assert parse_condition(expr)(value) is expected


@pytest.mark.parametrize("expr", ["abc", ">x", "0.1..", "..0.3", "=0.5", ""])
def test_malformed_condition_never_matches(expr):
    condition = parse_condition(expr)
    assert condition.malformed
    for value in (-1.0, 0.0, 0.5, 1.0):
        assert condition(value) is False


def test_range_is_checked_before_comparisons():
    condition = parse_condition("0.1..0.3")
    assert condition.op == "range"
    assert (condition.low, condition.high) == (0.1, 0.3)


def test_condition_on_arrays_returns_mask():
    mask = parse_condition(">0.5")(np.array([[0.2, 0.6], [0.5, 0.9]]))
    np.testing.assert_array_equal(mask, [[False, True], [False, True]])
    never = parse_condition("nope")(np.zeros((2, 3)))
    assert never.shape == (2, 3)
    assert not never.any()


def test_rule_reads_its_field():
    rule = Rule(field="temp", condition=parse_condition("<0.2"))
    assert rule.matches({"temp": 0.1, "land": 0.9})
    assert not rule.matches({"temp": 0.3, "land": 0.1})
