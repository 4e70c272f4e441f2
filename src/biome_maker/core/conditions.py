"""Textual rule conditions compiled into scalar/array predicates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Mapping

import numpy as np

RULE_FIELDS = ("land", "temp", "humidity", "height")

Operator = Literal["range", ">=", "<=", ">", "<", "==", "never"]


@dataclass(frozen=True)
class Condition:
    """Predicate over one scalar value.

    Calling a condition on a float returns a bool; calling it on a numpy
    array returns a boolean mask of the same shape. ``never`` is produced for
    expressions that could not be parsed and matches nothing.
    """

    expr: str
    op: Operator
    low: float = float("nan")
    high: float = float("nan")

    @property
    def malformed(self) -> bool:
        return self.op == "never"

    def __call__(self, value):
        v = np.asarray(value)
        if self.op == "range":
            result = (v >= self.low) & (v <= self.high)
        elif self.op == ">=":
            result = v >= self.low
        elif self.op == "<=":
            result = v <= self.low
        elif self.op == ">":
            result = v > self.low
        elif self.op == "<":
            result = v < self.low
        elif self.op == "==":
            result = v == self.low
        else:
            result = np.zeros(v.shape, dtype=bool)
        if result.ndim == 0:
            return bool(result)
        return result


def _number(text: str) -> float | None:
    try:
        return float(text)
    except ValueError:
        return None


def _single(expr: str, op: Operator, text: str) -> Condition:
    value = _number(text)
    if value is None:
        return Condition(expr=expr, op="never")
    return Condition(expr=expr, op=op, low=value)


def parse_condition(expr: str) -> Condition:
    """Compile ``expr`` into a :class:`Condition`.

    Supported forms, checked in this order: ``a..b`` (inclusive), ``>=``,
    ``<=``, ``>``, ``<``, ``==`` and a bare number meaning equality.
    Unparseable numbers yield a condition that is never satisfied.
    """
    text = str(expr).strip()
    if ".." in text:
        lo_text, _, hi_text = text.partition("..")
        lo, hi = _number(lo_text), _number(hi_text)
        if lo is None or hi is None:
            return Condition(expr=text, op="never")
        return Condition(expr=text, op="range", low=lo, high=hi)
    for prefix in (">=", "<=", ">", "<", "=="):
        if text.startswith(prefix):
            return _single(text, prefix, text[len(prefix):])
    return _single(text, "==", text)


@dataclass(frozen=True)
class Rule:
    """A condition bound to one environment field."""

    field: str
    condition: Condition

    def matches(self, env: Mapping[str, object]):
        return self.condition(env[self.field])


__all__ = ["Condition", "Rule", "RULE_FIELDS", "parse_condition"]
