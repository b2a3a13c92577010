"""Evaluation of declarative flow conditions."""

import math
from typing import Any, Sequence

from tasklytics.flows.paths import MISSING, is_absent, lookup, stringify
from tasklytics.models.enums import ConditionOperator
from tasklytics.models.flow import Condition


def _strict_equals(actual: Any, expected: Any) -> bool:
    # Booleans and numbers never compare equal across kinds: True != 1, "1" != 1
    if actual is MISSING:
        return False
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual is expected
    actual_is_num = isinstance(actual, (int, float))
    expected_is_num = isinstance(expected, (int, float))
    if actual_is_num or expected_is_num:
        return actual_is_num and expected_is_num and actual == expected
    if type(actual) is not type(expected) and not (
        isinstance(actual, str) and isinstance(expected, str)
    ):
        return False
    return actual == expected


def to_number(value: Any) -> float:
    """Numeric coercion; non-numeric input becomes NaN."""
    if value is MISSING:
        return math.nan
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def evaluate_condition(condition: Condition, payload: Any, snapshot: Any = None) -> bool:
    actual = lookup(condition.field, payload, snapshot)
    expected = condition.value

    try:
        operator = ConditionOperator(condition.operator)
    except ValueError:
        return False

    if operator is ConditionOperator.EQUALS:
        return _strict_equals(actual, expected)
    if operator is ConditionOperator.NOT_EQUALS:
        return not _strict_equals(actual, expected)
    if operator is ConditionOperator.CONTAINS:
        if actual is MISSING:
            return False
        return stringify(expected) in stringify(actual)
    if operator is ConditionOperator.GREATER_THAN:
        return to_number(actual) > to_number(expected)
    if operator is ConditionOperator.LESS_THAN:
        return to_number(actual) < to_number(expected)
    if operator is ConditionOperator.EXISTS:
        return not is_absent(actual)
    if operator is ConditionOperator.NOT_EXISTS:
        return is_absent(actual)
    return False


def evaluate_conditions(
    conditions: Sequence[Condition], payload: Any, snapshot: Any = None
) -> bool:
    """Conjunctive evaluation; an empty condition list is true."""
    return all(evaluate_condition(c, payload, snapshot) for c in conditions)
