"""Edge labels for Choice rules.

Only a fixed set of single-comparison operators is rendered. Anything else
(compound And/Or/Not rules, JSONPath comparisons such as StringEqualsPath,
timestamp or pattern operators) gets a neutral arrow so the diagram never
claims a condition it cannot show faithfully.
"""

import json
from typing import Any, Callable, List, Tuple

from sfn_console.models.definition import ChoiceRule

PLACEHOLDER_LABEL = "→"


def _literal(value: Any) -> str:
    # JSON spelling: true/false, 5, 2.5
    return json.dumps(value)


# Checked in order; the first operator present on the rule wins.
OPERATOR_LABELS: List[Tuple[str, Callable[[str, Any], str]]] = [
    ("StringEquals", lambda name, v: f'{name} = "{v}"'),
    ("BooleanEquals", lambda name, v: f"{name} = {_literal(v)}"),
    ("NumericEquals", lambda name, v: f"{name} = {_literal(v)}"),
    ("NumericGreaterThan", lambda name, v: f"{name} > {_literal(v)}"),
    ("NumericLessThan", lambda name, v: f"{name} < {_literal(v)}"),
    ("NumericGreaterThanEquals", lambda name, v: f"{name} >= {_literal(v)}"),
    ("NumericLessThanEquals", lambda name, v: f"{name} <= {_literal(v)}"),
    ("IsPresent", lambda name, v: f"{name} exists" if v else f"{name} !exists"),
]


def variable_name(path: str) -> str:
    """Last segment of a JSONPath reference, e.g. ``$.order.status`` -> ``status``."""
    return path.split(".")[-1]


def summarize_condition(rule: ChoiceRule) -> str:
    """Short, human-readable condition for a Choice rule.

    Args:
        rule: The Choice rule to describe

    Returns:
        Label text such as ``status = "done"`` or ``count >= 3``, or
        PLACEHOLDER_LABEL when the condition cannot be summarized
    """
    if not rule.variable:
        return PLACEHOLDER_LABEL

    name = variable_name(rule.variable)
    operators = rule.operators
    for operator, render in OPERATOR_LABELS:
        if operators.get(operator) is not None:
            return render(name, operators[operator])

    return PLACEHOLDER_LABEL
