"""
Leaf value helpers shared by the directory, aggregator and table view.

Report leaves use '-' (or null / empty / absent) to mean "no score".
"""

import math
from typing import Any, Mapping, Optional, Sequence

PLACEHOLDER = '-'


def child(node: Any, key) -> Any:
    """Null-safe dict access; JSON object keys are strings so str(key) is tried too."""
    if not isinstance(node, Mapping) or key is None:
        return None
    if key in node:
        return node[key]
    return node.get(str(key))


def _is_non_finite(value: Any) -> bool:
    try:
        return not math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def is_placeholder(value: Any) -> bool:
    """'-', empty, null and nan/inf all mean "no score"."""
    if value is None or isinstance(value, bool):
        return True
    if isinstance(value, str) and value.strip() in ('', PLACEHOLDER):
        return True
    if isinstance(value, (str, float)):
        return _is_non_finite(value)
    return False


def parse_number(value: Any) -> Optional[float]:
    """Numeric value of a leaf, or None for placeholders and non-numeric text."""
    if is_placeholder(value):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def to_number(value: Any) -> float:
    """parse_number with 0 for anything that is not a number."""
    number = parse_number(value)
    return number if number is not None else 0.0


def format_number(value: float) -> str:
    """8.0 -> '8', 7.5 -> '7.5'"""
    if float(value).is_integer():
        return str(int(value))
    return str(round(value, 2))


def display_value(value: Any) -> str:
    """Render a raw leaf the way the table shows it."""
    if is_placeholder(value):
        return PLACEHOLDER
    return str(value)


def resolve_field(leaf: Any, aliases: Sequence[str]) -> Any:
    """
    Return the first alias present with a real value.
    Falls back to None when every alias is missing or a placeholder.
    """
    if not isinstance(leaf, Mapping):
        return None
    for alias in aliases:
        value = leaf.get(alias)
        if not is_placeholder(value):
            return value
    return None
