"""
Helpers for inspecting answer values.

Answers are polymorphic: strings, numbers, option->bool maps, lists,
and small mappings (date ranges, locations, addresses). These helpers
give visibility and validation one shared notion of "empty", "numeric"
and "selected".
"""

import math
from typing import Any, List, Optional


def is_empty_value(value: Any) -> bool:
    """
    Whether an answer counts as not given.

    Empty:
        None, blank strings, empty lists/sets/tuples, empty mappings,
        and option->bool maps with nothing selected.
    Not empty:
        0, False, and any other scalar.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, dict):
        if not value:
            return True
        if all(isinstance(v, bool) for v in value.values()):
            return not any(value.values())
        return all(is_empty_value(v) for v in value.values())
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def to_number(value: Any) -> Optional[float]:
    """Coerce finite numbers and numeric strings; None for anything else (nan, inf included)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def selected_values(value: Any) -> Optional[List[str]]:
    """
    Selected option values of a multi-select answer.

    Returns:
        List of selected values for option->bool maps and lists,
        None when the answer is not a multi-select shape
    """
    if isinstance(value, dict) and all(isinstance(v, bool) for v in value.values()):
        return [str(k) for k, v in value.items() if v]
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(v) for v in value]
    return None
