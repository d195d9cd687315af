"""
Conditional Logic Rules for DFE

A conditional rule gates a field's visibility on the answer of ONE other
field. Rules are data, never code strings.

This ensures:
    - Serialization capability
    - Stable join keys (rules reference field ids, not positions)
    - Analysis without evaluation

ARCHITECTURAL RULE:
    Rules are single-field comparisons.
    Several rules on one field combine conjunctively (all must hold).
    There are no OR-groups and no nested boolean expressions.
    Evaluation lives in dfe.visibility.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple


class ConditionOperator(Enum):
    """
    Comparison operators available to a rule.

    Keep this minimal. Every operator here must be:
        - Meaningful for a single answer
        - Evaluable without knowing the field type
    """

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


# Operators that ignore trigger_value
UNARY_OPERATORS = frozenset({ConditionOperator.IS_EMPTY, ConditionOperator.IS_NOT_EMPTY})


class RuleAction(Enum):
    """
    What a satisfied rule does to its owning field.

    Only SHOW is evaluated by the engine. The other actions exist in
    persisted documents written by the authoring tool and are kept so that
    documents round-trip unchanged.
    """

    SHOW = "show"
    HIDE = "hide"
    REQUIRE = "require"
    SKIP_TO_PAGE = "skip_to_page"


@dataclass(frozen=True)
class ConditionalRule:
    """
    A single visibility rule attached to a field.

    Example:
        Show "Company Name" only while "Email" equals "vip@example.com"

        ConditionalRule(
            id="logic-1",
            trigger_field_id="field-email",
            condition=ConditionOperator.EQUALS,
            value="vip@example.com",
        )

    Properties:
        id: Rule identifier (unique within its field)
        trigger_field_id: Source field whose answer is compared
        condition: ConditionOperator
        value: Comparison value (unused by is_empty / is_not_empty)
        action: RuleAction (defaults to SHOW)
        target_field_ids: Fields affected, as written by the authoring tool
        target_page_id: Page target for skip_to_page rules

    IMPORTANT:
        This object is immutable (frozen=True).
        It does NOT evaluate itself.
        It does NOT validate that trigger_field_id exists.
    """

    id: str
    trigger_field_id: str
    condition: ConditionOperator = ConditionOperator.EQUALS
    value: Any = None
    action: RuleAction = RuleAction.SHOW
    target_field_ids: Optional[Tuple[str, ...]] = None
    target_page_id: Optional[str] = None

    @property
    def is_evaluated(self) -> bool:
        return self.action == RuleAction.SHOW


__all__ = [
    "ConditionOperator",
    "UNARY_OPERATORS",
    "RuleAction",
    "ConditionalRule",
]
