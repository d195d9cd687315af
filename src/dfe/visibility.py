"""
Conditional Visibility Evaluator.

Decides which fields are visible for a given answer snapshot.

Semantics:
    - A field without evaluated rules is always visible.
    - A field with rules is visible only if ALL of them hold.
    - A rule whose source field is missing, hidden, or unanswered does not
      hold, so the dependent field stays hidden.
    - Exception to the previous rule: is_empty holds for an unanswered
      source that is itself visible. A hidden or missing source still
      does not match is_empty.
    - Visibility chains are resolved recursively; a cycle does not hold.

Evaluation is pure: answers are read, never written.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Set

from dfe.conditions import ConditionalRule, ConditionOperator
from dfe.model import FormField, FormPage, FormTemplate
from dfe.values import is_empty_value, selected_values, to_number


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _equals(answer: Any, expected: Any) -> bool:
    selected = selected_values(answer)
    if selected is not None:
        return _as_text(expected) in selected
    left, right = to_number(answer), to_number(expected)
    if left is not None and right is not None:
        return left == right
    return _as_text(answer) == _as_text(expected)


def _contains(answer: Any, expected: Any) -> bool:
    selected = selected_values(answer)
    if selected is not None:
        return _as_text(expected) in selected
    if isinstance(answer, dict):
        return any(_as_text(expected) in _as_text(v) for v in answer.values() if v is not None)
    return _as_text(expected) in _as_text(answer)


def compare(rule: ConditionalRule, answer: Any) -> bool:
    """
    Apply a rule's operator to an answer.

    The caller decides what an unanswered source means; this function only
    compares.
    """
    op = rule.condition
    if op == ConditionOperator.IS_EMPTY:
        return is_empty_value(answer)
    if op == ConditionOperator.IS_NOT_EMPTY:
        return not is_empty_value(answer)
    if is_empty_value(answer):
        return False
    if op == ConditionOperator.EQUALS:
        return _equals(answer, rule.value)
    if op == ConditionOperator.NOT_EQUALS:
        return not _equals(answer, rule.value)
    if op == ConditionOperator.CONTAINS:
        return _contains(answer, rule.value)
    if op in (ConditionOperator.GREATER_THAN, ConditionOperator.LESS_THAN):
        left, right = to_number(answer), to_number(rule.value)
        if left is None or right is None:
            return False
        return left > right if op == ConditionOperator.GREATER_THAN else left < right
    return False


class VisibilityEvaluator:
    """
    Evaluates visibility against one template and one answer snapshot.

    Results are memoized per evaluator, so build a new evaluator for each
    snapshot. The navigator does this on every query.
    """

    def __init__(self, template: Optional[FormTemplate], answers: Mapping[str, Any]):
        self.template = template
        self.answers = answers
        self._fields: Dict[str, FormField] = template.fields_by_id() if template else {}
        self._cache: Dict[str, bool] = {}
        self._resolving: Set[str] = set()

    def is_visible(self, f: FormField) -> bool:
        if f.id in self._cache:
            return self._cache[f.id]
        if f.id in self._resolving:
            return False

        self._resolving.add(f.id)
        try:
            visible = all(self._rule_holds(f, rule) for rule in f.rules if rule.is_evaluated)
        finally:
            self._resolving.discard(f.id)

        self._cache[f.id] = visible
        return visible

    def _rule_holds(self, owner: FormField, rule: ConditionalRule) -> bool:
        source_id = rule.trigger_field_id
        if source_id == owner.id:
            return False

        if self.template is not None:
            source = self._fields.get(source_id)
            if source is None or not self.is_visible(source):
                return False

        answer = self.answers.get(source_id)
        if is_empty_value(answer) and rule.condition != ConditionOperator.IS_EMPTY:
            return False
        return compare(rule, answer)

    def visible_fields(self, page: FormPage) -> List[FormField]:
        return [f for f in page.fields if self.is_visible(f)]


def is_visible(f: FormField, answers: Mapping[str, Any], template: Optional[FormTemplate] = None) -> bool:
    """
    Whether a field is visible under the given answers.

    Args:
        f: Field to check
        answers: field id -> answer snapshot
        template: Owning template. When given, rules whose source field is
            missing or itself hidden do not hold. Without it, only the
            source answers are consulted.
    """
    return VisibilityEvaluator(template, answers).is_visible(f)


def visible_fields(page: FormPage, answers: Mapping[str, Any],
                   template: Optional[FormTemplate] = None) -> List[FormField]:
    """Visible fields of a page, in order."""
    return VisibilityEvaluator(template, answers).visible_fields(page)
