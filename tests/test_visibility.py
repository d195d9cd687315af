"""
Tests for the Conditional Visibility Evaluator.

Covers:
    - Each comparison operator
    - Conjunctive semantics for multiple rules
    - Hidden, missing and unanswered sources
    - Chains and cycles
"""

import copy

import pytest
from dfe.conditions import ConditionalRule, ConditionOperator, RuleAction
from dfe.model import FieldType, FormField, FormPage, FormTemplate
from dfe.visibility import VisibilityEvaluator, compare, is_visible, visible_fields


def _rule(source, condition=ConditionOperator.EQUALS, value=None, rule_id="r", **kwargs):
    return ConditionalRule(id=rule_id, trigger_field_id=source, condition=condition, value=value, **kwargs)


def _field(field_id, *rules, field_type=FieldType.SHORT_TEXT):
    return FormField(id=field_id, type=field_type, conditional_logic=list(rules) or None)


def _template(*fields):
    return FormTemplate(pages=[FormPage(id="p1", fields=list(fields))])


class TestOperators:
    """compare() applies one operator to one answer."""

    @pytest.mark.parametrize("condition,value,answer,expected", [
        (ConditionOperator.EQUALS, "vip@example.com", "vip@example.com", True),
        (ConditionOperator.EQUALS, "vip@example.com", "guest@example.com", False),
        (ConditionOperator.EQUALS, 5, "5", True),
        (ConditionOperator.EQUALS, "5.0", 5, True),
        (ConditionOperator.EQUALS, True, True, True),
        (ConditionOperator.NOT_EQUALS, "a", "b", True),
        (ConditionOperator.NOT_EQUALS, "a", "a", False),
        (ConditionOperator.CONTAINS, "world", "hello world", True),
        (ConditionOperator.CONTAINS, "mars", "hello world", False),
        (ConditionOperator.GREATER_THAN, 5, "10", True),
        (ConditionOperator.GREATER_THAN, 5, 3, False),
        (ConditionOperator.GREATER_THAN, 5, "abc", False),
        (ConditionOperator.LESS_THAN, 5, 3, True),
        (ConditionOperator.LESS_THAN, "x", 3, False),
        (ConditionOperator.IS_EMPTY, None, "", True),
        (ConditionOperator.IS_EMPTY, None, "text", False),
        (ConditionOperator.IS_NOT_EMPTY, None, "text", True),
        (ConditionOperator.IS_NOT_EMPTY, None, {"a": False}, False),
    ])
    def test_compare(self, condition, value, answer, expected):
        assert compare(_rule("src", condition, value), answer) is expected

    def test_zero_is_an_answer(self):
        assert compare(_rule("src", ConditionOperator.EQUALS, 0), 0)
        assert compare(_rule("src", ConditionOperator.IS_NOT_EMPTY), 0)

    def test_checkbox_map_membership(self):
        answer = {"charts": True, "forms": False}
        assert compare(_rule("src", ConditionOperator.CONTAINS, "charts"), answer)
        assert not compare(_rule("src", ConditionOperator.CONTAINS, "forms"), answer)
        assert compare(_rule("src", ConditionOperator.EQUALS, "charts"), answer)
        assert compare(_rule("src", ConditionOperator.NOT_EQUALS, "forms"), answer)

    def test_list_membership(self):
        assert compare(_rule("src", ConditionOperator.CONTAINS, "b"), ["a", "b"])


class TestIsVisible:
    def test_no_rules_always_visible(self):
        assert is_visible(_field("a"), {})

    def test_single_rule(self):
        b = _field("b", _rule("a", value="vip@example.com"))
        assert is_visible(b, {"a": "vip@example.com"})
        assert not is_visible(b, {"a": "guest@example.com"})

    def test_unanswered_source_hides(self):
        """Non-matching, including not_equals."""
        assert not is_visible(_field("b", _rule("a", value="x")), {})
        assert not is_visible(_field("b", _rule("a", ConditionOperator.NOT_EQUALS, "x")), {})
        assert not is_visible(_field("b", _rule("a", ConditionOperator.NOT_EQUALS, "x")), {"a": "  "})

    def test_is_empty_matches_unanswered_visible_source(self):
        t = _template(_field("a"), _field("b", _rule("a", ConditionOperator.IS_EMPTY)))
        assert is_visible(t.get_field("b"), {}, t)
        assert not is_visible(t.get_field("b"), {"a": "filled"}, t)

    def test_conjunctive_rules(self):
        """Visible iff both rules hold at the same time."""
        c = _field(
            "c",
            _rule("a", value="yes", rule_id="r1"),
            _rule("b", ConditionOperator.GREATER_THAN, 18, rule_id="r2"),
        )
        assert is_visible(c, {"a": "yes", "b": "21"})
        assert not is_visible(c, {"a": "no", "b": "21"})
        assert not is_visible(c, {"a": "yes", "b": "12"})
        assert not is_visible(c, {"a": "yes"})

    def test_self_reference_hides(self):
        a = _field("a", _rule("a", ConditionOperator.IS_NOT_EMPTY))
        assert not is_visible(a, {"a": "x"})

    def test_missing_source_hides_with_template(self):
        t = _template(_field("b", _rule("ghost", ConditionOperator.IS_EMPTY)))
        assert not is_visible(t.get_field("b"), {}, t)

    def test_non_show_actions_are_ignored(self):
        f = _field("b", _rule("a", value="x", action=RuleAction.HIDE))
        assert is_visible(f, {})

    def test_answers_not_mutated(self):
        answers = {"a": {"x": True}, "b": ["1"]}
        before = copy.deepcopy(answers)
        is_visible(_field("c", _rule("a", ConditionOperator.CONTAINS, "x")), answers)
        assert answers == before


class TestChains:
    """Rules whose source is itself conditional."""

    def _chain(self):
        return _template(
            _field("a"),
            _field("b", _rule("a", value="go")),
            _field("c", _rule("b", ConditionOperator.IS_NOT_EMPTY)),
        )

    def test_chain_visible(self):
        t = self._chain()
        ev = VisibilityEvaluator(t, {"a": "go", "b": "something"})
        assert [f.id for f in ev.visible_fields(t.pages[0])] == ["a", "b", "c"]

    def test_hidden_source_hides_dependent_despite_stale_answer(self):
        t = self._chain()
        answers = {"a": "stop", "b": "stale"}
        assert [f.id for f in visible_fields(t.pages[0], answers, t)] == ["a"]

    def test_without_template_only_answers_are_consulted(self):
        t = self._chain()
        assert is_visible(t.get_field("c"), {"a": "stop", "b": "stale"})

    def test_hidden_source_does_not_satisfy_is_empty(self):
        t = _template(
            _field("a"),
            _field("b", _rule("a", value="go")),
            _field("c", _rule("b", ConditionOperator.IS_EMPTY)),
        )
        assert not is_visible(t.get_field("c"), {"a": "stop"}, t)
        assert is_visible(t.get_field("c"), {"a": "go"}, t)

    def test_cycle_resolves_to_hidden(self):
        t = _template(
            _field("a", _rule("b", ConditionOperator.IS_EMPTY, rule_id="r1")),
            _field("b", _rule("a", ConditionOperator.IS_EMPTY, rule_id="r2")),
        )
        ev = VisibilityEvaluator(t, {})
        assert not ev.is_visible(t.get_field("a"))
        assert not ev.is_visible(t.get_field("b"))
