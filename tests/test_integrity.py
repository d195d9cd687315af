"""
Tests for template integrity analysis.

Tests verify that the analyzer correctly:
    - Inventories pages and fields
    - Reports duplicate ids and dangling/self references as errors
    - Finds visibility cycles
    - Flags degraded-but-renderable documents as warnings
"""

import pytest
from dfe.conditions import ConditionalRule, ConditionOperator, RuleAction
from dfe.errors import SchemaIntegrityError
from dfe.examples import build_example_contact_form, build_example_survey_form
from dfe.integrity import analyze_template, ensure_integrity
from dfe.model import FieldType, FieldValidation, FormField, FormPage, FormTemplate


def _rule(rule_id, source, value="x", **kwargs):
    return ConditionalRule(id=rule_id, trigger_field_id=source, value=value, **kwargs)


def _template(*fields, pages=None):
    return FormTemplate(name="T", pages=pages or [FormPage(id="p1", fields=list(fields))])


def test_clean_contact_form():
    """The example contact form has no errors or warnings."""
    report = analyze_template(build_example_contact_form())

    assert report.ok
    assert report.errors == []
    assert report.warnings == []
    assert report.total_pages == 2
    assert report.total_fields == 4
    assert report.required_fields == 2
    assert report.fields_with_logic == 1


def test_survey_inventory():
    report = analyze_template(build_example_survey_form())

    assert report.ok
    assert report.structural_fields == 3
    assert report.answerable_fields == report.total_fields - 3
    assert not report.has_cycles


def test_no_pages_is_error():
    report = analyze_template(FormTemplate(name="Empty"))
    assert not report.ok
    assert "Form template has no pages" in report.errors


def test_duplicate_ids():
    t = FormTemplate(pages=[
        FormPage(id="p1", fields=[FormField(id="a", type="short-text")]),
        FormPage(id="p1", order=1, fields=[FormField(id="a", type="short-text")]),
    ])
    report = analyze_template(t)
    assert "Duplicate page ids: p1" in report.errors
    assert "Duplicate field ids: a" in report.errors


def test_dangling_reference():
    t = _template(
        FormField(id="a", type="short-text", conditional_logic=[_rule("r1", "ghost")]),
    )
    report = analyze_template(t)
    assert ("a", "ghost") in report.dangling_references
    assert "Field a has a rule referencing missing field ghost" in report.errors


def test_self_reference():
    t = _template(FormField(id="a", type="short-text", conditional_logic=[_rule("r1", "a")]))
    report = analyze_template(t)
    assert "a" in report.self_references
    assert not report.ok


def test_cycle_is_warning():
    """Cycles render (as hidden fields) so they are not fatal."""
    t = _template(
        FormField(id="a", type="short-text", order=0, conditional_logic=[_rule("r1", "b")]),
        FormField(id="b", type="short-text", order=1, conditional_logic=[_rule("r2", "a")]),
    )
    report = analyze_template(t)
    assert report.ok
    assert report.has_cycles
    assert set(report.cycle_example) == {"a", "b"}
    assert any("Visibility cycle detected" in w for w in report.warnings)


def test_forward_reference_recorded():
    t = _template(
        FormField(id="a", type="short-text", order=0, conditional_logic=[_rule("r1", "b")]),
        FormField(id="b", type="short-text", order=1),
    )
    report = analyze_template(t)
    assert ("a", "b") in report.forward_references


def test_degraded_documents_warn():
    t = _template(
        FormField(id="h", type=FieldType.HEADING, order=0),
        FormField(id="x", type="hologram", order=1),
        FormField(id="c", type=FieldType.DROPDOWN, order=2),
        FormField(id="d", type="short-text", order=3, conditional_logic=[
            _rule("r1", "h"),
            _rule("r2", "x", action=RuleAction.SKIP_TO_PAGE, target_page_id="p1"),
        ]),
        FormField(id="e", type="short-text", order=9),
    )
    report = analyze_template(t)

    assert report.ok
    assert "Field d depends on display-only field h" in report.warnings
    assert "Unknown field types rendered as short text: hologram" in report.warnings
    assert "Rule actions ignored by the engine: skip_to_page" in report.warnings
    assert "Choice fields without options: c" in report.warnings
    assert "Order does not match position for: e" in report.warnings


def test_required_counts_only_answerable():
    t = _template(
        FormField(id="a", type="email", validation=FieldValidation(required=True)),
        FormField(id="b", type="divider", order=1, validation=FieldValidation(required=True)),
    )
    assert analyze_template(t).required_fields == 1


class TestEnsureIntegrity:
    def test_returns_report_when_valid(self):
        report = ensure_integrity(build_example_contact_form())
        assert report.ok

    def test_raises_with_every_problem(self):
        t = _template(
            FormField(id="a", type="short-text", conditional_logic=[
                _rule("r1", "ghost", condition=ConditionOperator.IS_EMPTY),
            ]),
            FormField(id="b", type="short-text", order=1, conditional_logic=[_rule("r2", "b")]),
        )
        with pytest.raises(SchemaIntegrityError) as exc_info:
            ensure_integrity(t)
        assert len(exc_info.value.problems) == 2
