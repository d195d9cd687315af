"""
Tests for the DOT diagram generator.

Tests cover:
    - Field nodes grouped into page clusters
    - Rule edges from trigger to dependent field
    - Edge labels in detailed mode
    - Special character escaping
    - Simple vs. detailed modes
"""

from dfe.backends.dot_generator import DotMode, generate_dot, save_dot_file
from dfe.conditions import ConditionalRule, RuleAction
from dfe.examples import build_example_contact_form, build_example_survey_form
from dfe.model import FieldType, FormField, FormPage, FormTemplate


class TestDotBasicStructure:
    """Test basic DOT graph structure."""

    def test_empty_template_generates_valid_dot(self):
        dot = generate_dot(FormTemplate(name="Empty"))
        assert dot.startswith("digraph form {")
        assert dot.endswith("}")

    def test_rule_becomes_edge(self):
        dot = generate_dot(build_example_contact_form())
        assert '"field-email" -> "field-company";' in dot

    def test_one_cluster_per_page(self):
        dot = generate_dot(build_example_contact_form())
        assert 'subgraph "cluster_0"' in dot
        assert 'subgraph "cluster_1"' in dot
        assert 'label="Contact";' in dot

    def test_required_fields_emphasised(self):
        dot = generate_dot(build_example_contact_form())
        assert '"field-company" [label="Company Name", penwidth=2];' in dot


class TestDotModes:
    """Test different visualization modes."""

    def test_simple_mode_only_rule_fields(self):
        dot = generate_dot(build_example_contact_form(), mode=DotMode.SIMPLE)
        assert "field-notes" not in dot
        assert "field-full-name" not in dot
        assert "label=\"==" not in dot

    def test_detailed_mode_all_fields_and_labels(self):
        dot = generate_dot(build_example_contact_form(), mode=DotMode.DETAILED)
        assert '"field-notes"' in dot
        assert '"field-email" -> "field-company" [label="== vip@example.com"];' in dot

    def test_unary_condition_label(self):
        dot = generate_dot(build_example_survey_form(), mode=DotMode.DETAILED)
        assert '"field-charts-feedback" -> "field-charts-contact" [label="is not empty"];' in dot

    def test_structural_fields_styled(self):
        dot = generate_dot(build_example_survey_form(), mode=DotMode.DETAILED)
        assert '"field-divider" [label="field-divider", fillcolor=white];' in dot


class TestDotEdgeCases:
    def test_ignored_actions_and_dangling_rules_draw_nothing(self):
        template = FormTemplate(pages=[FormPage(id="p1", name="P", fields=[
            FormField(id="a", type=FieldType.SHORT_TEXT),
            FormField(id="b", type=FieldType.SHORT_TEXT, conditional_logic=[
                ConditionalRule(id="r1", trigger_field_id="a", action=RuleAction.HIDE),
                ConditionalRule(id="r2", trigger_field_id="ghost"),
            ]),
        ])])
        assert "->" not in generate_dot(template, mode=DotMode.DETAILED)

    def test_quotes_and_newlines_escaped(self):
        template = FormTemplate(pages=[FormPage(id="p1", fields=[
            FormField(id="q", type=FieldType.SHORT_TEXT, label='Say "hi"\nplease'),
        ])])
        dot = generate_dot(template, mode=DotMode.DETAILED)
        assert '[label="Say \\"hi\\"\\nplease"]' in dot

    def test_long_edge_labels_truncated(self):
        template = FormTemplate(pages=[FormPage(id="p1", fields=[
            FormField(id="a", type=FieldType.SHORT_TEXT),
            FormField(id="b", type=FieldType.SHORT_TEXT, conditional_logic=[
                ConditionalRule(id="r1", trigger_field_id="a", value="x" * 60),
            ]),
        ])])
        dot = generate_dot(template, mode=DotMode.DETAILED)
        assert '[label="== ' + "x" * 34 + '..."]' in dot


def test_save_dot_file(tmp_path):
    out = tmp_path / "contact.dot"
    save_dot_file(build_example_contact_form(), str(out), mode=DotMode.DETAILED)
    assert out.read_text(encoding="utf-8").startswith("digraph form {")
