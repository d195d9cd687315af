"""
Tests for the plain-text preview backend.
"""

from dfe.backends.text_preview import PreviewMode, render_page, render_template, save_preview_file
from dfe.examples import VIP_EMAIL, build_example_contact_form, build_example_survey_form
from dfe.model import FormField, FormPage


def test_render_page_simple():
    template = build_example_contact_form()
    text = render_page(template.pages[0], template=template)
    assert text.splitlines() == [
        "# Contact",
        "  Email Address * <email>",
        "    . your@email.com",
        "  Your Full Name <text>",
        "    . Type your answer...",
    ]


def test_answers_shown():
    template = build_example_contact_form()
    text = render_page(template.pages[0], {"field-email": "a@b.co"}, template)
    assert "    > a@b.co" in text


def test_hidden_fields_left_out():
    template = build_example_contact_form()
    details = template.pages[1]
    assert "Company Name" not in render_page(details, {"field-email": "guest@example.com"}, template)
    assert "Company Name *" in render_page(details, {"field-email": VIP_EMAIL}, template)


def test_choice_options_and_structural_fields():
    template = build_example_survey_form()
    text = render_page(template.pages[0], {"field-source": "friend"}, template)
    assert "  ## Tell us about yourself" in text
    assert "    ( ) Search engine" in text
    assert "    > A friend" in text
    assert "Please specify" not in text


def test_detailed_mode_annotations():
    template = build_example_survey_form()
    text = render_page(template.pages[0], {"field-source": "other"}, template, PreviewMode.DETAILED)
    assert "validation: min length 2" in text
    assert "shown when: field-source equals 'other'" in text


def test_detailed_mode_unknown_type():
    page = FormPage(id="p1", name="Odd", fields=[FormField(id="h", type="hologram", label="Holo")])
    text = render_page(page, mode=PreviewMode.DETAILED)
    assert "  Holo <text>" in text
    assert "unknown type 'hologram', shown as short text" in text


def test_render_template_with_cover():
    text = render_template(build_example_survey_form())
    blocks = text.split("\n\n")
    assert blocks[0].startswith("=== Customer Survey ===")
    assert blocks[1].startswith("[Cover] Customer Survey")
    assert blocks[2].startswith("Page 1 of 2\n# About you")
    assert blocks[3].startswith("Page 2 of 2\n# Feedback")


def test_render_template_without_cover():
    text = render_template(build_example_survey_form(show_cover=False))
    assert "[Cover]" not in text


def test_save_preview_file(tmp_path):
    out = tmp_path / "preview.txt"
    save_preview_file(build_example_contact_form(), str(out))
    content = out.read_text(encoding="utf-8")
    assert content.startswith("=== Contact Us ===")
    assert content.endswith("\n")
