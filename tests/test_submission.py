"""
Tests for the Submission Assembler.

Covers:
    - Data grouped by page then field
    - Structural and hidden fields left out
    - Respondent identity heuristics
    - Purity
"""

import copy

from dfe.examples import build_example_contact_form, build_example_survey_form
from dfe.model import FieldType, FormField, FormPage, FormTemplate
from dfe.serialization import submission_to_json
from dfe.submission import (
    assemble_submission,
    build_submission_data,
    build_submit_payload,
    extract_respondent_email,
    extract_respondent_name,
)


def _survey_answers():
    return {
        "field-name": "Ana Lima",
        "field-satisfaction": 4,
        "field-source": "friend",
        "field-features": {"forms": True, "charts": True, "exports": False},
        "field-charts-feedback": "More chart types",
        "field-team-size": "12",
        "field-intro": "should never be stored",
    }


class TestBuildSubmissionData:
    def test_grouped_by_page(self):
        data = build_submission_data(build_example_survey_form(), _survey_answers())
        assert set(data) == {"page-about", "page-feedback"}
        assert data["page-about"]["field-name"] == "Ana Lima"
        assert data["page-feedback"]["field-team-size"] == "12"

    def test_structural_fields_never_appear(self):
        template = build_example_survey_form()
        data = build_submission_data(template, _survey_answers())
        stored = {fid for page in data.values() for fid in page}
        structural = {f.id for f in template.iter_fields() if f.is_structural}
        assert structural
        assert not stored & structural

    def test_hidden_stale_values_dropped(self):
        answers = _survey_answers()
        answers["field-features"] = {"forms": True}
        data = build_submission_data(build_example_survey_form(), answers)
        assert "field-charts-feedback" not in data["page-feedback"]

    def test_every_page_has_a_key(self):
        data = build_submission_data(build_example_contact_form(), {"field-email": "a@b.co"})
        assert data == {"page-contact": {"field-email": "a@b.co"}, "page-details": {}}

    def test_none_answers_skipped(self):
        data = build_submission_data(build_example_contact_form(), {"field-email": None})
        assert data["page-contact"] == {}


class TestIdentity:
    def test_name_and_email_from_matching_fields(self):
        """Name comes from 'Your Full Name', never from 'Company Name' further on."""
        template = build_example_contact_form()
        submission = assemble_submission(template, {
            "field-email": "vip@example.com",
            "field-full-name": "Jo Bloggs",
            "field-company": "Acme",
        })
        assert submission.respondent_email == "vip@example.com"
        assert submission.respondent_name == "Jo Bloggs"

    def test_first_matching_field_wins(self):
        template = FormTemplate(pages=[FormPage(id="p1", fields=[
            FormField(id="u", type=FieldType.SHORT_TEXT, label="Username"),
            FormField(id="n", type=FieldType.SHORT_TEXT, label="Your Name"),
            FormField(id="e1", type=FieldType.EMAIL, label="Work email"),
            FormField(id="e2", type=FieldType.EMAIL, label="Personal email"),
        ])])
        data = {"p1": {"u": "ana99", "n": "Ana", "e1": "", "e2": "ana@home.net"}}
        assert extract_respondent_name(template, data) == "ana99"
        assert extract_respondent_email(template, data) == "ana@home.net"

    def test_label_match_is_case_insensitive(self):
        template = FormTemplate(pages=[FormPage(id="p1", fields=[
            FormField(id="n", type=FieldType.SHORT_TEXT, label="FULL NAME"),
        ])])
        assert extract_respondent_name(template, {"p1": {"n": "Ana"}}) == "Ana"

    def test_absent_identity_is_none(self):
        template = build_example_survey_form()
        submission = assemble_submission(template, {"field-source": "search"})
        assert submission.respondent_email is None
        assert submission.respondent_name is None

    def test_non_text_answers_ignored(self):
        template = FormTemplate(pages=[FormPage(id="p1", fields=[
            FormField(id="n", type=FieldType.CHECKBOXES, label="Name your tools"),
        ])])
        assert extract_respondent_name(template, {"p1": {"n": {"a": True}}}) is None

    def test_hidden_field_does_not_supply_identity(self):
        template = build_example_contact_form()
        submission = assemble_submission(template, {
            "field-email": "guest@example.com",
            "field-company": "Stale Corp",
        })
        assert submission.respondent_name is None


class TestAssemble:
    def test_metadata(self):
        submission = assemble_submission(
            build_example_contact_form(),
            {"field-email": "a@b.co"},
            started_at="2024-05-01T10:00:00+00:00",
            completed_at="2024-05-01T10:02:00+00:00",
            user_agent="pytest",
        )
        assert submission.template_id == "form-contact"
        assert submission.project_id == "project-demo"
        assert submission.id is None
        assert submission.user_agent == "pytest"

    def test_pure(self):
        """Same input, byte-identical output; answers untouched."""
        template = build_example_survey_form()
        answers = _survey_answers()
        before = copy.deepcopy(answers)
        first = assemble_submission(template, answers, started_at="t0", completed_at="t1")
        second = assemble_submission(template, answers, started_at="t0", completed_at="t1")
        assert submission_to_json(first) == submission_to_json(second)
        assert answers == before

    def test_submission_does_not_share_answer_objects(self):
        template = build_example_survey_form()
        answers = _survey_answers()
        submission = assemble_submission(template, answers)
        answers["field-features"]["exports"] = True
        assert submission.data["page-feedback"]["field-features"]["exports"] is False


class TestSubmitPayload:
    def test_payload_shape(self):
        submission = assemble_submission(
            build_example_contact_form(),
            {"field-email": "a@b.co", "field-full-name": "Ana"},
            started_at="2024-05-01T10:00:00+00:00",
        )
        assert build_submit_payload(submission) == {
            "data": {"page-contact": {"field-email": "a@b.co", "field-full-name": "Ana"}, "page-details": {}},
            "respondentEmail": "a@b.co",
            "respondentName": "Ana",
            "startedAt": "2024-05-01T10:00:00+00:00",
        }

    def test_absent_identity_keys_omitted(self):
        submission = assemble_submission(build_example_survey_form(), {}, started_at="t0")
        payload = build_submit_payload(submission)
        assert "respondentEmail" not in payload
        assert "respondentName" not in payload
