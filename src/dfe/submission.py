"""
Submission Assembler.

Turns a respondent's answer map into a FormSubmission:
    - data grouped by page id, then field id
    - display-only and hidden fields left out
    - respondent identity extracted heuristically

Everything here is pure. Timestamps and request metadata are passed in,
so identical input always produces identical output.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Mapping, Optional

from dfe.model import FieldType, FormSubmission, FormTemplate
from dfe.values import is_empty_value
from dfe.visibility import VisibilityEvaluator

NAME_LABEL_MARKERS = ("name", "username")


def build_submission_data(template: FormTemplate, answers: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    Group answers by page id then field id.

    Every page gets a key, even when it holds no answers. A field is
    included when it is answerable, visible under the answers, and has an
    answer that is not None. Stale answers of hidden fields are dropped.
    """
    evaluator = VisibilityEvaluator(template, answers)
    data: Dict[str, Dict[str, Any]] = {}
    for page in template.pages:
        page_data: Dict[str, Any] = {}
        for f in page.fields:
            if f.is_structural or f.id not in answers or answers[f.id] is None:
                continue
            if not evaluator.is_visible(f):
                continue
            page_data[f.id] = copy.deepcopy(answers[f.id])
        data[page.id] = page_data
    return data


def extract_respondent_email(template: FormTemplate, data: Mapping[str, Mapping[str, Any]]) -> Optional[str]:
    """First email-type field with a non-empty answer, in document order."""
    for page in template.pages:
        page_data = data.get(page.id, {})
        for f in page.fields:
            if f.kind != FieldType.EMAIL:
                continue
            value = page_data.get(f.id)
            if isinstance(value, str) and not is_empty_value(value):
                return value
    return None


def extract_respondent_name(template: FormTemplate, data: Mapping[str, Mapping[str, Any]]) -> Optional[str]:
    """
    First answered field whose label mentions a name.

    Matches "name" or "username" anywhere in the label, case-insensitive,
    e.g. "Your Full Name" or "Company Name". Only text answers count.
    """
    for page in template.pages:
        page_data = data.get(page.id, {})
        for f in page.fields:
            if f.is_structural:
                continue
            label = (f.label or "").lower()
            if not any(marker in label for marker in NAME_LABEL_MARKERS):
                continue
            value = page_data.get(f.id)
            if isinstance(value, str) and not is_empty_value(value):
                return value
    return None


def assemble_submission(
    template: FormTemplate,
    answers: Mapping[str, Any],
    started_at: Optional[str] = None,
    completed_at: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> FormSubmission:
    """
    Build the submission document for a completed session.

    Args:
        template: Template the answers belong to
        answers: field id -> answer snapshot
        started_at / completed_at: ISO 8601 timestamps, or None

    Returns:
        FormSubmission without an id (the store assigns one)
    """
    data = build_submission_data(template, answers)
    return FormSubmission(
        template_id=template.id,
        project_id=template.project_id or None,
        data=data,
        respondent_email=extract_respondent_email(template, data),
        respondent_name=extract_respondent_name(template, data),
        started_at=started_at,
        completed_at=completed_at,
        ip_address=ip_address,
        user_agent=user_agent,
    )


def build_submit_payload(submission: FormSubmission) -> Dict[str, Any]:
    """
    Request body for POST /forms/{slug}/submit.

    Shape: {data, respondentEmail?, respondentName?, startedAt}
    """
    payload: Dict[str, Any] = {"data": submission.data}
    if submission.respondent_email is not None:
        payload["respondentEmail"] = submission.respondent_email
    if submission.respondent_name is not None:
        payload["respondentName"] = submission.respondent_name
    payload["startedAt"] = submission.started_at
    return payload
