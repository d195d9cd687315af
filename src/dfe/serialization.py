"""
Serialization helpers for DFE objects (FormTemplate, FormField, rules, etc.).

Provides lossless JSON/YAML round-trip via intermediate dict representation.
The dict shape IS the wire/storage format: camelCase keys, optional keys
omitted when unset, unknown keys preserved.

Structurally unparseable documents raise SchemaIntegrityError.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List

import yaml

from dfe.conditions import ConditionalRule, ConditionOperator, RuleAction
from dfe.errors import SchemaIntegrityError
from dfe.integrity import ensure_integrity
from dfe.model import (
    CoverPage,
    FieldOption,
    FieldValidation,
    FormField,
    FormPage,
    FormSubmission,
    FormTemplate,
    FormTheme,
    ThemeMode,
    DEFAULT_ACCENT_COLOR,
)

logger = logging.getLogger(__name__)


_VALIDATION_KEYS = (
    ("required", "required"),
    ("minLength", "min_length"),
    ("maxLength", "max_length"),
    ("min", "min"),
    ("max", "max"),
    ("pattern", "pattern"),
    ("fileTypes", "file_types"),
    ("maxFileSize", "max_file_size"),
)

_FIELD_KEYS = {
    "id", "type", "label", "placeholder", "description", "options",
    "validation", "conditionalLogic", "defaultValue", "order",
}
_PAGE_KEYS = {"id", "name", "description", "fields", "order"}
_TEMPLATE_KEYS = {
    "id", "projectId", "name", "description", "slug", "theme", "coverPage",
    "pages", "isPublished", "submissionCount", "viewCount",
}


def _require_mapping(d: Any, what: str) -> Dict[str, Any]:
    if not isinstance(d, dict):
        raise SchemaIntegrityError(f"{what} must be a mapping, got {type(d).__name__}")
    return d


def _require_list(d: Any, what: str) -> List[Any]:
    if d is None:
        return []
    if not isinstance(d, list):
        raise SchemaIntegrityError(f"{what} must be a list, got {type(d).__name__}")
    return d


def _require_key(d: Dict[str, Any], key: str, what: str) -> Any:
    value = d.get(key)
    if value is None or value == "":
        raise SchemaIntegrityError(f"{what} is missing '{key}'")
    return value


def _put(d: Dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        d[key] = value


def _extras(d: Dict[str, Any], known: Iterable[str]) -> Dict[str, Any]:
    known = set(known)
    return {k: v for k, v in d.items() if k not in known}


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def rule_to_dict(r: ConditionalRule) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": r.id,
        "triggerFieldId": r.trigger_field_id,
        "triggerCondition": r.condition.value,
    }
    _put(d, "triggerValue", r.value)
    d["action"] = r.action.value
    if r.target_field_ids is not None:
        d["targetFieldIds"] = list(r.target_field_ids)
    _put(d, "targetPageId", r.target_page_id)
    return d


def rule_from_dict(d: Any) -> ConditionalRule:
    d = _require_mapping(d, "Conditional rule")
    trigger = _require_key(d, "triggerFieldId", "Conditional rule")
    try:
        condition = ConditionOperator(d.get("triggerCondition", "equals"))
        action = RuleAction(d.get("action", "show"))
    except ValueError as exc:
        raise SchemaIntegrityError(f"Conditional rule {d.get('id')!r}: {exc}") from exc
    targets = d.get("targetFieldIds")
    return ConditionalRule(
        id=d.get("id", ""),
        trigger_field_id=trigger,
        condition=condition,
        value=d.get("triggerValue"),
        action=action,
        target_field_ids=tuple(targets) if targets is not None else None,
        target_page_id=d.get("targetPageId"),
    )


# ---------------------------------------------------------------------------
# Fields
# ---------------------------------------------------------------------------

def option_to_dict(o: FieldOption) -> Dict[str, Any]:
    return {"id": o.id, "label": o.label, "value": o.value}


def option_from_dict(d: Any) -> FieldOption:
    d = _require_mapping(d, "Field option")
    value = d.get("value", d.get("label", ""))
    return FieldOption(id=d.get("id", value), label=d.get("label", value), value=value)


def validation_to_dict(v: FieldValidation | None) -> Dict[str, Any] | None:
    if v is None:
        return None
    d: Dict[str, Any] = {}
    for wire, attr in _VALIDATION_KEYS:
        _put(d, wire, getattr(v, attr))
    return d


def validation_from_dict(d: Any) -> FieldValidation | None:
    if d is None:
        return None
    d = _require_mapping(d, "Field validation")
    return FieldValidation(**{attr: d.get(wire) for wire, attr in _VALIDATION_KEYS})


def field_to_dict(f: FormField) -> Dict[str, Any]:
    d: Dict[str, Any] = {"id": f.id, "type": f.type_tag, "label": f.label}
    _put(d, "placeholder", f.placeholder)
    _put(d, "description", f.description)
    if f.options is not None:
        d["options"] = [option_to_dict(o) for o in f.options]
    _put(d, "validation", validation_to_dict(f.validation))
    if f.conditional_logic is not None:
        d["conditionalLogic"] = [rule_to_dict(r) for r in f.conditional_logic]
    _put(d, "defaultValue", f.default_value)
    d["order"] = f.order
    d.update(f.extra)
    return d


def field_from_dict(d: Any) -> FormField:
    d = _require_mapping(d, "Field")
    field_id = _require_key(d, "id", "Field")
    field_type = _require_key(d, "type", f"Field {field_id!r}")
    options = d.get("options")
    logic = d.get("conditionalLogic")
    return FormField(
        id=field_id,
        type=field_type,
        label=d.get("label", ""),
        order=d.get("order", 0),
        placeholder=d.get("placeholder"),
        description=d.get("description"),
        validation=validation_from_dict(d.get("validation")),
        options=[option_from_dict(o) for o in _require_list(options, f"Field {field_id!r} options")]
        if options is not None else None,
        conditional_logic=[rule_from_dict(r) for r in _require_list(logic, f"Field {field_id!r} logic")]
        if logic is not None else None,
        default_value=d.get("defaultValue"),
        extra=_extras(d, _FIELD_KEYS),
    )


# ---------------------------------------------------------------------------
# Pages, theme, cover
# ---------------------------------------------------------------------------

def page_to_dict(p: FormPage) -> Dict[str, Any]:
    d: Dict[str, Any] = {"id": p.id, "name": p.name}
    _put(d, "description", p.description)
    d["fields"] = [field_to_dict(f) for f in p.fields]
    d["order"] = p.order
    d.update(p.extra)
    return d


def page_from_dict(d: Any) -> FormPage:
    d = _require_mapping(d, "Page")
    page_id = _require_key(d, "id", "Page")
    return FormPage(
        id=page_id,
        name=d.get("name", ""),
        order=d.get("order", 0),
        description=d.get("description"),
        fields=[field_from_dict(f) for f in _require_list(d.get("fields"), f"Page {page_id!r} fields")],
        extra=_extras(d, _PAGE_KEYS),
    )


def theme_to_dict(t: FormTheme) -> Dict[str, Any]:
    d: Dict[str, Any] = {"accentColor": t.accent_color, "mode": t.mode.value}
    d.update(t.styles)
    return d


def theme_from_dict(d: Any) -> FormTheme:
    if d is None:
        return FormTheme()
    d = _require_mapping(d, "Theme")
    try:
        mode = ThemeMode(d.get("mode", "light"))
    except ValueError as exc:
        raise SchemaIntegrityError(f"Theme: {exc}") from exc
    return FormTheme(
        accent_color=d.get("accentColor", DEFAULT_ACCENT_COLOR),
        mode=mode,
        styles=_extras(d, {"accentColor", "mode"}),
    )


def cover_to_dict(c: CoverPage) -> Dict[str, Any]:
    d: Dict[str, Any] = {"title": c.title}
    _put(d, "description", c.description)
    _put(d, "imageUrl", c.image_url)
    d["showCover"] = c.show_cover
    return d


def cover_from_dict(d: Any) -> CoverPage:
    if d is None:
        return CoverPage()
    d = _require_mapping(d, "Cover page")
    return CoverPage(
        title=d.get("title", ""),
        show_cover=bool(d.get("showCover", False)),
        description=d.get("description"),
        image_url=d.get("imageUrl"),
    )


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

def template_to_dict(t: FormTemplate) -> Dict[str, Any]:
    d: Dict[str, Any] = {}
    if "_id" not in t.extra:
        _put(d, "id", t.id)
    d["projectId"] = t.project_id
    d["name"] = t.name
    _put(d, "description", t.description)
    _put(d, "slug", t.slug)
    d["theme"] = theme_to_dict(t.theme)
    d["coverPage"] = cover_to_dict(t.cover_page)
    d["pages"] = [page_to_dict(p) for p in t.pages]
    d["isPublished"] = t.is_published
    _put(d, "submissionCount", t.submission_count)
    _put(d, "viewCount", t.view_count)
    d.update(t.extra)
    if "_id" in t.extra:
        d["_id"] = t.id
    return d


def template_from_dict(d: Any) -> FormTemplate:
    d = _require_mapping(d, "Form template")
    return FormTemplate(
        id=d.get("id", d.get("_id")),
        project_id=d.get("projectId", ""),
        name=d.get("name", ""),
        description=d.get("description"),
        slug=d.get("slug"),
        theme=theme_from_dict(d.get("theme")),
        cover_page=cover_from_dict(d.get("coverPage")),
        pages=[page_from_dict(p) for p in _require_list(d.get("pages"), "Form template pages")],
        is_published=bool(d.get("isPublished", False)),
        submission_count=d.get("submissionCount"),
        view_count=d.get("viewCount"),
        extra=_extras(d, _TEMPLATE_KEYS),
    )


def load_template_document(d: Any) -> FormTemplate:
    """
    Parse a template document and enforce load-time integrity.

    This is the path every consumer that is about to render must use.

    Raises:
        SchemaIntegrityError: If the document is unparseable or has
            dangling references, duplicate ids, or no pages
    """
    template = template_from_dict(d)
    ensure_integrity(template)
    logger.debug("Loaded template %s with %d page(s)", template.id, len(template.pages))
    return template


def template_to_json(t: FormTemplate) -> str:
    return json.dumps(template_to_dict(t), sort_keys=True)


def template_from_json(s: str) -> FormTemplate:
    try:
        d = json.loads(s)
    except json.JSONDecodeError as exc:
        raise SchemaIntegrityError(f"Form template is not valid JSON: {exc}") from exc
    return template_from_dict(d)


def template_to_yaml(t: FormTemplate) -> str:
    return yaml.safe_dump(template_to_dict(t), sort_keys=False)


def template_from_yaml(s: str) -> FormTemplate:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as exc:
        raise SchemaIntegrityError(f"Form template is not valid YAML: {exc}") from exc
    return template_from_dict(d)


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------

def submission_to_dict(s: FormSubmission) -> Dict[str, Any]:
    d: Dict[str, Any] = {}
    _put(d, "id", s.id)
    d["templateId"] = s.template_id
    _put(d, "projectId", s.project_id)
    d["data"] = s.data
    _put(d, "respondentEmail", s.respondent_email)
    _put(d, "respondentName", s.respondent_name)
    _put(d, "startedAt", s.started_at)
    _put(d, "completedAt", s.completed_at)
    _put(d, "ipAddress", s.ip_address)
    _put(d, "userAgent", s.user_agent)
    return d


def submission_from_dict(d: Any) -> FormSubmission:
    d = _require_mapping(d, "Submission")
    return FormSubmission(
        id=d.get("id", d.get("_id")),
        template_id=d.get("templateId"),
        project_id=d.get("projectId"),
        data=d.get("data") or {},
        respondent_email=d.get("respondentEmail"),
        respondent_name=d.get("respondentName"),
        started_at=d.get("startedAt"),
        completed_at=d.get("completedAt", d.get("submittedAt")),
        ip_address=d.get("ipAddress"),
        user_agent=d.get("userAgent"),
    )


def submission_to_json(s: FormSubmission) -> str:
    return json.dumps(submission_to_dict(s), sort_keys=True)
