"""
Field Validator.

validate(field, value) -> ValidationResult

Rules are evaluated in this precedence, stopping at the first failure:
    1. required    - a required field must not be empty
    2. format      - type-specific shape check, then the field's pattern
    3. length      - minLength / maxLength (characters, or selections)
    4. numeric     - min / max

Empty answers of non-required fields pass without further checks.
Display-only fields always pass.

Validation is pure: it never touches the schema or the answer map.
Hidden fields are never validated; validate_page() applies visibility
before calling validate().
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Callable, Dict, Mapping, Optional

from dfe.backends.contracts import contract_for
from dfe.model import FieldType, FormField, FormPage, FormTemplate, STRUCTURAL_TYPES
from dfe.values import is_empty_value, selected_values, to_number
from dfe.visibility import VisibilityEvaluator

REQUIRED_MESSAGE = "This field is required"

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
URL_RE = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)
PHONE_RE = re.compile(r"^\+?[\d\s().\-]+$")
COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

RATING_RANGE = (1, 5)
OPINION_SCALE_RANGE = (0, 10)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one answer."""

    ok: bool
    message: Optional[str] = None

    @classmethod
    def passed(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def failed(cls, message: str) -> "ValidationResult":
        return cls(ok=False, message=message)


# A format check returns an error message, or None when the value is fine
FormatCheck = Callable[[FormField, Any], Optional[str]]


def _check_text(f: FormField, value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return "Please enter text"
    return None


def _check_email(f: FormField, value: Any) -> Optional[str]:
    if not isinstance(value, str) or not EMAIL_RE.match(value.strip()):
        return "Please enter a valid email address"
    return None


def _check_phone(f: FormField, value: Any) -> Optional[str]:
    if not isinstance(value, str) or not PHONE_RE.match(value.strip()):
        return "Please enter a valid phone number"
    if sum(ch.isdigit() for ch in value) < 7:
        return "Please enter a valid phone number"
    return None


def _check_url(f: FormField, value: Any) -> Optional[str]:
    if not isinstance(value, str) or not URL_RE.match(value.strip()):
        return "Please enter a valid URL"
    return None


def _check_number(f: FormField, value: Any) -> Optional[str]:
    if to_number(value) is None:
        return "Please enter a valid number"
    return None


def _check_single_choice(f: FormField, value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return "Please select an option"
    allowed = f.option_values()
    if allowed and value not in allowed:
        return "Please select one of the available options"
    return None


def _check_checkboxes(f: FormField, value: Any) -> Optional[str]:
    selected = selected_values(value)
    if selected is None:
        return "Please select from the available options"
    allowed = f.option_values()
    if allowed and any(v not in allowed for v in selected):
        return "Please select from the available options"
    return None


def _check_ranking(f: FormField, value: Any) -> Optional[str]:
    if not isinstance(value, (list, tuple)):
        return "Please rank the options"
    ranked = [str(v) for v in value]
    if len(set(ranked)) != len(ranked):
        return "Each option can only be ranked once"
    allowed = f.option_values()
    if allowed and any(v not in allowed for v in ranked):
        return "Please rank only the available options"
    return None


def _parse_date(value: Any) -> Optional[date]:
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def _check_date(f: FormField, value: Any) -> Optional[str]:
    if _parse_date(value) is None:
        return "Please enter a valid date"
    return None


def _check_time(f: FormField, value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return "Please enter a valid time"
    try:
        time.fromisoformat(value.strip())
    except ValueError:
        return "Please enter a valid time"
    return None


def _check_date_time(f: FormField, value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return "Please enter a valid date and time"
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return "Please enter a valid date and time"
    return None


def _check_date_range(f: FormField, value: Any) -> Optional[str]:
    if not isinstance(value, dict):
        return "Please enter a start and end date"
    start, end = _parse_date(value.get("start")), _parse_date(value.get("end"))
    if start is None or end is None:
        return "Please enter a start and end date"
    if start > end:
        return "End date must be on or after the start date"
    return None


def _integer_in(value: Any, low: float, high: float) -> bool:
    number = to_number(value)
    return number is not None and number.is_integer() and low <= number <= high


def _check_rating(f: FormField, value: Any) -> Optional[str]:
    if not _integer_in(value, *RATING_RANGE):
        return f"Please choose a rating from {RATING_RANGE[0]} to {RATING_RANGE[1]}"
    return None


def _check_opinion_scale(f: FormField, value: Any) -> Optional[str]:
    if not _integer_in(value, *OPINION_SCALE_RANGE):
        return f"Please choose a value from {OPINION_SCALE_RANGE[0]} to {OPINION_SCALE_RANGE[1]}"
    return None


def _check_slider(f: FormField, value: Any) -> Optional[str]:
    contract = contract_for(f)
    if not _integer_in(value, contract.min_value, contract.max_value):
        return (f"Please choose a whole number from {_format_bound(contract.min_value)} "
                f"to {_format_bound(contract.max_value)}")
    return None


def _check_files(f: FormField, value: Any) -> Optional[str]:
    names = [value] if isinstance(value, str) else value
    if not isinstance(names, (list, tuple)) or not all(isinstance(n, str) for n in names):
        return "Please upload a file"
    accepted = [t.lower().lstrip(".") for t in (f.validation.file_types if f.validation else None) or []]
    if accepted:
        for name in names:
            ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
            if ext not in accepted:
                return f"Accepted file types: {', '.join(accepted)}"
    return None


def _check_color(f: FormField, value: Any) -> Optional[str]:
    if not isinstance(value, str) or not COLOR_RE.match(value.strip()):
        return "Please choose a valid color"
    return None


def _check_location(f: FormField, value: Any) -> Optional[str]:
    if not isinstance(value, dict):
        return "Please choose a location"
    lat, lng = to_number(value.get("lat")), to_number(value.get("lng"))
    if lat is None or lng is None or not -90 <= lat <= 90 or not -180 <= lng <= 180:
        return "Please choose a valid location"
    return None


def _check_address(f: FormField, value: Any) -> Optional[str]:
    if isinstance(value, str):
        return None
    if not isinstance(value, dict) or not all(v is None or isinstance(v, str) for v in value.values()):
        return "Please enter a valid address"
    return None


def _no_check(f: FormField, value: Any) -> Optional[str]:
    return None


FORMAT_CHECKS: Dict[FieldType, FormatCheck] = {
    FieldType.SHORT_TEXT: _check_text,
    FieldType.LONG_TEXT: _check_text,
    FieldType.EMAIL: _check_email,
    FieldType.PHONE: _check_phone,
    FieldType.URL: _check_url,
    FieldType.PASSWORD: _check_text,
    FieldType.NUMBER: _check_number,
    FieldType.MULTIPLE_CHOICE: _check_single_choice,
    FieldType.CHECKBOXES: _check_checkboxes,
    FieldType.DROPDOWN: _check_single_choice,
    FieldType.PICTURE_CHOICE: _check_single_choice,
    FieldType.DATE: _check_date,
    FieldType.TIME: _check_time,
    FieldType.DATE_TIME: _check_date_time,
    FieldType.DATE_RANGE: _check_date_range,
    FieldType.RATING: _check_rating,
    FieldType.RANKING: _check_ranking,
    FieldType.SLIDER: _check_slider,
    FieldType.OPINION_SCALE: _check_opinion_scale,
    FieldType.FILE_UPLOAD: _check_files,
    FieldType.SIGNATURE: _check_text,
    FieldType.COLOR_PICKER: _check_color,
    FieldType.LOCATION: _check_location,
    FieldType.ADDRESS: _check_address,
    FieldType.CURRENCY: _check_number,
    FieldType.HEADING: _no_check,
    FieldType.PARAGRAPH: _no_check,
    FieldType.BANNER: _no_check,
    FieldType.DIVIDER: _no_check,
    FieldType.IMAGE: _no_check,
    FieldType.VIDEO: _no_check,
}

_missing = set(FieldType) - set(FORMAT_CHECKS)
if _missing:
    raise RuntimeError(f"FORMAT_CHECKS is missing {sorted(t.value for t in _missing)}")

# Values whose size is measured in selected options
_LENGTH_IN_SELECTIONS = frozenset({FieldType.CHECKBOXES, FieldType.RANKING, FieldType.FILE_UPLOAD})

_NUMERIC_TYPES = frozenset({
    FieldType.NUMBER, FieldType.CURRENCY, FieldType.SLIDER, FieldType.RATING,
    FieldType.OPINION_SCALE,
})


def _format_bound(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def _check_pattern(f: FormField, value: Any) -> Optional[str]:
    pattern = f.validation.pattern if f.validation else None
    if not pattern or not isinstance(value, str):
        return None
    try:
        matched = re.fullmatch(pattern, value) is not None
    except re.error:
        # Unparseable author patterns are ignored
        return None
    if not matched:
        return "Please match the requested format"
    return None


def _check_length(kind: FieldType, f: FormField, value: Any) -> Optional[str]:
    v = f.validation
    if v is None or (v.min_length is None and v.max_length is None):
        return None

    if kind in _LENGTH_IN_SELECTIONS:
        selected = selected_values(value)
        size = len(selected) if selected is not None else 1
        if v.min_length is not None and size < v.min_length:
            return f"Select at least {v.min_length} option(s)"
        if v.max_length is not None and size > v.max_length:
            return f"Select at most {v.max_length} option(s)"
        return None

    if not isinstance(value, str) or kind in _NUMERIC_TYPES:
        return None
    if v.min_length is not None and len(value) < v.min_length:
        return f"Minimum {v.min_length} characters required"
    if v.max_length is not None and len(value) > v.max_length:
        return f"Maximum {v.max_length} characters allowed"
    return None


def _check_bounds(kind: FieldType, f: FormField, value: Any) -> Optional[str]:
    v = f.validation
    if v is None or kind not in _NUMERIC_TYPES or (v.min is None and v.max is None):
        return None
    number = to_number(value)
    if number is None:
        return None
    if v.min is not None and number < v.min:
        return f"Value must be at least {_format_bound(v.min)}"
    if v.max is not None and number > v.max:
        return f"Value must be at most {_format_bound(v.max)}"
    return None


def validate(f: FormField, value: Any) -> ValidationResult:
    """
    Validate one answer against its field.

    Unknown field types are validated as short text.

    Args:
        f: Field definition
        value: Current answer (may be None)

    Returns:
        ValidationResult with ok=False and a message on the first failure
    """
    kind = f.kind or FieldType.SHORT_TEXT
    if kind in STRUCTURAL_TYPES:
        return ValidationResult.passed()

    if is_empty_value(value):
        if f.is_required:
            return ValidationResult.failed(REQUIRED_MESSAGE)
        return ValidationResult.passed()

    for check in (
        lambda: FORMAT_CHECKS[kind](f, value),
        lambda: _check_pattern(f, value),
        lambda: _check_length(kind, f, value),
        lambda: _check_bounds(kind, f, value),
    ):
        message = check()
        if message:
            return ValidationResult.failed(message)
    return ValidationResult.passed()


def validate_page(page: FormPage, answers: Mapping[str, Any],
                  template: Optional[FormTemplate] = None) -> Dict[str, str]:
    """
    Validate every visible field of a page.

    Hidden fields are skipped entirely, whatever their required flag.

    Returns:
        field id -> error message for each failing field (empty when valid)
    """
    evaluator = VisibilityEvaluator(template, answers)
    errors: Dict[str, str] = {}
    for f in evaluator.visible_fields(page):
        result = validate(f, answers.get(f.id))
        if not result.ok:
            errors[f.id] = result.message
    return errors
