"""
Field renderer dispatch: field type -> input contract.

An InputContract fixes, for one field variant:
    - the answer shape the engine stores
    - the widget a front end should draw
    - how a raw input event becomes an answer (coerce / toggle)
    - how a stored answer is displayed back

The CONTRACTS table is total over FieldType (checked at import).
Unknown type tags resolve to the short-text contract so that documents
written by newer authoring tools still render.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

from dfe.model import FieldType, FormField
from dfe.values import is_empty_value, selected_values, to_number


class ValueShape(Enum):
    """Shape of the stored answer."""

    NONE = "none"                  # display only, no answer
    TEXT = "text"                  # str
    NUMERIC_TEXT = "numeric_text"  # str holding a number ("12.50")
    CHOICE = "choice"              # str, one option value
    CHOICE_MAP = "choice_map"      # {option value: bool}
    ORDERED_LIST = "ordered_list"  # [str, ...]
    INTEGER = "integer"            # int within [min_value, max_value]
    DATE_RANGE = "date_range"      # {"start": str, "end": str}
    LOCATION = "location"          # {"lat": float, "lng": float}
    ADDRESS = "address"            # {"street": str, "city": str, ...}


ADDRESS_PARTS = ("street", "city", "state", "postalCode", "country")


@dataclass(frozen=True)
class InputContract:
    """
    Rendering and input contract for one field variant.

    Properties:
        field_type: Variant this contract serves
        shape: ValueShape of the stored answer
        widget: Input kind to draw ("text", "email", "radio", ...)
        min_value / max_value / step: Numeric widget bounds
        display_only: True for structural variants
        default_placeholder: Placeholder when the field sets none
    """

    field_type: FieldType
    shape: ValueShape
    widget: str
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    step: Optional[float] = None
    display_only: bool = False
    default_placeholder: Optional[str] = None

    @property
    def empty_value(self) -> Any:
        if self.shape == ValueShape.CHOICE_MAP:
            return {}
        if self.shape == ValueShape.ORDERED_LIST:
            return []
        if self.shape in (ValueShape.TEXT, ValueShape.NUMERIC_TEXT, ValueShape.CHOICE):
            return ""
        return None

    def coerce(self, raw: Any) -> Any:
        """
        Turn a raw input event value into the stored answer shape.

        Values that cannot be coerced are returned unchanged so that the
        validator reports them; coercion never raises.
        """
        if self.display_only:
            return None
        if raw is None:
            return self.empty_value

        if self.shape in (ValueShape.TEXT, ValueShape.CHOICE):
            return raw if isinstance(raw, str) else str(raw)

        if self.shape == ValueShape.NUMERIC_TEXT:
            if isinstance(raw, bool):
                return raw
            if isinstance(raw, (int, float)):
                return str(int(raw)) if float(raw).is_integer() else str(raw)
            return raw.strip() if isinstance(raw, str) else raw

        if self.shape == ValueShape.INTEGER:
            number = to_number(raw)
            if number is None or not number.is_integer():
                return raw
            return int(number)

        if self.shape == ValueShape.CHOICE_MAP:
            selected = selected_values(raw)
            if selected is None:
                return raw
            return {value: True for value in selected}

        if self.shape == ValueShape.ORDERED_LIST:
            if isinstance(raw, str):
                return [raw]
            if isinstance(raw, (list, tuple)):
                return [str(v) for v in raw]
            return raw

        if self.shape == ValueShape.ADDRESS and isinstance(raw, dict):
            return {part: raw.get(part, "") for part in ADDRESS_PARTS}

        return raw

    def toggle(self, current: Any, option_value: str, checked: bool) -> Dict[str, bool]:
        """
        Change handler for checkbox-style answers.

        Returns a new option->bool map; the current answer is not modified.
        """
        if self.shape != ValueShape.CHOICE_MAP:
            raise TypeError(f"{self.field_type.value} answers are not option maps")
        updated = dict(current) if isinstance(current, dict) else {}
        updated[option_value] = checked
        return updated

    def display(self, value: Any, f: Optional[FormField] = None) -> str:
        """Human-readable rendering of a stored answer."""
        if self.display_only or is_empty_value(value):
            return ""

        labels = {o.value: o.label for o in (f.options or [])} if f is not None else {}

        if self.shape == ValueShape.CHOICE_MAP or self.shape == ValueShape.ORDERED_LIST:
            selected = selected_values(value) or []
            return ", ".join(labels.get(v, v) for v in selected)
        if self.shape == ValueShape.CHOICE:
            return labels.get(value, str(value))
        if self.shape == ValueShape.DATE_RANGE and isinstance(value, dict):
            return f"{value.get('start', '')} - {value.get('end', '')}"
        if self.shape == ValueShape.LOCATION and isinstance(value, dict):
            return f"{value.get('lat')}, {value.get('lng')}"
        if self.shape == ValueShape.ADDRESS and isinstance(value, dict):
            return ", ".join(str(value[p]) for p in ADDRESS_PARTS if value.get(p))
        if self.field_type == FieldType.PASSWORD:
            return "*" * len(str(value))
        if self.field_type == FieldType.RATING:
            return f"{value}/{int(self.max_value)}"
        return str(value)


def _text(field_type: FieldType, widget: str,
          placeholder: Optional[str] = "Type your answer...") -> InputContract:
    return InputContract(field_type, ValueShape.TEXT, widget, default_placeholder=placeholder)


def _display(field_type: FieldType) -> InputContract:
    return InputContract(field_type, ValueShape.NONE, "display", display_only=True)


CONTRACTS: Dict[FieldType, InputContract] = {
    FieldType.SHORT_TEXT: _text(FieldType.SHORT_TEXT, "text"),
    FieldType.LONG_TEXT: _text(FieldType.LONG_TEXT, "textarea"),
    FieldType.EMAIL: _text(FieldType.EMAIL, "email", "your@email.com"),
    FieldType.PHONE: _text(FieldType.PHONE, "tel"),
    FieldType.URL: _text(FieldType.URL, "url", "https://"),
    FieldType.PASSWORD: _text(FieldType.PASSWORD, "password", None),
    FieldType.NUMBER: InputContract(FieldType.NUMBER, ValueShape.NUMERIC_TEXT, "number"),
    FieldType.CURRENCY: InputContract(FieldType.CURRENCY, ValueShape.NUMERIC_TEXT, "number", step=0.01),
    FieldType.MULTIPLE_CHOICE: InputContract(FieldType.MULTIPLE_CHOICE, ValueShape.CHOICE, "radio"),
    FieldType.DROPDOWN: InputContract(FieldType.DROPDOWN, ValueShape.CHOICE, "select",
                                      default_placeholder="Select an option"),
    FieldType.PICTURE_CHOICE: InputContract(FieldType.PICTURE_CHOICE, ValueShape.CHOICE, "picture"),
    FieldType.CHECKBOXES: InputContract(FieldType.CHECKBOXES, ValueShape.CHOICE_MAP, "checkbox"),
    FieldType.RANKING: InputContract(FieldType.RANKING, ValueShape.ORDERED_LIST, "ranking"),
    FieldType.DATE: _text(FieldType.DATE, "date", None),
    FieldType.TIME: _text(FieldType.TIME, "time", None),
    FieldType.DATE_TIME: _text(FieldType.DATE_TIME, "datetime-local", None),
    FieldType.DATE_RANGE: InputContract(FieldType.DATE_RANGE, ValueShape.DATE_RANGE, "date-range"),
    FieldType.RATING: InputContract(FieldType.RATING, ValueShape.INTEGER, "stars",
                                    min_value=1, max_value=5, step=1),
    FieldType.OPINION_SCALE: InputContract(FieldType.OPINION_SCALE, ValueShape.INTEGER, "scale",
                                           min_value=0, max_value=10, step=1),
    FieldType.SLIDER: InputContract(FieldType.SLIDER, ValueShape.INTEGER, "range",
                                    min_value=0, max_value=100, step=1),
    FieldType.FILE_UPLOAD: InputContract(FieldType.FILE_UPLOAD, ValueShape.ORDERED_LIST, "file"),
    FieldType.SIGNATURE: _text(FieldType.SIGNATURE, "signature", None),
    FieldType.COLOR_PICKER: _text(FieldType.COLOR_PICKER, "color", None),
    FieldType.LOCATION: InputContract(FieldType.LOCATION, ValueShape.LOCATION, "location"),
    FieldType.ADDRESS: InputContract(FieldType.ADDRESS, ValueShape.ADDRESS, "address"),
    FieldType.HEADING: _display(FieldType.HEADING),
    FieldType.PARAGRAPH: _display(FieldType.PARAGRAPH),
    FieldType.BANNER: _display(FieldType.BANNER),
    FieldType.DIVIDER: _display(FieldType.DIVIDER),
    FieldType.IMAGE: _display(FieldType.IMAGE),
    FieldType.VIDEO: _display(FieldType.VIDEO),
}

_missing = set(FieldType) - set(CONTRACTS)
if _missing:
    raise RuntimeError(f"CONTRACTS is missing {sorted(t.value for t in _missing)}")

FALLBACK_CONTRACT = CONTRACTS[FieldType.SHORT_TEXT]


def contract_for(f: FormField) -> InputContract:
    """
    Resolve the input contract for a field.

    Slider bounds follow the field's validation min/max when set.
    Unknown type tags get the short-text contract.
    """
    kind = f.kind
    if kind is None:
        return FALLBACK_CONTRACT
    contract = CONTRACTS[kind]
    if kind == FieldType.SLIDER and f.validation is not None:
        low = f.validation.min if f.validation.min is not None else contract.min_value
        high = f.validation.max if f.validation.max is not None else contract.max_value
        contract = replace(contract, min_value=low, max_value=high)
    return contract


def contract_for_type(field_type: FieldType) -> InputContract:
    return CONTRACTS[field_type]
