"""
Template editing operations.

Every authoring mutation goes through TemplateEditor, which keeps the
template's invariants intact:
    - at least one page
    - dense `order` values on pages and fields
    - no conditional rule referencing a missing field or its own field

After each mutation the optional on_change callback receives the
template; the authoring session wires it to the debounced autosave.
"""

from __future__ import annotations

import copy
import logging
import re
import uuid
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Union

from dfe.conditions import ConditionalRule
from dfe.errors import SchemaIntegrityError
from dfe.model import (
    CoverPage,
    FieldOption,
    FieldType,
    FieldValidation,
    FormField,
    FormPage,
    FormTemplate,
    FormTheme,
    ThemeMode,
    resolve_field_type,
)

logger = logging.getLogger(__name__)

DEFAULT_LABELS: Dict[FieldType, str] = {
    FieldType.SHORT_TEXT: "Short Answer",
    FieldType.LONG_TEXT: "Long Answer",
    FieldType.EMAIL: "Email Address",
    FieldType.PHONE: "Phone Number",
    FieldType.NUMBER: "Number",
    FieldType.URL: "Website URL",
    FieldType.PASSWORD: "Password",
    FieldType.MULTIPLE_CHOICE: "Multiple Choice Question",
    FieldType.CHECKBOXES: "Select Multiple",
    FieldType.DROPDOWN: "Select from Dropdown",
    FieldType.PICTURE_CHOICE: "Picture Choice",
    FieldType.DATE: "Date",
    FieldType.TIME: "Time",
    FieldType.DATE_TIME: "Date and Time",
    FieldType.DATE_RANGE: "Date Range",
    FieldType.RATING: "Star Rating",
    FieldType.RANKING: "Ranking",
    FieldType.SLIDER: "Slider",
    FieldType.OPINION_SCALE: "Opinion Scale",
    FieldType.FILE_UPLOAD: "File Upload",
    FieldType.SIGNATURE: "Signature",
    FieldType.COLOR_PICKER: "Color Picker",
    FieldType.LOCATION: "Location",
    FieldType.ADDRESS: "Address",
    FieldType.CURRENCY: "Currency",
    FieldType.HEADING: "Heading",
    FieldType.PARAGRAPH: "Paragraph",
    FieldType.BANNER: "Banner",
    FieldType.DIVIDER: "Divider",
    FieldType.IMAGE: "Image",
    FieldType.VIDEO: "Video",
}

FALLBACK_LABEL = "Untitled Field"

# Choice variants that start with three placeholder options
DEFAULT_OPTION_TYPES = frozenset({
    FieldType.MULTIPLE_CHOICE,
    FieldType.CHECKBOXES,
    FieldType.DROPDOWN,
    FieldType.PICTURE_CHOICE,
})

COPY_SUFFIX = " (Copy)"

# Named design presets, consumed by TemplateEditor.apply_theme_preset
THEME_PRESETS: Dict[str, Dict[str, Any]] = {
    "minimal-white": {
        "accentColor": "#000000",
        "mode": "light",
        "backgroundColor": "#FFFFFF",
        "cardBackground": "#F9FAFB",
        "textPrimary": "#000000",
        "textSecondary": "#6B7280",
        "borderColor": "#E5E7EB",
        "inputBackground": "#FFFFFF",
        "buttonStyle": "solid",
        "borderRadius": "rounded",
        "fontFamily": "Inter",
        "spacing": "spacious",
    },
    "minimal-blue": {
        "accentColor": "#3B82F6",
        "mode": "light",
        "backgroundColor": "#F0F9FF",
        "cardBackground": "#FFFFFF",
        "textPrimary": "#1E3A8A",
        "textSecondary": "#3B82F6",
        "borderColor": "#BFDBFE",
        "inputBackground": "#FFFFFF",
        "buttonStyle": "soft",
        "borderRadius": "rounded",
        "fontFamily": "Inter",
        "spacing": "normal",
    },
    "pro-corporate": {
        "accentColor": "#1E40AF",
        "mode": "light",
        "backgroundColor": "#F8FAFC",
        "cardBackground": "#FFFFFF",
        "textPrimary": "#0F172A",
        "textSecondary": "#475569",
        "borderColor": "#CBD5E1",
        "inputBackground": "#F8FAFC",
        "buttonStyle": "solid",
        "borderRadius": "sharp",
        "fontFamily": "Roboto",
        "spacing": "normal",
    },
    "corporate-dark": {
        "accentColor": "#10B981",
        "mode": "dark",
        "backgroundColor": "#0F172A",
        "cardBackground": "#1E293B",
        "textPrimary": "#F1F5F9",
        "textSecondary": "#CBD5E1",
        "borderColor": "#334155",
        "inputBackground": "#1E293B",
        "buttonStyle": "solid",
        "borderRadius": "rounded",
        "fontFamily": "Roboto",
        "spacing": "normal",
    },
}


def generate_id(prefix: str, existing: Iterable[str] = ()) -> str:
    """
    New identifier of the form "<prefix>-<12 hex chars>".

    Redrawn until it does not collide with `existing`.
    """
    taken = set(existing)
    while True:
        candidate = f"{prefix}-{uuid.uuid4().hex[:12]}"
        if candidate not in taken:
            return candidate


def default_label(field_type: Union[FieldType, str]) -> str:
    if isinstance(field_type, FieldType):
        return DEFAULT_LABELS[field_type]
    return FALLBACK_LABEL


def default_options(field_type: Union[FieldType, str]) -> Optional[List[FieldOption]]:
    if field_type not in DEFAULT_OPTION_TYPES:
        return None
    return [FieldOption(id=f"opt-{i}", label=f"Option {i}", value=f"option-{i}") for i in (1, 2, 3)]


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "form"


def new_template(project_id: str = "", name: str = "Untitled Form") -> FormTemplate:
    """A blank template with one empty page."""
    return FormTemplate(
        project_id=project_id,
        name=name,
        pages=[FormPage(id=generate_id("page"), name="Page 1", order=0)],
    )


def new_template_from_blueprint(pages: List[FormPage], project_id: str = "",
                                name: str = "Untitled Form", **attrs: Any) -> FormTemplate:
    """
    A template built from a stock set of pages.

    The blueprint is deep-copied; every page, field and rule gets a fresh
    id, and rules are rewired to the new field and page ids. Rules whose
    trigger lies outside the blueprint keep their old reference. Extra
    keyword arguments (theme, cover_page, description) go to FormTemplate.
    """
    pages = copy.deepcopy(pages)
    page_map: Dict[str, str] = {}
    field_map: Dict[str, str] = {}
    for page_index, page in enumerate(pages):
        new_id = generate_id("page", page_map.values())
        page_map[page.id] = new_id
        page.id = new_id
        page.order = page_index
        for field_index, f in enumerate(page.fields):
            new_id = generate_id("field", field_map.values())
            field_map[f.id] = new_id
            f.id = new_id
            f.order = field_index

    for page in pages:
        for f in page.fields:
            if not f.conditional_logic:
                continue
            taken: Set[str] = set()
            rules = []
            for rule in f.conditional_logic:
                rule_id = generate_id("logic", taken)
                taken.add(rule_id)
                targets = rule.target_field_ids
                if targets is not None:
                    targets = tuple(field_map.get(t, t) for t in targets)
                rules.append(replace(
                    rule,
                    id=rule_id,
                    trigger_field_id=field_map.get(rule.trigger_field_id, rule.trigger_field_id),
                    target_field_ids=targets,
                    target_page_id=page_map.get(rule.target_page_id, rule.target_page_id),
                ))
            f.conditional_logic = rules

    logger.debug("Built template %r from a %d-page blueprint", name, len(pages))
    return FormTemplate(project_id=project_id, name=name, pages=pages, **attrs)


class TemplateEditor:
    """
    Authoring session over one template.

    Args:
        template: Template to edit, mutated in place
        on_change: Called with the template after every mutation

    Properties:
        active_page_index: Page the author is looking at
    """

    def __init__(self, template: FormTemplate,
                 on_change: Optional[Callable[[FormTemplate], Any]] = None):
        if not template.pages:
            raise SchemaIntegrityError("Form template has no pages")
        self.template = template
        self.on_change = on_change
        self.active_page_index = 0

    @property
    def active_page(self) -> FormPage:
        return self.template.pages[self.active_page_index]

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def add_page(self, name: Optional[str] = None, description: Optional[str] = None) -> FormPage:
        """Append a page and make it active."""
        page = FormPage(
            id=generate_id("page", self.template.page_ids()),
            name=name or f"Page {len(self.template.pages) + 1}",
            description=description,
            order=len(self.template.pages),
        )
        self.template.pages.append(page)
        self.active_page_index = len(self.template.pages) - 1
        logger.debug("Added page %s", page.id)
        self._changed()
        return page

    def remove_page(self, page_id: str) -> FormPage:
        """
        Delete a page and its fields.

        Rules elsewhere that referenced the removed fields are dropped.

        Raises:
            SchemaIntegrityError: The page is the last one
            KeyError: Unknown page id
        """
        index = self._page_index(page_id)
        if len(self.template.pages) == 1:
            raise SchemaIntegrityError("Cannot delete the last page")

        page = self.template.pages.pop(index)
        self._drop_rules_referencing({f.id for f in page.fields})
        self._renumber_pages()
        if self.active_page_index >= len(self.template.pages):
            self.active_page_index = len(self.template.pages) - 1
        elif self.active_page_index > index:
            self.active_page_index -= 1
        logger.debug("Removed page %s with %d field(s)", page.id, len(page.fields))
        self._changed()
        return page

    def rename_page(self, page_id: str, name: str) -> None:
        self._page(page_id).name = name
        self._changed()

    def update_page(self, page_id: str, **changes: Any) -> FormPage:
        """Set page attributes (name, description)."""
        page = self._page(page_id)
        for key, value in changes.items():
            if key not in ("name", "description"):
                raise AttributeError(f"Page attribute cannot be edited: {key}")
            setattr(page, key, value)
        self._changed()
        return page

    def move_page(self, page_id: str, new_index: int) -> None:
        """Move a page to a new position; active pointer follows the page."""
        pages = self.template.pages
        index = self._page_index(page_id)
        new_index = max(0, min(new_index, len(pages) - 1))
        active = pages[self.active_page_index]
        pages.insert(new_index, pages.pop(index))
        self._renumber_pages()
        self.active_page_index = pages.index(active)
        self._changed()

    def select_page(self, index: int) -> FormPage:
        if not 0 <= index < len(self.template.pages):
            raise IndexError(f"No page at index {index}")
        self.active_page_index = index
        return self.active_page

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    def add_field(self, field_type: Union[FieldType, str], page_id: Optional[str] = None,
                  label: Optional[str] = None) -> FormField:
        """
        Append a field with palette defaults to a page (active page by default).

        Choice variants get three placeholder options.
        """
        field_type = resolve_field_type(field_type) or field_type
        page = self._page(page_id) if page_id else self.active_page
        f = FormField(
            id=generate_id("field", self.template.field_ids()),
            type=field_type,
            label=label or default_label(field_type),
            order=len(page.fields),
            options=default_options(field_type),
            validation=FieldValidation(required=False),
        )
        page.fields.append(f)
        logger.debug("Added %s field %s to page %s", f.type_tag, f.id, page.id)
        self._changed()
        return f

    def update_field(self, field_id: str, **changes: Any) -> FormField:
        """Set display attributes of a field (label, placeholder, description, default_value, type)."""
        f = self._field(field_id)
        for key, value in changes.items():
            if key not in ("label", "placeholder", "description", "default_value", "type"):
                raise AttributeError(f"Field attribute cannot be edited here: {key}")
            if key == "type":
                value = resolve_field_type(value) or value
            setattr(f, key, value)
        self._changed()
        return f

    def set_validation(self, field_id: str, validation: Optional[FieldValidation]) -> None:
        self._field(field_id).validation = validation
        self._changed()

    def set_required(self, field_id: str, required: bool) -> None:
        f = self._field(field_id)
        f.validation = replace(f.validation or FieldValidation(), required=required)
        self._changed()

    def set_options(self, field_id: str, options: List[FieldOption]) -> None:
        self._field(field_id).options = list(options)
        self._changed()

    def add_option(self, field_id: str, label: Optional[str] = None,
                   value: Optional[str] = None) -> FieldOption:
        f = self._field(field_id)
        options = f.options if f.options is not None else []
        number = len(options) + 1
        option = FieldOption(
            id=generate_id("opt", (o.id for o in options)),
            label=label or f"Option {number}",
            value=value or f"option-{number}",
        )
        options.append(option)
        f.options = options
        self._changed()
        return option

    def remove_option(self, field_id: str, option_id: str) -> None:
        f = self._field(field_id)
        remaining = [o for o in (f.options or []) if o.id != option_id]
        if len(remaining) == len(f.options or []):
            raise KeyError(f"Unknown option: {option_id}")
        f.options = remaining
        self._changed()

    def set_conditional_logic(self, field_id: str, rules: List[ConditionalRule]) -> None:
        """
        Replace a field's visibility rules.

        Raises:
            SchemaIntegrityError: A rule references the field itself or a
                field that does not exist
        """
        f = self._field(field_id)
        known = set(self.template.field_ids())
        problems = []
        for rule in rules:
            if rule.trigger_field_id == field_id:
                problems.append(f"Field {field_id} has a rule referencing itself")
            elif rule.trigger_field_id not in known:
                problems.append(
                    f"Field {field_id} has a rule referencing missing field {rule.trigger_field_id}"
                )
        if problems:
            raise SchemaIntegrityError(problems)
        f.conditional_logic = list(rules) or None
        self._changed()

    def move_field(self, field_id: str, new_index: int, page_id: Optional[str] = None) -> None:
        """Move a field within its page, or to another page when page_id is given."""
        source = self._owning_page(field_id)
        target = self._page(page_id) if page_id else source
        f = source.get_field(field_id)
        source.fields.remove(f)
        new_index = max(0, min(new_index, len(target.fields)))
        target.fields.insert(new_index, f)
        _renumber(source.fields)
        if target is not source:
            _renumber(target.fields)
        self._changed()

    def remove_field(self, field_id: str) -> FormField:
        """Delete a field and every rule that referenced it."""
        page = self._owning_page(field_id)
        f = page.get_field(field_id)
        page.fields.remove(f)
        _renumber(page.fields)
        self._drop_rules_referencing({field_id})
        logger.debug("Removed field %s", field_id)
        self._changed()
        return f

    def duplicate_field(self, field_id: str) -> FormField:
        """Copy a field right after the original, with a fresh id and " (Copy)" label."""
        page = self._owning_page(field_id)
        original = page.get_field(field_id)
        clone = copy.deepcopy(original)
        clone.id = generate_id("field", self.template.field_ids())
        clone.label = f"{original.label}{COPY_SUFFIX}"
        if clone.conditional_logic:
            taken: Set[str] = set()
            rules = []
            for rule in clone.conditional_logic:
                rule_id = generate_id("logic", taken)
                taken.add(rule_id)
                rules.append(replace(rule, id=rule_id))
            clone.conditional_logic = rules
        page.fields.insert(page.fields.index(original) + 1, clone)
        _renumber(page.fields)
        self._changed()
        return clone

    # ------------------------------------------------------------------
    # Template
    # ------------------------------------------------------------------

    def rename(self, name: str) -> None:
        self.template.name = name
        self._changed()

    def set_description(self, description: Optional[str]) -> None:
        self.template.description = description
        self._changed()

    def set_theme(self, theme: FormTheme) -> None:
        self.template.theme = theme
        self._changed()

    def apply_theme_styles(self, styles: Dict[str, Any]) -> None:
        """Merge a design preset into the theme; accentColor and mode are honored too."""
        theme = self.template.theme
        for key, value in styles.items():
            if key == "accentColor":
                theme.accent_color = value
            elif key == "mode":
                theme.mode = ThemeMode(value)
            else:
                theme.styles[key] = value
        self._changed()

    def apply_theme_preset(self, preset_id: str) -> None:
        """
        Apply one of THEME_PRESETS by name.

        Raises:
            KeyError: Unknown preset
        """
        if preset_id not in THEME_PRESETS:
            raise KeyError(f"Unknown theme preset: {preset_id}")
        self.apply_theme_styles(THEME_PRESETS[preset_id])

    def set_cover_page(self, cover: CoverPage) -> None:
        self.template.cover_page = cover
        self._changed()

    def publish(self, slug: Optional[str] = None) -> str:
        """
        Mark the template published.

        The slug is kept when already assigned, otherwise derived from the
        name with a random suffix.
        """
        t = self.template
        if slug:
            t.slug = slug
        elif not t.slug:
            t.slug = f"{slugify(t.name)}-{uuid.uuid4().hex[:6]}"
        t.is_published = True
        logger.info("Published template %s as %s", t.id, t.slug)
        self._changed()
        return t.slug

    def unpublish(self) -> None:
        self.template.is_published = False
        self._changed()

    # ------------------------------------------------------------------

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self.template)

    def _page_index(self, page_id: str) -> int:
        for index, page in enumerate(self.template.pages):
            if page.id == page_id:
                return index
        raise KeyError(f"Unknown page: {page_id}")

    def _page(self, page_id: str) -> FormPage:
        return self.template.pages[self._page_index(page_id)]

    def _owning_page(self, field_id: str) -> FormPage:
        found = self.template.find_field_page(field_id)
        if found is None:
            raise KeyError(f"Unknown field: {field_id}")
        return found[1]

    def _field(self, field_id: str) -> FormField:
        return self._owning_page(field_id).get_field(field_id)

    def _renumber_pages(self) -> None:
        _renumber(self.template.pages)

    def _drop_rules_referencing(self, field_ids: Set[str]) -> None:
        for f in self.template.iter_fields():
            if not f.conditional_logic:
                continue
            kept = [r for r in f.conditional_logic if r.trigger_field_id not in field_ids]
            if len(kept) != len(f.conditional_logic):
                logger.debug("Dropped %d rule(s) from field %s",
                             len(f.conditional_logic) - len(kept), f.id)
                f.conditional_logic = kept or None


def _renumber(items: List[Union[FormPage, FormField]]) -> None:
    for index, item in enumerate(items):
        item.order = index
