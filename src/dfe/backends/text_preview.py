"""
Plain-text preview of a form template.

Renders what a respondent would see, page by page, using the input
contracts for widgets and answer display.

Supports two modes:
    - SIMPLE: Labels, widgets and current answers
    - DETAILED: Adds validation and conditional logic annotations
"""

from enum import Enum
from typing import Any, List, Mapping, Optional

from dfe.backends.contracts import contract_for
from dfe.conditions import UNARY_OPERATORS, ConditionalRule
from dfe.model import FieldType, FormField, FormPage, FormTemplate
from dfe.visibility import VisibilityEvaluator


class PreviewMode(Enum):
    """Preview detail levels."""
    SIMPLE = "simple"
    DETAILED = "detailed"


_HEADINGS = {FieldType.HEADING, FieldType.BANNER}


def _rule_label(rule: ConditionalRule) -> str:
    op = rule.condition.value.replace("_", " ")
    if rule.condition in UNARY_OPERATORS:
        return f"{rule.trigger_field_id} {op}"
    return f"{rule.trigger_field_id} {op} {rule.value!r}"


def _validation_notes(f: FormField) -> List[str]:
    v = f.validation
    if v is None:
        return []
    notes = []
    if v.min_length is not None:
        notes.append(f"min length {v.min_length}")
    if v.max_length is not None:
        notes.append(f"max length {v.max_length}")
    if v.min is not None:
        notes.append(f"min {v.min:g}")
    if v.max is not None:
        notes.append(f"max {v.max:g}")
    if v.pattern:
        notes.append(f"pattern {v.pattern}")
    return notes


def _render_field(f: FormField, answers: Mapping[str, Any], mode: PreviewMode) -> List[str]:
    kind = f.kind
    if kind == FieldType.DIVIDER:
        return ["  " + "-" * 40]
    if kind in _HEADINGS:
        return [f"  ## {f.label}"]
    if f.is_structural:
        return [f"  [{f.type_tag}] {f.label}".rstrip()]

    contract = contract_for(f)
    marker = " *" if f.is_required else ""
    lines = [f"  {f.label}{marker} <{contract.widget}>"]

    if f.description:
        lines.append(f"    {f.description}")
    if f.options:
        for option in f.options:
            lines.append(f"    ( ) {option.label}")

    answer = contract.display(answers.get(f.id), f)
    if answer:
        lines.append(f"    > {answer}")
    else:
        placeholder = f.placeholder or contract.default_placeholder
        if placeholder:
            lines.append(f"    . {placeholder}")

    if mode == PreviewMode.DETAILED:
        notes = _validation_notes(f)
        if notes:
            lines.append(f"    validation: {', '.join(notes)}")
        rules = [r for r in f.rules if r.is_evaluated]
        if rules:
            lines.append(f"    shown when: {' AND '.join(_rule_label(r) for r in rules)}")
        if f.kind is None:
            lines.append(f"    unknown type '{f.type_tag}', shown as short text")
    return lines


def render_page(page: FormPage, answers: Optional[Mapping[str, Any]] = None,
                template: Optional[FormTemplate] = None,
                mode: PreviewMode = PreviewMode.SIMPLE) -> str:
    """
    Render one page. Fields hidden under the answers are left out.

    Args:
        page: Page to render
        answers: field id -> answer (empty by default)
        template: Owning template, needed to resolve visibility chains
        mode: PreviewMode
    """
    answers = answers or {}
    evaluator = VisibilityEvaluator(template, answers)
    lines = [f"# {page.name or page.id}"]
    if page.description:
        lines.append(page.description)
    for f in evaluator.visible_fields(page):
        lines.extend(_render_field(f, answers, mode))
    return "\n".join(lines)


def render_template(template: FormTemplate, answers: Optional[Mapping[str, Any]] = None,
                    mode: PreviewMode = PreviewMode.SIMPLE) -> str:
    """
    Render the whole template: cover page (when shown) then every page.

    Returns:
        String with one block per page separated by blank lines
    """
    answers = answers or {}
    blocks = [f"=== {template.name} ==="]
    if template.description:
        blocks[0] += f"\n{template.description}"

    cover = template.cover_page
    if cover.show_cover:
        cover_lines = [f"[Cover] {cover.title}"]
        if cover.description:
            cover_lines.append(cover.description)
        blocks.append("\n".join(cover_lines))

    total = len(template.pages)
    for index, page in enumerate(template.pages):
        header = f"Page {index + 1} of {total}"
        blocks.append(f"{header}\n{render_page(page, answers, template, mode)}")

    return "\n\n".join(blocks)


def save_preview_file(template: FormTemplate, filename: str,
                      answers: Optional[Mapping[str, Any]] = None,
                      mode: PreviewMode = PreviewMode.SIMPLE) -> None:
    """
    Render a preview and save it to a file.

    Args:
        template: Template to render
        filename: Output file path
        answers: Answers to show in the preview
        mode: PreviewMode
    """
    text = render_template(template, answers, mode=mode)
    with open(filename, 'w', encoding="utf-8") as f:
        f.write(text + "\n")


__all__ = ["PreviewMode", "render_page", "render_template", "save_preview_file"]
