"""
Template Integrity Analyzer: load-time diagnostics for form templates.

This module provides lightweight analysis of FormTemplate objects:
    - Field inventory (answerable, structural, required)
    - Id uniqueness
    - Conditional rule references (dangling, self, forward)
    - Visibility dependency cycles
    - Warning flags for documents that load but behave oddly

IMPORTANT: This is read-only. It never modifies the template.
ensure_integrity() is the single place that turns errors into
SchemaIntegrityError.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from dfe.errors import SchemaIntegrityError
from dfe.model import FormTemplate


def _find_cycles_dfs(graph: Dict[str, List[str]], start: str, visited: Set[str],
                     rec_stack: Set[str], path: List[str]) -> Optional[List[str]]:
    """DFS to find a cycle starting from a node."""
    visited.add(start)
    rec_stack.add(start)
    path.append(start)

    for neighbor in graph.get(start, []):
        if neighbor not in visited:
            cycle = _find_cycles_dfs(graph, neighbor, visited, rec_stack, path[:])
            if cycle:
                return cycle
        elif neighbor in rec_stack:
            cycle_start_idx = path.index(neighbor)
            return path[cycle_start_idx:] + [neighbor]

    rec_stack.remove(start)
    return None


@dataclass
class TemplateReport:
    """Integrity and inventory report for a template."""

    template_name: str
    total_pages: int = 0
    total_fields: int = 0
    answerable_fields: int = 0
    structural_fields: int = 0
    required_fields: int = 0
    fields_with_logic: int = 0

    # Reference checks: (dependent field id, referenced field id)
    duplicate_page_ids: Set[str] = field(default_factory=set)
    duplicate_field_ids: Set[str] = field(default_factory=set)
    dangling_references: Set[Tuple[str, str]] = field(default_factory=set)
    self_references: Set[str] = field(default_factory=set)
    forward_references: Set[Tuple[str, str]] = field(default_factory=set)
    structural_references: Set[Tuple[str, str]] = field(default_factory=set)

    # Dependency graph
    has_cycles: bool = False
    cycle_example: Optional[List[str]] = None

    unknown_types: Set[str] = field(default_factory=set)
    unsupported_actions: Set[str] = field(default_factory=set)
    choice_fields_without_options: Set[str] = field(default_factory=set)
    misordered: List[str] = field(default_factory=list)

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        if msg not in self.errors:
            self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_template(template: FormTemplate) -> TemplateReport:
    """
    Perform integrity analysis of a FormTemplate.

    Errors (the document must not be rendered):
    - No pages
    - Duplicate page or field ids
    - Rules referencing missing fields or their own field

    Warnings (the document renders, with degraded behavior):
    - Visibility cycles, rules on display-only sources
    - Unknown field types, unsupported rule actions
    - Choice fields without options, non-dense order
    """
    report = TemplateReport(template_name=template.name)
    report.total_pages = len(template.pages)

    # =========================================================================
    # 1. INVENTORY AND ID UNIQUENESS
    # =========================================================================

    seen_pages: Set[str] = set()
    seen_fields: Set[str] = set()
    position: Dict[str, int] = {}

    for page_index, page in enumerate(template.pages):
        if page.id in seen_pages:
            report.duplicate_page_ids.add(page.id)
        seen_pages.add(page.id)
        if page.order != page_index:
            report.misordered.append(page.id)

        for field_index, f in enumerate(page.fields):
            report.total_fields += 1
            if f.id in seen_fields:
                report.duplicate_field_ids.add(f.id)
            seen_fields.add(f.id)
            position.setdefault(f.id, len(position))
            if f.order != field_index:
                report.misordered.append(f.id)

            if f.kind is None:
                report.unknown_types.add(f.type_tag)
            if f.is_structural:
                report.structural_fields += 1
            else:
                report.answerable_fields += 1
                if f.is_required:
                    report.required_fields += 1
            if f.is_choice and not f.options:
                report.choice_fields_without_options.add(f.id)
            if f.rules:
                report.fields_with_logic += 1

    # =========================================================================
    # 2. CONDITIONAL REFERENCES
    # =========================================================================

    fields = template.fields_by_id()
    depends_on: Dict[str, List[str]] = defaultdict(list)

    for f in template.iter_fields():
        for rule in f.rules:
            source = rule.trigger_field_id
            if not rule.is_evaluated:
                report.unsupported_actions.add(rule.action.value)
            if source == f.id:
                report.self_references.add(f.id)
                continue
            if source not in fields:
                report.dangling_references.add((f.id, source))
                continue
            if fields[source].is_structural:
                report.structural_references.add((f.id, source))
            if position.get(source, -1) > position.get(f.id, -1):
                report.forward_references.add((f.id, source))
            depends_on[f.id].append(source)

    visited: Set[str] = set()
    for field_id in list(depends_on.keys()):
        if field_id not in visited:
            cycle = _find_cycles_dfs(depends_on, field_id, visited, set(), [])
            if cycle:
                report.has_cycles = True
                report.cycle_example = cycle
                break

    # =========================================================================
    # 3. FLAGS
    # =========================================================================

    if report.total_pages == 0:
        report.add_error("Form template has no pages")

    if report.duplicate_page_ids:
        report.add_error(
            f"Duplicate page ids: {', '.join(sorted(report.duplicate_page_ids))}"
        )

    if report.duplicate_field_ids:
        report.add_error(
            f"Duplicate field ids: {', '.join(sorted(report.duplicate_field_ids))}"
        )

    for dependent, source in sorted(report.dangling_references):
        report.add_error(f"Field {dependent} has a rule referencing missing field {source}")

    for dependent in sorted(report.self_references):
        report.add_error(f"Field {dependent} has a rule referencing itself")

    if report.has_cycles:
        report.add_warning(
            f"Visibility cycle detected: {' -> '.join(report.cycle_example)}"
        )

    for dependent, source in sorted(report.structural_references):
        report.add_warning(f"Field {dependent} depends on display-only field {source}")

    if report.unknown_types:
        report.add_warning(
            f"Unknown field types rendered as short text: {', '.join(sorted(report.unknown_types))}"
        )

    if report.unsupported_actions:
        report.add_warning(
            f"Rule actions ignored by the engine: {', '.join(sorted(report.unsupported_actions))}"
        )

    if report.choice_fields_without_options:
        report.add_warning(
            f"Choice fields without options: {', '.join(sorted(report.choice_fields_without_options))}"
        )

    if report.misordered:
        report.add_warning(
            f"Order does not match position for: {', '.join(report.misordered)}"
        )

    return report


def ensure_integrity(template: FormTemplate) -> TemplateReport:
    """
    Analyze a template and raise if it must not be rendered.

    Returns:
        The TemplateReport (warnings may be present)

    Raises:
        SchemaIntegrityError: Listing every integrity error found
    """
    report = analyze_template(template)
    if report.errors:
        raise SchemaIntegrityError(report.errors)
    return report
