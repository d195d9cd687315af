"""
Graphviz DOT diagram of a template's conditional logic.

Fields are nodes, grouped into one cluster per page. Every evaluated
rule draws an edge from its trigger field to the field it gates.

Supports two modes:
    - SIMPLE: Only fields that take part in a rule
    - DETAILED: Every field, with rule conditions on the edges
"""

from enum import Enum
from typing import Set

from dfe.conditions import UNARY_OPERATORS, ConditionalRule
from dfe.model import FormTemplate

_OP_SYMBOLS = {
    "equals": "==",
    "not_equals": "!=",
    "contains": "contains",
    "greater_than": ">",
    "less_than": "<",
    "is_empty": "is empty",
    "is_not_empty": "is not empty",
}


class DotMode(Enum):
    """Visualization modes for DOT output."""
    SIMPLE = "simple"
    DETAILED = "detailed"


def _escape_dot_string(s: str) -> str:
    """Escape special characters for DOT labels."""
    if not s:
        return '""'
    s = s.replace('\\', '\\\\')
    s = s.replace('"', '\\"')
    s = s.replace('\n', '\\n')
    return f'"{s}"'


def _rule_label(rule: ConditionalRule) -> str:
    op = _OP_SYMBOLS[rule.condition.value]
    if rule.condition in UNARY_OPERATORS:
        return op
    return f"{op} {rule.value}"


def generate_dot(template: FormTemplate, mode: DotMode = DotMode.SIMPLE) -> str:
    """
    Generate Graphviz DOT for a template's visibility dependencies.

    Args:
        template: Template to visualize
        mode: DotMode

    Returns:
        String containing DOT graph definition
    """
    fields = template.fields_by_id()
    involved: Set[str] = set()
    for f in template.iter_fields():
        for rule in f.rules:
            if rule.is_evaluated and rule.trigger_field_id in fields:
                involved.add(f.id)
                involved.add(rule.trigger_field_id)

    lines = []
    lines.append("digraph form {")
    lines.append("  rankdir=LR;")
    lines.append("  node [shape=box, style=filled, fillcolor=lightblue];")

    # =========================================================================
    # NODES, ONE CLUSTER PER PAGE
    # =========================================================================

    for index, page in enumerate(template.pages):
        members = [f for f in page.fields if mode == DotMode.DETAILED or f.id in involved]
        if not members:
            continue
        lines.append(f'  subgraph "cluster_{index}" {{')
        lines.append(f'    label={_escape_dot_string(page.name or page.id)};')
        lines.append('    style=filled;')
        lines.append('    color=lightgrey;')
        for f in members:
            label = f.label or f.id
            attrs = f"label={_escape_dot_string(label)}"
            if f.is_required:
                attrs += ", penwidth=2"
            if f.is_structural:
                attrs += ", fillcolor=white"
            lines.append(f'    {_escape_dot_string(f.id)} [{attrs}];')
        lines.append("  }")

    # =========================================================================
    # EDGES (RULES)
    # =========================================================================

    for f in template.iter_fields():
        for rule in f.rules:
            if not rule.is_evaluated or rule.trigger_field_id not in fields:
                continue
            edge_attr = ""
            if mode == DotMode.DETAILED:
                label = _rule_label(rule)
                if len(label) > 40:
                    label = label[:37] + "..."
                edge_attr = f' [label={_escape_dot_string(label)}]'
            lines.append(
                f"  {_escape_dot_string(rule.trigger_field_id)} -> {_escape_dot_string(f.id)}{edge_attr};"
            )

    lines.append("}")

    return "\n".join(lines)


def save_dot_file(template: FormTemplate, filename: str, mode: DotMode = DotMode.SIMPLE) -> None:
    """
    Generate DOT and save to file.

    Args:
        template: Template to visualize
        filename: Output file path (.dot extension recommended)
        mode: Visualization mode
    """
    dot = generate_dot(template, mode=mode)
    with open(filename, 'w', encoding="utf-8") as f:
        f.write(dot)


__all__ = ["DotMode", "generate_dot", "save_dot_file"]
