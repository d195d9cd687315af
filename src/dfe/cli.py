"""
Command-line interface for inspecting form templates.

    dfe check FILE                      integrity report (exit 1 on errors)
    dfe preview FILE [--answers JSON]   plain-text preview
    dfe graph FILE [-o OUT]             Graphviz DOT of conditional logic
    dfe fetch SLUG                      load a published form and preview it

FILE may be JSON or YAML (by extension).
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dfe.backends.dot_generator import DotMode, generate_dot
from dfe.backends.text_preview import PreviewMode, render_template
from dfe.client import FormApiClient
from dfe.config import EngineConfig, load_config
from dfe.errors import FormEngineError
from dfe.integrity import TemplateReport, analyze_template
from dfe.model import FormTemplate
from dfe.serialization import template_from_json, template_from_yaml

logger = logging.getLogger(__name__)


def setup_logging(level: str, verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def read_template(path: Path) -> FormTemplate:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        return template_from_yaml(text)
    return template_from_json(text)


def format_report(report: TemplateReport) -> str:
    """Human-readable integrity report."""
    lines = [
        "=" * 70,
        f"FORM TEMPLATE REPORT: {report.template_name}",
        "=" * 70,
        "",
        "INVENTORY",
        f"  Pages:                 {report.total_pages}",
        f"  Fields:                {report.total_fields}",
        f"  Answerable Fields:     {report.answerable_fields}",
        f"  Display-only Fields:   {report.structural_fields}",
        f"  Required Fields:       {report.required_fields}",
        f"  Fields with Logic:     {report.fields_with_logic}",
        "",
        "LOGIC",
        f"  Has Cycles:            {'YES' if report.has_cycles else 'NO'}",
    ]
    if report.cycle_example:
        lines.append(f"    Example: {' -> '.join(report.cycle_example)}")
    if report.forward_references:
        lines.append(f"  Forward References:    {len(report.forward_references)}")
    lines.append("")

    if report.errors:
        lines.append("ERRORS")
        lines.extend(f"  - {e}" for e in report.errors)
        lines.append("")
    if report.warnings:
        lines.append("WARNINGS")
        lines.extend(f"  - {w}" for w in report.warnings)
        lines.append("")
    lines.append("OK" if report.ok else "FAILED")
    return "\n".join(lines)


def _load_answers(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as f:
        answers = json.load(f)
    if not isinstance(answers, dict):
        raise ValueError("Answers file must hold a JSON object")
    return answers


def cmd_check(args: argparse.Namespace, config: EngineConfig) -> int:
    report = analyze_template(read_template(Path(args.file)))
    print(format_report(report))
    return 0 if report.ok else 1


def cmd_preview(args: argparse.Namespace, config: EngineConfig) -> int:
    template = read_template(Path(args.file))
    print(render_template(template, _load_answers(args.answers), mode=PreviewMode(args.mode)))
    return 0


def cmd_graph(args: argparse.Namespace, config: EngineConfig) -> int:
    dot = generate_dot(read_template(Path(args.file)), mode=DotMode(args.mode))
    if args.output:
        Path(args.output).write_text(dot, encoding="utf-8")
        logger.info("Wrote %s", args.output)
    else:
        print(dot)
    return 0


async def _fetch(slug: str, config: EngineConfig) -> FormTemplate:
    async with FormApiClient.from_config(config) as client:
        return await client.get_public_form(slug)


def cmd_fetch(args: argparse.Namespace, config: EngineConfig) -> int:
    template = asyncio.run(_fetch(args.slug, config))
    print(render_template(template, mode=PreviewMode(args.mode)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dfe", description="Inspect dynamic form templates")
    parser.add_argument("--config", help="Path to a YAML configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Report integrity errors and warnings")
    check.add_argument("file", help="Template document (.json, .yaml)")
    check.set_defaults(handler=cmd_check)

    modes = [m.value for m in PreviewMode]

    preview = sub.add_parser("preview", help="Print a text preview")
    preview.add_argument("file", help="Template document (.json, .yaml)")
    preview.add_argument("--mode", choices=modes, default=PreviewMode.SIMPLE.value)
    preview.add_argument("--answers", help="JSON file mapping field ids to answers")
    preview.set_defaults(handler=cmd_preview)

    graph = sub.add_parser("graph", help="Print conditional logic as Graphviz DOT")
    graph.add_argument("file", help="Template document (.json, .yaml)")
    graph.add_argument("--mode", choices=[m.value for m in DotMode], default=DotMode.SIMPLE.value)
    graph.add_argument("-o", "--output", help="Write to this file instead of stdout")
    graph.set_defaults(handler=cmd_graph)

    fetch = sub.add_parser("fetch", help="Load a published form and preview it")
    fetch.add_argument("slug", help="Public form slug")
    fetch.add_argument("--mode", choices=modes, default=PreviewMode.SIMPLE.value)
    fetch.set_defaults(handler=cmd_fetch)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_level, args.verbose)

    try:
        return args.handler(args, config)
    except FormEngineError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
