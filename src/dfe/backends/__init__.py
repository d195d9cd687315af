"""Backends for rendering form templates (input contracts, text preview, DOT)."""

from .contracts import CONTRACTS, InputContract, ValueShape, contract_for, contract_for_type
from .dot_generator import DotMode, generate_dot, save_dot_file
from .text_preview import PreviewMode, render_page, render_template, save_preview_file

__all__ = [
    "CONTRACTS",
    "InputContract",
    "ValueShape",
    "contract_for",
    "contract_for_type",
    "DotMode",
    "generate_dot",
    "save_dot_file",
    "PreviewMode",
    "render_page",
    "render_template",
    "save_preview_file",
]
