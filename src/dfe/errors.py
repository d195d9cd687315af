"""
Error taxonomy for the form engine.

    SchemaIntegrityError  - fatal at load time, surfaced before rendering
    NavigationRejected    - recoverable, a blocked next/submit
    TransportError        - recoverable, a failed save/submit/load

Per-field validation failures are NOT exceptions. They are returned as
ValidationResult objects by dfe.validator.
"""

from typing import Dict, List, Optional


class FormEngineError(Exception):
    """Base class for all engine errors."""
    pass


class SchemaIntegrityError(FormEngineError):
    """Raised when a template document is structurally unusable."""

    def __init__(self, problems):
        if isinstance(problems, str):
            problems = [problems]
        self.problems: List[str] = list(problems)
        super().__init__("; ".join(self.problems) or "Invalid form template")


class NavigationRejected(FormEngineError):
    """
    Raised when a page transition or submission is not allowed.

    Properties:
        errors: field id -> message for every failing visible field
                (empty when the rejection is not validation related)
    """

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        self.errors: Dict[str, str] = dict(errors or {})
        super().__init__(message)


class TransportError(FormEngineError):
    """Raised when talking to the form store fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class FormNotFoundError(TransportError):
    """The requested form does not exist or has been unpublished."""
    pass


__all__ = [
    "FormEngineError",
    "SchemaIntegrityError",
    "NavigationRejected",
    "TransportError",
    "FormNotFoundError",
]
