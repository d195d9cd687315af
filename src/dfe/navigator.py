"""
Page Navigator.

State machine stepping a respondent through a template:

    COVER (only when cover_page.show_cover) -> PAGE[0] ... PAGE[n-1] -> SUBMITTED

Transitions:
    start     COVER -> PAGE[0], unconditional
    next      PAGE[i] -> PAGE[i+1], gated by validation of the visible fields
    previous  PAGE[i] -> PAGE[i-1] (or COVER from PAGE[0]), always allowed
    submit    PAGE[n-1] -> SUBMITTED, gated by validation, terminal

The navigator is the single writer of the answer map. Everything else
(visibility, validation, submission assembly) receives a snapshot.
"""

from __future__ import annotations

import logging
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from dfe.errors import NavigationRejected, SchemaIntegrityError
from dfe.model import FormField, FormPage, FormSubmission, FormTemplate
from dfe.submission import assemble_submission
from dfe.validator import validate_page
from dfe.visibility import VisibilityEvaluator

logger = logging.getLogger(__name__)

BATCH_NOTICE = "Please fill in all required fields"


class NavigatorState(Enum):
    COVER = "cover"
    PAGE = "page"
    SUBMITTED = "submitted"


class PageNavigator:
    """
    Drives one respondent (or preview) session over a template.

    Args:
        template: Template to navigate. Must have at least one page.
        answers: Initial answers (copied)
        preview: Authoring preview. Validation gates are skipped and
            submission is not allowed.
    """

    def __init__(self, template: FormTemplate, answers: Optional[Mapping[str, Any]] = None,
                 preview: bool = False):
        if not template.pages:
            raise SchemaIntegrityError("Form template has no pages")
        self.template = template
        self.preview = preview
        self.errors: Dict[str, str] = {}
        self._answers: Dict[str, Any] = dict(answers or {})
        self._fields = template.fields_by_id()
        self._pending: Optional[FormSubmission] = None
        self.submission: Optional[FormSubmission] = None

        if template.cover_page.show_cover:
            self.state = NavigatorState.COVER
            self._index = -1
        else:
            self.state = NavigatorState.PAGE
            self._index = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def answers(self) -> Mapping[str, Any]:
        """Read-only snapshot of the current answers."""
        return MappingProxyType(dict(self._answers))

    @property
    def page_index(self) -> int:
        """Index of the current page, -1 on the cover."""
        return self._index

    @property
    def total_pages(self) -> int:
        return len(self.template.pages)

    @property
    def current_page(self) -> Optional[FormPage]:
        if self.state == NavigatorState.COVER:
            return None
        return self.template.pages[self._index]

    @property
    def is_on_cover(self) -> bool:
        return self.state == NavigatorState.COVER

    @property
    def is_on_last_page(self) -> bool:
        return self.state == NavigatorState.PAGE and self._index == self.total_pages - 1

    @property
    def is_submitted(self) -> bool:
        return self.state == NavigatorState.SUBMITTED

    @property
    def progress(self) -> Optional[float]:
        """Percent complete while on a page; None on the cover."""
        if self.state == NavigatorState.COVER:
            return None
        return (self._index + 1) / self.total_pages * 100

    # ------------------------------------------------------------------
    # Answers
    # ------------------------------------------------------------------

    def set_answer(self, field_id: str, value: Any) -> None:
        """
        Record an answer and clear that field's error.

        Raises:
            KeyError: Unknown field id
            NavigationRejected: The form was already submitted
        """
        self._ensure_open()
        if field_id not in self._fields:
            raise KeyError(f"Unknown field: {field_id}")
        self._answers[field_id] = value
        self.errors.pop(field_id, None)

    def clear_answer(self, field_id: str) -> None:
        self._ensure_open()
        self._answers.pop(field_id, None)
        self.errors.pop(field_id, None)

    def visible_fields(self, page: Optional[FormPage] = None) -> List[FormField]:
        """Visible fields of a page (the current one by default)."""
        page = page or self.current_page
        if page is None:
            return []
        return VisibilityEvaluator(self.template, self._answers).visible_fields(page)

    def is_field_visible(self, field_id: str) -> bool:
        f = self._fields.get(field_id)
        if f is None:
            return False
        return VisibilityEvaluator(self.template, self._answers).is_visible(f)

    def validate_current_page(self) -> Dict[str, str]:
        """
        Validate the visible fields of the current page.

        The result replaces the navigator's error map.
        """
        page = self.current_page
        if page is None:
            self.errors = {}
        else:
            self.errors = validate_page(page, self._answers, self.template)
        return dict(self.errors)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Leave the cover for the first page."""
        if self.state != NavigatorState.COVER:
            raise NavigationRejected("Not on the cover page")
        self.state = NavigatorState.PAGE
        self._index = 0
        logger.debug("Started form %s", self.template.id)

    def next(self) -> int:
        """
        Advance one page.

        Returns:
            The new page index

        Raises:
            NavigationRejected: A visible field fails validation (errors
                carried on the exception), or there is no next page
        """
        self._ensure_open()
        if self.state == NavigatorState.COVER:
            self.start()
            return self._index
        if self._index >= self.total_pages - 1:
            raise NavigationRejected("Already on the last page")

        self._gate()
        self._index += 1
        self.errors = {}
        logger.debug("Moved to page %d of %d", self._index + 1, self.total_pages)
        return self._index

    def previous(self) -> int:
        """
        Go back one page, or to the cover from the first page.

        Error state is cleared; answers are kept. From the first page of a
        form without a cover this does nothing.
        """
        self._ensure_open()
        self.errors = {}
        if self.state == NavigatorState.COVER:
            return self._index
        if self._index > 0:
            self._index -= 1
        elif self.template.cover_page.show_cover:
            self.state = NavigatorState.COVER
            self._index = -1
        return self._index

    def begin_submit(self, started_at: Optional[str] = None, completed_at: Optional[str] = None,
                     ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> FormSubmission:
        """
        Validate the last page and assemble the submission.

        The navigator does not change state; call complete_submit() once
        the store accepted the submission.
        """
        self._ensure_open()
        if self.preview:
            raise NavigationRejected("Preview forms cannot be submitted")
        if not self.is_on_last_page:
            raise NavigationRejected("Submit is only available on the last page")

        self._gate()
        self._pending = assemble_submission(
            self.template,
            self._answers,
            started_at=started_at,
            completed_at=completed_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return self._pending

    def complete_submit(self) -> FormSubmission:
        """Enter the terminal SUBMITTED state."""
        self._ensure_open()
        if self._pending is None:
            raise NavigationRejected("No submission in progress")
        self.submission, self._pending = self._pending, None
        self.state = NavigatorState.SUBMITTED
        self.errors = {}
        logger.info("Form %s submitted", self.template.id)
        return self.submission

    def abort_submit(self) -> None:
        """Forget an assembled submission after a failed send."""
        self._pending = None

    def submit(self, **metadata: Any) -> FormSubmission:
        """begin_submit() and complete_submit() in one step."""
        self.begin_submit(**metadata)
        return self.complete_submit()

    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self.state == NavigatorState.SUBMITTED:
            raise NavigationRejected("Form already submitted")

    def _gate(self) -> None:
        if self.preview:
            return
        errors = self.validate_current_page()
        if errors:
            logger.info("Page %d blocked by %d invalid field(s)", self._index + 1, len(errors))
            raise NavigationRejected(BATCH_NOTICE, errors)
