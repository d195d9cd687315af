"""
Respondent session.

Ties a published template, a PageNavigator and the store client together
for one anonymous respondent. Sessions are not resumable: a new session
starts from a fresh load.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from dfe.client import FormApiClient, SubmitReceipt
from dfe.errors import NavigationRejected, TransportError
from dfe.model import FormTemplate
from dfe.navigator import PageNavigator
from dfe.submission import build_submit_payload

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RespondentSession:
    """
    One respondent filling in one published form.

    Submission is at most once: after a successful submit, or while one is
    in flight, further submits are rejected. A failed submit keeps the
    navigator on the last page so the respondent can retry.
    """

    def __init__(self, client: FormApiClient, slug: str):
        self.client = client
        self.slug = slug
        self.started_at = _now_iso()
        self.template: Optional[FormTemplate] = None
        self.navigator: Optional[PageNavigator] = None
        self.receipt: Optional[SubmitReceipt] = None
        self._submitting = False

    async def load(self) -> PageNavigator:
        """
        Fetch the published template and start navigation.

        Raises:
            FormNotFoundError / TransportError / SchemaIntegrityError
        """
        self.template = await self.client.get_public_form(self.slug)
        self.navigator = PageNavigator(self.template)
        logger.debug("Loaded form %s with %d page(s)", self.slug, len(self.template.pages))
        return self.navigator

    async def submit(self, ip_address: Optional[str] = None,
                     user_agent: Optional[str] = None) -> SubmitReceipt:
        navigator = self.navigator
        if navigator is None:
            raise NavigationRejected("Form has not been loaded")
        if self._submitting:
            raise NavigationRejected("Submission already in progress")

        submission = navigator.begin_submit(
            started_at=self.started_at,
            completed_at=_now_iso(),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._submitting = True
        try:
            receipt = await self.client.submit_form(self.slug, build_submit_payload(submission))
        except TransportError:
            navigator.abort_submit()
            logger.warning("Submission of form %s failed; respondent may retry", self.slug)
            raise
        finally:
            self._submitting = False

        submission.id = receipt.submission_id
        navigator.complete_submit()
        self.receipt = receipt
        return receipt
