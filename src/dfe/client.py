"""
Form store client.

Thin async wrapper over the form store's HTTP API. Documents are
converted to and from model objects here; transport failures surface as
TransportError so that sessions never see httpx exceptions.

Endpoints:
    GET    /forms/{slug}                                   public template
    POST   /forms/{slug}/submit                            public submit
    GET    /projects/{pid}/forms                           list templates
    POST   /projects/{pid}/forms                           create
    GET    /projects/{pid}/forms/{id}                      read
    PUT    /projects/{pid}/forms/{id}                      update
    DELETE /projects/{pid}/forms/{id}                      delete
    PATCH  /projects/{pid}/forms/{id}/publish              publish toggle
    POST   /projects/{pid}/forms/{id}/duplicate            duplicate
    GET    /projects/{pid}/forms/{id}/submissions          list submissions
    GET    /projects/{pid}/forms/{id}/submissions/{sid}    read submission
    DELETE /projects/{pid}/forms/{id}/submissions/{sid}    delete submission
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import httpx

from dfe.config import EngineConfig
from dfe.errors import FormNotFoundError, TransportError
from dfe.model import FormSubmission, FormTemplate
from dfe.serialization import (
    load_template_document,
    submission_from_dict,
    template_from_dict,
    template_to_dict,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20.0


@dataclass
class SubmitReceipt:
    message: str = ""
    submission_id: Optional[str] = None


@dataclass
class SubmissionList:
    """One page of a template's submissions."""

    submissions: List[FormSubmission] = field(default_factory=list)
    total: int = 0
    limit: Optional[int] = None
    skip: Optional[int] = None


class FormApiClient:
    """
    Async client for the form store.

    Args:
        base_url: API root, e.g. "http://localhost:3000/api"
        timeout: Request timeout in seconds
        headers: Extra headers (auth is the caller's concern)
        transport: Optional httpx transport, used by tests
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS,
                 headers: Optional[Mapping[str, str]] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=dict(headers or {}),
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: EngineConfig, **kwargs: Any) -> "FormApiClient":
        return cls(config.api_base_url, timeout=config.request_timeout_seconds, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "FormApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Public (respondent) endpoints
    # ------------------------------------------------------------------

    async def get_public_form(self, slug: str) -> FormTemplate:
        """
        Load a published template for rendering.

        Raises:
            FormNotFoundError: 404, the form is absent or unpublished
            TransportError: Network failure, error status, or a response
                that is not JSON
            SchemaIntegrityError: The document cannot be rendered
        """
        response = await self._request("GET", f"/forms/{slug}")
        return load_template_document(self._json(response))

    async def submit_form(self, slug: str, payload: Dict[str, Any]) -> SubmitReceipt:
        """
        Post a submission.

        Any 2xx status means the store accepted it. The receipt fields are
        read only from a JSON object body; any other body gives an empty
        receipt instead of an error.
        """
        response = await self._request("POST", f"/forms/{slug}/submit", json=payload)
        body: Any = None
        if "application/json" in response.headers.get("content-type", ""):
            try:
                body = response.json()
            except ValueError:
                logger.warning("Submit of form %s accepted with an unreadable body", slug)
        if not isinstance(body, dict):
            body = {}
        receipt = SubmitReceipt(
            message=body.get("message", ""),
            submission_id=body.get("submissionId"),
        )
        logger.info("Submitted form %s (submission %s)", slug, receipt.submission_id)
        return receipt

    # ------------------------------------------------------------------
    # Author endpoints
    # ------------------------------------------------------------------

    async def list_forms(self, project_id: str) -> List[FormTemplate]:
        response = await self._request("GET", f"/projects/{project_id}/forms")
        body = self._json(response)
        if not isinstance(body, list):
            raise TransportError("Expected a list of forms")
        return [template_from_dict(d) for d in body]

    async def get_form(self, project_id: str, form_id: str) -> FormTemplate:
        response = await self._request("GET", self._form_path(project_id, form_id))
        return template_from_dict(self._json(response))

    async def create_form(self, template: FormTemplate) -> FormTemplate:
        response = await self._request(
            "POST", f"/projects/{template.project_id}/forms", json=template_to_dict(template)
        )
        return template_from_dict(self._json(response))

    async def update_form(self, template: FormTemplate) -> FormTemplate:
        if not template.id:
            raise ValueError("Template has not been created yet")
        response = await self._request(
            "PUT", self._form_path(template.project_id, template.id), json=template_to_dict(template)
        )
        return template_from_dict(self._json(response))

    async def save_form(self, template: FormTemplate) -> FormTemplate:
        """Create or update, depending on whether the template has an id."""
        if template.id:
            return await self.update_form(template)
        return await self.create_form(template)

    async def delete_form(self, project_id: str, form_id: str) -> None:
        await self._request("DELETE", self._form_path(project_id, form_id))

    async def set_published(self, project_id: str, form_id: str, is_published: bool) -> FormTemplate:
        response = await self._request(
            "PATCH", f"{self._form_path(project_id, form_id)}/publish",
            json={"isPublished": is_published},
        )
        return template_from_dict(self._json(response))

    async def duplicate_form(self, project_id: str, form_id: str) -> FormTemplate:
        response = await self._request("POST", f"{self._form_path(project_id, form_id)}/duplicate")
        return template_from_dict(self._json(response))

    async def list_submissions(self, project_id: str, form_id: str, status: Optional[str] = None,
                               limit: Optional[int] = None, skip: Optional[int] = None) -> SubmissionList:
        params = {k: v for k, v in (("status", status), ("limit", limit), ("skip", skip)) if v is not None}
        response = await self._request(
            "GET", f"{self._form_path(project_id, form_id)}/submissions", params=params
        )
        body = self._json(response)
        return SubmissionList(
            submissions=[submission_from_dict(d) for d in body.get("submissions", [])],
            total=body.get("total", 0),
            limit=body.get("limit"),
            skip=body.get("skip"),
        )

    async def get_submission(self, project_id: str, form_id: str, submission_id: str) -> FormSubmission:
        response = await self._request(
            "GET", f"{self._form_path(project_id, form_id)}/submissions/{submission_id}"
        )
        return submission_from_dict(self._json(response))

    async def delete_submission(self, project_id: str, form_id: str, submission_id: str) -> None:
        await self._request(
            "DELETE", f"{self._form_path(project_id, form_id)}/submissions/{submission_id}"
        )

    # ------------------------------------------------------------------

    @staticmethod
    def _form_path(project_id: str, form_id: str) -> str:
        return f"/projects/{project_id}/forms/{form_id}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        if response.status_code == 404:
            raise FormNotFoundError("Form not found", status_code=404)
        if response.is_error:
            logger.warning("%s %s returned %s", method, path, response.status_code)
            raise TransportError(
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            raise TransportError(
                f"Expected JSON but received {content_type or 'no content type'}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError("Response body is not valid JSON",
                                 status_code=response.status_code) from exc
