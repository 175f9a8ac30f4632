# backend/outreach_sync/services/gateway/rest.py

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import logging

import httpx

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .base import BaseGateway, CompanyScope

from ..envelope import backend_message
from ..errors import BackendError, DEFAULT_ERROR_MESSAGE
from ..payloads import (
    Attachment,
    FileField,
    company_form,
    group_mail_form,
    single_mail_form,
)

from ...core.config import get_settings

logger = logging.getLogger(__name__)


class RestGateway(BaseGateway):
    """
    httpx implementation of the backend contract.

    - Bearer token comes from ``token_provider`` (the auth layer) or the
      static ``API_AUTH_TOKEN`` setting.
    - A 401 calls ``on_unauthorized`` so the auth layer can tear the session
      down; the request still fails with ``BackendError``.
    - Only idempotent GETs are retried, and only on connection-level errors.
    """

    name = "rest"

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        token_provider: Callable[[], Optional[str]] | None = None,
        on_unauthorized: Callable[[], None] | None = None,
        read_attempts: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url: str = (base_url or settings.API_BASE_URL).rstrip("/")
        self.timeout: float = float(timeout or settings.API_TIMEOUT_SECONDS or 30)
        self.read_attempts: int = int(read_attempts or settings.READ_RETRY_ATTEMPTS or 1)
        self.companies_path: str = settings.COMPANIES_PATH
        self.developer_companies_path: str = settings.DEVELOPER_COMPANIES_PATH
        self.mails_path: str = settings.MAILS_PATH
        self._static_token = settings.API_AUTH_TOKEN
        self._token_provider = token_provider
        self._on_unauthorized = on_unauthorized
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        token = self._token_provider() if self._token_provider else self._static_token
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        data: Mapping[str, Any] | None = None,
        files: List[FileField] | None = None,
    ) -> httpx.Response:
        async with self._client() as client:
            return await client.request(
                method,
                path,
                headers=self._headers(),
                params=params,
                json=json,
                data=data,
                files=files or None,
            )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            if method == "GET":
                async for attempt in AsyncRetrying(
                    wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
                    stop=stop_after_attempt(self.read_attempts),
                    retry=retry_if_exception_type(httpx.TransportError),
                    reraise=True,
                ):
                    with attempt:
                        resp = await self._send(method, path, **kwargs)
            else:
                resp = await self._send(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise BackendError(str(exc) or DEFAULT_ERROR_MESSAGE) from exc

        return self._decode(method, path, resp)

    def _decode(self, method: str, path: str, resp: httpx.Response) -> Any:
        if resp.is_success:
            if not resp.content:
                return {}
            try:
                return resp.json()
            except ValueError as exc:
                raise BackendError(
                    "Malformed response body", status=resp.status_code, data=resp.text[:200]
                ) from exc

        try:
            body: Any = resp.json()
        except ValueError:
            body = resp.text[:200] or None

        logger.warning(
            "%s %s returned %s",
            method,
            path,
            resp.status_code,
            extra={"status": resp.status_code},
        )

        if resp.status_code == 401 and self._on_unauthorized is not None:
            self._on_unauthorized()

        raise BackendError(
            backend_message(body, f"Request failed with status code {resp.status_code}"),
            status=resp.status_code,
            data=body,
        )

    def _company_path(self, company_id: str | int, suffix: str = "") -> str:
        return f"{self.companies_path}/{company_id}{suffix}"

    # ------------------------------------------------------------------
    # Companies
    # ------------------------------------------------------------------

    async def list_companies(self, scope: CompanyScope) -> Any:
        path = (
            self.developer_companies_path
            if scope is CompanyScope.DEVELOPER
            else self.companies_path
        )
        return await self._request("GET", path)

    async def get_company(self, company_id: str | int) -> Any:
        return await self._request("GET", self._company_path(company_id))

    async def create_company(
        self, payload: Mapping[str, Any], attachments: Sequence[Attachment] = ()
    ) -> Any:
        if attachments:
            fields, files = company_form(payload, attachments)
            return await self._request("POST", self.companies_path, data=fields, files=files)
        return await self._request("POST", self.companies_path, json=dict(payload))

    async def update_company(
        self,
        company_id: str | int,
        payload: Mapping[str, Any],
        attachments: Sequence[Attachment] = (),
    ) -> Any:
        path = self._company_path(company_id)
        if attachments:
            fields, files = company_form(payload, attachments)
            return await self._request("PUT", path, data=fields, files=files)
        return await self._request("PUT", path, json=dict(payload))

    async def delete_company(self, company_id: str | int) -> Any:
        return await self._request("DELETE", self._company_path(company_id))

    async def add_response(self, company_id: str | int, response: Mapping[str, Any]) -> Any:
        return await self._request(
            "POST", self._company_path(company_id, "/responses"), json=dict(response)
        )

    async def add_requirements(
        self, company_id: str | int, requirements: Mapping[str, Any]
    ) -> Any:
        return await self._request(
            "POST", self._company_path(company_id, "/requirements"), json=dict(requirements)
        )

    async def set_shortlist(self, company_id: str | int, is_shortlisted: bool) -> Any:
        return await self._request(
            "PATCH",
            self._company_path(company_id, "/shortlist"),
            json={"isShortlisted": bool(is_shortlisted)},
        )

    async def list_categories(self) -> Any:
        return await self._request("GET", f"{self.companies_path}/categories")

    async def get_company_stats(self) -> Any:
        return await self._request("GET", f"{self.companies_path}/stats")

    # ------------------------------------------------------------------
    # Mail
    # ------------------------------------------------------------------

    async def send_single_email(
        self,
        company_id: str | int,
        subject: str,
        message: str,
        attachments: Sequence[Attachment] = (),
    ) -> Any:
        fields, files = single_mail_form(company_id, subject, message, attachments)
        return await self._request(
            "POST", f"{self.mails_path}/send-single", data=fields, files=files
        )

    async def send_group_email(
        self,
        company_ids: Sequence[str | int],
        subject: str,
        message: str,
        attachments: Sequence[Attachment] = (),
    ) -> Any:
        fields, files = group_mail_form(company_ids, subject, message, attachments)
        return await self._request(
            "POST", f"{self.mails_path}/send-group", data=fields, files=files
        )

    async def list_sent_emails(self, page: int = 1, limit: int = 10) -> Any:
        return await self._request(
            "GET", self.mails_path, params={"page": page, "limit": limit}
        )

    async def get_sent_email(self, email_id: str | int) -> Any:
        return await self._request("GET", f"{self.mails_path}/{email_id}")
