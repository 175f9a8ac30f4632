from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence

from ..payloads import Attachment


class CompanyScope(str, enum.Enum):
    GENERAL = "general"      # admin / employee
    DEVELOPER = "developer"  # dedicated, server-side scoped endpoint


class BaseGateway(ABC):
    """
    Contract for the backend REST service.

    Every method returns the decoded response body as-is (envelopes vary by
    endpoint) and raises ``BackendError`` on transport or HTTP failure.
    Callers treat any other exception as a failed call too.
    """

    name: str

    @abstractmethod
    async def list_companies(self, scope: CompanyScope) -> Any:
        ...

    @abstractmethod
    async def get_company(self, company_id: str | int) -> Any:
        ...

    @abstractmethod
    async def create_company(
        self, payload: Mapping[str, Any], attachments: Sequence[Attachment] = ()
    ) -> Any:
        ...

    @abstractmethod
    async def update_company(
        self,
        company_id: str | int,
        payload: Mapping[str, Any],
        attachments: Sequence[Attachment] = (),
    ) -> Any:
        ...

    @abstractmethod
    async def delete_company(self, company_id: str | int) -> Any:
        ...

    @abstractmethod
    async def add_response(self, company_id: str | int, response: Mapping[str, Any]) -> Any:
        ...

    @abstractmethod
    async def add_requirements(
        self, company_id: str | int, requirements: Mapping[str, Any]
    ) -> Any:
        ...

    @abstractmethod
    async def set_shortlist(self, company_id: str | int, is_shortlisted: bool) -> Any:
        ...

    @abstractmethod
    async def list_categories(self) -> Any:
        ...

    @abstractmethod
    async def get_company_stats(self) -> Any:
        ...

    @abstractmethod
    async def send_single_email(
        self,
        company_id: str | int,
        subject: str,
        message: str,
        attachments: Sequence[Attachment] = (),
    ) -> Any:
        ...

    @abstractmethod
    async def send_group_email(
        self,
        company_ids: Sequence[str | int],
        subject: str,
        message: str,
        attachments: Sequence[Attachment] = (),
    ) -> Any:
        ...

    @abstractmethod
    async def list_sent_emails(self, page: int = 1, limit: int = 10) -> Any:
        ...

    @abstractmethod
    async def get_sent_email(self, email_id: str | int) -> Any:
        ...
