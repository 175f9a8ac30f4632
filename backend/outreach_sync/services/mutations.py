from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple, Union

from .gateway import BaseGateway
from .normalization import overlay
from .payloads import Attachment, company_body
from .store import (
    Action,
    AddCompanyLocal,
    AddRequirementsLocal,
    AddResponseLocal,
    CompanyState,
    DeleteCompanyLocal,
    ToggleShortlistLocal,
    UpdateCompanyLocal,
    same_id,
)


class PersistenceMode(str, enum.Enum):
    LOCAL = "local"      # apply to the in-memory store only
    BACKEND = "backend"  # write to the backend, then reload the full list


@dataclass(frozen=True)
class CreateCompany:
    data: Mapping[str, Any]
    attachments: Tuple[Attachment, ...] = ()

    operation = "create_company"

    @property
    def company_id(self) -> None:
        return None

    def local_action(self, state: CompanyState) -> Action:
        return AddCompanyLocal(self.data)

    async def write(self, gateway: BaseGateway) -> Any:
        return await gateway.create_company(company_body(self.data), self.attachments)


@dataclass(frozen=True)
class UpdateCompany:
    company_id: str | int
    data: Mapping[str, Any]
    attachments: Tuple[Attachment, ...] = ()

    operation = "update_company"

    def local_action(self, state: CompanyState) -> Action:
        # ``data`` is a partial form; unmentioned fields come from the stored record
        current = next(
            (c for c in state.companies if same_id(c.id, self.company_id)), None
        )
        base = current.to_raw() if current is not None else {}
        return UpdateCompanyLocal({**overlay(base, self.data), "id": self.company_id})

    async def write(self, gateway: BaseGateway) -> Any:
        return await gateway.update_company(
            self.company_id, company_body(self.data), self.attachments
        )


@dataclass(frozen=True)
class DeleteCompany:
    company_id: str | int

    operation = "delete_company"

    def local_action(self, state: CompanyState) -> Action:
        return DeleteCompanyLocal(self.company_id)

    async def write(self, gateway: BaseGateway) -> Any:
        return await gateway.delete_company(self.company_id)


@dataclass(frozen=True)
class AddResponse:
    company_id: str | int
    response: Mapping[str, Any] = field(default_factory=dict)

    operation = "add_response"

    def local_action(self, state: CompanyState) -> Action:
        return AddResponseLocal(self.company_id, self.response)

    async def write(self, gateway: BaseGateway) -> Any:
        return await gateway.add_response(self.company_id, self.response)


@dataclass(frozen=True)
class AddRequirements:
    company_id: str | int
    requirements: Optional[Mapping[str, Any]] = None

    operation = "add_requirements"

    def local_action(self, state: CompanyState) -> Action:
        return AddRequirementsLocal(self.company_id, self.requirements)

    async def write(self, gateway: BaseGateway) -> Any:
        return await gateway.add_requirements(self.company_id, self.requirements or {})


@dataclass(frozen=True)
class ToggleShortlist:
    company_id: str | int
    is_shortlisted: bool

    operation = "toggle_shortlist"

    def local_action(self, state: CompanyState) -> Action:
        return ToggleShortlistLocal(self.company_id, self.is_shortlisted)

    async def write(self, gateway: BaseGateway) -> Any:
        return await gateway.set_shortlist(self.company_id, self.is_shortlisted)


Mutation = Union[
    CreateCompany,
    UpdateCompany,
    DeleteCompany,
    AddResponse,
    AddRequirements,
    ToggleShortlist,
]
