# backend/outreach_sync/schemas/company.py
import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

UNNAMED_COMPANY = "Unnamed Company"
NO_WEBSITE = "#"
NOT_AVAILABLE = "N/A"
NO_DESCRIPTION = "No description"
UNKNOWN_CREATOR = "Unknown"


class CompanyStatus(str, enum.Enum):
    NEW = "New"
    CONTACTED = "Contacted"
    RESPONDED = "Responded"
    SHORTLISTED = "Shortlisted"
    REJECTED = "Rejected"
    UNKNOWN = "Unknown"


class Role(str, enum.Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"
    DEVELOPER = "developer"
    USER = "user"


class _CanonicalModel(BaseModel):
    """
    Client-owned canonical shapes.

    Attributes are snake_case; ``model_dump(by_alias=True)`` produces the
    camelCase shape the dashboard renders and the normalizer re-accepts.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Response(_CanonicalModel):
    id: str | int
    date: Any = None
    subject: str = ""
    content: str = ""


class Requirements(_CanonicalModel):
    roles: list[str] = []
    tech_stack: list[str] = []
    hiring_type: str | None = None
    budget: Any = None
    notes: str | None = None


class Company(_CanonicalModel):
    id: str | int
    name: str = UNNAMED_COMPANY
    website: str = NO_WEBSITE
    email: str = NOT_AVAILABLE

    # ownership attribution
    creator_id: str | int | None = None
    creator_name: str = UNKNOWN_CREATOR
    creator_email: str = NOT_AVAILABLE
    # Every ownership reference seen on the raw record (direct id, nested
    # creator object id, alias fields); visibility checks the whole set.
    owner_refs: tuple[str, ...] = ()

    responses: list[Response] = Field(default_factory=list)
    requirements: Requirements | None = None
    is_shortlisted: bool = False
    status: CompanyStatus = CompanyStatus.UNKNOWN

    # contact / compliance
    contact_person: str = NOT_AVAILABLE
    person_name: str = NOT_AVAILABLE
    phone_number: str = NOT_AVAILABLE
    alternate_phone_number: str = NOT_AVAILABLE
    gst_number: str = NOT_AVAILABLE
    pan_number: str = NOT_AVAILABLE
    industry: str = NOT_AVAILABLE
    description: str = NO_DESCRIPTION
    date_added: Any = None

    tags: Any = Field(default_factory=list)
    categories: Any = Field(default_factory=list)
    notes: str = ""
    last_contacted: Any = None

    def to_raw(self) -> dict[str, Any]:
        """Canonical camelCase dict; feeding it back to ``normalize`` is lossless."""
        return self.model_dump(by_alias=True)


class Actor(BaseModel):
    """Authenticated identity supplied by the auth layer. Read-only here."""

    id: str | int
    role: Role
    name: str | None = None
    email: str | None = None

    model_config = ConfigDict(frozen=True, extra="allow")
