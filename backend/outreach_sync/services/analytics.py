from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, List, Optional, Sequence

from ..schemas.company import Actor, Company, CompanyStatus
from .visibility import is_owned_by

_ANSWERED = {CompanyStatus.RESPONDED, CompanyStatus.SHORTLISTED}


@dataclass(frozen=True)
class OutreachStats:
    total_companies: int
    emails_sent: int
    responses_received: int
    shortlisted_companies: int


@dataclass(frozen=True)
class EmployeeStats:
    total_companies: int
    contacted: int
    responded: int
    shortlisted: int


def outreach_stats(companies: Sequence[Company]) -> OutreachStats:
    """Admin dashboard counters."""
    return OutreachStats(
        total_companies=len(companies),
        # past the first-contact stage
        emails_sent=sum(
            1
            for c in companies
            if c.status not in (CompanyStatus.NEW, CompanyStatus.CONTACTED)
        ),
        responses_received=sum(1 for c in companies if c.status in _ANSWERED),
        shortlisted_companies=sum(1 for c in companies if c.is_shortlisted),
    )


def employee_stats(companies: Sequence[Company], actor: Actor) -> EmployeeStats:
    """Counters over the companies ``actor`` created."""
    own = [c for c in companies if is_owned_by(c, actor.id)]
    return EmployeeStats(
        total_companies=len(own),
        contacted=sum(1 for c in own if c.status is not CompanyStatus.NEW),
        responded=sum(1 for c in own if c.status in _ANSWERED),
        shortlisted=sum(1 for c in own if c.status is CompanyStatus.SHORTLISTED),
    )


def shortlisted(companies: Sequence[Company]) -> List[Company]:
    return [c for c in companies if c.is_shortlisted]


def filter_by_status(
    companies: Sequence[Company], status: CompanyStatus | None
) -> List[Company]:
    if status is None:
        return list(companies)
    return [c for c in companies if c.status is status]


def search(companies: Sequence[Company], term: str) -> List[Company]:
    """Case-insensitive match on name, industry and email."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(companies)
    return [
        c
        for c in companies
        if needle in c.name.lower()
        or needle in c.industry.lower()
        or needle in c.email.lower()
    ]


def _parse_when(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def sort_by_recent(companies: Sequence[Company]) -> List[Company]:
    """Newest first by date added; undated records sink to the end."""
    return sorted(
        companies,
        key=lambda c: _parse_when(c.date_added) or _EPOCH,
        reverse=True,
    )
