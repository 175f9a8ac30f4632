# backend/outreach_sync/services/store.py
"""
Company state container.

``reduce`` is a pure function over a closed set of actions; ``CompanyStore``
holds the current state for one authenticated session and applies actions
synchronously, so no intermediate state is ever observable.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, Union

from ..schemas.company import Company, CompanyStatus
from .identity import Synthesized, resolve_identity
from .normalization import normalize, normalize_many, normalize_response

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompanyState:
    companies: Tuple[Company, ...] = ()
    loading: bool = False


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SetCompanies:
    raws: Sequence[Any]


@dataclass(frozen=True)
class SetLoading:
    loading: bool


@dataclass(frozen=True)
class AddCompanyLocal:
    partial: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UpdateCompanyLocal:
    full: Union[Mapping[str, Any], Company]


@dataclass(frozen=True)
class DeleteCompanyLocal:
    company_id: str | int


@dataclass(frozen=True)
class AddResponseLocal:
    company_id: str | int
    response: Mapping[str, Any]


@dataclass(frozen=True)
class AddRequirementsLocal:
    company_id: str | int
    requirements: Optional[Mapping[str, Any]]


@dataclass(frozen=True)
class ToggleShortlistLocal:
    company_id: str | int
    is_shortlisted: bool


Action = Union[
    SetCompanies,
    SetLoading,
    AddCompanyLocal,
    UpdateCompanyLocal,
    DeleteCompanyLocal,
    AddResponseLocal,
    AddRequirementsLocal,
    ToggleShortlistLocal,
]


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------

def same_id(a: Any, b: Any) -> bool:
    # Backend ids arrive as strings or numbers depending on the endpoint
    return a is not None and b is not None and str(a) == str(b)


def _fresh_id(taken: set[str]) -> str:
    # A record with no id always resolves to a Synthesized identity
    identity: Synthesized = resolve_identity(None)
    while identity.value in taken:
        identity = resolve_identity(None)
    return identity.value


def _with_unique_ids(companies: List[Company]) -> Tuple[Company, ...]:
    seen: set[str] = set()
    out: List[Company] = []
    for company in companies:
        key = str(company.id)
        if key in seen:
            new_id = _fresh_id(seen)
            logger.warning(
                "Duplicate company id %s in batch; re-identified as %s",
                key,
                new_id,
                extra={"company_id": key, "operation": "set_companies"},
            )
            company = company.model_copy(update={"id": new_id})
            key = new_id
        seen.add(key)
        out.append(company)
    return tuple(out)


def _renormalize(company: Company, changes: Mapping[str, Any]) -> Company:
    raw = company.to_raw()
    raw.update(changes)
    return normalize(raw)


def _patch(
    companies: Tuple[Company, ...],
    company_id: Any,
    build_changes: Callable[[Company], Mapping[str, Any]],
) -> Tuple[Company, ...]:
    # A miss leaves the collection untouched
    return tuple(
        _renormalize(c, build_changes(c)) if same_id(c.id, company_id) else c
        for c in companies
    )


def reduce(state: CompanyState, action: Action) -> CompanyState:
    if isinstance(action, SetCompanies):
        return CompanyState(
            companies=_with_unique_ids(normalize_many(action.raws)),
            loading=state.loading,
        )

    if isinstance(action, SetLoading):
        return CompanyState(companies=state.companies, loading=bool(action.loading))

    if isinstance(action, AddCompanyLocal):
        taken = {str(c.id) for c in state.companies}
        merged = {
            "responses": [],
            "requirements": None,
            "isShortlisted": False,
            **dict(action.partial),
            "id": _fresh_id(taken),
        }
        merged.pop("_id", None)
        return CompanyState(
            companies=state.companies + (normalize(merged),),
            loading=state.loading,
        )

    if isinstance(action, UpdateCompanyLocal):
        updated = normalize(action.full)
        return CompanyState(
            companies=tuple(
                updated if same_id(c.id, updated.id) else c for c in state.companies
            ),
            loading=state.loading,
        )

    if isinstance(action, DeleteCompanyLocal):
        return CompanyState(
            companies=tuple(
                c for c in state.companies if not same_id(c.id, action.company_id)
            ),
            loading=state.loading,
        )

    if isinstance(action, AddResponseLocal):
        response = normalize_response(action.response).model_dump(by_alias=True)
        return CompanyState(
            companies=_patch(
                state.companies,
                action.company_id,
                lambda c: {
                    "responses": [r.model_dump(by_alias=True) for r in c.responses] + [response],
                    # Receiving a response moves the company to Responded
                    "status": CompanyStatus.RESPONDED.value,
                },
            ),
            loading=state.loading,
        )

    if isinstance(action, AddRequirementsLocal):
        requirements = dict(action.requirements) if action.requirements is not None else None
        return CompanyState(
            companies=_patch(
                state.companies,
                action.company_id,
                lambda c: {"requirements": requirements},
            ),
            loading=state.loading,
        )

    if isinstance(action, ToggleShortlistLocal):
        return CompanyState(
            companies=_patch(
                state.companies,
                action.company_id,
                lambda c: {"isShortlisted": bool(action.is_shortlisted)},
            ),
            loading=state.loading,
        )

    raise TypeError(f"Unknown company action: {type(action).__name__}")


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class CompanyStore:
    """
    Holds the state for one session.

    Listeners are called synchronously after each transition with the new
    state.
    """

    def __init__(self, initial: CompanyState | None = None) -> None:
        self._state = initial or CompanyState()
        self._listeners: List[Callable[[CompanyState], None]] = []

    @property
    def state(self) -> CompanyState:
        return self._state

    @property
    def companies(self) -> List[Company]:
        return list(self._state.companies)

    @property
    def loading(self) -> bool:
        return self._state.loading

    def dispatch(self, action: Action) -> CompanyState:
        self._state = reduce(self._state, action)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def subscribe(self, listener: Callable[[CompanyState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe
