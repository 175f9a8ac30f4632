from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Mapping, Optional, Sequence, Tuple
import logging

from ..core.config import get_settings
from ..schemas.company import Actor, Company, CompanyStatus, Role
from .caching import cached_get
from .envelope import unwrap_list, unwrap_record
from .errors import BackendError, NotAuthenticatedError
from .gateway import BaseGateway, CompanyScope, get_gateway
from .mutations import (
    AddRequirements,
    AddResponse,
    CreateCompany,
    DeleteCompany,
    Mutation,
    PersistenceMode,
    ToggleShortlist,
    UpdateCompany,
)
from .normalization import normalize, normalize_many
from .payloads import Attachment
from .store import CompanyState, CompanyStore, SetCompanies, SetLoading
from .visibility import scope

logger = logging.getLogger(__name__)

CATEGORIES_CACHE_KEY = "outreach:company-categories"


class CompanySyncOrchestrator:
    """
    Coordinator between callers, the backend and the company store.

    Every mutation goes through one pipeline, parameterized by
    ``PersistenceMode``:

    - LOCAL: the matching reducer action is applied in memory, nothing is sent.
    - BACKEND: loading on -> require actor -> backend write -> reload the
      whole list for the actor's role -> normalize + scope -> replace the
      collection -> loading off. The write response itself is only returned
      to the caller, never merged into state.

    Failure policy:
    - write fails: state untouched, ``BackendError`` propagates.
    - reload fails (any exception): the collection is emptied, the error propagates.
    - loading is cleared in every case.

    There is no cancellation and no ordering between concurrent networked
    calls; whichever reload finishes last defines the collection.
    """

    def __init__(
        self,
        gateway: BaseGateway | None = None,
        actor: Actor | None = None,
    ) -> None:
        self.gateway: BaseGateway = gateway or get_gateway()
        self._actor: Optional[Actor] = actor
        self.store = CompanyStore()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    @property
    def actor(self) -> Optional[Actor]:
        return self._actor

    @property
    def state(self) -> CompanyState:
        return self.store.state

    @property
    def companies(self) -> List[Company]:
        return self.store.companies

    @property
    def loading(self) -> bool:
        return self.store.loading

    def set_actor(self, actor: Optional[Actor]) -> None:
        """
        Switch the authenticated actor (login / logout).

        A different identity gets a brand-new store with no companies.
        """
        if _identity(actor) == _identity(self._actor):
            self._actor = actor
            return

        logger.info(
            "Actor changed; resetting company store",
            extra={
                "actor_id": str(actor.id) if actor else None,
                "role": actor.role.value if actor else None,
            },
        )
        self._actor = actor
        self.store = CompanyStore()

    def _require_actor(self, operation: str) -> Actor:
        if self._actor is None:
            logger.warning(
                "Rejected '%s': no authenticated actor",
                operation,
                extra={"operation": operation},
            )
            raise NotAuthenticatedError(operation)
        return self._actor

    @asynccontextmanager
    async def _session_call(self, operation: str) -> AsyncIterator[Tuple[CompanyStore, Actor]]:
        # Bind to the store current at call time so a late result never lands
        # in the store of a different session.
        store = self.store
        store.dispatch(SetLoading(True))
        try:
            yield store, self._require_actor(operation)
        finally:
            store.dispatch(SetLoading(False))

    # ------------------------------------------------------------------
    # Mutation pipeline
    # ------------------------------------------------------------------

    def apply_local(self, mutation: Mutation) -> CompanyState:
        return self.store.dispatch(mutation.local_action(self.store.state))

    async def mutate(
        self,
        mutation: Mutation,
        mode: PersistenceMode = PersistenceMode.BACKEND,
    ) -> Any:
        if mode is PersistenceMode.LOCAL:
            self.apply_local(mutation)
            return None

        operation = mutation.operation
        async with self._session_call(operation) as (store, actor):
            extra = {
                "operation": operation,
                "actor_id": str(actor.id),
                "company_id": str(mutation.company_id) if mutation.company_id is not None else None,
            }
            try:
                result = await mutation.write(self.gateway)
            except BackendError as exc:
                logger.warning("Backend write failed: %s", exc, extra=extra)
                raise
            logger.info("Backend write succeeded; reloading companies", extra=extra)
            await self._reload(store, actor, operation)
            return result

    async def _reload(self, store: CompanyStore, actor: Actor, operation: str) -> List[Company]:
        company_scope = (
            CompanyScope.DEVELOPER if actor.role is Role.DEVELOPER else CompanyScope.GENERAL
        )
        try:
            body = await self.gateway.list_companies(company_scope)
        except Exception as exc:
            # Any gateway failure empties the collection, whatever its type;
            # the write (if any) may already have landed server-side.
            store.dispatch(SetCompanies([]))
            logger.warning(
                "Company reload failed; collection cleared: %s",
                exc,
                extra={"operation": operation, "actor_id": str(actor.id)},
            )
            raise

        visible = scope(normalize_many(unwrap_list(body, operation=operation)), actor)
        store.dispatch(SetCompanies(visible))
        return store.companies

    # ------------------------------------------------------------------
    # Networked mutators
    # ------------------------------------------------------------------

    async def create_company(
        self, data: Mapping[str, Any], attachments: Sequence[Attachment] = ()
    ) -> Any:
        return await self.mutate(CreateCompany(data, tuple(attachments)))

    async def update_company(
        self,
        company_id: str | int,
        data: Mapping[str, Any],
        attachments: Sequence[Attachment] = (),
    ) -> Any:
        return await self.mutate(UpdateCompany(company_id, data, tuple(attachments)))

    async def delete_company(self, company_id: str | int) -> Any:
        return await self.mutate(DeleteCompany(company_id))

    async def add_response(self, company_id: str | int, response: Mapping[str, Any]) -> Any:
        return await self.mutate(AddResponse(company_id, response))

    async def add_requirements(
        self, company_id: str | int, requirements: Mapping[str, Any]
    ) -> Any:
        return await self.mutate(AddRequirements(company_id, requirements))

    async def toggle_shortlist(self, company_id: str | int, is_shortlisted: bool) -> Any:
        return await self.mutate(ToggleShortlist(company_id, is_shortlisted))

    # ------------------------------------------------------------------
    # Local mutators
    # ------------------------------------------------------------------

    def add_company_local(self, data: Mapping[str, Any]) -> CompanyState:
        return self.apply_local(CreateCompany(data))

    def update_company_local(self, company_id: str | int, data: Mapping[str, Any]) -> CompanyState:
        return self.apply_local(UpdateCompany(company_id, data))

    def delete_company_local(self, company_id: str | int) -> CompanyState:
        return self.apply_local(DeleteCompany(company_id))

    def add_response_local(self, company_id: str | int, response: Mapping[str, Any]) -> CompanyState:
        return self.apply_local(AddResponse(company_id, response))

    def add_requirements_local(
        self, company_id: str | int, requirements: Mapping[str, Any]
    ) -> CompanyState:
        return self.apply_local(AddRequirements(company_id, requirements))

    def toggle_shortlist_local(self, company_id: str | int, is_shortlisted: bool) -> CompanyState:
        return self.apply_local(ToggleShortlist(company_id, is_shortlisted))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch_companies(self) -> List[Company]:
        """Full authoritative reload for the current actor."""
        async with self._session_call("fetch_companies") as (store, actor):
            return await self._reload(store, actor, "fetch_companies")

    async def get_company_by_id(self, company_id: str | int) -> Optional[Company]:
        """Single record, normalized. Does not touch the collection."""
        async with self._session_call("get_company_by_id"):
            body = await self.gateway.get_company(company_id)
            record = unwrap_record(body, operation="get_company_by_id")
            return normalize(record) if record is not None else None

    async def list_categories(self) -> List[Any]:
        async with self._session_call("list_categories"):
            cached = await cached_get(CATEGORIES_CACHE_KEY)
            if cached is not None:
                return cached
            categories = unwrap_list(
                await self.gateway.list_categories(), operation="list_categories"
            )
            await cached_get(
                CATEGORIES_CACHE_KEY,
                set_value=categories,
                ttl=get_settings().CATEGORIES_CACHE_TTL_SECONDS,
            )
            return categories

    async def get_company_stats(self) -> Optional[dict]:
        async with self._session_call("get_company_stats"):
            body = await self.gateway.get_company_stats()
            return unwrap_record(body, operation="get_company_stats")

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
        """
        Send one email, then mark the company as Contacted.

        The status update is best-effort: its failure is logged and the send
        result is still returned.
        """
        async with self._session_call("send_single_email") as (_, actor):
            result = await self.gateway.send_single_email(
                company_id, subject, message, tuple(attachments)
            )
            try:
                await self.gateway.update_company(
                    company_id, {"status": CompanyStatus.CONTACTED.value}
                )
            except BackendError:
                logger.exception(
                    "Email sent but status update to Contacted failed",
                    extra={
                        "operation": "send_single_email",
                        "company_id": str(company_id),
                        "actor_id": str(actor.id),
                    },
                )
            return result

    async def send_group_email(
        self,
        company_ids: Sequence[str | int],
        subject: str,
        message: str,
        attachments: Sequence[Attachment] = (),
    ) -> Any:
        async with self._session_call("send_group_email"):
            return await self.gateway.send_group_email(
                list(company_ids), subject, message, tuple(attachments)
            )

    async def list_sent_emails(self, page: int = 1, limit: int = 10) -> Any:
        async with self._session_call("list_sent_emails"):
            return await self.gateway.list_sent_emails(page, limit)

    async def get_sent_email(self, email_id: str | int) -> Any:
        async with self._session_call("get_sent_email"):
            return await self.gateway.get_sent_email(email_id)


def _identity(actor: Optional[Actor]) -> Optional[Tuple[str, str]]:
    if actor is None:
        return None
    return str(actor.id), actor.role.value
