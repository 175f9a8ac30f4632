"""
Tests for store.py - Company State Reducer

Tests reducer transitions over the company collection: the normalization
funnel, id uniqueness, local mutations and their no-op behaviour on misses.
"""
from outreach_sync.schemas.company import Company, CompanyStatus
from outreach_sync.services import identity
from outreach_sync.services.store import (
    AddCompanyLocal,
    AddRequirementsLocal,
    AddResponseLocal,
    CompanyState,
    CompanyStore,
    DeleteCompanyLocal,
    SetCompanies,
    SetLoading,
    ToggleShortlistLocal,
    UpdateCompanyLocal,
    reduce,
)


def _loaded(raws) -> CompanyState:
    return reduce(CompanyState(), SetCompanies(raws))


class TestSetCompanies:
    """Tests for replacing the whole collection."""

    def test_every_stored_record_is_canonical(self, raw_records):
        """Stored records should be normalized Company objects."""
        state = _loaded(raw_records)
        assert len(state.companies) == 3
        for company, raw in zip(state.companies, raw_records):
            assert isinstance(company, Company)
            assert company is not raw
            assert company.responses is not None
        assert state.companies[2].responses[0].content == "Interested"

    def test_duplicate_ids_are_reidentified(self):
        """A repeated id within one batch should be replaced by a fresh one."""
        state = _loaded([{"_id": "dup", "name": "One"}, {"_id": "dup", "name": "Two"}])
        ids = [c.id for c in state.companies]
        assert ids[0] == "dup"
        assert len(set(map(str, ids))) == 2
        assert [c.name for c in state.companies] == ["One", "Two"]

    def test_replaces_whole_collection(self, raw_records):
        """A new batch should replace the previous collection."""
        state = _loaded(raw_records)
        state = reduce(state, SetCompanies([{"_id": "z"}]))
        assert [c.id for c in state.companies] == ["z"]

    def test_keeps_loading_flag(self):
        """Replacing companies should not touch the loading flag."""
        state = reduce(CompanyState(loading=True), SetCompanies([]))
        assert state.loading is True


class TestAddCompanyLocal:
    """Tests for locally added companies."""

    def test_defaults_and_synthesized_id(self):
        """A local add should get defaults and a synthesized id."""
        state = reduce(CompanyState(), AddCompanyLocal({"companyName": "New Co"}))
        company = state.companies[0]
        assert company.name == "New Co"
        assert company.responses == []
        assert company.requirements is None
        assert company.is_shortlisted is False
        assert identity.is_synthesized(company.id)

    def test_overrides_are_respected(self):
        """Caller-supplied values should override the defaults."""
        state = reduce(CompanyState(), AddCompanyLocal({"isShortlisted": True}))
        assert state.companies[0].is_shortlisted is True

    def test_ids_stay_unique_with_colliding_input(self):
        """Caller-supplied ids should never produce duplicates."""
        state = _loaded([{"_id": "c1"}])
        for _ in range(50):
            state = reduce(state, AddCompanyLocal({"id": "c1", "_id": "c1"}))
        ids = [str(c.id) for c in state.companies]
        assert len(ids) == 51
        assert len(set(ids)) == 51

    def test_fresh_id_comes_from_the_identity_resolver(self, monkeypatch):
        """Ids should be minted through the resolver and skip ones already taken."""
        minted = iter(["local-taken", "local-taken", "local-free"])
        monkeypatch.setattr(identity, "synthesize_id", lambda: next(minted))
        state = _loaded([{"_id": "local-taken"}])
        state = reduce(state, AddCompanyLocal({"name": "New"}))
        assert [c.id for c in state.companies] == ["local-taken", "local-free"]


class TestTargetedMutations:
    """Tests for mutations addressed to one company id."""

    def test_add_response_appends_and_marks_responded(self, raw_records):
        """Adding a response should append it and set status Responded."""
        state = _loaded(raw_records)
        before = state.companies
        state = reduce(state, AddResponseLocal("c1", {"id": "r9", "subject": "Re", "content": "Yes"}))
        target = state.companies[0]
        assert target.status is CompanyStatus.RESPONDED
        assert target.responses[-1].id == "r9"
        assert target.responses[-1].content == "Yes"
        assert state.companies[1:] == before[1:]

    def test_add_response_keeps_existing_responses_in_order(self, raw_records):
        """Earlier responses should stay in place."""
        state = _loaded(raw_records)
        state = reduce(state, AddResponseLocal("c3", {"content": "Follow-up"}))
        assert [r.content for r in state.companies[2].responses] == ["Interested", "Follow-up"]

    def test_add_requirements_replaces_wholesale(self, raw_records):
        """New requirements should replace the old ones entirely."""
        state = _loaded(raw_records)
        state = reduce(state, AddRequirementsLocal("c2", {"roles": ["QA"], "budget": "10k"}))
        state = reduce(state, AddRequirementsLocal("c2", {"roles": ["SRE"]}))
        requirements = state.companies[1].requirements
        assert requirements.roles == ["SRE"]
        assert requirements.budget is None

    def test_toggle_shortlist(self, raw_records):
        """Shortlisting should switch on and off."""
        state = _loaded(raw_records)
        state = reduce(state, ToggleShortlistLocal("c2", True))
        assert state.companies[1].is_shortlisted is True
        state = reduce(state, ToggleShortlistLocal("c2", False))
        assert state.companies[1].is_shortlisted is False

    def test_update_replaces_matching_record(self, raw_records):
        """A full record should replace the stored one with the same id."""
        state = _loaded(raw_records)
        state = reduce(state, UpdateCompanyLocal({"id": "c1", "companyName": "Acme 2"}))
        assert state.companies[0].name == "Acme 2"
        assert state.companies[0].website == "#"

    def test_ids_match_across_string_and_number(self):
        """Numeric and string forms of an id should match."""
        state = _loaded([{"id": 5, "name": "Five"}])
        state = reduce(state, ToggleShortlistLocal("5", True))
        assert state.companies[0].is_shortlisted is True

    def test_delete(self, raw_records):
        """Deleting should remove only the matching record."""
        state = _loaded(raw_records)
        state = reduce(state, DeleteCompanyLocal("c2"))
        assert [c.id for c in state.companies] == ["c1", "c3"]

    def test_misses_are_no_ops(self, raw_records):
        """Actions on unknown ids should leave the collection unchanged."""
        state = _loaded(raw_records)
        for action in (
            UpdateCompanyLocal({"id": "missing", "name": "X"}),
            DeleteCompanyLocal("missing"),
            AddResponseLocal("missing", {"content": "x"}),
            AddRequirementsLocal("missing", {"roles": []}),
            ToggleShortlistLocal("missing", True),
        ):
            assert reduce(state, action).companies == state.companies


class TestCompanyStore:
    """Tests for the session store holder."""

    def test_loading_transitions(self):
        """Loading should follow SetLoading actions."""
        store = CompanyStore()
        assert store.loading is False
        store.dispatch(SetLoading(True))
        assert store.loading is True
        store.dispatch(SetLoading(False))
        assert store.loading is False

    def test_listeners_receive_new_state(self):
        """Subscribers should get each new state until they unsubscribe."""
        store = CompanyStore()
        seen = []
        unsubscribe = store.subscribe(seen.append)
        store.dispatch(SetCompanies([{"_id": "a"}]))
        unsubscribe()
        store.dispatch(SetLoading(True))
        assert len(seen) == 1
        assert seen[0].companies[0].id == "a"
