"""
Tests for normalization.py - Company Record Canonicalisation

Tests alias resolution, defaults, ownership capture, sub-entities, idempotence
of the canonical company shape and overlaying partial edits onto a record.
"""
import pytest

from outreach_sync.schemas.company import Company, CompanyStatus, Requirements
from outreach_sync.services.identity import is_synthesized
from outreach_sync.services.normalization import (
    normalize,
    normalize_many,
    normalize_requirements,
    normalize_response,
    overlay,
)


class TestTotality:
    """Tests that normalize never raises and always fills every field."""

    @pytest.mark.parametrize("raw", [{}, None, [], "garbage", 42, {"companyName": None}])
    def test_degenerate_inputs_produce_a_company(self, raw):
        """Degenerate inputs should still yield a fully defaulted Company."""
        company = normalize(raw)
        assert isinstance(company, Company)
        assert company.name == "Unnamed Company"
        assert company.website == "#"
        assert company.email == "N/A"
        assert company.responses == []
        assert company.requirements is None
        assert company.is_shortlisted is False
        assert company.status is CompanyStatus.UNKNOWN
        assert is_synthesized(company.id)

    def test_every_field_is_populated_for_empty_record(self):
        """Only the optional fields should be None for an empty record."""
        dumped = normalize({}).to_raw()
        for key, value in dumped.items():
            if key in {"creatorId", "requirements", "lastContacted", "dateAdded"}:
                continue
            assert value is not None, key

    def test_odd_types_do_not_raise(self):
        """Wrongly typed values should fall back to defaults instead of raising."""
        company = normalize(
            {
                "_id": {"$oid": "abc"},
                "companyName": {"nested": True},
                "phoneNumber": 9876543210,
                "isShortlisted": "yes",
                "status": 7,
                "responses": "not-a-list",
                "requirements": ["nope"],
            }
        )
        assert is_synthesized(company.id)
        assert company.name == "Unnamed Company"
        assert company.phone_number == "9876543210"
        assert company.is_shortlisted is True
        assert company.status is CompanyStatus.UNKNOWN
        assert company.responses == []
        assert company.requirements is None


class TestAliasResolution:
    """Tests for picking values across backend field aliases."""

    def test_company_name_and_website_url(self):
        """Backend-style names should map onto canonical fields."""
        company = normalize({"companyName": "Acme", "websiteUrl": "https://acme.io"})
        assert company.name == "Acme"
        assert company.website == "https://acme.io"
        assert company.email == "N/A"
        assert company.responses == []
        assert company.requirements is None
        assert company.is_shortlisted is False
        assert company.status is CompanyStatus.UNKNOWN

    def test_first_non_empty_alias_wins(self):
        """Blank aliases should be skipped in favour of the next one."""
        company = normalize({"companyName": "  ", "name": "Second", "title": "Third"})
        assert company.name == "Second"

    def test_snake_case_aliases(self):
        """snake_case aliases should be accepted."""
        company = normalize({"company_name": "Snake Co", "website_url": "s.co", "company_email": "a@s.co"})
        assert (company.name, company.website, company.email) == ("Snake Co", "s.co", "a@s.co")

    def test_contact_fields_default_independently(self):
        """Each contact field should default on its own."""
        company = normalize({"gstNumber": "22AAAAA0000A1Z5", "phone": "555"})
        assert company.gst_number == "22AAAAA0000A1Z5"
        assert company.phone_number == "555"
        assert company.pan_number == "N/A"
        assert company.contact_person == "N/A"
        assert company.description == "No description"

    def test_status_is_case_insensitive_and_closed(self):
        """Status should match case-insensitively and unknown values map to Unknown."""
        assert normalize({"status": "shortlisted"}).status is CompanyStatus.SHORTLISTED
        assert normalize({"status": "pending-review"}).status is CompanyStatus.UNKNOWN

    def test_date_values_pass_through(self):
        """Date values should be kept exactly as provided."""
        assert normalize({"createdAt": "2024-01-15T10:00:00Z"}).date_added == "2024-01-15T10:00:00Z"
        assert normalize({"dateAdded": 1700000000}).date_added == 1700000000

    def test_missing_date_stays_undated(self):
        """A record without a date should stay undated, the same on every call."""
        first = normalize({"_id": "x"})
        assert first.date_added is None
        assert normalize({"_id": "x"}) == first


class TestIdentity:
    """Tests for the id chosen during normalization."""

    def test_client_id_preferred_over_backend_key(self):
        """An explicit client id should beat the backend key."""
        assert normalize({"id": "client", "_id": "server"}).id == "client"

    def test_backend_key_used_when_no_client_id(self):
        """The backend key should be used when no client id exists."""
        assert normalize({"_id": "server"}).id == "server"

    def test_numeric_ids_are_kept(self):
        """Numeric ids should not be converted to strings."""
        assert normalize({"id": 7}).id == 7


class TestOwnership:
    """Tests for creator attribution and ownership references."""

    def test_direct_creator_id(self):
        """A flat creatorId should become the creator and the only owner ref."""
        company = normalize({"creatorId": "u1"})
        assert company.creator_id == "u1"
        assert company.owner_refs == ("u1",)

    def test_nested_creator_object(self):
        """A nested createdBy object should supply id, name and email."""
        company = normalize({"createdBy": {"_id": "u2", "username": "bob", "email": "b@x.io"}})
        assert company.creator_id == "u2"
        assert company.creator_name == "bob"
        assert company.creator_email == "b@x.io"

    def test_alias_fields_are_all_captured(self):
        """Every creator alias should be kept as an owner ref."""
        company = normalize({"creatorId": "u1", "creator": {"id": "u2"}, "userId": 3})
        assert company.creator_id == "u1"
        assert company.owner_refs == ("u1", "u2", "3")

    def test_missing_creator_defaults(self):
        """Records without a creator should carry placeholder attribution."""
        company = normalize({})
        assert company.creator_id is None
        assert company.creator_name == "Unknown"
        assert company.creator_email == "N/A"
        assert company.owner_refs == ()


class TestSubEntities:
    """Tests for responses and requirements."""

    def test_response_aliases_and_synthesized_id(self):
        """Response aliases should map and a missing id should be synthesized."""
        response = normalize_response({"message": "Thanks", "createdAt": "2024-02-01"})
        assert response.content == "Thanks"
        assert response.date == "2024-02-01"
        assert is_synthesized(response.id)

    def test_requirements_from_camel_case(self):
        """camelCase requirements should map and a comma list should be split."""
        requirements = normalize_requirements(
            {"roles": ["DevOps"], "techStack": "AWS, Terraform", "hiringType": "Full-time", "budget": 1000}
        )
        assert requirements == Requirements(
            roles=["DevOps"], tech_stack=["AWS", "Terraform"], hiring_type="Full-time", budget=1000
        )

    def test_non_mapping_requirements_are_none(self):
        """Non-mapping requirements should normalize to None."""
        assert normalize_requirements("Full-time") is None


class TestIdempotence:
    """Tests that canonical records survive another normalization."""

    def test_renormalizing_canonical_dump_is_stable(self, raw_records):
        """Normalizing a canonical dump should give an equal record."""
        for raw in raw_records:
            company = normalize(raw)
            assert normalize(company.to_raw()) == company

    def test_company_instances_are_accepted(self, raw_records):
        """A Company instance should normalize to itself."""
        company = normalize(raw_records[1])
        assert normalize(company) == company


class TestNormalizeMany:
    """Tests for batch normalization."""

    def test_preserves_order(self, raw_records):
        """Output order should match input order."""
        names = [c.name for c in normalize_many(raw_records)]
        assert names == ["Acme", "Globex", "Initech"]

    def test_empty_and_none(self):
        """Empty and missing batches should give an empty list."""
        assert normalize_many([]) == []
        assert normalize_many(None) == []

    def test_output_is_distinct_from_input(self, raw_records):
        """Output records should never be the input objects."""
        companies = normalize_many(raw_records)
        assert all(c is not r for c, r in zip(companies, raw_records))


class TestOverlay:
    """Tests for applying partial edits on top of a stored record."""

    def test_patched_field_replaces_every_alias(self):
        """A patched field should drop the record's other aliases for it."""
        merged = overlay({"name": "Old", "companyName": "Older", "industry": "IT"}, {"title": "New"})
        assert normalize(merged).name == "New"
        assert merged["industry"] == "IT"

    def test_unmentioned_fields_are_kept(self, raw_records):
        """Responses, creator and status should survive a partial edit."""
        stored = normalize(raw_records[2])
        edited = normalize(overlay(stored.to_raw(), {"companyName": "Initech 2"}))
        assert edited.name == "Initech 2"
        assert edited.responses == stored.responses
        assert edited.creator_id == stored.creator_id
        assert edited.status is stored.status

    def test_inputs_are_not_mutated(self):
        """overlay should return a new mapping."""
        base = {"name": "Old"}
        overlay(base, {"name": "New"})
        assert base == {"name": "Old"}
