# backend/outreach_sync/services/normalization.py
"""
Canonicalisation of backend company records.

The backend is inconsistent about field names across endpoints (``companyName``
vs ``name``, ``websiteUrl`` vs ``website``, a nested ``createdBy`` object vs a
flat ``creatorId`` ...). Everything that enters the store goes through
``normalize`` so the rest of the client only ever sees ``Company``.

Rules:
- the first alias holding a non-empty value wins (None and blank strings are absent)
- every field has a fallback, ``normalize`` never raises
- numeric/date values are passed through as provided
- normalizing ``Company.to_raw()`` yields an equal record
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ValidationError

from ..schemas.company import (
    NO_DESCRIPTION,
    NO_WEBSITE,
    NOT_AVAILABLE,
    UNKNOWN_CREATOR,
    UNNAMED_COMPANY,
    Company,
    CompanyStatus,
    Requirements,
    Response,
)
from .identity import resolve_identity, usable_id

logger = logging.getLogger(__name__)


NAME_ALIASES = ("companyName", "name", "title", "company_name")
WEBSITE_ALIASES = ("websiteUrl", "website", "url", "website_url")
EMAIL_ALIASES = ("companyEmail", "email", "company_email")

# Ownership: a direct id field, nested creator objects, and flat alias fields
DIRECT_CREATOR_ID_ALIASES = ("creatorId", "creator_id")
CREATOR_OBJECT_FIELDS = ("createdBy", "creator")
CREATOR_ALIAS_FIELDS = ("createdBy", "creator", "userId", "user_id")
CREATOR_NAME_ALIASES = ("creatorName", "creator_name")
CREATOR_EMAIL_ALIASES = ("creatorEmail", "creator_email")

SHORTLIST_ALIASES = ("isShortlisted", "is_shortlisted", "shortlisted")
DATE_ADDED_ALIASES = ("dateAdded", "createdAt", "date_added", "created_at")
LAST_CONTACTED_ALIASES = ("lastContacted", "last_contacted")

# (attribute, aliases, default)
CONTACT_FIELDS = (
    ("contact_person", ("contactPerson", "contact_person"), NOT_AVAILABLE),
    ("person_name", ("personName", "person_name"), NOT_AVAILABLE),
    ("phone_number", ("phoneNumber", "phone", "phone_number"), NOT_AVAILABLE),
    (
        "alternate_phone_number",
        ("alternatePhoneNumber", "alternate_phone_number"),
        NOT_AVAILABLE,
    ),
    ("gst_number", ("gstNumber", "gst_number"), NOT_AVAILABLE),
    ("pan_number", ("panNumber", "pan_number"), NOT_AVAILABLE),
    ("industry", ("industry",), NOT_AVAILABLE),
    ("description", ("description",), NO_DESCRIPTION),
    ("notes", ("notes",), ""),
)

_STATUS_LOOKUP = {status.value.lower(): status for status in CompanyStatus}


def _is_absent(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _first_present(raw: Mapping[str, Any], aliases: Iterable[str]) -> Any:
    for alias in aliases:
        value = raw.get(alias)
        if not _is_absent(value):
            return value
    return None


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _text(raw: Mapping[str, Any], aliases: Iterable[str], default: str) -> str:
    for alias in aliases:
        value = raw.get(alias)
        if _is_absent(value):
            continue
        text = _as_text(value)
        if text is not None:
            return text
    return default


def _as_mapping(raw: Any) -> Mapping[str, Any]:
    if isinstance(raw, BaseModel):
        return raw.model_dump(by_alias=True)
    if isinstance(raw, Mapping):
        return raw
    return {}


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "y"}
    if isinstance(value, (int, float)):
        return value != 0
    return False


def _status(value: Any) -> CompanyStatus:
    if isinstance(value, str):
        return _STATUS_LOOKUP.get(value.strip().lower(), CompanyStatus.UNKNOWN)
    return CompanyStatus.UNKNOWN


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        out: List[str] = []
        for item in value:
            text = _as_text(item)
            if text is not None and text.strip():
                out.append(text)
        return out
    return []


# ---------------------------------------------------------------------------
# Ownership
# ---------------------------------------------------------------------------

def _creator_objects(raw: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    return [raw[f] for f in CREATOR_OBJECT_FIELDS if isinstance(raw.get(f), Mapping)]


def _owner_refs(raw: Mapping[str, Any]) -> List[str]:
    """
    All ownership references on a record, in match-priority order:
    direct id, nested creator object ids, flat alias fields.
    """
    candidates: List[Any] = []
    candidates.extend(raw.get(a) for a in DIRECT_CREATOR_ID_ALIASES)
    for obj in _creator_objects(raw):
        candidates.extend([obj.get("_id"), obj.get("id")])
    candidates.extend(raw.get(a) for a in CREATOR_ALIAS_FIELDS)

    # Previously normalized records carry their refs along
    existing = raw.get("ownerRefs")
    if isinstance(existing, (list, tuple)):
        candidates.extend(existing)

    refs: List[str] = []
    for candidate in candidates:
        value = usable_id(candidate)
        if value is None:
            continue
        ref = str(value)
        if ref not in refs:
            refs.append(ref)
    return refs


def _creator_id(raw: Mapping[str, Any]) -> str | int | None:
    for alias in DIRECT_CREATOR_ID_ALIASES:
        value = usable_id(raw.get(alias))
        if value is not None:
            return value
    for obj in _creator_objects(raw):
        for key in ("_id", "id"):
            value = usable_id(obj.get(key))
            if value is not None:
                return value
    for alias in CREATOR_ALIAS_FIELDS:
        value = usable_id(raw.get(alias))
        if value is not None:
            return value
    return None


def _creator_detail(
    raw: Mapping[str, Any],
    flat_aliases: Sequence[str],
    nested_keys: Sequence[str],
    default: str,
) -> str:
    text = _text(raw, flat_aliases, "")
    if text:
        return text
    for obj in _creator_objects(raw):
        text = _text(obj, nested_keys, "")
        if text:
            return text
    return default


# ---------------------------------------------------------------------------
# Sub-entities
# ---------------------------------------------------------------------------

def normalize_response(raw: Any) -> Response:
    data = _as_mapping(raw)
    return Response(
        id=resolve_identity(data).value,
        date=_first_present(data, ("date", "createdAt", "receivedAt")),
        subject=_text(data, ("subject", "title"), ""),
        content=_text(data, ("content", "message", "body"), ""),
    )


def normalize_requirements(raw: Any) -> Optional[Requirements]:
    if isinstance(raw, Requirements):
        return raw
    if not isinstance(raw, (Mapping, BaseModel)):
        return None
    data = _as_mapping(raw)
    hiring_type = _first_present(data, ("hiringType", "hiring_type"))
    notes = _first_present(data, ("notes",))
    return Requirements(
        roles=_string_list(data.get("roles")),
        tech_stack=_string_list(_first_present(data, ("techStack", "tech_stack"))),
        hiring_type=_as_text(hiring_type),
        budget=data.get("budget"),
        notes=_as_text(notes),
    )


def _responses(value: Any) -> List[Response]:
    if not isinstance(value, (list, tuple)):
        return []
    return [
        normalize_response(item)
        for item in value
        if isinstance(item, (Mapping, BaseModel))
    ]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize(raw: Any) -> Company:
    """Map an arbitrary backend record onto the canonical ``Company``."""
    data = _as_mapping(raw)
    identity = resolve_identity(data)

    fields: dict[str, Any] = {
        "id": identity.value,
        "name": _text(data, NAME_ALIASES, UNNAMED_COMPANY),
        "website": _text(data, WEBSITE_ALIASES, NO_WEBSITE),
        "email": _text(data, EMAIL_ALIASES, NOT_AVAILABLE),
        "creator_id": _creator_id(data),
        "creator_name": _creator_detail(
            data, CREATOR_NAME_ALIASES, ("name", "username", "fullName"), UNKNOWN_CREATOR
        ),
        "creator_email": _creator_detail(
            data, CREATOR_EMAIL_ALIASES, ("email",), NOT_AVAILABLE
        ),
        "owner_refs": tuple(_owner_refs(data)),
        "responses": _responses(data.get("responses")),
        "requirements": normalize_requirements(data.get("requirements")),
        "is_shortlisted": _as_bool(_first_present(data, SHORTLIST_ALIASES)),
        "status": _status(data.get("status")),
        # undated records stay undated; sorting puts them last
        "date_added": _first_present(data, DATE_ADDED_ALIASES),
        "tags": data.get("tags") if not _is_absent(data.get("tags")) else [],
        "categories": data.get("categories") if not _is_absent(data.get("categories")) else [],
        "last_contacted": _first_present(data, LAST_CONTACTED_ALIASES),
    }
    for attr, aliases, default in CONTACT_FIELDS:
        fields[attr] = _text(data, aliases, default)

    try:
        return Company(**fields)
    except ValidationError:
        logger.exception(
            "Company record failed canonical validation; keeping identity only",
            extra={"company_id": str(identity.value), "operation": "normalize"},
        )
        return Company(id=identity.value, date_added=fields["date_added"])


def normalize_many(raws: Iterable[Any] | None) -> List[Company]:
    """Element-wise ``normalize``, preserving input order."""
    if not raws:
        return []
    return [normalize(raw) for raw in raws]


# Field groups whose aliases shadow one another; patching one drops the rest
_ALIAS_GROUPS = (
    NAME_ALIASES,
    WEBSITE_ALIASES,
    EMAIL_ALIASES,
    DIRECT_CREATOR_ID_ALIASES,
    CREATOR_NAME_ALIASES,
    CREATOR_EMAIL_ALIASES,
    SHORTLIST_ALIASES,
    DATE_ADDED_ALIASES,
    LAST_CONTACTED_ALIASES,
) + tuple(aliases for _, aliases, _ in CONTACT_FIELDS)


def overlay(base: Any, patch: Any) -> dict[str, Any]:
    """
    Apply a partial record (e.g. an edit form) on top of an existing one.

    A field present in ``patch`` under any alias replaces every alias of that
    field in ``base``; fields the patch does not mention are kept.
    """
    merged = dict(_as_mapping(base))
    changes = _as_mapping(patch)
    for group in _ALIAS_GROUPS:
        if any(key in changes for key in group):
            for key in group:
                merged.pop(key, None)
    merged.update(changes)
    return merged
