# backend/outreach_sync/services/payloads.py
"""
Request bodies for company writes and outgoing mail.

The backend expects its own field names (``companyName``, ``websiteUrl`` ...)
and a few required fields with defaults. Callers may pass either those names
or the canonical ones (``name``, ``website``, ``email``).
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Tuple

UPLOAD_FIELD = "uploadDocument"
MAIL_ATTACHMENT_FIELD = "attachments"

# backend field -> (accepted input keys, default)
COMPANY_FIELDS: Tuple[Tuple[str, Tuple[str, ...], Any], ...] = (
    ("companyName", ("companyName", "name"), ""),
    ("companyEmail", ("companyEmail", "email"), ""),
    ("contactPerson", ("contactPerson", "contact_person"), "N/A"),
    ("websiteUrl", ("websiteUrl", "website"), ""),
    ("industry", ("industry",), "Technology"),
    ("tags", ("tags",), ""),
    ("status", ("status",), "New"),
    ("personName", ("personName", "person_name"), ""),
    ("phoneNumber", ("phoneNumber", "phone_number"), ""),
    ("alternatePhoneNumber", ("alternatePhoneNumber", "alternate_phone_number"), ""),
    ("gstNumber", ("gstNumber", "gst_number"), ""),
    ("panNumber", ("panNumber", "pan_number"), ""),
)

FileField = Tuple[str, Tuple[str, bytes, str]]


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    def as_file(self, field_name: str) -> FileField:
        return (field_name, (self.filename, self.content, self.content_type))


def _pick(data: Mapping[str, Any], keys: Sequence[str], default: Any) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None or value == "":
            continue
        # enums (e.g. CompanyStatus) go over the wire as their value
        return getattr(value, "value", value)
    return default


def _form_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def company_body(data: Mapping[str, Any]) -> Dict[str, Any]:
    """JSON body for create/update without attachments."""
    body: Dict[str, Any] = {
        field: _pick(data, keys, default) for field, keys, default in COMPANY_FIELDS
    }
    categories = data.get("categories")
    body["categories"] = list(categories) if isinstance(categories, (list, tuple)) else []
    return body


def company_form(
    data: Mapping[str, Any], attachments: Sequence[Attachment]
) -> Tuple[Dict[str, str], List[FileField]]:
    """
    Multipart form for create/update with attachments: every scalar field is
    sent as text next to one ``uploadDocument`` part per file.
    """
    fields = {
        field: _form_value(_pick(data, keys, default))
        for field, keys, default in COMPANY_FIELDS
    }
    categories = data.get("categories")
    if isinstance(categories, (list, tuple)) and categories:
        fields["categories"] = json.dumps(list(categories))
    files = [a.as_file(UPLOAD_FIELD) for a in attachments]
    return fields, files


def single_mail_form(
    company_id: str | int,
    subject: str,
    message: str,
    attachments: Sequence[Attachment] = (),
) -> Tuple[Dict[str, Any], List[FileField]]:
    fields = {"companyId": str(company_id), "subject": subject, "message": message}
    return fields, [a.as_file(MAIL_ATTACHMENT_FIELD) for a in attachments]


def group_mail_form(
    company_ids: Sequence[str | int],
    subject: str,
    message: str,
    attachments: Sequence[Attachment] = (),
) -> Tuple[Dict[str, Any], List[FileField]]:
    fields: Dict[str, Any] = {
        "companyIds[]": [str(cid) for cid in company_ids],
        "subject": subject,
        "message": message,
    }
    return fields, [a.as_file(MAIL_ATTACHMENT_FIELD) for a in attachments]
