from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from typing import Any, Mapping, Union

# Explicit client id first, then the backend's primary key.
CLIENT_ID_FIELD = "id"
BACKEND_PK_FIELD = "_id"

SYNTHESIZED_PREFIX = "local-"


@dataclass(frozen=True)
class Provided:
    """Identifier taken from the record itself."""

    value: str | int
    source: str


@dataclass(frozen=True)
class Synthesized:
    """Identifier minted on the client because the record carried none."""

    value: str


ResolvedId = Union[Provided, Synthesized]


def usable_id(value: Any) -> str | int | None:
    """
    Return ``value`` if it can serve as an identifier, else None.

    Empty strings, booleans and container values (e.g. Mongo-style
    ``{"$oid": ...}`` blobs) are not usable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def synthesize_id() -> str:
    """
    Mint a client-side id: nanosecond timestamp plus 32 random bits.

    Collisions with ids the backend issues later are not detected.
    """
    return f"{SYNTHESIZED_PREFIX}{time.time_ns():x}-{secrets.token_hex(4)}"


def is_synthesized(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(SYNTHESIZED_PREFIX)


def resolve_identity(raw: Mapping[str, Any] | None) -> ResolvedId:
    """
    Resolve the identifier for a raw record.

    Precedence: explicit client ``id`` -> backend ``_id`` -> synthesized.
    """
    if isinstance(raw, Mapping):
        for field in (CLIENT_ID_FIELD, BACKEND_PK_FIELD):
            value = usable_id(raw.get(field))
            if value is not None:
                return Provided(value=value, source=field)
    return Synthesized(value=synthesize_id())
