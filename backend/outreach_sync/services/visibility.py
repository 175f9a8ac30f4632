from __future__ import annotations

from typing import List, Optional, Sequence

from ..schemas.company import Actor, Company, Role

# Roles that see every record they are served. Developers read from a
# dedicated endpoint that is already scoped server-side.
UNRESTRICTED_ROLES = {Role.ADMIN, Role.DEVELOPER}


def is_owned_by(company: Company, actor_id: str | int) -> bool:
    """
    Ownership match against the union of references captured at
    normalization: direct ``creatorId``, nested creator object id and the
    flat alias fields. Ids are compared as strings.
    """
    wanted = str(actor_id)
    if company.creator_id is not None and str(company.creator_id) == wanted:
        return True
    return wanted in company.owner_refs


def scope(companies: Sequence[Company], actor: Optional[Actor]) -> List[Company]:
    """
    Restrict ``companies`` to what ``actor`` may see.

    The result only ever contains elements of the input, unchanged.
    """
    if actor is None:
        return []
    if actor.role in UNRESTRICTED_ROLES:
        return list(companies)
    # employee, and plain users until they get a rule of their own
    return [company for company in companies if is_owned_by(company, actor.id)]
