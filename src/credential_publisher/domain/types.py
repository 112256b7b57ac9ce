"""JSON-LD primitives shared across the domain.

Entities stay open attribute maps: the vocabulary is far larger than anything we
would want to model, and the registry validates content on submission. Only the
handful of keys that drive identity and linking get names here.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Final, TypeAlias
from uuid import uuid4

if TYPE_CHECKING:
    from collections.abc import Iterable

Entity: TypeAlias = dict[str, Any]
GraphDocument: TypeAlias = dict[str, Any]

CTDL_CONTEXT: Final[str] = "https://credreg.net/ctdl/schema/context/json"

ID: Final[str] = "@id"
TYPE: Final[str] = "@type"
CONTEXT: Final[str] = "@context"
GRAPH: Final[str] = "@graph"
CTID: Final[str] = "ceterms:ctid"
SAME_AS: Final[str] = "ceterms:sameAs"

ORGANIZATION_CLASS: Final[str] = "ceterms:Organization"
CREDENTIAL_CLASS: Final[str] = "ceterms:Credential"
CONDITION_PROFILE_CLASS: Final[str] = "ceterms:ConditionProfile"

BLANK_PREFIX: Final[str] = "_:"

_REGISTRY_RESOURCE_URL = re.compile(
    r"^https?://(?:sandbox\.|staging\.)?credentialengineregistry\.org"
    r"/(?:resources|graph)/(?P<ctid>ce-[0-9a-f]{8}(?:-[0-9a-f]{4}){3}-[0-9a-f]{12})/?$",
    re.IGNORECASE,
)


def array_of(value: Any) -> list[Any]:
    """Return ``value`` as a list; JSON-LD allows a bare value wherever a set is expected."""

    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def types_of(entity: Entity) -> list[str]:
    return [value for value in array_of(entity.get(TYPE)) if isinstance(value, str)]


def primary_type(entity: Entity) -> str | None:
    types = types_of(entity)
    return types[0] if types else None


def same_as_of(entity: Entity) -> list[str]:
    return [value for value in array_of(entity.get(SAME_AS)) if isinstance(value, str)]


def with_same_as(entity: Entity, *identifiers: str) -> list[str]:
    """Return the entity's equivalence set extended by ``identifiers`` without duplicates."""

    merged = list(dict.fromkeys(same_as_of(entity)))
    for identifier in identifiers:
        if identifier in merged:
            merged.remove(identifier)
        merged.append(identifier)
    return merged


def ctid_of(entity: Entity) -> str | None:
    ctid = entity.get(CTID)
    if isinstance(ctid, str) and ctid.strip():
        return ctid
    return None


def is_blank_id(identifier: object) -> bool:
    return isinstance(identifier, str) and identifier.startswith(BLANK_PREFIX)


def new_blank_id() -> str:
    return f"{BLANK_PREFIX}b{uuid4()}"


def is_http_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def extract_ctid_from_url(url: str) -> str | None:
    """Return the CTID of a registry resource or graph URL from any environment."""

    match = _REGISTRY_RESOURCE_URL.match(url.strip())
    if match is None:
        return None
    return match.group("ctid").lower()


def unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def ordinal(index: int) -> str:
    """Render a zero-based list position for error messages."""

    return f"[position {index + 1}]"
