"""Classification of outbound references found in pointer properties.

Every value of a pointer property falls into exactly one outcome below. The
processor dispatches on the outcome type, so adding a new kind of reference
means adding a dataclass here and a branch there.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Literal, TypeAlias

from .errors import InvalidRangeError
from .types import (
    CONDITION_PROFILE_CLASS,
    ID,
    Entity,
    ctid_of,
    extract_ctid_from_url,
    is_blank_id,
    is_http_url,
    primary_type,
    types_of,
)

if TYPE_CHECKING:
    from .ports.schema import SchemaIndex
    from .store import EntityStore


class ReferenceKind(StrEnum):
    CANONICAL = "already-canonical-reference"
    REGISTRY = "synthesized-registry-reference"
    REMOTE = "fetched-reference"
    CONDITION_PROFILE = "embedded-condition-profile"
    BLANK_NODE = "embedded-blank-node"
    NAMED_ENTITY = "embedded-named-entity"
    PASSTHROUGH = "raw-passthrough"


@dataclass(frozen=True, slots=True, kw_only=True)
class CanonicalReference:
    """String that already resolves to a record in the store."""

    target_id: str
    kind: Literal[ReferenceKind.CANONICAL] = ReferenceKind.CANONICAL


@dataclass(frozen=True, slots=True, kw_only=True)
class RegistryReference:
    """Registry resource URL from any environment, rewritten without fetching."""

    url: str
    ctid: str
    kind: Literal[ReferenceKind.REGISTRY] = ReferenceKind.REGISTRY


@dataclass(frozen=True, slots=True, kw_only=True)
class RemoteReference:
    """Unresolved http(s) URL that has to be dereferenced."""

    url: str
    kind: Literal[ReferenceKind.REMOTE] = ReferenceKind.REMOTE


@dataclass(frozen=True, slots=True, kw_only=True)
class EmbeddedConditionProfile:
    value: Entity
    kind: Literal[ReferenceKind.CONDITION_PROFILE] = ReferenceKind.CONDITION_PROFILE


@dataclass(frozen=True, slots=True, kw_only=True)
class EmbeddedBlankNode:
    """Top-level object without a CTID; ``mint`` when it has no blank identifier yet."""

    value: Entity
    mint: bool
    kind: Literal[ReferenceKind.BLANK_NODE] = ReferenceKind.BLANK_NODE


@dataclass(frozen=True, slots=True, kw_only=True)
class EmbeddedNamedEntity:
    """Top-level object declaring its own CTID."""

    value: Entity
    kind: Literal[ReferenceKind.NAMED_ENTITY] = ReferenceKind.NAMED_ENTITY


@dataclass(frozen=True, slots=True, kw_only=True)
class RawPassthrough:
    value: Any
    kind: Literal[ReferenceKind.PASSTHROUGH] = ReferenceKind.PASSTHROUGH


ReferenceOutcome: TypeAlias = (
    CanonicalReference
    | RegistryReference
    | RemoteReference
    | EmbeddedConditionProfile
    | EmbeddedBlankNode
    | EmbeddedNamedEntity
    | RawPassthrough
)


def classify_reference(
    value: object,
    *,
    prop: str,
    position: int,
    entity_id: str,
    store: EntityStore,
    schema: SchemaIndex,
) -> ReferenceOutcome:
    """Decide how one pointer-property value gets resolved.

    Raises :class:`InvalidRangeError` when an embedded object declares a type
    outside the range of ``prop``.
    """

    if isinstance(value, str):
        return _classify_string(value, store)
    if isinstance(value, dict):
        return _classify_object(
            value,
            prop=prop,
            position=position,
            entity_id=entity_id,
            schema=schema,
        )
    return RawPassthrough(value=value)


def _classify_string(value: str, store: EntityStore) -> ReferenceOutcome:
    record = store.get_fuzzy(value)
    if record is not None:
        return CanonicalReference(target_id=record.id)

    ctid = extract_ctid_from_url(value)
    if ctid is not None:
        return RegistryReference(url=value, ctid=ctid)

    if is_http_url(value):
        return RemoteReference(url=value)
    return RawPassthrough(value=value)


def _classify_object(
    value: Entity,
    *,
    prop: str,
    position: int,
    entity_id: str,
    schema: SchemaIndex,
) -> ReferenceOutcome:
    node_type = primary_type(value)
    # Untyped objects are left for registry-side validation.
    if node_type is None:
        return RawPassthrough(value=value)

    if not _in_range(node_type, schema.range_of(prop), schema):
        raise InvalidRangeError(
            entity_id=entity_id,
            prop=prop,
            position=position,
            value_type=node_type,
        )

    if CONDITION_PROFILE_CLASS in types_of(value):
        return EmbeddedConditionProfile(value=value)

    if not schema.is_top_level(node_type):
        return RawPassthrough(value=value)
    if is_blank_id(value.get(ID)):
        return EmbeddedBlankNode(value=value, mint=False)
    if ctid_of(value) is not None:
        return EmbeddedNamedEntity(value=value)
    return EmbeddedBlankNode(value=value, mint=True)


def _in_range(node_type: str, allowed: tuple[str, ...], schema: SchemaIndex) -> bool:
    if node_type in allowed:
        return True
    return any(schema.is_descendant_of(node_type, ancestor) for ancestor in allowed)
