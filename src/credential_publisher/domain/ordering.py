"""Order publishable entities so that referenced entities go out first."""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING

from .types import CREDENTIAL_CLASS, ID, ORGANIZATION_CLASS, primary_type, same_as_of

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .ports.schema import SchemaIndex
    from .store import EntityStore, StoreRecord


class PublicationTier(IntEnum):
    ORGANIZATION = 0
    CREDENTIAL = 1
    OTHER = 2


def publication_tier(class_name: str, schema: SchemaIndex) -> PublicationTier:
    if schema.is_descendant_of(class_name, ORGANIZATION_CLASS):
        return PublicationTier.ORGANIZATION
    if schema.is_descendant_of(class_name, CREDENTIAL_CLASS):
        return PublicationTier.CREDENTIAL
    return PublicationTier.OTHER


def order_for_publication(
    store: EntityStore,
    schema: SchemaIndex,
    source_locations: Iterable[str],
) -> list[str]:
    """Return canonical ids of top-level entities produced by ``source_locations``.

    Organizations come first, credentials second, everything else last; within
    a tier the store's discovery order is kept (``sorted`` is stable).
    """

    locations = set(source_locations)
    selected = [
        record
        for record in store.records
        if _matches_location(record, locations) and _is_top_level(record, schema)
    ]
    ordered = sorted(
        selected,
        key=lambda record: publication_tier(primary_type(record.entity) or "", schema),
    )
    return [record.id for record in ordered]


def _matches_location(record: StoreRecord, locations: set[str]) -> bool:
    if record.entity.get(ID) in locations:
        return True
    return any(alternate in locations for alternate in same_as_of(record.entity))


def _is_top_level(record: StoreRecord, schema: SchemaIndex) -> bool:
    entity_type = primary_type(record.entity)
    return entity_type is not None and schema.is_top_level(entity_type)
