"""Assemble the document that publishes one canonical entity."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .types import (
    CONTEXT,
    CTDL_CONTEXT,
    GRAPH,
    ID,
    ORGANIZATION_CLASS,
    GraphDocument,
    is_blank_id,
    primary_type,
)

if TYPE_CHECKING:
    from .ports.schema import SchemaIndex
    from .store import EntityStore, StoreRecord


def extract_graph(
    store: EntityStore, schema: SchemaIndex, canonical_id: str
) -> GraphDocument | None:
    """Return ``{"@context", "@graph": [root, *dependents]}`` for ``canonical_id``.

    Dependents are the entities discovered while processing the root that cannot
    be published on their own: blank nodes and instances of non-top-level
    classes. Named top-level entities are referenced by identifier only, since
    they get a graph of their own.
    """

    root = store.get(canonical_id)
    if root is None:
        return None

    seen = {root.id}
    dependents = []
    for target_id in store.references_from(canonical_id):
        record = store.get(target_id)
        if record is None or record.id in seen:
            continue
        if not _travels_with_referrer(record, schema):
            continue
        seen.add(record.id)
        dependents.append(record.entity)

    return {CONTEXT: CTDL_CONTEXT, GRAPH: [root.entity, *dependents]}


def _travels_with_referrer(record: StoreRecord, schema: SchemaIndex) -> bool:
    if is_blank_id(record.entity.get(ID)):
        return True
    # Untyped records are assumed to be organizations, which publish separately.
    entity_type = primary_type(record.entity) or ORGANIZATION_CLASS
    return not schema.is_top_level(entity_type)
