"""Canonicalize entities and resolve their references into the store."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, assert_never

from .errors import FetchError, Issue, MissingCtidError
from .references import (
    CanonicalReference,
    EmbeddedBlankNode,
    EmbeddedConditionProfile,
    EmbeddedNamedEntity,
    RawPassthrough,
    RegistryReference,
    RemoteReference,
    classify_reference,
)
from .store import canonical_identity
from .types import (
    CONDITION_PROFILE_CLASS,
    CONTEXT,
    CTDL_CONTEXT,
    GRAPH,
    ID,
    SAME_AS,
    Entity,
    array_of,
    ctid_of,
    is_blank_id,
    new_blank_id,
    ordinal,
    primary_type,
    unique,
    with_same_as,
)

if TYPE_CHECKING:
    from credential_publisher.config.registry import RegistryConfig

    from .ports.fetching import DocumentFetcher, FetchedDocument
    from .ports.schema import SchemaIndex
    from .store import EntityStore

log = getLogger(__name__)


@dataclass(slots=True)
class EntityProcessor:
    """Resolve one entity at a time against a run's store.

    References are resolved strictly in document order and every fetch is
    awaited before the next value is classified, since classification reads
    store state written by earlier resolutions.
    """

    store: EntityStore
    schema: SchemaIndex
    registry: RegistryConfig
    fetcher: DocumentFetcher | None = None
    issues: list[Issue] = field(default_factory=list[Issue])

    async def process_entity(self, entity: Entity, source_location: str | None = None) -> Entity:
        """Return the registry-ready form of ``entity`` and register everything it links.

        Entities whose primary type is not top-level are embedded-only values and
        come back unchanged. Raises :class:`MissingCtidError` or
        :class:`InvalidRangeError`; nothing is registered for the entity then.
        """

        entity_type = primary_type(entity)
        if entity_type is None or not self.schema.is_top_level(entity_type):
            return entity

        raw_id = entity.get(ID)
        if ctid_of(entity) is None and not is_blank_id(raw_id):
            raise MissingCtidError(str(raw_id))

        doc = canonical_identity(entity, self.registry)
        doc.pop(CONTEXT, None)
        doc_id: str = doc[ID]

        pointers = unique(
            (
                *self.schema.pointer_properties_for(entity_type),
                *self.schema.condition_profile_properties_for(entity_type),
            )
        )
        for prop in pointers:
            if doc.get(prop) in (None, "", []):
                continue
            doc[prop] = await self._resolve_values(doc_id, prop, array_of(doc[prop]), hoist=True)

        return self.store.register(
            doc,
            fetched=True,
            registry=self.registry,
            source_location=source_location,
            processed=True,
            overwrite=True,
        )

    async def fetch_and_register(self, url: str, *, referrer: str | None = None) -> Entity:
        """Dereference ``url`` and register the entity it describes.

        Documents without a CTID are kept as blank nodes that remember ``url`` as
        an equivalent identifier. Raises :class:`FetchError` for transport
        failures and documents that do not describe ``url``.
        """

        if self.fetcher is None:
            raise FetchError(url, "no document fetcher is configured")

        log.info("Fetching referenced document %s", url)
        document = await self.fetcher.get_document(url)
        entity = _entity_from_document(url, document)

        fetched_id = entity.get(ID)
        id_matches = fetched_id in (url, document.url)

        if ctid_of(entity) is None:
            if fetched_id is not None and not id_matches:
                raise FetchError(
                    url,
                    "the fetched entity has no CTID and its @id does not match the requested URL",
                )
            log.info(
                "Found entity with no CTID in %s. Registering as a blank node in the graph.", url
            )
            blank = {**entity, ID: new_blank_id(), SAME_AS: with_same_as(entity, url)}
            return self.store.register(
                blank,
                fetched=False,
                registry=self.registry,
                source_location=referrer,
            )

        if not id_matches:
            raise FetchError(
                url,
                "the fetched entity has no @id or it is not the same as the requested URL",
            )
        if document.url != url:
            entity[SAME_AS] = with_same_as(entity, url)
        return self.store.register(
            entity,
            fetched=True,
            registry=self.registry,
            source_location=referrer,
        )

    async def _resolve_values(
        self,
        entity_id: str,
        prop: str,
        values: list[Any],
        *,
        hoist: bool,
    ) -> list[Any]:
        resolved: list[Any] = []
        for position, value in enumerate(values):
            resolved.append(
                await self._resolve_value(entity_id, prop, position, value, hoist=hoist)
            )
        return resolved

    async def _resolve_value(
        self,
        entity_id: str,
        prop: str,
        position: int,
        value: object,
        *,
        hoist: bool,
    ) -> Any:
        outcome = classify_reference(
            value,
            prop=prop,
            position=position,
            entity_id=entity_id,
            store=self.store,
            schema=self.schema,
        )

        if isinstance(outcome, CanonicalReference):
            # Blank nodes only exist inside a graph, so every referrer must carry them.
            if is_blank_id(outcome.target_id):
                self.store.add_reference(entity_id, outcome.target_id)
            return outcome.target_id

        if isinstance(outcome, RegistryReference):
            log.info(
                "%s -> %s %s references registry resource %s (CTID %s); "
                "recording it as a reference in the %s environment.",
                entity_id,
                prop,
                ordinal(position),
                outcome.url,
                outcome.ctid,
                self.registry.environment,
            )
            return self.registry.resource_url(outcome.ctid)

        if isinstance(outcome, RemoteReference):
            log.info(
                "Fetching document with reference %s -> %s %s: %s",
                entity_id,
                prop,
                ordinal(position),
                outcome.url,
            )
            try:
                registered = await self.fetch_and_register(outcome.url, referrer=entity_id)
            except FetchError as exc:
                log.error(  # noqa: TRY400
                    "%s (referenced by %s -> %s)", exc.message, entity_id, prop
                )
                self.issues.append(Issue.from_error(exc, subject=entity_id))
                return outcome.url
            return registered[ID]

        if isinstance(outcome, EmbeddedConditionProfile):
            return await self._resolve_condition_profile(entity_id, outcome.value)

        if isinstance(outcome, EmbeddedBlankNode):
            if not hoist:
                return outcome.value
            return self._register_blank_node(entity_id, outcome)

        if isinstance(outcome, EmbeddedNamedEntity):
            if not hoist:
                return outcome.value
            registered = self.store.register(
                outcome.value,
                fetched=False,
                registry=self.registry,
                source_location=entity_id,
            )
            return registered[ID]

        if isinstance(outcome, RawPassthrough):
            return outcome.value

        assert_never(outcome)

    async def _resolve_condition_profile(self, entity_id: str, profile: Entity) -> Entity:
        """Resolve the profile's own pointers in place; nothing is hoisted out of it."""

        resolved = dict(profile)
        pointers = unique(
            (
                *self.schema.pointer_properties_for(CONDITION_PROFILE_CLASS),
                *self.schema.condition_profile_properties_for(CONDITION_PROFILE_CLASS),
            )
        )
        for prop in pointers:
            if resolved.get(prop) in (None, "", []):
                continue
            resolved[prop] = await self._resolve_values(
                entity_id, prop, array_of(resolved[prop]), hoist=False
            )
        return resolved

    def _register_blank_node(self, entity_id: str, outcome: EmbeddedBlankNode) -> str:
        node = outcome.value
        if outcome.mint:
            original_id = node.get(ID)
            previous = (
                self.store.get_fuzzy(original_id) if isinstance(original_id, str) else None
            )
            if previous is not None and is_blank_id(previous.id):
                self.store.add_reference(entity_id, previous.id)
                return previous.id

            node = {**node, ID: new_blank_id()}
            if isinstance(original_id, str) and original_id:
                node[SAME_AS] = with_same_as(outcome.value, original_id)

        registered = self.store.register(
            node,
            fetched=False,
            registry=self.registry,
            source_location=entity_id,
        )
        return registered[ID]


def _entity_from_document(url: str, document: FetchedDocument) -> Entity:
    if not document.ok:
        detail = f"{document.status_code} {document.reason}".strip()
        raise FetchError(url, f"the server responded with status {detail}")

    payload = document.payload
    if not isinstance(payload, dict):
        raise FetchError(url, "the response is not a JSON object")
    if array_of(payload.get(CONTEXT)) != [CTDL_CONTEXT]:
        raise FetchError(url, "the fetched entity does not have the expected CTDL context")

    graph = payload.get(GRAPH)
    if isinstance(graph, list):
        if not graph or not isinstance(graph[0], dict):
            raise FetchError(url, "the fetched graph is empty")
        return dict(graph[0])

    return {key: value for key, value in payload.items() if key != CONTEXT}
