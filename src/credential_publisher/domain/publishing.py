"""Application service that takes source URLs all the way to published graphs."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, cast

from credential_publisher.common.logging import banner

from .documents import graph_entities, is_ctdl_document, is_graph_document
from .errors import DocumentError, FetchError, Issue, PublicationError, PublisherError, handle_error
from .graph import extract_graph
from .ordering import order_for_publication
from .processor import EntityProcessor
from .store import EntityStore
from .types import GRAPH, ID, ctid_of, is_blank_id, primary_type, same_as_of

if TYPE_CHECKING:
    from collections.abc import Sequence

    from credential_publisher.config.registry import RegistryConfig

    from .ports.fetching import DocumentFetcher
    from .ports.publishing import GraphPublisher
    from .ports.schema import SchemaIndex
    from .store import StoreRecord
    from .types import Entity, GraphDocument

log = getLogger(__name__)


@dataclass(slots=True)
class PublicationRunResult:
    """Outcome of one publish run."""

    ordered: list[str] = field(default_factory=list[str])
    published: list[str] = field(default_factory=list[str])
    skipped: list[str] = field(default_factory=list[str])
    issues: list[Issue] = field(default_factory=list[Issue])
    processed: int = 0
    failed: bool = False


async def publish_sources(
    urls: Sequence[str],
    *,
    registry: RegistryConfig,
    schema: SchemaIndex,
    fetcher: DocumentFetcher,
    publisher: GraphPublisher,
    store: EntityStore | None = None,
) -> PublicationRunResult:
    """Ingest ``urls``, resolve every reference, then publish in dependency order.

    Resolution problems are recorded on the result and the run continues. A
    source that cannot be retrieved, or a rejected publication, ends the run:
    the former raises :class:`FetchError`, the latter stops further
    publications and marks the result as failed.
    """

    active_store = store if store is not None else EntityStore()
    processor = EntityProcessor(
        store=active_store,
        schema=schema,
        registry=registry,
        fetcher=fetcher,
    )
    result = PublicationRunResult()

    log.info("Starting with %d URL%s:", len(urls), "" if len(urls) == 1 else "s")
    for url in urls:
        log.info("  %s", url)

    for url in urls:
        await ingest_source(url, processor=processor, issues=result.issues)

    # One layer is enough: only entities that can appear in a graph rooted at a
    # source URL need correct links.
    for record in active_store.unprocessed():
        await _process(processor, record.entity, record.source_location, result.issues)

    result.issues.extend(processor.issues)
    result.processed = sum(1 for record in active_store if record.processed)
    result.ordered = order_for_publication(active_store, schema, urls)
    _log_plan(active_store, schema, result.ordered)

    log.info(banner("Beginning publication"))
    for entity_id in result.ordered:
        record = active_store.get(entity_id)
        if record is None:
            continue
        if not await _publish_record(
            record,
            store=active_store,
            schema=schema,
            registry=registry,
            publisher=publisher,
            result=result,
        ):
            log.info("Failed publication detected. Halting further publications.")
            result.failed = True
            break
    log.info(banner("Publication complete"))
    return result


async def ingest_source(
    url: str,
    *,
    processor: EntityProcessor,
    issues: list[Issue],
) -> None:
    """Fetch one source location and register its entities.

    Entities listed in a source ``@graph`` are trusted as if fetched from their
    own URLs; only the first node is resolved right away.
    """

    if processor.fetcher is None:
        raise FetchError(url, "no document fetcher is configured", critical=True)
    try:
        document = await processor.fetcher.get_document(url)
    except FetchError as exc:
        raise FetchError(url, exc.reason, critical=True) from exc
    if not document.ok:
        raise FetchError(url, f"URL returned status {document.status_code}.", critical=True)

    payload = document.payload
    if not payload:
        message = f"URL {url} did not return readable JSON data. It will be skipped."
        _record(DocumentError(message), issues, url)
        return
    if not is_ctdl_document(payload, url):
        message = f"URL {url} did not return CTDL JSON-LD data. It will be skipped."
        _record(DocumentError(message), issues, url)
        return
    source = cast("Entity", payload)

    if is_graph_document(source, url):
        entities = graph_entities(source)
        for entity in entities:
            processor.store.register(
                entity,
                fetched=True,
                registry=processor.registry,
                source_location=url,
                processed=False,
            )
        if entities:
            await _process(processor, entities[0], url, issues)
        return

    await _process(processor, source, url, issues)


async def submit_graph(
    graph: GraphDocument,
    *,
    endpoint: str,
    publisher: GraphPublisher,
    registry: RegistryConfig,
) -> None:
    """Publish ``graph``; raises :class:`PublicationError` when the registry refuses it."""

    root = graph[GRAPH][0]
    entity_type = primary_type(root)
    ctid = ctid_of(root) or ""
    graph_id = registry.graph_url(ctid)

    log.info("Publishing %s %s ...", entity_type, graph_id)
    outcome = await publisher.publish(graph, endpoint=endpoint)
    if not outcome.successful:
        raise PublicationError(
            f"Errors publishing {entity_type} {graph_id}: {', '.join(outcome.messages)}",
            messages=outcome.messages,
        )
    log.info("Success: Published %s %s", entity_type, graph_id)


async def _process(
    processor: EntityProcessor,
    entity: Entity,
    source_location: str | None,
    issues: list[Issue],
) -> None:
    try:
        await processor.process_entity(entity, source_location)
    except PublisherError as exc:
        _record(exc, issues, entity.get(ID))


def _record(error: PublisherError, issues: list[Issue], subject: object) -> None:
    handle_error(error)
    issues.append(Issue.from_error(error, subject=subject if isinstance(subject, str) else None))


async def _publish_record(
    record: StoreRecord,
    *,
    store: EntityStore,
    schema: SchemaIndex,
    registry: RegistryConfig,
    publisher: GraphPublisher,
    result: PublicationRunResult,
) -> bool:
    """Publish one record; return False only when the run must stop."""

    if ctid_of(record.entity) is None:
        log.error(
            "Processed entity from %s does not have a usable CTID. It will not be published.",
            ", ".join(same_as_of(record.entity)) or record.id,
        )
        result.skipped.append(record.id)
        return True

    graph = extract_graph(store, schema, record.id)
    if graph is None:
        log.info("No graph document found for %s. Skipping.", record.id)
        result.skipped.append(record.id)
        return True

    entity_type = primary_type(record.entity) or ""
    endpoint = schema.publish_endpoint_for(entity_type)
    if endpoint is None:
        _record(
            DocumentError(f"No publish endpoint is known for {entity_type} ({record.id})."),
            result.issues,
            record.id,
        )
        result.skipped.append(record.id)
        return True

    try:
        await submit_graph(graph, endpoint=endpoint, publisher=publisher, registry=registry)
    except PublicationError as exc:
        log.error(exc.message)  # noqa: TRY400
        result.issues.append(Issue.from_error(exc, subject=record.id))
        return False

    result.published.append(record.id)
    return True


def _log_plan(store: EntityStore, schema: SchemaIndex, ordered: list[str]) -> None:
    log.info(banner("Entities to publish"))
    for entity_id in ordered:
        record = store.get(entity_id)
        origin = ", ".join(same_as_of(record.entity)) if record is not None else ""
        log.info("%s <= %s", entity_id, origin or "(registry)")

    not_published = [
        record
        for record in store
        if record.id not in ordered
        and not is_blank_id(record.id)
        and schema.is_top_level(primary_type(record.entity) or "")
    ]
    if not not_published:
        return

    log.info(banner("Referenced entities not to be published this run"))
    log.info(
        "Ensure these source URLs are included in a different run of the publisher "
        "to publish the latest version of these entities."
    )
    for record in not_published:
        alternates = same_as_of(record.entity)
        log.info(
            "%s <= %s (%s)",
            record.id,
            alternates[0] if alternates else "",
            primary_type(record.entity),
        )
