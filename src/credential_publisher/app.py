"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from credential_publisher.adapters.registry import (
    DryRunPublisher,
    HttpDocumentFetcher,
    RegistryPublisher,
)
from credential_publisher.adapters.vocabulary import download_vocabulary, load_vocabulary
from credential_publisher.domain.publishing import PublicationRunResult, publish_sources

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from credential_publisher.config.registry import RegistryConfig
    from credential_publisher.domain.ports.fetching import DocumentFetcher
    from credential_publisher.domain.ports.publishing import GraphPublisher
    from credential_publisher.domain.ports.schema import SchemaIndex

log = getLogger(__name__)


def publish_urls(
    urls: Sequence[str],
    *,
    registry: RegistryConfig,
    schema: SchemaIndex | None = None,
    vocabulary_path: Path | None = None,
    fetcher: DocumentFetcher | None = None,
    publisher: GraphPublisher | None = None,
) -> PublicationRunResult:
    """Publish the entities found at ``urls`` using the configured adapters."""

    effective_schema = schema or load_vocabulary(vocabulary_path)
    log.info("Selected %s environment.", registry.environment)
    if registry.dry_run:
        log.info("Dry run: will not publish to the Registry.")

    result = asyncio.run(
        _publish_urls(
            urls,
            registry=registry,
            schema=effective_schema,
            fetcher=fetcher,
            publisher=publisher,
        )
    )

    log.info(
        "Finished publishing: processed=%s, published=%s, skipped=%s, issues=%s, failed=%s",
        result.processed,
        len(result.published),
        len(result.skipped),
        len(result.issues),
        result.failed,
    )
    return result


async def _publish_urls(
    urls: Sequence[str],
    *,
    registry: RegistryConfig,
    schema: SchemaIndex,
    fetcher: DocumentFetcher | None,
    publisher: GraphPublisher | None,
) -> PublicationRunResult:
    owned: list[HttpDocumentFetcher | RegistryPublisher] = []
    if fetcher is None:
        http_fetcher = HttpDocumentFetcher()
        owned.append(http_fetcher)
        fetcher = http_fetcher
    if publisher is None:
        if registry.dry_run:
            publisher = DryRunPublisher(registry)
        else:
            registry_publisher = RegistryPublisher(registry)
            owned.append(registry_publisher)
            publisher = registry_publisher

    try:
        return await publish_sources(
            urls,
            registry=registry,
            schema=schema,
            fetcher=fetcher,
            publisher=publisher,
        )
    finally:
        for resource in owned:
            await resource.aclose()


def build_vocabulary(destination: Path | None = None) -> Path:
    """Download the CTDL vocabularies and store the merged terms for later runs."""

    target = download_vocabulary(destination)
    index = load_vocabulary(target)
    log.info("Vocabulary ready at %s (%d top-level classes)", target, len(index.top_level_classes))
    return target
