"""HTTP adapters for reading linked documents and publishing graphs."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from credential_publisher.adapters.http_resilience import ResilienceConfig, ResilientClient
from credential_publisher.config.registry import (
    RegistryConfig,
    get_fetch_resilience,
    get_publish_resilience,
)
from credential_publisher.domain.errors import FetchError, PublicationError
from credential_publisher.domain.ports.fetching import DocumentFetcher, FetchedDocument
from credential_publisher.domain.ports.publishing import GraphPublisher, PublishResult

from .schema import PublishRequest, PublishResponse

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from credential_publisher.domain.types import GraphDocument

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class _ClientHolder:
    resilience: ResilienceConfig
    client_factory: Callable[[ResilienceConfig], ResilientClient]
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    def client(self) -> ResilientClient:
        if self._client is None:
            self._client = self.client_factory(self.resilience)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


@dataclass(slots=True)
class HttpDocumentFetcher:
    """Dereference JSON-LD documents over HTTP, following redirects.

    One underlying client is shared by every request of a run; close the
    fetcher (or use it as an async context manager) when the run is over.
    """

    resilience: ResilienceConfig = field(default_factory=get_fetch_resilience)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _holder: _ClientHolder = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._holder = _ClientHolder(self.resilience, self.client_factory)

    async def __aenter__(self) -> HttpDocumentFetcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._holder.aclose()

    async def get_document(self, url: str) -> FetchedDocument:
        log.debug("Requesting (GET) %s", url)
        try:
            response = await self._holder.client().get(
                url, headers={"Accept": "application/json"}
            )
        except httpx.HTTPError as exc:
            raise FetchError(url, f"the request failed: {exc}") from exc

        payload: object | None
        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            payload = None

        return FetchedDocument(
            url=str(response.url),
            status_code=response.status_code,
            payload=payload,
            reason=response.reason_phrase,
        )


@dataclass(slots=True)
class RegistryPublisher:
    """Submit graphs to the registry assistant API on behalf of an organization."""

    config: RegistryConfig
    resilience: ResilienceConfig | None = None
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _holder: _ClientHolder = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.resilience is None:
            self.resilience = get_publish_resilience(self.config)
        self._holder = _ClientHolder(self.resilience, self.client_factory)

    async def __aenter__(self) -> RegistryPublisher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._holder.aclose()

    async def publish(self, graph: GraphDocument, *, endpoint: str) -> PublishResult:
        request = PublishRequest(
            organization_ctid=self.config.organization_ctid,
            graph=graph,
        )
        try:
            response = await self._holder.client().post(
                endpoint.lstrip("/"),
                json=request.model_dump(by_alias=True),
            )
        except httpx.HTTPError as exc:
            raise PublicationError(f"Publish request to {endpoint} failed: {exc}") from exc

        if not response.is_success:
            log.debug("Rejected graph: %s", json.dumps(graph, indent=2))
            raise PublicationError(
                f"Response Not OK. Error publishing graph to {endpoint}: "
                f"{response.status_code} {response.reason_phrase}"
            )

        try:
            body = PublishResponse.model_validate(response.json())
        except (json.JSONDecodeError, ValidationError) as exc:
            raise PublicationError(
                f"Unexpected response from {endpoint}: {response.text[:200]}"
            ) from exc

        return PublishResult(successful=body.successful, messages=tuple(body.messages))


@dataclass(slots=True)
class DryRunPublisher:
    """Log what would be published without contacting the registry."""

    config: RegistryConfig
    submitted: list[tuple[str, GraphDocument]] = field(
        default_factory=list[tuple[str, "GraphDocument"]]
    )

    async def publish(self, graph: GraphDocument, *, endpoint: str) -> PublishResult:
        log.info("Dry run: would publish to %s%s", self.config.assistant_base_url, endpoint)
        log.info(json.dumps(graph, indent=2))
        self.submitted.append((endpoint, graph))
        return PublishResult(successful=True)


if TYPE_CHECKING:
    _fetcher_check: DocumentFetcher = HttpDocumentFetcher()
    _publisher_check: GraphPublisher = RegistryPublisher(RegistryConfig())
    _dry_run_check: GraphPublisher = DryRunPublisher(RegistryConfig())
