from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import TYPE_CHECKING

import httpx
import pytest

from credential_publisher.adapters.http_resilience import ResilienceConfig
from credential_publisher.adapters.registry import (
    HttpDocumentFetcher,
    PublishRequest,
    PublishResponse,
    RegistryPublisher,
)
from credential_publisher.config.registry import RegistryConfig
from credential_publisher.domain.errors import FetchError, PublicationError
from credential_publisher.domain.ports.publishing import PublishResult
from tests.helpers.ctdl import certificate, ctdl_document, graph_document
from tests.helpers.http import make_client_factory

if TYPE_CHECKING:
    from credential_publisher.domain.ports.fetching import FetchedDocument

ASSISTANT = "https://sandbox.credentialengine.org/assistant"

Handler = Callable[[httpx.Request], httpx.Response]


def _fetcher(handler: Handler) -> HttpDocumentFetcher:
    return HttpDocumentFetcher(
        resilience=ResilienceConfig(name="test", cache=None),
        client_factory=make_client_factory(handler),
    )


def test_fetcher_returns_decoded_document() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=ctdl_document(certificate()))

    async def run() -> FetchedDocument:
        async with _fetcher(handler) as fetcher:
            return await fetcher.get_document("https://example.org/credential/1")

    document = asyncio.run(run())

    assert document.ok
    assert document.payload == ctdl_document(certificate())
    assert document.url == "https://example.org/credential/1"
    assert seen[0].headers["Accept"] == "application/json"


def test_fetcher_reports_final_url_after_redirect() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://example.org/new"})
        return httpx.Response(200, json={"@id": "https://example.org/new"})

    async def run() -> FetchedDocument:
        async with _fetcher(handler) as fetcher:
            return await fetcher.get_document("https://example.org/old")

    document = asyncio.run(run())

    assert document.url == "https://example.org/new"
    assert document.status_code == 200


def test_fetcher_keeps_non_json_responses() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="<html>Not Found</html>")

    document = asyncio.run(_fetcher(handler).get_document("https://example.org/missing"))

    assert document.payload is None
    assert document.ok is False
    assert document.reason == "Not Found"


def test_fetcher_wraps_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError, match="the request failed"):
        asyncio.run(_fetcher(handler).get_document("https://example.org/down"))


def _publisher(handler: Handler, config: RegistryConfig) -> RegistryPublisher:
    return RegistryPublisher(config, client_factory=make_client_factory(handler))


def test_publisher_posts_graph_on_behalf_of_organization(registry: RegistryConfig) -> None:
    seen: list[httpx.Request] = []
    graph = graph_document(certificate())

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"Successful": True, "Messages": None})

    publisher = _publisher(handler, registry)
    result = asyncio.run(publisher.publish(graph, endpoint="/credential/publishGraph"))

    assert result == PublishResult(successful=True)
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == f"{ASSISTANT}/credential/publishGraph"
    assert request.headers["Authorization"] == "ApiToken secret"
    assert json.loads(request.content) == {
        "PublishForOrganizationIdentifier": "ce-1234",
        "Publish": True,
        "GraphInput": graph,
    }


def test_publisher_surfaces_registry_messages(registry: RegistryConfig) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"Successful": False, "Messages": ["CTID already in use"]},
        )

    result = asyncio.run(
        _publisher(handler, registry).publish(
            graph_document(certificate()), endpoint="/credential/publishGraph"
        )
    )

    assert result.successful is False
    assert result.messages == ("CTID already in use",)


@pytest.mark.parametrize(
    ("response", "message"),
    [
        (httpx.Response(401, text="Unauthorized"), "Response Not OK"),
        (httpx.Response(200, text="<html></html>"), "Unexpected response"),
        (httpx.Response(200, json={"Messages": []}), "Unexpected response"),
    ],
)
def test_publisher_failures_raise(
    response: httpx.Response, message: str, registry: RegistryConfig
) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return response

    with pytest.raises(PublicationError, match=message) as excinfo:
        asyncio.run(
            _publisher(handler, registry).publish(
                graph_document(certificate()), endpoint="/credential/publishGraph"
            )
        )

    assert excinfo.value.critical is True


def test_publish_models_use_assistant_field_names() -> None:
    request = PublishRequest.model_validate(
        {"PublishForOrganizationIdentifier": "ce-1", "GraphInput": {"@graph": []}}
    )
    response = PublishResponse.model_validate({"Successful": True, "Extra": 1})

    assert request.publish is True
    assert request.model_dump(by_alias=True)["PublishForOrganizationIdentifier"] == "ce-1"
    assert response.messages == []
