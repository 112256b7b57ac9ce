from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from credential_publisher.domain.errors import FetchError, InvalidRangeError, MissingCtidError
from credential_publisher.domain.graph import extract_graph
from credential_publisher.domain.processor import EntityProcessor
from credential_publisher.domain.types import is_blank_id
from tests.helpers.ctdl import (
    CERT_CTID,
    COURSE_CTID,
    ORG_CTID,
    SANDBOX_RESOURCES,
    FakeDocumentFetcher,
    certificate,
    ctdl_document,
    graph_document,
    organization,
)

if TYPE_CHECKING:
    from credential_publisher.adapters.vocabulary import VocabularyIndex
    from credential_publisher.config.registry import RegistryConfig
    from credential_publisher.domain.store import EntityStore
    from credential_publisher.domain.types import Entity

CERT_ID = f"{SANDBOX_RESOURCES}{CERT_CTID}"
ORG_ID = f"{SANDBOX_RESOURCES}{ORG_CTID}"


def _processor(
    store: EntityStore,
    schema: VocabularyIndex,
    registry: RegistryConfig,
    fetcher: FakeDocumentFetcher | None = None,
) -> EntityProcessor:
    return EntityProcessor(store=store, schema=schema, registry=registry, fetcher=fetcher)


def _process(processor: EntityProcessor, entity: Entity) -> Entity:
    return asyncio.run(processor.process_entity(entity))


def _qa_organization(**extra: object) -> Entity:
    return {
        "@type": "ceterms:QACredentialOrganization",
        "ceterms:name": {"en-US": "Example Town Cyber Security Jobs Center"},
        "ceterms:subjectWebpage": "https://example.com/#cybersecurityjobscenter",
        **extra,
    }


def test_badge_gets_registry_identifier(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    entity = ctdl_document(
        {
            "@id": "http://example.com/credential/1",
            "@type": "ceterms:Badge",
            "ceterms:ctid": "ce-9999",
        }
    )

    processed = _process(_processor(store, schema, registry), entity)

    assert processed["ceterms:ctid"] == "ce-9999"
    assert processed["@id"] == f"{SANDBOX_RESOURCES}ce-9999"
    assert processed["ceterms:sameAs"] == ["http://example.com/credential/1"]
    assert "@context" not in processed
    record = store.get(processed["@id"])
    assert record is not None
    assert record.processed is True


def test_missing_ctid_is_an_identity_error(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    entity = certificate("http://example.com/credential/1", ctid=None, entity_type="ceterms:Badge")

    with pytest.raises(MissingCtidError, match="CTID"):
        _process(_processor(store, schema, registry), entity)

    assert len(store) == 0


def test_embedded_only_types_are_returned_unchanged(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    entity = {"@type": "ceterms:Place", "ceterms:postalCode": "97201"}

    assert _process(_processor(store, schema, registry), entity) is entity
    assert len(store) == 0


def test_embedded_qa_organization_becomes_blank_node(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    entity = certificate(**{"ceterms:recognizedBy": [_qa_organization()]})

    processed = _process(_processor(store, schema, registry), entity)

    (blank_id,) = processed["ceterms:recognizedBy"]
    assert is_blank_id(blank_id)
    blank = store.get(blank_id)
    assert blank is not None
    assert blank.entity["ceterms:name"] == {"en-US": "Example Town Cyber Security Jobs Center"}
    assert blank.source_location == CERT_ID

    graph = extract_graph(store, schema, CERT_ID)
    assert graph is not None
    assert [node["@id"] for node in graph["@graph"]] == [CERT_ID, blank_id]


def test_each_anonymous_object_gets_its_own_blank_identifier(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    entity = certificate(
        **{
            "ceterms:recognizedBy": [_qa_organization(), _qa_organization()],
            "ceterms:accreditedBy": _qa_organization(),
        }
    )

    processed = _process(_processor(store, schema, registry), entity)

    identifiers = [*processed["ceterms:recognizedBy"], *processed["ceterms:accreditedBy"]]
    assert len(set(identifiers)) == 3
    assert all(is_blank_id(identifier) for identifier in identifiers)


def test_shared_blank_node_is_registered_once(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    shared = _qa_organization(**{"@id": "_:x"})
    entity = certificate(
        **{
            "ceterms:recognizedBy": [shared],
            "ceterms:accreditedBy": [dict(shared)],
            "ceterms:approvedBy": "_:x",
        }
    )

    processed = _process(_processor(store, schema, registry), entity)

    assert processed["ceterms:recognizedBy"] == ["_:x"]
    assert processed["ceterms:accreditedBy"] == ["_:x"]
    assert processed["ceterms:approvedBy"] == ["_:x"]
    assert len(store) == 2
    graph = extract_graph(store, schema, CERT_ID)
    assert graph is not None
    assert [node["@id"] for node in graph["@graph"]] == [CERT_ID, "_:x"]


def test_anonymous_object_keeps_original_identifier_as_equivalent(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    embedded = _qa_organization(**{"@id": "https://example.com/qa"})
    entity = certificate(
        **{"ceterms:recognizedBy": [embedded], "ceterms:accreditedBy": [dict(embedded)]}
    )

    processed = _process(_processor(store, schema, registry), entity)

    (blank_id,) = processed["ceterms:recognizedBy"]
    assert is_blank_id(blank_id)
    assert processed["ceterms:accreditedBy"] == [blank_id]
    record = store.get(blank_id)
    assert record is not None
    assert record.entity["ceterms:sameAs"] == ["https://example.com/qa"]


def test_embedded_named_entity_is_hoisted(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    entity = certificate(**{"ceterms:ownedBy": organization()})

    processed = _process(_processor(store, schema, registry), entity)

    assert processed["ceterms:ownedBy"] == [ORG_ID]
    record = store.get(ORG_ID)
    assert record is not None
    assert record.fetched is False
    assert record.processed is False
    graph = extract_graph(store, schema, CERT_ID)
    assert graph is not None
    assert [node["@id"] for node in graph["@graph"]] == [CERT_ID]


def test_registry_reference_is_rewritten_for_current_environment(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    fetcher = FakeDocumentFetcher()
    entity = certificate(
        **{"ceterms:ownedBy": f"https://credentialengineregistry.org/resources/{ORG_CTID}"}
    )

    processed = _process(_processor(store, schema, registry, fetcher), entity)

    assert processed["ceterms:ownedBy"] == [ORG_ID]
    assert fetcher.requested == []


def test_remote_reference_is_fetched_and_registered(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    fetcher = FakeDocumentFetcher({"https://example.org/org/1": ctdl_document(organization())})
    entity = certificate(**{"ceterms:ownedBy": ["https://example.org/org/1"]})

    processed = _process(_processor(store, schema, registry, fetcher), entity)

    assert processed["ceterms:ownedBy"] == [ORG_ID]
    record = store.get(ORG_ID)
    assert record is not None
    assert record.fetched is True
    assert record.source_location == CERT_ID
    assert record.entity["ceterms:sameAs"] == ["https://example.org/org/1"]
    assert "@context" not in record.entity


def test_redirected_reference_remembers_requested_url(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    fetcher = FakeDocumentFetcher(
        {"https://example.org/org/1": ctdl_document(organization())},
        redirects={"http://example.org/org/1": "https://example.org/org/1"},
    )
    entity = certificate(**{"ceterms:ownedBy": "http://example.org/org/1"})

    processed = _process(_processor(store, schema, registry, fetcher), entity)

    assert processed["ceterms:ownedBy"] == [ORG_ID]
    record = store.get(ORG_ID)
    assert record is not None
    assert record.entity["ceterms:sameAs"] == [
        "http://example.org/org/1",
        "https://example.org/org/1",
    ]


def test_remote_reference_from_graph_document_uses_first_node(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    fetcher = FakeDocumentFetcher(
        {"https://example.org/org/1": graph_document(organization(), {"@id": "_:extra"})}
    )
    entity = certificate(**{"ceterms:ownedBy": "https://example.org/org/1"})

    processed = _process(_processor(store, schema, registry, fetcher), entity)

    assert processed["ceterms:ownedBy"] == [ORG_ID]
    assert store.get("_:extra") is None


def test_remote_reference_without_ctid_is_shared_blank_node(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    url = "https://example.org/org/no-ctid"
    fetcher = FakeDocumentFetcher({url: ctdl_document(organization(url, ctid=None))})
    processor = _processor(store, schema, registry, fetcher)
    other_id = f"{SANDBOX_RESOURCES}{COURSE_CTID}"

    first = _process(processor, certificate(**{"ceterms:ownedBy": url}))
    second = _process(
        processor,
        certificate(
            "https://example.org/course/1",
            ctid=COURSE_CTID,
            entity_type="ceterms:Course",
            **{"ceterms:offeredBy": url},
        ),
    )

    (blank_id,) = first["ceterms:ownedBy"]
    assert is_blank_id(blank_id)
    assert second["ceterms:offeredBy"] == [blank_id]
    assert fetcher.requested == [url]
    for root_id in (CERT_ID, other_id):
        graph = extract_graph(store, schema, root_id)
        assert graph is not None
        assert [node["@id"] for node in graph["@graph"]] == [root_id, blank_id]


@pytest.mark.parametrize(
    ("document", "status"),
    [
        (ctdl_document(organization()), 500),
        ({"@context": "https://schema.org", **organization()}, 200),
        (ctdl_document(organization("https://example.org/elsewhere")), 200),
        (ctdl_document(organization("https://example.org/elsewhere", ctid=None)), 200),
        (graph_document(), 200),
        (["not", "an", "object"], 200),
    ],
)
def test_failed_fetch_leaves_reference_unresolved(
    document: object,
    status: int,
    store: EntityStore,
    schema: VocabularyIndex,
    registry: RegistryConfig,
) -> None:
    url = "https://example.org/org/1"
    fetcher = FakeDocumentFetcher({url: document}, statuses={url: status})
    processor = _processor(store, schema, registry, fetcher)

    processed = _process(processor, certificate(**{"ceterms:ownedBy": url}))

    assert processed["ceterms:ownedBy"] == [url]
    assert len(store) == 1
    assert [issue.kind for issue in processor.issues] == ["FetchError"]
    assert processor.issues[0].subject == CERT_ID


def test_fetch_and_register_raises_for_mismatched_identifier(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    url = "https://example.org/org/1"
    fetcher = FakeDocumentFetcher({url: ctdl_document(organization("https://example.org/other"))})
    processor = _processor(store, schema, registry, fetcher)

    with pytest.raises(FetchError, match="requested URL"):
        asyncio.run(processor.fetch_and_register(url))


def test_condition_profile_stays_embedded_with_resolved_targets(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    course_url = "https://example.org/course/1"
    staging_graph_url = f"https://staging.credentialengineregistry.org/graph/{ORG_CTID}"
    fetcher = FakeDocumentFetcher(
        {
            course_url: ctdl_document(
                certificate(course_url, ctid=COURSE_CTID, entity_type="ceterms:Course")
            )
        }
    )
    profile = {
        "@type": "ceterms:ConditionProfile",
        "ceterms:description": {"en-US": "Complete the course"},
        "ceterms:targetLearningOpportunity": [course_url],
        "ceterms:assertedBy": _qa_organization(),
        "ceterms:alternativeCondition": {
            "@type": "ceterms:ConditionProfile",
            "ceterms:targetCredential": staging_graph_url,
        },
    }
    entity = certificate(**{"ceterms:requires": profile})

    processed = _process(_processor(store, schema, registry, fetcher), entity)

    (resolved,) = processed["ceterms:requires"]
    assert resolved["ceterms:targetLearningOpportunity"] == [f"{SANDBOX_RESOURCES}{COURSE_CTID}"]
    assert resolved["ceterms:assertedBy"] == [_qa_organization()]
    (alternative,) = resolved["ceterms:alternativeCondition"]
    assert alternative["ceterms:targetCredential"] == [ORG_ID]
    assert store.get(f"{SANDBOX_RESOURCES}{COURSE_CTID}") is not None
    assert not any(is_blank_id(record.id) for record in store)


def test_invalid_range_skips_entity(
    store: EntityStore, schema: VocabularyIndex, registry: RegistryConfig
) -> None:
    entity = certificate(
        **{"ceterms:ownedBy": [organization(), {"@type": "ceterms:Course", "ceterms:ctid": "x"}]}
    )

    with pytest.raises(InvalidRangeError) as excinfo:
        _process(_processor(store, schema, registry), entity)

    assert "ceterms:ownedBy [position 2]" in excinfo.value.message
    assert store.get(CERT_ID) is None
