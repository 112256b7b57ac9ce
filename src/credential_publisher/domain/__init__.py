"""Entity graph normalization and publication ordering.

Flow for one run:
1) source documents are registered in an ``EntityStore``
2) the ``EntityProcessor`` canonicalizes identifiers and resolves references,
   fetching linked documents through the ``DocumentFetcher`` port
3) ``order_for_publication`` picks the publishable entities and sorts them
4) ``extract_graph`` assembles one graph per entity for the ``GraphPublisher``
"""

from __future__ import annotations

from .errors import (
    DocumentError,
    FetchError,
    IdentityError,
    InvalidRangeError,
    Issue,
    MissingCtidError,
    PublicationError,
    PublisherError,
    RangeError,
)
from .graph import extract_graph
from .ordering import PublicationTier, order_for_publication, publication_tier
from .processor import EntityProcessor
from .publishing import PublicationRunResult, publish_sources
from .references import ReferenceKind, classify_reference
from .store import EntityStore, StoreRecord, canonical_identity

__all__ = [
    "DocumentError",
    "EntityProcessor",
    "EntityStore",
    "FetchError",
    "IdentityError",
    "InvalidRangeError",
    "Issue",
    "MissingCtidError",
    "PublicationError",
    "PublicationRunResult",
    "PublicationTier",
    "PublisherError",
    "RangeError",
    "ReferenceKind",
    "StoreRecord",
    "canonical_identity",
    "classify_reference",
    "extract_graph",
    "order_for_publication",
    "publication_tier",
    "publish_sources",
]
