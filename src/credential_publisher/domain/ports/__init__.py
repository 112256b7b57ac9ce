"""Interfaces the domain expects adapters to implement."""

from __future__ import annotations

from .fetching import DocumentFetcher, FetchedDocument
from .publishing import GraphPublisher, PublishResult
from .schema import SchemaIndex

__all__ = [
    "DocumentFetcher",
    "FetchedDocument",
    "GraphPublisher",
    "PublishResult",
    "SchemaIndex",
]
