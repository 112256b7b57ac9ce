"""Public interface for the Credential Registry adapter."""

from __future__ import annotations

from .client import DryRunPublisher, HttpDocumentFetcher, RegistryPublisher
from .schema import PublishRequest, PublishResponse

__all__ = [
    "DryRunPublisher",
    "HttpDocumentFetcher",
    "PublishRequest",
    "PublishResponse",
    "RegistryPublisher",
]
