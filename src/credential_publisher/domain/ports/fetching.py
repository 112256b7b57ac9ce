"""Ports for dereferencing linked documents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class FetchedDocument:
    """Decoded response for one document request.

    ``payload`` is ``None`` when the body was not JSON.
    """

    url: str
    status_code: int
    payload: object | None = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@runtime_checkable
class DocumentFetcher(Protocol):
    async def get_document(self, url: str) -> FetchedDocument: ...


__all__ = ["DocumentFetcher", "FetchedDocument"]
