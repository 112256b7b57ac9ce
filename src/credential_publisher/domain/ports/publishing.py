"""Ports for submitting graphs to the registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from credential_publisher.domain.types import GraphDocument


@dataclass(frozen=True, slots=True)
class PublishResult:
    successful: bool
    messages: tuple[str, ...] = field(default_factory=tuple)


@runtime_checkable
class GraphPublisher(Protocol):
    async def publish(self, graph: GraphDocument, *, endpoint: str) -> PublishResult: ...


__all__ = ["GraphPublisher", "PublishResult"]
