"""Error taxonomy for resolving and publishing registry graphs.

Resolution-phase errors are local: the offending entity or reference is skipped
and the run carries on. Errors flagged ``critical`` end the run.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger

from .types import ordinal

log = getLogger(__name__)


class PublisherError(RuntimeError):
    """Base class for every error surfaced to the operator."""

    def __init__(self, message: str, *, critical: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.critical = critical


class IdentityError(PublisherError):
    """A top-level entity cannot be given a durable identity."""


class MissingCtidError(IdentityError):
    def __init__(self, entity_id: str) -> None:
        super().__init__(f"No CTID found in entity {entity_id}")
        self.entity_id = entity_id


class RangeError(PublisherError):
    """An embedded value does not fit the declared range of its property."""


class InvalidRangeError(RangeError):
    def __init__(self, *, entity_id: str, prop: str, position: int, value_type: str) -> None:
        super().__init__(
            f"Invalid value of type {value_type} for property {prop} "
            f"{ordinal(position)} in entity {entity_id}"
        )
        self.entity_id = entity_id
        self.prop = prop
        self.position = position
        self.value_type = value_type


class FetchError(PublisherError):
    """A document could not be retrieved or failed validation."""

    def __init__(self, url: str, reason: str, *, critical: bool = False) -> None:
        super().__init__(f"Error fetching {url}: {reason}", critical=critical)
        self.url = url
        self.reason = reason


class DocumentError(PublisherError):
    """A source document does not contain CTDL JSON-LD."""


class PublicationError(PublisherError):
    """The registry rejected a submitted graph."""

    def __init__(self, message: str, *, messages: tuple[str, ...] = ()) -> None:
        super().__init__(message, critical=True)
        self.messages = messages


@dataclass(frozen=True, slots=True)
class Issue:
    """Non-fatal problem recorded during a run."""

    kind: str
    message: str
    subject: str | None = None

    @classmethod
    def from_error(cls, error: PublisherError, *, subject: str | None = None) -> Issue:
        return cls(kind=type(error).__name__, message=error.message, subject=subject)


def handle_error(error: PublisherError) -> None:
    """Report ``error``; critical errors are re-raised to stop the run."""

    log.error(error.message)
    if error.critical:
        raise error
