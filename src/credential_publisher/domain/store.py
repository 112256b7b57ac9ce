"""Run-scoped store of canonical entities.

The store is the single source of truth while a run resolves references:

- ``records`` holds one :class:`StoreRecord` per canonical identifier
- the equivalence index maps every ``ceterms:sameAs`` value ever seen to the
  canonical identifier that claimed it last
- the reference graph remembers, in discovery order, which entities were found
  while processing which other entity (or source location)

A new store is created for every run and handed to the processor, extractor and
orderer explicitly; ``reset()`` exists for callers that reuse one instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .types import ID, SAME_AS, Entity, ctid_of, is_blank_id, same_as_of, with_same_as

if TYPE_CHECKING:
    from collections.abc import Iterator

    from credential_publisher.config.registry import RegistryConfig

log = getLogger(__name__)


@dataclass(slots=True)
class StoreRecord:
    """One canonical entity and how authoritative our copy of it is."""

    entity: Entity
    fetched: bool = False
    processed: bool = False
    source_location: str | None = None

    @property
    def id(self) -> str:
        return self.entity[ID]


def canonical_identity(entity: Entity, registry: RegistryConfig) -> Entity:
    """Return a copy of ``entity`` addressed by its registry resource URL.

    Entities without a CTID keep their identifier. A replaced identifier moves
    into ``ceterms:sameAs`` unless it is a graph-local blank identifier.
    """

    result = dict(entity)
    ctid = ctid_of(result)
    if ctid is None:
        return result

    canonical_id = registry.resource_url(ctid)
    identifier = result.get(ID)
    if identifier == canonical_id:
        return result
    if isinstance(identifier, str) and identifier and not is_blank_id(identifier):
        result[SAME_AS] = with_same_as(result, identifier)
    result[ID] = canonical_id
    return result


@dataclass(slots=True)
class EntityStore:
    _records: dict[str, StoreRecord] = field(default_factory=dict[str, StoreRecord], repr=False)
    _equivalents: dict[str, str] = field(default_factory=dict[str, str], repr=False)
    _references: dict[str, list[str]] = field(default_factory=dict[str, list[str]], repr=False)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._records

    def __iter__(self) -> Iterator[StoreRecord]:
        return iter(tuple(self._records.values()))

    @property
    def records(self) -> tuple[StoreRecord, ...]:
        """Records in first-registration order."""
        return tuple(self._records.values())

    @property
    def equivalents(self) -> dict[str, str]:
        return dict(self._equivalents)

    def register(
        self,
        entity: Entity,
        *,
        fetched: bool,
        registry: RegistryConfig,
        source_location: str | None = None,
        processed: bool = False,
        overwrite: bool = False,
    ) -> Entity:
        """Canonicalize ``entity`` and merge it into the store.

        An existing record is only replaced by a more authoritative registration:
        a fetched copy over an unfetched one, a processed copy over an unprocessed
        one, or an explicit ``overwrite``. A processed record is never demoted;
        a fetched-but-raw copy only upgrades its ``fetched`` flag.
        """

        canonical = canonical_identity(entity, registry)
        identifier = canonical.get(ID)
        if not isinstance(identifier, str) or not identifier:
            log.debug("Ignoring registration of entity without an identifier")
            return canonical

        existing = self._records.get(identifier)
        if existing is None:
            self._records[identifier] = StoreRecord(
                entity=canonical,
                fetched=fetched,
                processed=processed,
                source_location=source_location,
            )
        elif existing.processed and not processed:
            existing.fetched = existing.fetched or fetched
        elif (
            overwrite
            or (fetched and not existing.fetched)
            or (processed and not existing.processed)
        ):
            self._records[identifier] = StoreRecord(
                entity=canonical,
                fetched=fetched or existing.fetched,
                processed=processed,
                source_location=source_location or existing.source_location,
            )

        if source_location:
            self.add_reference(source_location, identifier)
        for alternate in same_as_of(canonical):
            self._equivalents[alternate] = identifier
        return canonical

    def get(self, identifier: str) -> StoreRecord | None:
        return self._records.get(identifier)

    def get_by_ctid(self, ctid: str) -> StoreRecord | None:
        """Return the first record carrying ``ctid``.

        Duplicate CTIDs on records of different identifiers are ambiguous; the
        earliest registration wins.
        """

        for record in self._records.values():
            if ctid_of(record.entity) == ctid:
                return record
        return None

    def get_fuzzy(self, identifier: str, ctid: str | None = None) -> StoreRecord | None:
        """Resolve by exact id, then the equivalence index, then CTID."""

        record = self._records.get(identifier)
        if record is not None:
            return record

        canonical_id = self._equivalents.get(identifier)
        if canonical_id is not None:
            record = self._records.get(canonical_id)
            if record is not None:
                return record

        return self.get_by_ctid(ctid) if ctid else None

    def add_reference(self, source: str, target: str) -> None:
        targets = self._references.setdefault(source, [])
        if target not in targets:
            targets.append(target)

    def references_from(self, identifier: str) -> tuple[str, ...]:
        return tuple(self._references.get(identifier, ()))

    def entities_that_reference(self, identifier: str) -> tuple[str, ...]:
        return tuple(
            source for source, targets in self._references.items() if identifier in targets
        )

    def unprocessed(self) -> tuple[StoreRecord, ...]:
        return tuple(record for record in self._records.values() if not record.processed)

    def reset(self) -> None:
        self._records.clear()
        self._equivalents.clear()
        self._references.clear()
