"""Port for the read-only vocabulary oracle."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SchemaIndex(Protocol):
    """Answers structural questions about vocabulary classes and properties."""

    def is_top_level(self, class_name: str) -> bool:
        """Return True when instances carry a CTID and are published on their own."""
        ...

    def parent_class(self, class_name: str) -> str | None: ...

    def publish_endpoint_for(self, class_name: str) -> str | None: ...

    def pointer_properties_for(self, class_name: str) -> tuple[str, ...]:
        """Properties of ``class_name`` whose range includes a top-level class."""
        ...

    def condition_profile_properties_for(self, class_name: str) -> tuple[str, ...]:
        """Properties of ``class_name`` that may embed a condition profile."""
        ...

    def range_of(self, property_name: str) -> tuple[str, ...]: ...

    def is_descendant_of(self, class_name: str, ancestor: str) -> bool: ...


__all__ = ["SchemaIndex"]
