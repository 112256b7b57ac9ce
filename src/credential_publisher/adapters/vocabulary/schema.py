"""Pydantic models for terms of the CTDL JSON schema encodings."""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

RDF_PROPERTY: Final[str] = "rdf:Property"
RDFS_CLASS: Final[str] = "rdfs:Class"


def _as_list(value: object) -> object:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return value


class VocabularyTerm(BaseModel):
    """One class or property; labels, comments and the rest ride along as extras."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(alias="@id")
    type: list[str] = Field(default_factory=list, alias="@type")
    sub_class_of: list[str] = Field(default_factory=list, alias="rdfs:subClassOf")
    domain_includes: list[str] = Field(default_factory=list, alias="schema:domainIncludes")
    range_includes: list[str] = Field(default_factory=list, alias="schema:rangeIncludes")

    _normalize_lists = field_validator(
        "type",
        "sub_class_of",
        "domain_includes",
        "range_includes",
        mode="before",
    )(_as_list)

    @property
    def is_property(self) -> bool:
        return RDF_PROPERTY in self.type

    @property
    def is_class(self) -> bool:
        return RDFS_CLASS in self.type


def merge_vocabularies(*term_lists: list[VocabularyTerm]) -> list[VocabularyTerm]:
    """Merge term lists by ``@id``.

    The first occurrence of a term wins; later occurrences only contribute the
    domain and range URIs the earlier one was missing. Inputs are not mutated.
    """

    merged: dict[str, VocabularyTerm] = {}
    for terms in term_lists:
        for term in terms:
            existing = merged.get(term.id)
            if existing is None:
                merged[term.id] = term.model_copy(deep=True)
                continue
            existing.domain_includes.extend(
                uri for uri in term.domain_includes if uri not in existing.domain_includes
            )
            existing.range_includes.extend(
                uri for uri in term.range_includes if uri not in existing.range_includes
            )
    return list(merged.values())


__all__ = ["RDFS_CLASS", "RDF_PROPERTY", "VocabularyTerm", "merge_vocabularies"]
