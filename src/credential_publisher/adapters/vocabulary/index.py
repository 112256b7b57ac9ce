"""Queryable view of the merged CTDL vocabularies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from credential_publisher.domain.types import CONDITION_PROFILE_CLASS, CTID

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from credential_publisher.domain.ports.schema import SchemaIndex

    from .schema import VocabularyTerm

CTDL_NAMESPACES: Final[tuple[str, ...]] = ("ceterms:", "ceasn:", "qdata:")

_ORGANIZATION_ENDPOINT = "/organization/publishGraph"
_CREDENTIAL_ENDPOINT = "/credential/publishGraph"

PUBLISH_ENDPOINTS: Final[dict[str, str]] = {
    # Organizations
    "ceterms:CredentialOrganization": _ORGANIZATION_ENDPOINT,
    "ceterms:Organization": _ORGANIZATION_ENDPOINT,
    "ceterms:QACredentialOrganization": _ORGANIZATION_ENDPOINT,
    # Credentials
    "ceterms:Credential": _CREDENTIAL_ENDPOINT,
    "ceterms:ApprenticeshipCertificate": _CREDENTIAL_ENDPOINT,
    "ceterms:AssociateDegree": _CREDENTIAL_ENDPOINT,
    "ceterms:AssociateOfAppliedArtsDegree": _CREDENTIAL_ENDPOINT,
    "ceterms:AssociateOfAppliedScienceDegree": _CREDENTIAL_ENDPOINT,
    "ceterms:AssociateOfArtsDegree": _CREDENTIAL_ENDPOINT,
    "ceterms:AssociateOfScienceDegree": _CREDENTIAL_ENDPOINT,
    "ceterms:BachelorDegree": _CREDENTIAL_ENDPOINT,
    "ceterms:BachelorOfArtsDegree": _CREDENTIAL_ENDPOINT,
    "ceterms:BachelorOfScienceDegree": _CREDENTIAL_ENDPOINT,
    "ceterms:Badge": _CREDENTIAL_ENDPOINT,
    "ceterms:Certificate": _CREDENTIAL_ENDPOINT,
    "ceterms:CertificateOfCompletion": _CREDENTIAL_ENDPOINT,
    "ceterms:Certification": _CREDENTIAL_ENDPOINT,
    "ceterms:Degree": _CREDENTIAL_ENDPOINT,
    "ceterms:DigitalBadge": _CREDENTIAL_ENDPOINT,
    "ceterms:Diploma": _CREDENTIAL_ENDPOINT,
    "ceterms:DoctoralDegree": _CREDENTIAL_ENDPOINT,
    "ceterms:GeneralEducationDevelopment": _CREDENTIAL_ENDPOINT,
    "ceterms:JourneymanCertificate": _CREDENTIAL_ENDPOINT,
    "ceterms:License": _CREDENTIAL_ENDPOINT,
    "ceterms:MasterCertificate": _CREDENTIAL_ENDPOINT,
    "ceterms:MastersDegree": _CREDENTIAL_ENDPOINT,
    "ceterms:MasterOfArtsDegree": _CREDENTIAL_ENDPOINT,
    "ceterms:MasterOfScienceDegree": _CREDENTIAL_ENDPOINT,
    "ceterms:MicroCredential": _CREDENTIAL_ENDPOINT,
    "ceterms:OpenBadge": _CREDENTIAL_ENDPOINT,
    "ceterms:ProfessionalDoctorate": _CREDENTIAL_ENDPOINT,
    "ceterms:QualityAssuranceCredential": _CREDENTIAL_ENDPOINT,
    "ceterms:ResearchDoctorate": _CREDENTIAL_ENDPOINT,
    "ceterms:SecondarySchoolDiploma": _CREDENTIAL_ENDPOINT,
    "ceterms:SpecialistDegree": _CREDENTIAL_ENDPOINT,
    # Learning opportunities
    "ceterms:Course": "/course/publishGraph",
    "ceterms:LearningOpportunityProfile": "/learningopportunity/publishGraph",
    "ceterms:LearningProgram": "/learningprogram/publishGraph",
}


@dataclass(frozen=True, slots=True)
class ClassMetadata:
    class_name: str
    sub_class_of: str | None
    is_primary: bool
    publish_endpoint: str | None


@dataclass(frozen=True, slots=True)
class VocabularyIndex:
    """Answers structural questions about vocabulary classes and properties.

    Built once from merged terms and never modified afterwards. Property
    domains are matched literally: the CTDL encodings list every concrete class
    a property applies to, so no inheritance is applied here.
    """

    top_level_classes: frozenset[str]
    parents: Mapping[str, str]
    properties_by_class: Mapping[str, tuple[str, ...]]
    ranges: Mapping[str, tuple[str, ...]]
    known_classes: frozenset[str] = frozenset()
    endpoints: Mapping[str, str] = field(default_factory=lambda: dict(PUBLISH_ENDPOINTS))

    @classmethod
    def from_terms(
        cls,
        terms: Iterable[VocabularyTerm],
        *,
        endpoints: Mapping[str, str] | None = None,
    ) -> VocabularyIndex:
        top_level: frozenset[str] = frozenset()
        parents: dict[str, str] = {}
        properties_by_class: dict[str, list[str]] = {}
        ranges: dict[str, tuple[str, ...]] = {}
        classes: set[str] = set()

        for term in terms:
            if term.id == CTID:
                top_level = frozenset(term.domain_includes)
            if term.is_class:
                classes.add(term.id)
                parent = next(
                    (uri for uri in term.sub_class_of if uri.startswith(CTDL_NAMESPACES)),
                    None,
                )
                if parent is not None:
                    parents[term.id] = parent
            if term.is_property:
                ranges[term.id] = tuple(term.range_includes)
                for class_name in term.domain_includes:
                    properties_by_class.setdefault(class_name, []).append(term.id)

        return cls(
            top_level_classes=top_level,
            parents=parents,
            properties_by_class={
                name: tuple(props) for name, props in properties_by_class.items()
            },
            ranges=ranges,
            known_classes=frozenset(classes),
            endpoints=dict(PUBLISH_ENDPOINTS if endpoints is None else endpoints),
        )

    def is_top_level(self, class_name: str) -> bool:
        return class_name in self.top_level_classes

    def parent_class(self, class_name: str) -> str | None:
        return self.parents.get(class_name)

    def ancestors_of(self, class_name: str) -> list[str]:
        """Return the parent chain of ``class_name``, nearest first; stops on cycles."""

        chain: list[str] = []
        seen = {class_name}
        current = self.parents.get(class_name)
        while current is not None and current not in seen:
            chain.append(current)
            seen.add(current)
            current = self.parents.get(current)
        return chain

    def is_descendant_of(self, class_name: str, ancestor: str) -> bool:
        if class_name == ancestor:
            return self._is_known(class_name)
        return ancestor in self.ancestors_of(class_name)

    def publish_endpoint_for(self, class_name: str) -> str | None:
        for candidate in (class_name, *self.ancestors_of(class_name)):
            endpoint = self.endpoints.get(candidate)
            if endpoint is not None:
                return endpoint
        return None

    def properties_for(self, class_name: str) -> tuple[str, ...]:
        return self.properties_by_class.get(class_name, ())

    def range_of(self, property_name: str) -> tuple[str, ...]:
        return self.ranges.get(property_name, ())

    def pointer_properties_for(self, class_name: str) -> tuple[str, ...]:
        return tuple(
            prop
            for prop in self.properties_for(class_name)
            if any(self.is_top_level(value) for value in self.range_of(prop))
        )

    def condition_profile_properties_for(self, class_name: str) -> tuple[str, ...]:
        return tuple(
            prop
            for prop in self.properties_for(class_name)
            if CONDITION_PROFILE_CLASS in self.range_of(prop)
        )

    def class_metadata(self, class_name: str) -> ClassMetadata:
        return ClassMetadata(
            class_name=class_name,
            sub_class_of=self.parent_class(class_name),
            is_primary=self.is_top_level(class_name),
            publish_endpoint=self.publish_endpoint_for(class_name),
        )

    def _is_known(self, class_name: str) -> bool:
        return class_name in self.known_classes or class_name in self.top_level_classes


if TYPE_CHECKING:
    _schema_check: SchemaIndex = VocabularyIndex.from_terms([])
