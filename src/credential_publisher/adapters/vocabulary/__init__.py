"""CTDL vocabulary adapter: the schema index used to resolve references."""

from __future__ import annotations

from .index import PUBLISH_ENDPOINTS, ClassMetadata, VocabularyIndex
from .loader import (
    SCHEMA_ENCODING_URLS,
    VocabularyError,
    download_vocabulary,
    load_vocabulary,
    parse_terms,
    read_vocabulary_terms,
)
from .schema import VocabularyTerm, merge_vocabularies

__all__ = [
    "PUBLISH_ENDPOINTS",
    "SCHEMA_ENCODING_URLS",
    "ClassMetadata",
    "VocabularyError",
    "VocabularyIndex",
    "VocabularyTerm",
    "download_vocabulary",
    "load_vocabulary",
    "merge_vocabularies",
    "parse_terms",
    "read_vocabulary_terms",
]
