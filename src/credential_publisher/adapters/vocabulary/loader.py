"""Load the vocabulary index from disk and refresh it from credreg.net."""

from __future__ import annotations

import asyncio
import json
from importlib import resources
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from pydantic import TypeAdapter, ValidationError

from credential_publisher.adapters.http_resilience import ResilienceConfig, ResilientClient
from credential_publisher.common.storage import get_vocabulary_path
from credential_publisher.config.http_resilience import vocabulary_resilience
from credential_publisher.domain.types import GRAPH

from .index import VocabularyIndex
from .schema import VocabularyTerm, merge_vocabularies

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

log = getLogger(__name__)

SCHEMA_ENCODING_URLS: Final[tuple[str, ...]] = (
    "https://credreg.net/ctdl/schema/encoding/json",
    "https://credreg.net/ctdlasn/schema/encoding/json",
    "https://credreg.net/qdata/schema/encoding/json",
)

BUNDLED_VOCABULARY: Final[str] = "vocabulary.json"

_TERMS = TypeAdapter(list[VocabularyTerm])


class VocabularyError(RuntimeError):
    """Raised when a vocabulary file or download cannot be turned into terms."""


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def parse_terms(document: object, *, source: str) -> list[VocabularyTerm]:
    """Return the terms of a schema encoding, either a ``@graph`` document or a bare list."""

    raw: Any = document.get(GRAPH) if isinstance(document, dict) else document
    if not isinstance(raw, list):
        raise VocabularyError(f"Vocabulary {source} does not contain a list of terms")
    # Encodings carry the odd non-term node (e.g. the schema description itself).
    nodes = [node for node in raw if isinstance(node, dict) and "@id" in node]
    try:
        return _TERMS.validate_python(nodes)
    except ValidationError as exc:
        raise VocabularyError(f"Vocabulary {source} contains malformed terms: {exc}") from exc


def read_vocabulary_terms(path: Path | None = None) -> list[VocabularyTerm]:
    """Read terms from ``path``, the downloaded file, or the bundled subset, in that order."""

    candidate = path if path is not None else get_vocabulary_path()
    if path is not None or candidate.exists():
        log.debug("Loading vocabulary from %s", candidate)
        try:
            document = json.loads(candidate.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise VocabularyError(f"Unable to read vocabulary file {candidate}: {exc}") from exc
        return parse_terms(document, source=str(candidate))

    log.debug("Loading bundled vocabulary subset")
    bundled = resources.files(__package__).joinpath("data", BUNDLED_VOCABULARY)
    document = json.loads(bundled.read_text(encoding="utf-8"))
    return parse_terms(document, source=BUNDLED_VOCABULARY)


def load_vocabulary(path: Path | None = None) -> VocabularyIndex:
    terms = read_vocabulary_terms(path)
    index = VocabularyIndex.from_terms(terms)
    log.info(
        "Loaded vocabulary: %d terms, %d top-level classes",
        len(terms),
        len(index.top_level_classes),
    )
    return index


def download_vocabulary(
    destination: Path | None = None,
    *,
    urls: Sequence[str] = SCHEMA_ENCODING_URLS,
    resilience: ResilienceConfig | None = None,
    client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
) -> Path:
    """Download the schema encodings, merge them and write the merged ``@graph``."""

    target = destination if destination is not None else get_vocabulary_path()
    config = resilience or vocabulary_resilience()
    term_lists = asyncio.run(_fetch_term_lists(urls, config, client_factory))
    merged = merge_vocabularies(*term_lists)

    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {GRAPH: [term.model_dump(by_alias=True, exclude_defaults=True) for term in merged]}
    target.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    log.info("Wrote %d vocabulary terms to %s", len(merged), target)
    return target


async def _fetch_term_lists(
    urls: Sequence[str],
    config: ResilienceConfig,
    client_factory: Callable[[ResilienceConfig], ResilientClient],
) -> list[list[VocabularyTerm]]:
    term_lists: list[list[VocabularyTerm]] = []
    async with client_factory(config) as client:
        for url in urls:
            log.info("Downloading vocabulary %s", url)
            response = await client.get(url)
            response.raise_for_status()
            try:
                document = response.json()
            except json.JSONDecodeError as exc:
                raise VocabularyError(f"Vocabulary {url} did not return JSON") from exc
            term_lists.append(parse_terms(document, source=url))
    return term_lists
