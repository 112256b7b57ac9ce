"""Checks on source documents before their entities enter the store."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .types import CONTEXT, CTDL_CONTEXT, GRAPH, array_of

if TYPE_CHECKING:
    from .types import Entity

log = getLogger(__name__)


def is_ctdl_document(document: object, url: str) -> bool:
    """Return True when ``document`` is a JSON object declaring only the CTDL context."""

    if not isinstance(document, dict):
        log.error("URL %s did not return a JSON object.", url)
        return False

    context = document.get(CONTEXT)
    if context is None:
        log.error("No @context found in document %s", url)
        return False

    if array_of(context) != [CTDL_CONTEXT]:
        log.error("URL %s did not return expected @context. Use %s", url, CTDL_CONTEXT)
        return False
    return True


def is_graph_document(document: object, url: str) -> bool:
    if not isinstance(document, dict):
        return False
    graph = document.get(GRAPH)
    if graph is None:
        return False
    if not isinstance(graph, list):
        log.warning("Document %s has a non-list @graph; treating it as a single node.", url)
    return True


def graph_entities(document: Entity) -> list[Entity]:
    """Return the JSON objects listed in the document's ``@graph``."""

    return [node for node in array_of(document.get(GRAPH)) if isinstance(node, dict)]
