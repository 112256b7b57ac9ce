"""Resilience profiles for the publisher's HTTP clients.

A run talks to three kinds of servers, each with its own profile:

- arbitrary hosts serving linked documents (cached, retried, throttled)
- the registry assistant API (never cached, submissions never retried)
- credreg.net for vocabulary encodings (retried, cached in memory only)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Literal

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping

JSON_HEADERS: Final[dict[str, str]] = {"Accept": "application/json"}
TRANSIENT_STATUSES: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})

DOCUMENT_TIMEOUT_SECONDS = 30.0
ASSISTANT_TIMEOUT_SECONDS = 120.0
VOCABULARY_TIMEOUT_SECONDS = 60.0
# Upper bound for reusing a cached linked document across runs.
DOCUMENT_CACHE_TTL_SECONDS = 24 * 60 * 60.0


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    total: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = frozenset({"GET", "HEAD"})
    status_forcelist: frozenset[int] = TRANSIENT_STATUSES
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )
    backoff_jitter: float = 1.0


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    enabled: bool = True
    backend: Literal["sqlite", "memory"] = "memory"
    sqlite_path: str | None = None
    default_ttl_seconds: float | None = None
    refresh_ttl_on_access: bool = False


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = DOCUMENT_TIMEOUT_SECONDS
    follow_redirects: bool = True
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = field(default_factory=CacheConfig)
    default_headers: Mapping[str, str] | None = None


def document_resilience() -> ResilienceConfig:
    """Profile for dereferencing source and linked documents on any host."""

    return ResilienceConfig(
        name="documents",
        timeout_seconds=DOCUMENT_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        cache=CacheConfig(backend="sqlite", default_ttl_seconds=DOCUMENT_CACHE_TTL_SECONDS),
        default_headers=JSON_HEADERS,
    )


def assistant_resilience(base_url: str, api_key: str) -> ResilienceConfig:
    """Profile for the registry assistant API.

    Only reads are retried: a timed-out submission may still have been accepted.
    """

    return ResilienceConfig(
        name="registry-assistant",
        base_url=base_url,
        timeout_seconds=ASSISTANT_TIMEOUT_SECONDS,
        follow_redirects=False,
        ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        retry=RetryPolicy(total=2),
        cache=None,
        default_headers={**JSON_HEADERS, "Authorization": f"ApiToken {api_key}"},
    )


def vocabulary_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="vocabulary",
        timeout_seconds=VOCABULARY_TIMEOUT_SECONDS,
        retry=RetryPolicy(total=3),
        cache=CacheConfig(backend="memory"),
        default_headers=JSON_HEADERS,
    )
