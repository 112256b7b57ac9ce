"""Application configuration helpers."""

from __future__ import annotations

from .env import env_flag, optional_env_var
from .errors import ConfigurationError, MissingConfigurationError, UnknownEnvironmentError
from .http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
    assistant_resilience,
    document_resilience,
    vocabulary_resilience,
)
from .registry import (
    ASSISTANT_BASE_URLS,
    REGISTRY_BASE_URLS,
    RegistryConfig,
    RegistryEnvironment,
    get_fetch_resilience,
    get_publish_resilience,
    get_registry_config,
    parse_environment,
)

__all__ = [
    "ASSISTANT_BASE_URLS",
    "REGISTRY_BASE_URLS",
    "CacheConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "RegistryConfig",
    "RegistryEnvironment",
    "ResilienceConfig",
    "RetryPolicy",
    "UnknownEnvironmentError",
    "assistant_resilience",
    "document_resilience",
    "env_flag",
    "get_fetch_resilience",
    "get_publish_resilience",
    "get_registry_config",
    "optional_env_var",
    "parse_environment",
    "vocabulary_resilience",
]
