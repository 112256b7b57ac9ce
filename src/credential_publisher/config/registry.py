"""Credential Registry configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from .env import env_flag, optional_env_var
from .errors import MissingConfigurationError, UnknownEnvironmentError
from .http_resilience import ResilienceConfig, assistant_resilience, document_resilience


class RegistryEnvironment(StrEnum):
    SANDBOX = "sandbox"
    STAGING = "staging"
    PRODUCTION = "production"


REGISTRY_BASE_URLS: Final[dict[RegistryEnvironment, str]] = {
    RegistryEnvironment.SANDBOX: "https://sandbox.credentialengineregistry.org",
    RegistryEnvironment.STAGING: "https://staging.credentialengineregistry.org",
    RegistryEnvironment.PRODUCTION: "https://credentialengineregistry.org",
}

ASSISTANT_BASE_URLS: Final[dict[RegistryEnvironment, str]] = {
    RegistryEnvironment.SANDBOX: "https://sandbox.credentialengine.org/assistant",
    RegistryEnvironment.STAGING: "https://staging.credentialengine.org/assistant",
    RegistryEnvironment.PRODUCTION: "https://credentialengine.org/assistant",
}


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    """Where and on whose behalf graphs are published."""

    environment: RegistryEnvironment = RegistryEnvironment.SANDBOX
    api_key: str = ""
    organization_ctid: str = ""
    dry_run: bool = False

    @property
    def base_url(self) -> str:
        return REGISTRY_BASE_URLS[self.environment]

    @property
    def assistant_base_url(self) -> str:
        return ASSISTANT_BASE_URLS[self.environment]

    @property
    def resources_prefix(self) -> str:
        return f"{self.base_url}/resources/"

    def resource_url(self, ctid: str) -> str:
        return f"{self.resources_prefix}{ctid}"

    def graph_url(self, ctid: str) -> str:
        return f"{self.base_url}/graph/{ctid}"


def parse_environment(value: str) -> RegistryEnvironment:
    try:
        return RegistryEnvironment(value.strip().lower())
    except ValueError as exc:
        raise UnknownEnvironmentError(value, RegistryEnvironment) from exc


def get_registry_config(
    *,
    environment: str | None = None,
    organization_ctid: str | None = None,
    dry_run: bool | None = None,
) -> RegistryConfig:
    """Build the registry configuration from the environment plus CLI overrides.

    The API key and organization CTID may only be omitted for dry runs, since
    nothing is submitted to the registry in that mode.
    """

    env_name = environment or optional_env_var("REGISTRY_ENV", RegistryEnvironment.SANDBOX)
    resolved_env = parse_environment(str(env_name))
    resolved_dry_run = env_flag("REGISTRY_DRY_RUN") if dry_run is None else dry_run
    api_key = optional_env_var("REGISTRY_API_KEY", "") or ""
    org_ctid = organization_ctid or optional_env_var("REGISTRY_ORGANIZATION_CTID", "") or ""

    if not resolved_dry_run:
        missing = [
            name
            for name, value in (
                ("REGISTRY_API_KEY", api_key),
                ("REGISTRY_ORGANIZATION_CTID", org_ctid),
            )
            if not value
        ]
        if missing:
            raise MissingConfigurationError(missing)

    return RegistryConfig(
        environment=resolved_env,
        api_key=api_key,
        organization_ctid=org_ctid,
        dry_run=resolved_dry_run,
    )


def get_fetch_resilience() -> ResilienceConfig:
    """Resilience settings for dereferencing source and linked documents."""

    return document_resilience()


def get_publish_resilience(config: RegistryConfig) -> ResilienceConfig:
    """Resilience settings for the assistant API of the configured environment."""

    return assistant_resilience(config.assistant_base_url, config.api_key)
