from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

import credential_publisher.adapters.vocabulary as vocabulary_package
from credential_publisher.adapters.vocabulary import VocabularyIndex, load_vocabulary
from credential_publisher.config.registry import RegistryConfig, RegistryEnvironment
from credential_publisher.domain.store import EntityStore

if TYPE_CHECKING:
    from collections.abc import Iterator

BUNDLED_VOCABULARY = Path(vocabulary_package.__file__).resolve().parent / "data" / "vocabulary.json"


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    monkeypatch.setenv("CREDENTIAL_PUBLISHER_DATA_DIR", str(tmp_path / "data"))
    for name in (
        "VOCABULARY_PATH",
        "REGISTRY_ENV",
        "REGISTRY_API_KEY",
        "REGISTRY_ORGANIZATION_CTID",
        "REGISTRY_DRY_RUN",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(scope="session")
def schema() -> VocabularyIndex:
    return load_vocabulary(BUNDLED_VOCABULARY)


@pytest.fixture
def registry() -> RegistryConfig:
    return RegistryConfig(
        environment=RegistryEnvironment.SANDBOX,
        api_key="secret",
        organization_ctid="ce-1234",
    )


@pytest.fixture
def store() -> EntityStore:
    return EntityStore()
