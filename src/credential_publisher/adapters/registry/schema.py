"""Pydantic models describing the registry assistant publish API payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AssistantBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PublishRequest(AssistantBaseModel):
    organization_ctid: str = Field(alias="PublishForOrganizationIdentifier")
    publish: bool = Field(default=True, alias="Publish")
    graph: dict[str, Any] = Field(alias="GraphInput")


class PublishResponse(AssistantBaseModel):
    successful: bool = Field(alias="Successful")
    messages: list[str] = Field(default_factory=list, alias="Messages")

    @field_validator("messages", mode="before")
    @classmethod
    def _null_to_empty(cls, value: object) -> object:
        return [] if value is None else value
