from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from apiconfig.models.secret_refs import SecretRef


def _lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def _plain_string_as_literal(value: Any) -> Any:
    if isinstance(value, str):
        return {"type": "literal", "value": value}
    return value


class WireRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class ProviderRecord(WireRecord):
    id: str
    name: str | None = None
    provider_type: Annotated[
        Literal["openai", "azure", "anthropic", "bedrock", "vertexai"] | None,
        BeforeValidator(_lower),
    ] = None
    api_key: SecretRef | None = None
    api_base: str | None = None
    organization_id: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True

    @model_validator(mode="before")
    @classmethod
    def _lift_nested_config(cls, data: Any) -> Any:
        # Credentials may arrive nested as {"config": {"api_key": ..., "organization_id": ...}}.
        if not isinstance(data, dict) or not isinstance(data.get("config"), dict):
            return data
        nested = data["config"]
        lifted = dict(data)
        for key in ("api_key", "organization_id"):
            if lifted.get(key) is None and key in nested:
                lifted[key] = nested[key]
        return lifted


class ModelRecord(WireRecord):
    id: str
    provider: str = Field(validation_alias=AliasChoices("provider", "provider_id"))
    key: str | None = None
    model_type: str = "chat"
    config_details: dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("config_details", "params"),
    )
    enabled: bool = True


class ModelRouterEntry(WireRecord):
    key: str
    priority: int = 0


class ModelRouterData(WireRecord):
    models: list[ModelRouterEntry]


class LoggingData(WireRecord):
    level: str = "warning"


class TracingData(WireRecord):
    endpoint: str
    api_key: Annotated[SecretRef | None, BeforeValidator(_plain_string_as_literal)] = None


class PluginRecord(WireRecord):
    enabled: bool = True
    order_in_pipeline: int = 0


class ModelRouterPluginRecord(PluginRecord):
    plugin_type: Literal["model-router"]
    config_data: ModelRouterData


class LoggingPluginRecord(PluginRecord):
    plugin_type: Literal["logging"]
    config_data: LoggingData = Field(default_factory=LoggingData)


class TracingPluginRecord(PluginRecord):
    plugin_type: Literal["tracing"]
    config_data: TracingData


PluginRecordType = Annotated[
    Union[ModelRouterPluginRecord, LoggingPluginRecord, TracingPluginRecord],
    Field(discriminator="plugin_type"),
]

PLUGIN_TAGS = ("model-router", "logging", "tracing")


class PipelineRecord(WireRecord):
    id: str
    models: list[str]
    name: str | None = None
    pipeline_type: Annotated[
        Literal["chat", "completion", "embeddings"],
        BeforeValidator(_lower),
    ] = "chat"
    description: str | None = None
    plugins: list[PluginRecordType] = Field(default_factory=list)
    enabled: bool = True
