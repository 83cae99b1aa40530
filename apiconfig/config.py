from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    provider_type: str | None = None
    api_key: SecretStr | None = None
    api_base: str | None = None
    params: dict[str, str] = Field(default_factory=dict)


class ModelDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    key: str
    provider: str
    model_type: str = "chat"
    params: dict[str, str] = Field(default_factory=dict)


class ModelRouterPlugin(BaseModel):
    model_config = ConfigDict(frozen=True)

    plugin_type: Literal["model-router"] = "model-router"
    models: tuple[str, ...] = ()


class LoggingPlugin(BaseModel):
    model_config = ConfigDict(frozen=True)

    plugin_type: Literal["logging"] = "logging"
    level: str = "warning"


class TracingPlugin(BaseModel):
    model_config = ConfigDict(frozen=True)

    plugin_type: Literal["tracing"] = "tracing"
    endpoint: str
    api_key: SecretStr | None = None


PluginConfig = Union[ModelRouterPlugin, LoggingPlugin, TracingPlugin]


class PipelineDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    pipeline_type: Literal["chat", "completion", "embeddings"] = "chat"
    description: str | None = None
    models: tuple[str, ...] = ()
    plugins: tuple[PluginConfig, ...] = ()


class GatewayConfig(BaseModel):
    """Working configuration of the gateway.

    Every model's provider and every model a pipeline references are present
    in the same instance; the transformer never builds one that is not.
    """

    model_config = ConfigDict(frozen=True)

    providers: dict[str, ProviderDefinition] = Field(default_factory=dict)
    models: dict[str, ModelDefinition] = Field(default_factory=dict)
    pipelines: tuple[PipelineDefinition, ...] = ()

    def counts(self) -> dict[str, int]:
        return {
            "providers": len(self.providers),
            "models": len(self.models),
            "pipelines": len(self.pipelines),
        }


@dataclass(frozen=True)
class FullEndpoint:
    path: str


@dataclass(frozen=True)
class SplitEndpoints:
    providers_path: str
    models_path: str
    pipelines_path: str


EndpointMode = Union[FullEndpoint, SplitEndpoints]


class AuthHeader(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    value: SecretStr


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="API_CONFIG_", extra="ignore")

    log_level: str = "INFO"
    base_url: str
    timeout_seconds: float = Field(default=30.0, gt=0)
    poll_interval_seconds: float = Field(default=30.0, gt=0)
    auth_header: str | None = None
    auth_value: SecretStr | None = None
    full_endpoint: str = "config"
    providers_endpoint: str | None = None
    models_endpoint: str | None = None
    pipelines_endpoint: str | None = None

    @model_validator(mode="after")
    def _check_auth_pair(self) -> Settings:
        if (self.auth_header is None) != (self.auth_value is None):
            raise ValueError("auth_header and auth_value must be set together")
        return self

    def endpoint_mode(self) -> EndpointMode:
        if self.providers_endpoint or self.models_endpoint or self.pipelines_endpoint:
            return SplitEndpoints(
                providers_path=self.providers_endpoint or "providers",
                models_path=self.models_endpoint or "models",
                pipelines_path=self.pipelines_endpoint or "pipelines",
            )
        return FullEndpoint(path=self.full_endpoint)

    def auth(self) -> AuthHeader | None:
        if self.auth_header is None or self.auth_value is None:
            return None
        return AuthHeader(name=self.auth_header, value=self.auth_value)


@lru_cache
def get_settings() -> Settings:
    return Settings()
