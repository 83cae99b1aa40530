from __future__ import annotations

import copy
from typing import Any, Callable

import httpx
import pytest
from fastapi import FastAPI

from apiconfig.config import Settings, get_settings
from apiconfig.config_runtime.fetcher import ConfigDocument
from apiconfig.config_runtime.secrets import SecretResolver
from apiconfig.main import create_app

BASE_URL = "https://x/v1"

SETTINGS_ENV = (
    "API_CONFIG_BASE_URL",
    "API_CONFIG_AUTH_HEADER",
    "API_CONFIG_AUTH_VALUE",
    "API_CONFIG_TIMEOUT_SECONDS",
    "API_CONFIG_POLL_INTERVAL_SECONDS",
    "API_CONFIG_FULL_ENDPOINT",
    "API_CONFIG_PROVIDERS_ENDPOINT",
    "API_CONFIG_MODELS_ENDPOINT",
    "API_CONFIG_PIPELINES_ENDPOINT",
    "API_CONFIG_LOG_LEVEL",
    "OPENAI_API_KEY",
)

SCENARIO_PAYLOAD: dict[str, Any] = {
    "providers": [
        {"id": "openai", "api_key": {"type": "environment", "variable_name": "OPENAI_API_KEY"}},
    ],
    "models": [{"id": "gpt4", "provider": "openai"}],
    "pipelines": [{"id": "p1", "models": ["gpt4"]}],
}

GATEWAY_PAYLOAD: dict[str, Any] = {
    "version": "42",
    "last_updated": "2026-10-01T00:00:00Z",
    "providers": [
        {
            "id": "openai",
            "name": "OpenAI",
            "provider_type": "OpenAI",
            "api_key": {"type": "environment", "variable_name": "OPENAI_API_KEY"},
            "api_base": "https://api.openai.com/v1",
            "organization_id": "org-1",
            "params": {"max_retries": 3},
        },
        {
            "id": "anthropic",
            "provider_type": "anthropic",
            "api_key": {"type": "literal", "value": "sk-ant"},
        },
    ],
    "models": [
        {"id": "gpt4", "provider": "openai", "key": "gpt-4o", "config_details": {"temperature": 0.2}},
        {"id": "claude", "provider_id": "anthropic", "key": "claude-3-5-sonnet"},
    ],
    "pipelines": [
        {
            "id": "p1",
            "name": "Default chat",
            "models": ["gpt4"],
            "plugins": [
                {"plugin_type": "logging", "order_in_pipeline": 2, "config_data": {"level": "info"}},
                {
                    "plugin_type": "model-router",
                    "order_in_pipeline": 1,
                    "config_data": {"models": [{"key": "gpt4", "priority": 1}, {"key": "claude", "priority": 2}]},
                },
                {
                    "plugin_type": "tracing",
                    "order_in_pipeline": 3,
                    "enabled": False,
                    "config_data": {"endpoint": "https://trace.example.com"},
                },
            ],
        },
    ],
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def scenario_payload() -> dict[str, Any]:
    return copy.deepcopy(SCENARIO_PAYLOAD)


@pytest.fixture
def gateway_payload() -> dict[str, Any]:
    return copy.deepcopy(GATEWAY_PAYLOAD)


@pytest.fixture
def make_document() -> Callable[..., ConfigDocument]:
    def _make(payload: dict[str, Any] | None = None, **records: list[dict[str, Any]]) -> ConfigDocument:
        payload = {**(payload or {}), **records}
        return ConfigDocument(
            providers=tuple(payload.get("providers", [])),
            models=tuple(payload.get("models", [])),
            pipelines=tuple(payload.get("pipelines", [])),
            version=payload.get("version"),
        )

    return _make


@pytest.fixture
def resolver() -> SecretResolver:
    return SecretResolver(environ={"OPENAI_API_KEY": "sk-test"})


@pytest.fixture
def settings() -> Settings:
    return Settings(base_url=BASE_URL)


@pytest.fixture
async def test_app() -> FastAPI:
    return create_app()


@pytest.fixture
async def client(test_app: FastAPI):
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
