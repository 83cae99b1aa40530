from __future__ import annotations

import httpx
import pytest
import respx

from apiconfig.main import create_app, lifespan
from apiconfig.models.errors import ConfigBootstrapError


@pytest.mark.asyncio
@respx.mock
async def test_lifespan_bootstraps_and_shuts_down(monkeypatch, scenario_payload):
    monkeypatch.setenv("API_CONFIG_BASE_URL", "https://x/v1")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    respx.get("https://x/v1/config").mock(return_value=httpx.Response(200, json=scenario_payload))
    app = create_app()

    async with lifespan(app):
        assert app.state.published_config.version == 1
        assert app.state.poll_state.last_success_at is not None
        integration = app.state.api_config
        assert integration.task is not None

    assert integration.task is None
    assert integration.http_client.is_closed


@pytest.mark.asyncio
@respx.mock
async def test_lifespan_refuses_to_start_without_configuration(monkeypatch):
    monkeypatch.setenv("API_CONFIG_BASE_URL", "https://x/v1")
    respx.get("https://x/v1/config").mock(return_value=httpx.Response(500, text="boom"))
    app = create_app()

    with pytest.raises(ConfigBootstrapError):
        async with lifespan(app):
            pass

    assert not hasattr(app.state, "published_config")
