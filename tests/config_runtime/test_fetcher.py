from __future__ import annotations

import httpx
import pytest
import respx

from apiconfig.config import FullEndpoint, Settings, SplitEndpoints
from apiconfig.config_runtime.fetcher import ConfigFetcher, build_url
from apiconfig.config_runtime.transformer import transform
from apiconfig.models.errors import (
    DecodeError,
    FetchErrorGroup,
    FetchTimeoutError,
    HttpStatusError,
    TransportError,
)

BASE_URL = "https://x/v1"
SPLIT = SplitEndpoints(providers_path="providers", models_path="models", pipelines_path="pipelines")


def test_build_url_joins_and_keeps_absolute_paths():
    assert build_url("https://x/v1", "config") == "https://x/v1/config"
    assert build_url("https://x/v1/", "/config") == "https://x/v1/config"
    assert build_url("https://x/v1", "https://other/providers") == "https://other/providers"


@pytest.mark.asyncio
async def test_fetcher_from_settings_picks_mode_and_auth():
    settings = Settings(
        base_url=BASE_URL,
        auth_header="X-Api-Key",
        auth_value="secret",
        models_endpoint="catalog/models",
    )
    async with httpx.AsyncClient() as client:
        fetcher = ConfigFetcher.from_settings(settings, client)

    assert fetcher.mode_name == "split"
    assert fetcher.mode == SplitEndpoints(
        providers_path="providers", models_path="catalog/models", pipelines_path="pipelines"
    )
    assert fetcher.headers["X-Api-Key"] == "secret"


@pytest.mark.asyncio
@respx.mock
async def test_full_mode_fetches_one_document(scenario_payload):
    route = respx.get("https://x/v1/config").mock(
        return_value=httpx.Response(200, json={**scenario_payload, "version": 7, "last_updated": "yesterday"})
    )

    async with httpx.AsyncClient() as client:
        fetcher = ConfigFetcher(client, BASE_URL, FullEndpoint("config"))
        document = await fetcher.fetch()

    assert route.called
    assert document.mode == "full"
    assert document.providers == tuple(scenario_payload["providers"])
    assert document.models == tuple(scenario_payload["models"])
    assert document.pipelines == tuple(scenario_payload["pipelines"])
    assert document.version == "7"
    assert document.last_updated == "yesterday"

    request = route.calls.last.request
    assert request.headers["Accept"] == "application/json"
    assert "x-api-key" not in request.headers


@pytest.mark.asyncio
@respx.mock
async def test_auth_header_is_sent_when_configured(scenario_payload):
    route = respx.get("https://x/v1/config").mock(return_value=httpx.Response(200, json=scenario_payload))
    settings = Settings(base_url=BASE_URL, auth_header="X-Api-Key", auth_value="secret")

    async with httpx.AsyncClient() as client:
        await ConfigFetcher.from_settings(settings, client).fetch()

    assert route.calls.last.request.headers["X-Api-Key"] == "secret"


@pytest.mark.asyncio
@respx.mock
async def test_split_mode_fetches_three_endpoints(scenario_payload):
    routes = {
        kind: respx.get(f"https://x/v1/{kind}").mock(return_value=httpx.Response(200, json=scenario_payload[kind]))
        for kind in ("providers", "models", "pipelines")
    }

    async with httpx.AsyncClient() as client:
        document = await ConfigFetcher(client, BASE_URL, SPLIT).fetch()

    assert all(route.call_count == 1 for route in routes.values())
    assert document.mode == "split"
    assert document.version is None
    assert len(document.providers) == 1
    assert len(document.models) == 1
    assert len(document.pipelines) == 1


@pytest.mark.asyncio
@respx.mock
async def test_split_mode_honours_absolute_endpoint_override(scenario_payload):
    providers = respx.get("https://registry.example.com/providers").mock(
        return_value=httpx.Response(200, json=scenario_payload["providers"])
    )
    respx.get("https://x/v1/models").mock(return_value=httpx.Response(200, json=scenario_payload["models"]))
    respx.get("https://x/v1/pipelines").mock(return_value=httpx.Response(200, json=scenario_payload["pipelines"]))
    mode = SplitEndpoints(
        providers_path="https://registry.example.com/providers",
        models_path="models",
        pipelines_path="pipelines",
    )

    async with httpx.AsyncClient() as client:
        document = await ConfigFetcher(client, BASE_URL, mode).fetch()

    assert providers.called
    assert document.providers[0]["id"] == "openai"


@pytest.mark.asyncio
@respx.mock
async def test_split_and_full_mode_yield_the_same_configuration(gateway_payload, resolver):
    respx.get("https://x/v1/config").mock(return_value=httpx.Response(200, json=gateway_payload))
    for kind in ("providers", "models", "pipelines"):
        respx.get(f"https://x/v1/{kind}").mock(return_value=httpx.Response(200, json=gateway_payload[kind]))

    async with httpx.AsyncClient() as client:
        full = await ConfigFetcher(client, BASE_URL, FullEndpoint("config")).fetch()
        split = await ConfigFetcher(client, BASE_URL, SPLIT).fetch()

    assert transform(full, resolver) == transform(split, resolver)


@pytest.mark.asyncio
@respx.mock
async def test_split_mode_single_failure_is_raised_as_is(scenario_payload):
    respx.get("https://x/v1/providers").mock(return_value=httpx.Response(401, text="unauthorized"))
    respx.get("https://x/v1/models").mock(return_value=httpx.Response(200, json=scenario_payload["models"]))
    respx.get("https://x/v1/pipelines").mock(return_value=httpx.Response(200, json=scenario_payload["pipelines"]))

    async with httpx.AsyncClient() as client:
        with pytest.raises(HttpStatusError) as exc_info:
            await ConfigFetcher(client, BASE_URL, SPLIT).fetch()

    error = exc_info.value
    assert error.status_code == 401
    assert error.endpoint == "https://x/v1/providers"
    assert error.body_excerpt == "unauthorized"
    assert error.errors == [error]


@pytest.mark.asyncio
@respx.mock
async def test_split_mode_collects_every_failed_endpoint(scenario_payload):
    respx.get("https://x/v1/providers").mock(return_value=httpx.Response(503, text="down"))
    respx.get("https://x/v1/models").mock(return_value=httpx.Response(200, json=scenario_payload["models"]))
    respx.get("https://x/v1/pipelines").mock(side_effect=httpx.ConnectError("connection refused"))

    async with httpx.AsyncClient() as client:
        with pytest.raises(FetchErrorGroup) as exc_info:
            await ConfigFetcher(client, BASE_URL, SPLIT).fetch()

    errors = exc_info.value.errors
    assert len(errors) == 2
    assert {type(error) for error in errors} == {HttpStatusError, TransportError}
    assert str(exc_info.value).startswith("2 endpoints failed")


@pytest.mark.asyncio
@respx.mock
async def test_timeout_maps_to_fetch_timeout_error():
    respx.get("https://x/v1/config").mock(side_effect=httpx.ReadTimeout("timed out"))

    async with httpx.AsyncClient() as client:
        with pytest.raises(FetchTimeoutError) as exc_info:
            await ConfigFetcher(client, BASE_URL, FullEndpoint("config"), timeout=2.5).fetch()

    assert "2.5" in exc_info.value.message


@pytest.mark.asyncio
@respx.mock
async def test_connection_failure_maps_to_transport_error():
    respx.get("https://x/v1/config").mock(side_effect=httpx.ConnectError("connection refused"))

    async with httpx.AsyncClient() as client:
        with pytest.raises(TransportError, match="connection refused"):
            await ConfigFetcher(client, BASE_URL, FullEndpoint("config")).fetch()


@pytest.mark.asyncio
@respx.mock
async def test_error_body_is_truncated():
    respx.get("https://x/v1/config").mock(return_value=httpx.Response(500, text="x" * 1000))

    async with httpx.AsyncClient() as client:
        with pytest.raises(HttpStatusError) as exc_info:
            await ConfigFetcher(client, BASE_URL, FullEndpoint("config")).fetch()

    assert exc_info.value.status_code == 500
    assert len(exc_info.value.body_excerpt) == 256


@pytest.mark.asyncio
@respx.mock
async def test_invalid_json_maps_to_decode_error():
    respx.get("https://x/v1/config").mock(return_value=httpx.Response(200, content=b"<html>not json</html>"))

    async with httpx.AsyncClient() as client:
        with pytest.raises(DecodeError):
            await ConfigFetcher(client, BASE_URL, FullEndpoint("config")).fetch()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"providers": [], "models": []},
        {"providers": {}, "models": [], "pipelines": []},
        {"providers": ["openai"], "models": [], "pipelines": []},
    ],
)
@respx.mock
async def test_unexpected_document_shape_maps_to_decode_error(payload):
    respx.get("https://x/v1/config").mock(return_value=httpx.Response(200, json=payload))

    async with httpx.AsyncClient() as client:
        with pytest.raises(DecodeError):
            await ConfigFetcher(client, BASE_URL, FullEndpoint("config")).fetch()


@pytest.mark.asyncio
@respx.mock
async def test_malformed_url_maps_to_transport_error():
    async with httpx.AsyncClient() as client:
        fetcher = ConfigFetcher(client, "https://x:notaport/v1", FullEndpoint("config"))
        with pytest.raises(TransportError, match="cannot build request"):
            await fetcher.fetch()


@pytest.mark.asyncio
@respx.mock
async def test_non_ascii_auth_value_maps_to_transport_error():
    settings = Settings(base_url=BASE_URL, auth_header="X-Api-Key", auth_value="clé-secrète")

    async with httpx.AsyncClient() as client:
        with pytest.raises(TransportError, match="cannot build request"):
            await ConfigFetcher.from_settings(settings, client).fetch()
