from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from apiconfig.config import AuthHeader, EndpointMode, FullEndpoint, Settings, SplitEndpoints
from apiconfig.models.errors import (
    DecodeError,
    FetchError,
    FetchErrorGroup,
    FetchTimeoutError,
    HttpStatusError,
    TransportError,
)

logger = logging.getLogger(__name__)

BODY_EXCERPT_LIMIT = 256
RECORD_KINDS = ("providers", "models", "pipelines")


@dataclass(frozen=True)
class ConfigDocument:
    providers: tuple[dict[str, Any], ...]
    models: tuple[dict[str, Any], ...]
    pipelines: tuple[dict[str, Any], ...]
    mode: str = "full"
    version: str | None = None
    last_updated: str | None = None


def build_url(base_url: str, endpoint: str) -> str:
    if endpoint.startswith(("http://", "https://")):
        return endpoint
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"


class ConfigFetcher:
    """Retrieves configuration documents from the configuration API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        mode: EndpointMode,
        timeout: float = 30.0,
        auth: AuthHeader | None = None,
    ) -> None:
        self.http_client = http_client
        self.base_url = base_url
        self.mode = mode
        self.timeout = timeout
        self.headers = {"Accept": "application/json"}
        if auth is not None:
            self.headers[auth.name] = auth.value.get_secret_value()

    @classmethod
    def from_settings(cls, settings: Settings, http_client: httpx.AsyncClient) -> ConfigFetcher:
        return cls(
            http_client=http_client,
            base_url=settings.base_url,
            mode=settings.endpoint_mode(),
            timeout=settings.timeout_seconds,
            auth=settings.auth(),
        )

    @property
    def mode_name(self) -> str:
        return "full" if isinstance(self.mode, FullEndpoint) else "split"

    async def fetch(self) -> ConfigDocument:
        if isinstance(self.mode, FullEndpoint):
            return await self._fetch_full(self.mode.path)
        return await self._fetch_split(self.mode)

    async def _fetch_full(self, endpoint: str) -> ConfigDocument:
        url = build_url(self.base_url, endpoint)
        payload = await self._get_json(url)
        if not isinstance(payload, dict):
            raise DecodeError(url, "expected a JSON object with providers, models and pipelines")

        records = {kind: self._records(url, payload.get(kind), kind) for kind in RECORD_KINDS}
        return ConfigDocument(
            providers=records["providers"],
            models=records["models"],
            pipelines=records["pipelines"],
            mode="full",
            version=_optional_str(payload.get("version")),
            last_updated=_optional_str(payload.get("last_updated")),
        )

    async def _fetch_split(self, mode: SplitEndpoints) -> ConfigDocument:
        endpoints = {
            "providers": mode.providers_path,
            "models": mode.models_path,
            "pipelines": mode.pipelines_path,
        }
        results = await asyncio.gather(
            *(self._fetch_records(kind, endpoint) for kind, endpoint in endpoints.items()),
            return_exceptions=True,
        )

        errors: list[FetchError] = []
        records: dict[str, tuple[dict[str, Any], ...]] = {}
        for kind, result in zip(endpoints, results, strict=True):
            if isinstance(result, FetchError):
                errors.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                records[kind] = result

        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise FetchErrorGroup(errors)

        return ConfigDocument(
            providers=records["providers"],
            models=records["models"],
            pipelines=records["pipelines"],
            mode="split",
        )

    async def _fetch_records(self, kind: str, endpoint: str) -> tuple[dict[str, Any], ...]:
        url = build_url(self.base_url, endpoint)
        return self._records(url, await self._get_json(url), kind)

    async def _get_json(self, url: str) -> Any:
        logger.debug("fetching configuration from %s", url)
        try:
            response = await self.http_client.get(url, headers=self.headers, timeout=self.timeout)
        except httpx.TimeoutException as exc:
            raise FetchTimeoutError(url, f"no response within {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise TransportError(url, str(exc) or type(exc).__name__) from exc
        except (httpx.InvalidURL, UnicodeEncodeError) as exc:
            raise TransportError(url, f"cannot build request: {exc}") from exc

        if not response.is_success:
            raise HttpStatusError(url, response.status_code, response.text[:BODY_EXCERPT_LIMIT])

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DecodeError(url, f"failed to parse response as JSON: {exc}") from exc

    @staticmethod
    def _records(url: str, value: Any, kind: str) -> tuple[dict[str, Any], ...]:
        if not isinstance(value, list):
            raise DecodeError(url, f"expected '{kind}' to be a JSON array")
        if not all(isinstance(item, dict) for item in value):
            raise DecodeError(url, f"expected every '{kind}' entry to be a JSON object")
        return tuple(value)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)
