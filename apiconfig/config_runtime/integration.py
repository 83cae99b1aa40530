from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass

import httpx

from apiconfig.config import GatewayConfig, Settings, get_settings
from apiconfig.config_runtime.fetcher import ConfigDocument, ConfigFetcher
from apiconfig.config_runtime.poller import ConfigPoller, Fetcher, PollState, load_config
from apiconfig.config_runtime.published import PublishedConfig
from apiconfig.config_runtime.secrets import SecretResolver
from apiconfig.metrics import set_last_success, set_published_config
from apiconfig.models.errors import ApiConfigError, ConfigBootstrapError

logger = logging.getLogger(__name__)


@dataclass
class ApiConfigIntegration:
    """Handle returned to the gateway once the first configuration is live."""

    published: PublishedConfig
    poller: ConfigPoller
    http_client: httpx.AsyncClient
    owns_http_client: bool = False
    task: asyncio.Task[None] | None = None

    @property
    def state(self) -> PollState:
        return self.poller.state

    def start(self) -> None:
        if self.task is None:
            self.task = asyncio.create_task(self.poller.start())

    async def aclose(self) -> None:
        self.poller.stop()
        if self.task is not None:
            self.task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self.task
            self.task = None
        if self.owns_http_client:
            await self.http_client.aclose()


async def bootstrap(fetcher: Fetcher, resolver: SecretResolver) -> tuple[ConfigDocument, GatewayConfig]:
    try:
        return await load_config(fetcher, resolver)
    except ApiConfigError as exc:
        for error in exc.errors:
            logger.error("initial configuration load failed: %s", error)
        raise ConfigBootstrapError(exc) from exc


async def api_config_integration(
    settings: Settings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
    secret_resolver: SecretResolver | None = None,
    start_poller: bool = True,
) -> ApiConfigIntegration:
    """Load the first configuration, then keep it fresh in the background.

    Raises :class:`ConfigBootstrapError` when the first load fails; the caller
    must not start serving in that case.
    """
    settings = settings or get_settings()
    resolver = secret_resolver or SecretResolver()
    owns_http_client = http_client is None
    client = http_client or httpx.AsyncClient()
    fetcher = ConfigFetcher.from_settings(settings, client)

    try:
        document, config = await bootstrap(fetcher, resolver)
    except BaseException:
        if owns_http_client:
            await client.aclose()
        raise

    published = PublishedConfig(config, source_version=document.version)
    counts = config.counts()
    state = PollState()
    state.record_success(published.snapshot.published_at)
    set_last_success(timestamp=published.snapshot.published_at)
    set_published_config(version=published.version, counts=counts)

    logger.info(
        "loaded initial configuration from %s (%s mode): %d providers, %d models, %d pipelines",
        settings.base_url,
        fetcher.mode_name,
        counts["providers"],
        counts["models"],
        counts["pipelines"],
    )

    poller = ConfigPoller(
        fetcher=fetcher,
        published=published,
        interval_seconds=settings.poll_interval_seconds,
        secret_resolver=resolver,
        state=state,
    )
    integration = ApiConfigIntegration(
        published=published,
        poller=poller,
        http_client=client,
        owns_http_client=owns_http_client,
    )
    if start_poller:
        integration.start()
    return integration
