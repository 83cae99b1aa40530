from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Protocol

from apiconfig.config import GatewayConfig
from apiconfig.config_runtime.fetcher import ConfigDocument
from apiconfig.config_runtime.published import PublishedConfig, detect_changes, has_changes
from apiconfig.config_runtime.secrets import SecretResolver
from apiconfig.config_runtime.transformer import transform
from apiconfig.metrics import (
    increment_poll,
    increment_poll_error,
    observe_poll_duration,
    set_consecutive_failures,
    set_last_success,
    set_published_config,
)
from apiconfig.models.errors import ApiConfigError

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    mode_name: str

    async def fetch(self) -> ConfigDocument: ...


async def load_config(fetcher: Fetcher, resolver: SecretResolver) -> tuple[ConfigDocument, GatewayConfig]:
    document = await fetcher.fetch()
    return document, transform(document, resolver)


@dataclass
class PollState:
    """Outcome of recent polls. Read by health endpoints only."""

    last_success_at: float | None = None
    last_error: str | None = None
    last_error_at: float | None = None
    consecutive_failures: int = 0
    polls_total: int = 0

    def record_success(self, at: float) -> None:
        self.polls_total += 1
        self.last_success_at = at
        self.consecutive_failures = 0

    def record_failure(self, error: str, at: float) -> None:
        self.polls_total += 1
        self.last_error = error
        self.last_error_at = at
        self.consecutive_failures += 1

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class ConfigPoller:
    def __init__(
        self,
        fetcher: Fetcher,
        published: PublishedConfig,
        interval_seconds: float = 30.0,
        secret_resolver: SecretResolver | None = None,
        state: PollState | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.published = published
        self.interval_seconds = interval_seconds
        self.secret_resolver = secret_resolver or SecretResolver()
        self.state = state or PollState()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        self._running = True
        logger.info("config poller started, interval %ss", self.interval_seconds)
        while self._running:
            await asyncio.sleep(self.interval_seconds)
            if not self._running:
                break
            await self.poll_once()
        logger.info("config poller stopped")

    def stop(self) -> None:
        self._running = False

    async def poll_once(self) -> bool:
        started = time.perf_counter()
        try:
            document, config = await load_config(self.fetcher, self.secret_resolver)
        except ApiConfigError as exc:
            self._hold(str(exc))
            for error in exc.errors:
                increment_poll_error(error_type=error.error_type)
            return False
        except Exception as exc:
            logger.exception("unexpected error while polling configuration")
            self._hold(f"{type(exc).__name__}: {exc}")
            increment_poll_error(error_type="unexpected_error")
            return False
        finally:
            observe_poll_duration(mode=self.fetcher.mode_name, duration_seconds=time.perf_counter() - started)

        previous = self.published.config
        snapshot = self.published.publish(config, source_version=document.version)
        counts = config.counts()
        self.state.record_success(snapshot.published_at)
        increment_poll(outcome="published")
        set_last_success(timestamp=snapshot.published_at)
        set_published_config(version=snapshot.version, counts=counts)
        set_consecutive_failures(count=0)

        changes = detect_changes(previous, config)
        logger.info(
            "published configuration version %d: %d providers, %d models, %d pipelines",
            snapshot.version,
            counts["providers"],
            counts["models"],
            counts["pipelines"],
        )
        if has_changes(changes):
            logger.info("configuration changed: %s", changes)
            await self.published.notify(snapshot, changes)
        return True

    def _hold(self, message: str) -> None:
        self.state.record_failure(message, time.time())
        increment_poll(outcome="held")
        set_consecutive_failures(count=self.state.consecutive_failures)
        logger.error(
            "configuration poll failed, keeping version %d: %s",
            self.published.version,
            message,
        )
