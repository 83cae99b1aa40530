from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Mapping

from apiconfig.config import GatewayConfig

logger = logging.getLogger(__name__)

ConfigChanges = dict[str, dict[str, list[str]]]
ConfigSubscriber = Callable[["ConfigSnapshot", ConfigChanges], Awaitable[None] | None]


@dataclass(frozen=True)
class ConfigSnapshot:
    version: int
    config: GatewayConfig
    published_at: float
    source_version: str | None = None


class PublishedConfig:
    """Holder of the configuration the gateway is currently serving.

    Readers take :attr:`snapshot` (or :attr:`config`) and keep using that
    object; it is never modified. A publish builds a new snapshot and swaps
    the reference in one assignment, so a reader sees either the old or the
    new configuration, never a mix.
    """

    def __init__(self, initial: GatewayConfig, source_version: str | None = None) -> None:
        self._snapshot = ConfigSnapshot(
            version=1,
            config=initial,
            published_at=time.time(),
            source_version=source_version,
        )
        self._write_lock = threading.Lock()
        self._subscribers: list[ConfigSubscriber] = []

    @property
    def snapshot(self) -> ConfigSnapshot:
        return self._snapshot

    @property
    def config(self) -> GatewayConfig:
        return self._snapshot.config

    @property
    def version(self) -> int:
        return self._snapshot.version

    def publish(self, config: GatewayConfig, source_version: str | None = None) -> ConfigSnapshot:
        with self._write_lock:
            snapshot = ConfigSnapshot(
                version=self._snapshot.version + 1,
                config=config,
                published_at=time.time(),
                source_version=source_version,
            )
            self._snapshot = snapshot
        return snapshot

    def subscribe(self, callback: ConfigSubscriber) -> None:
        self._subscribers.append(callback)

    async def notify(self, snapshot: ConfigSnapshot, changes: ConfigChanges) -> None:
        for callback in list(self._subscribers):
            try:
                result = callback(snapshot, changes)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                logger.error("config subscriber callback failed: %s", exc)


def detect_changes(old: GatewayConfig, new: GatewayConfig) -> ConfigChanges:
    old_pipelines = {pipeline.id: pipeline for pipeline in old.pipelines}
    new_pipelines = {pipeline.id: pipeline for pipeline in new.pipelines}
    return {
        "providers": _diff(old.providers, new.providers),
        "models": _diff(old.models, new.models),
        "pipelines": _diff(old_pipelines, new_pipelines),
    }


def has_changes(changes: ConfigChanges) -> bool:
    return any(any(diff.values()) for diff in changes.values())


def _diff(old: Mapping[str, object], new: Mapping[str, object]) -> dict[str, list[str]]:
    old_keys = set(old.keys())
    new_keys = set(new.keys())

    changes = {
        "added": sorted(new_keys - old_keys),
        "removed": sorted(old_keys - new_keys),
        "modified": [],
    }

    for key in sorted(old_keys & new_keys):
        if old[key] != new[key]:
            changes["modified"].append(key)

    return changes
