from __future__ import annotations

import pytest

from apiconfig.config import GatewayConfig, ModelDefinition, PipelineDefinition, ProviderDefinition
from apiconfig.config_runtime.published import PublishedConfig, detect_changes, has_changes


def _config(*provider_ids: str, base: str | None = None) -> GatewayConfig:
    providers = {pid: ProviderDefinition(id=pid, name=pid, api_base=base) for pid in provider_ids}
    models = {f"{pid}-model": ModelDefinition(id=f"{pid}-model", key=pid, provider=pid) for pid in provider_ids}
    pipelines = tuple(PipelineDefinition(id="default", name="default", models=tuple(models)) for _ in provider_ids[:1])
    return GatewayConfig(providers=providers, models=models, pipelines=pipelines)


def test_publish_swaps_whole_snapshot():
    first = _config("openai")
    second = _config("openai", "anthropic")
    published = PublishedConfig(first, source_version="1")

    held = published.snapshot
    snapshot = published.publish(second, source_version="2")

    assert held.version == 1
    assert held.config is first
    assert held.source_version == "1"
    assert snapshot.version == 2
    assert published.snapshot is snapshot
    assert published.config is second
    assert published.version == 2
    assert snapshot.published_at >= held.published_at


def test_detect_changes_reports_added_removed_and_modified():
    old = _config("openai", "azure")
    new = _config("openai", "anthropic", base="https://proxy")

    changes = detect_changes(old, new)

    assert changes["providers"] == {"added": ["anthropic"], "removed": ["azure"], "modified": ["openai"]}
    assert changes["models"] == {"added": ["anthropic-model"], "removed": ["azure-model"], "modified": []}
    assert changes["pipelines"] == {"added": [], "removed": [], "modified": ["default"]}
    assert has_changes(changes)


def test_identical_configs_have_no_changes():
    assert not has_changes(detect_changes(_config("openai"), _config("openai")))


@pytest.mark.asyncio
async def test_subscribers_are_notified_and_failures_are_contained():
    published = PublishedConfig(_config("openai"))
    received: list[tuple[int, dict]] = []

    def broken(snapshot, changes):
        raise RuntimeError("subscriber bug")

    async def recording(snapshot, changes):
        received.append((snapshot.version, changes))

    published.subscribe(broken)
    published.subscribe(recording)

    new = _config("anthropic")
    snapshot = published.publish(new)
    changes = detect_changes(_config("openai"), new)
    await published.notify(snapshot, changes)

    assert received == [(2, changes)]
