"""Turns fetched configuration documents into a :class:`GatewayConfig`.

The transform is all-or-nothing: every defect found in a document is
collected and raised together as :class:`ConfigTransformError`, and no
configuration is returned when any defect exists.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from typing import Any, Iterable, Sequence, TypeVar

from pydantic import SecretStr, ValidationError

from apiconfig.config import (
    GatewayConfig,
    LoggingPlugin,
    ModelDefinition,
    ModelRouterPlugin,
    PipelineDefinition,
    PluginConfig,
    ProviderDefinition,
    TracingPlugin,
)
from apiconfig.config_runtime.fetcher import ConfigDocument
from apiconfig.config_runtime.secrets import SecretResolver
from apiconfig.models.errors import (
    ConfigTransformError,
    DanglingReferenceError,
    DuplicateIdError,
    InvalidFieldError,
    MissingFieldError,
    ResolutionError,
    SecretResolutionError,
    TransformError,
)
from apiconfig.models.secret_refs import SECRET_TAGS
from apiconfig.models.wire import (
    PLUGIN_TAGS,
    LoggingPluginRecord,
    ModelRecord,
    ModelRouterPluginRecord,
    PipelineRecord,
    ProviderRecord,
    TracingPluginRecord,
    WireRecord,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=WireRecord)

_UNION_TAGS = frozenset(SECRET_TAGS) | frozenset(PLUGIN_TAGS)


def transform(document: ConfigDocument, resolver: SecretResolver | None = None) -> GatewayConfig:
    resolver = resolver or SecretResolver()
    errors: list[TransformError] = []

    providers, provider_ids = _validate_records("provider", document.providers, ProviderRecord, errors)
    models, model_ids = _validate_records("model", document.models, ModelRecord, errors)
    pipelines, _ = _validate_records("pipeline", document.pipelines, PipelineRecord, errors)

    enabled_providers = [record for record in providers if record.enabled]
    enabled_models = [record for record in models if record.enabled]
    enabled_pipelines = [record for record in pipelines if record.enabled]

    provider_definitions = [_build_provider(record, resolver, errors) for record in enabled_providers]
    pipeline_definitions = [_build_pipeline(record, resolver, errors) for record in enabled_pipelines]

    # Records that failed validation still count as present so that their
    # dependents are not reported a second time as dangling.
    known_providers = {record.id for record in enabled_providers} | provider_ids
    known_models = {record.id for record in enabled_models} | model_ids
    errors.extend(_check_references(enabled_models, enabled_pipelines, known_providers, known_models))

    errors.extend(_duplicates("provider", providers))
    errors.extend(_duplicates("model", models))
    errors.extend(_duplicates("pipeline", pipelines))

    if errors:
        raise ConfigTransformError(errors)

    config = GatewayConfig(
        providers={definition.id: definition for definition in provider_definitions if definition is not None},
        models={record.id: _build_model(record) for record in enabled_models},
        pipelines=tuple(definition for definition in pipeline_definitions if definition is not None),
    )
    logger.debug(
        "transformed configuration: %d providers, %d models, %d pipelines",
        len(config.providers),
        len(config.models),
        len(config.pipelines),
    )
    return config


def _validate_records(
    record_kind: str,
    raw_records: Sequence[dict[str, Any]],
    record_type: type[RecordT],
    errors: list[TransformError],
) -> tuple[list[RecordT], set[str]]:
    """Validate raw records; returns the valid ones and the ids of invalid ones."""
    records: list[RecordT] = []
    invalid_ids: set[str] = set()
    for index, raw in enumerate(raw_records):
        record_id = _record_id(raw, index)
        try:
            records.append(record_type.model_validate(raw))
        except ValidationError as exc:
            errors.extend(_schema_errors(record_kind, record_id, exc))
            if isinstance(raw.get("id"), str):
                invalid_ids.add(raw["id"])
    return records, invalid_ids


def _record_id(raw: dict[str, Any], index: int) -> str:
    value = raw.get("id")
    if isinstance(value, str) and value:
        return value
    return f"#{index}"


def _schema_errors(record_kind: str, record_id: str, exc: ValidationError) -> list[TransformError]:
    errors: list[TransformError] = []
    for item in exc.errors():
        field = _field_path(item["loc"])
        if item["type"] == "missing":
            errors.append(MissingFieldError(record_kind, record_id, field))
        elif item["type"] == "union_tag_not_found" and isinstance(item.get("input"), dict):
            tag = "plugin_type" if field.rsplit(".", 1)[-1].startswith("plugins[") else "type"
            errors.append(MissingFieldError(record_kind, record_id, f"{field}.{tag}"))
        else:
            errors.append(InvalidFieldError(record_kind, record_id, field, item["msg"]))
    return errors


def _field_path(loc: Iterable[int | str]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif part in _UNION_TAGS:
            continue
        else:
            path += f".{part}" if path else part
    return path or "<record>"


def _resolve(
    record_kind: str,
    record_id: str,
    field: str,
    ref: Any,
    resolver: SecretResolver,
    errors: list[TransformError],
) -> SecretStr | None:
    if ref is None:
        return None
    try:
        return SecretStr(resolver.resolve(ref))
    except ResolutionError as exc:
        errors.append(SecretResolutionError(record_kind, record_id, field, exc))
        return None


def _build_provider(
    record: ProviderRecord,
    resolver: SecretResolver,
    errors: list[TransformError],
) -> ProviderDefinition | None:
    failures = len(errors)
    api_key = _resolve("provider", record.id, "api_key", record.api_key, resolver, errors)
    if len(errors) > failures:
        return None

    params = _stringify_mapping(record.params)
    if record.organization_id:
        params["organization_id"] = record.organization_id

    return ProviderDefinition(
        id=record.id,
        name=record.name or record.id,
        provider_type=record.provider_type,
        api_key=api_key,
        api_base=record.api_base,
        params=params,
    )


def _build_model(record: ModelRecord) -> ModelDefinition:
    return ModelDefinition(
        id=record.id,
        key=record.key or record.id,
        provider=record.provider,
        model_type=record.model_type,
        params=_stringify_mapping(record.config_details or {}),
    )


def _build_pipeline(
    record: PipelineRecord,
    resolver: SecretResolver,
    errors: list[TransformError],
) -> PipelineDefinition | None:
    failures = len(errors)
    enabled = [(index, plugin) for index, plugin in enumerate(record.plugins) if plugin.enabled]
    enabled.sort(key=lambda item: item[1].order_in_pipeline)

    plugins: list[PluginConfig] = []
    for index, plugin in enabled:
        if isinstance(plugin, ModelRouterPluginRecord):
            plugins.append(ModelRouterPlugin(models=tuple(entry.key for entry in plugin.config_data.models)))
        elif isinstance(plugin, LoggingPluginRecord):
            plugins.append(LoggingPlugin(level=plugin.config_data.level))
        elif isinstance(plugin, TracingPluginRecord):
            field = f"plugins[{index}].config_data.api_key"
            api_key = _resolve("pipeline", record.id, field, plugin.config_data.api_key, resolver, errors)
            plugins.append(TracingPlugin(endpoint=plugin.config_data.endpoint, api_key=api_key))

    if len(errors) > failures:
        return None

    return PipelineDefinition(
        id=record.id,
        name=record.name or record.id,
        pipeline_type=record.pipeline_type,
        description=record.description,
        models=tuple(record.models),
        plugins=tuple(plugins),
    )


def _check_references(
    models: Sequence[ModelRecord],
    pipelines: Sequence[PipelineRecord],
    provider_ids: set[str],
    model_ids: set[str],
) -> list[TransformError]:
    errors: list[TransformError] = []
    for model in models:
        if model.provider not in provider_ids:
            errors.append(DanglingReferenceError("model", model.id, "provider", model.provider))

    for pipeline in pipelines:
        referenced = list(pipeline.models)
        for plugin in pipeline.plugins:
            if plugin.enabled and isinstance(plugin, ModelRouterPluginRecord):
                referenced.extend(entry.key for entry in plugin.config_data.models)

        reported: set[str] = set()
        for model_id in referenced:
            if model_id not in model_ids and model_id not in reported:
                reported.add(model_id)
                errors.append(DanglingReferenceError("pipeline", pipeline.id, "model", model_id))
    return errors


def _duplicates(
    record_kind: str,
    records: Sequence[ProviderRecord] | Sequence[ModelRecord] | Sequence[PipelineRecord],
) -> list[TransformError]:
    counts = Counter(record.id for record in records)
    return [DuplicateIdError(record_kind, record_id) for record_id, count in counts.items() if count > 1]


def _stringify_mapping(values: dict[str, Any]) -> dict[str, str]:
    return {key: _stringify(value) for key, value in values.items()}


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"))
