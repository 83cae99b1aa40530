from __future__ import annotations

import re
from typing import Any

from prometheus_client import CollectorRegistry

API_CONFIG_REGISTRY = CollectorRegistry()
UNKNOWN_LABEL = "unknown"
MAX_LABEL_LENGTH = 64

_NON_IDENTIFIER = re.compile(r"[^a-z0-9_]+")


def get_prometheus_registry() -> CollectorRegistry:
    return API_CONFIG_REGISTRY


def sanitize_label(value: Any, fallback: str = UNKNOWN_LABEL) -> str:
    """Normalise a label value to a short snake_case identifier.

    Label values here are outcomes, error types, record kinds and fetch modes,
    so anything else (spaces, dashes, free text) is folded to ``_``.
    """
    if value is None:
        return fallback
    label = _NON_IDENTIFIER.sub("_", str(value).strip().lower()).strip("_")
    return label[:MAX_LABEL_LENGTH] or fallback
