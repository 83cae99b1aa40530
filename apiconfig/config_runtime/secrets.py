from __future__ import annotations

import logging
import os
from typing import Mapping

from apiconfig.models.errors import (
    EnvVarNotFoundError,
    ResolutionError,
    SecretBackendError,
    UnsupportedSecretBackendError,
)
from apiconfig.models.secret_refs import BackendSecret, EnvironmentSecret, LiteralSecret

logger = logging.getLogger(__name__)


class BaseSecretManager:
    def get_secret(self, ref: BackendSecret) -> str | None:
        raise NotImplementedError


class SecretResolver:
    """Resolves secret references to plain strings.

    Literal and environment references are always available. Any other
    reference is looked up in ``backends`` by name; nothing is registered by
    default, so e.g. ``kubernetes`` references fail as unsupported.

    Values are never cached: each call reads the current environment, so a
    rotated variable is picked up by the next transform.
    """

    def __init__(
        self,
        backends: Mapping[str, BaseSecretManager] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.backends = dict(backends or {})
        self._environ = environ

    def register(self, name: str, manager: BaseSecretManager) -> None:
        self.backends[name] = manager

    def resolve(self, ref: LiteralSecret | EnvironmentSecret | BackendSecret) -> str:
        if isinstance(ref, LiteralSecret):
            return ref.value

        if isinstance(ref, EnvironmentSecret):
            environ = os.environ if self._environ is None else self._environ
            value = environ.get(ref.variable_name)
            if not value:
                raise EnvVarNotFoundError(ref.variable_name)
            return value

        if isinstance(ref, BackendSecret):
            return self._resolve_backend(ref)

        raise UnsupportedSecretBackendError(type(ref).__name__)

    def _resolve_backend(self, ref: BackendSecret) -> str:
        manager = self.backends.get(ref.name)
        if manager is None:
            raise UnsupportedSecretBackendError(ref.name)

        try:
            secret = manager.get_secret(ref)
        except ResolutionError:
            raise
        except Exception as exc:
            logger.warning("secret backend '%s' failed: %s", ref.name, exc)
            raise SecretBackendError(ref.name, str(exc)) from exc

        if secret is None:
            raise SecretBackendError(ref.name, "secret not found")
        return secret
