from __future__ import annotations

from typing import Sequence


class ApiConfigError(Exception):
    error_type: str = "api_config_error"
    message: str = "API configuration error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)

    @property
    def errors(self) -> list[ApiConfigError]:
        return [self]


class FetchError(ApiConfigError):
    error_type = "fetch_error"
    message = "Failed to fetch configuration"

    def __init__(self, endpoint: str, message: str | None = None) -> None:
        self.endpoint = endpoint
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.endpoint}: {self.message}"


class TransportError(FetchError):
    error_type = "transport_error"
    message = "Transport failure"


class FetchTimeoutError(FetchError):
    error_type = "timeout_error"
    message = "Request timed out"


class HttpStatusError(FetchError):
    error_type = "http_status_error"

    def __init__(self, endpoint: str, status_code: int, body_excerpt: str = "") -> None:
        self.status_code = status_code
        self.body_excerpt = body_excerpt
        message = f"API returned error status {status_code}"
        if body_excerpt:
            message = f"{message}: {body_excerpt}"
        super().__init__(endpoint, message)


class DecodeError(FetchError):
    error_type = "decode_error"
    message = "Invalid JSON response"


class FetchErrorGroup(FetchError):
    """Several endpoints failed during one split-mode fetch."""

    error_type = "fetch_error_group"

    def __init__(self, errors: Sequence[FetchError]) -> None:
        self._errors = list(errors)
        endpoints = ", ".join(error.endpoint for error in self._errors)
        super().__init__(endpoints, "; ".join(str(error) for error in self._errors))

    def __str__(self) -> str:
        return f"{len(self._errors)} endpoints failed: {self.message}"

    @property
    def errors(self) -> list[ApiConfigError]:
        return list(self._errors)


class ResolutionError(ApiConfigError):
    error_type = "resolution_error"
    message = "Failed to resolve secret"


class EnvVarNotFoundError(ResolutionError):
    error_type = "env_var_not_found"

    def __init__(self, variable_name: str) -> None:
        self.variable_name = variable_name
        super().__init__(f"Environment variable '{variable_name}' is not set")


class UnsupportedSecretBackendError(ResolutionError):
    error_type = "unsupported_secret_backend"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Secret backend '{name}' is not supported")


class SecretBackendError(ResolutionError):
    error_type = "secret_backend_error"

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(f"Secret backend '{name}': {message}")


class TransformError(ApiConfigError):
    error_type = "transform_error"
    message = "Invalid configuration record"

    def __init__(self, record_kind: str, record_id: str, message: str | None = None) -> None:
        self.record_kind = record_kind
        self.record_id = record_id
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.record_kind} '{self.record_id}': {self.message}"


class MissingFieldError(TransformError):
    error_type = "missing_field"

    def __init__(self, record_kind: str, record_id: str, field: str) -> None:
        self.field = field
        super().__init__(record_kind, record_id, f"missing required field '{field}'")


class InvalidFieldError(TransformError):
    error_type = "invalid_field"

    def __init__(self, record_kind: str, record_id: str, field: str, detail: str) -> None:
        self.field = field
        self.detail = detail
        super().__init__(record_kind, record_id, f"invalid field '{field}': {detail}")


class SecretResolutionError(TransformError):
    error_type = "secret_resolution"

    def __init__(self, record_kind: str, record_id: str, field: str, cause: ResolutionError) -> None:
        self.field = field
        self.cause = cause
        super().__init__(record_kind, record_id, f"cannot resolve secret '{field}': {cause.message}")


class DanglingReferenceError(TransformError):
    error_type = "dangling_reference"

    def __init__(self, record_kind: str, record_id: str, target_kind: str, target_id: str) -> None:
        self.target_kind = target_kind
        self.target_id = target_id
        super().__init__(record_kind, record_id, f"references unknown {target_kind} '{target_id}'")

    @property
    def source(self) -> str:
        return f"{self.record_kind}:{self.record_id}"

    @property
    def target(self) -> str:
        return f"{self.target_kind}:{self.target_id}"


class DuplicateIdError(TransformError):
    error_type = "duplicate_id"

    def __init__(self, record_kind: str, record_id: str) -> None:
        super().__init__(record_kind, record_id, "duplicate id")


class ConfigTransformError(ApiConfigError):
    error_type = "config_transform_error"

    def __init__(self, errors: Sequence[TransformError]) -> None:
        self._errors = list(errors)
        super().__init__("; ".join(str(error) for error in self._errors))

    def __str__(self) -> str:
        return f"{len(self._errors)} configuration errors: {self.message}"

    @property
    def errors(self) -> list[ApiConfigError]:
        return list(self._errors)


class ConfigBootstrapError(ApiConfigError):
    """The first configuration could not be loaded; the process must not serve."""

    error_type = "config_bootstrap_error"

    def __init__(self, cause: ApiConfigError) -> None:
        self.cause = cause
        super().__init__(f"Initial configuration load failed: {cause}")

    @property
    def errors(self) -> list[ApiConfigError]:
        return self.cause.errors
