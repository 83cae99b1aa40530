from .errors import (
    ApiConfigError,
    ConfigBootstrapError,
    ConfigTransformError,
    DanglingReferenceError,
    DecodeError,
    DuplicateIdError,
    EnvVarNotFoundError,
    FetchError,
    FetchErrorGroup,
    FetchTimeoutError,
    HttpStatusError,
    InvalidFieldError,
    MissingFieldError,
    ResolutionError,
    SecretBackendError,
    SecretResolutionError,
    TransformError,
    TransportError,
    UnsupportedSecretBackendError,
)

__all__ = [
    "ApiConfigError",
    "ConfigBootstrapError",
    "ConfigTransformError",
    "DanglingReferenceError",
    "DecodeError",
    "DuplicateIdError",
    "EnvVarNotFoundError",
    "FetchError",
    "FetchErrorGroup",
    "FetchTimeoutError",
    "HttpStatusError",
    "InvalidFieldError",
    "MissingFieldError",
    "ResolutionError",
    "SecretBackendError",
    "SecretResolutionError",
    "TransformError",
    "TransportError",
    "UnsupportedSecretBackendError",
]
