from apiconfig.config_runtime.fetcher import ConfigDocument, ConfigFetcher, build_url
from apiconfig.config_runtime.integration import ApiConfigIntegration, api_config_integration, bootstrap
from apiconfig.config_runtime.poller import ConfigPoller, PollState, load_config
from apiconfig.config_runtime.published import ConfigSnapshot, PublishedConfig, detect_changes, has_changes
from apiconfig.config_runtime.secrets import BaseSecretManager, SecretResolver
from apiconfig.config_runtime.transformer import transform

__all__ = [
    "ApiConfigIntegration",
    "BaseSecretManager",
    "ConfigDocument",
    "ConfigFetcher",
    "ConfigPoller",
    "ConfigSnapshot",
    "PollState",
    "PublishedConfig",
    "SecretResolver",
    "api_config_integration",
    "bootstrap",
    "build_url",
    "detect_changes",
    "has_changes",
    "load_config",
    "transform",
]
