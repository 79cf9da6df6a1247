"""Deploy configuration loading."""

from kubepromote.config.loader import DEFAULT_CONFIG_FILE, deep_merge, load_config
from kubepromote.config.types import (
    CleanupConfig,
    DeployConfig,
    NotifyConfig,
    ServiceConfig,
    UpdateConfig,
)

__all__ = [
    "CleanupConfig",
    "DEFAULT_CONFIG_FILE",
    "DeployConfig",
    "NotifyConfig",
    "ServiceConfig",
    "UpdateConfig",
    "deep_merge",
    "load_config",
]
