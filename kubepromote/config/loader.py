"""Deploy config loading and environment overlay merge."""

import os

import yaml

from kubepromote.config.types import DeployConfig

DEFAULT_CONFIG_FILE = "kubepromote.yaml"


def deep_merge(base, override):
    """Recursive dict merge. Override wins for scalars."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_raw_config(path):
    """Read a YAML config file, or a directory holding kubepromote.yaml."""
    if os.path.isdir(path):
        path = os.path.join(path, DEFAULT_CONFIG_FILE)
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(config).__name__}")
    return config


def load_config(path=None, environment=None):
    """Load the deploy config, deep-merging the selected environment overlay.

    With no path, returns defaults (a config file is optional). The
    selected environment name becomes the config's `environment` label
    unless the overlay sets one itself.
    """
    config = _load_raw_config(path) if path is not None else {}
    environments = config.pop("environments", None) or {}

    if environment:
        if environment not in environments:
            available = ", ".join(sorted(environments)) if environments else "none"
            raise ValueError(f"Unknown environment '{environment}'. Available environments: {available}")
        config = deep_merge(config, environments[environment] or {})
        config.setdefault("environment", environment)

    return DeployConfig.from_dict(config)
