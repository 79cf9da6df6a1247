"""Masking of credential values in log output and result reports.

The values to hide come from environment variables: the cluster and
registry tokens a CI job typically exports, the webhook token, plus any
names listed under `redact_env` in the deploy config.
"""

import logging
import os
import re

MASK = "***"

# Env vars whose values should never reach logs or reports
_SECRET_ENV_VARS = [
    "KUBE_TOKEN",
    "REGISTRY_PASSWORD",
    "REGISTRY_TOKEN",
    "NOTIFY_WEBHOOK_TOKEN",
]

_MIN_SECRET_LENGTH = 8  # skip short values to avoid false positives

_pattern: re.Pattern | None = None
_compiled = False


def add_secret_env_vars(names):
    """Extend the set of env vars whose values are masked."""
    global _compiled
    for name in names:
        if name not in _SECRET_ENV_VARS:
            _SECRET_ENV_VARS.append(name)
            _compiled = False


def _secret_pattern() -> re.Pattern | None:
    """One alternation over every secret value, longest first; None if there are none."""
    global _pattern, _compiled
    if not _compiled:
        values = {os.environ.get(var, "") for var in _SECRET_ENV_VARS}
        values = sorted((v for v in values if len(v) >= _MIN_SECRET_LENGTH), key=len, reverse=True)
        _pattern = re.compile("|".join(re.escape(v) for v in values)) if values else None
        _compiled = True
    return _pattern


def reset_cache():
    """Re-read secret values from the environment on next use."""
    global _compiled
    _compiled = False


def redact_secrets(text: str) -> str:
    """Replace known secret values in *text* with MASK."""
    pattern = _secret_pattern()
    return pattern.sub(MASK, text) if pattern else text


class SecretRedactingFilter(logging.Filter):
    """Logging filter that masks secret values in the message and its %-args.

    Attached to the CLI output handler by setup_cli_logging().
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if _secret_pattern() is None:
            return True
        record.msg = redact_secrets(str(record.msg))
        if isinstance(record.args, dict):
            record.args = {k: redact_secrets(v) if isinstance(v, str) else v for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(redact_secrets(a) if isinstance(a, str) else a for a in record.args)
        return True
