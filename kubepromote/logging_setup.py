"""CLI logging setup: plain %(message)s format on stdout."""

import logging
import sys

from kubepromote.redact import SecretRedactingFilter


def setup_cli_logging(verbose=False):
    """Configure the root logger for CLI commands.

    Output reads like print(); --verbose adds DEBUG records from the
    cluster adapters. The kubernetes client's own urllib3 chatter stays
    at WARNING either way.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    # Handler-level so records propagated from module loggers are covered too
    handler.addFilter(SecretRedactingFilter())
    root.addHandler(handler)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("kubernetes").setLevel(logging.WARNING)
