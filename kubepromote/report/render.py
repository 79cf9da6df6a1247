"""Human-readable and JSON renderings of a DeployResult."""

import json
import logging
from pathlib import Path

from kubepromote.redact import redact_secrets

logger = logging.getLogger(__name__)


def render_report(result) -> list[str]:
    """Summary lines for the end of a run."""
    ctx = result.context
    lines = [
        "",
        f"Status: {result.status}",
        f"Workload: {ctx.namespace}/{ctx.workload_name}",
        f"Image: {ctx.image_reference}",
        f"Action: {result.intent or 'none'}",
        f"Replicas: {result.observed_replicas if result.observed_replicas is not None else '?'}/{ctx.desired_replicas} running",
    ]
    if ctx.environment_label:
        lines.append(f"Environment: {ctx.environment_label}")
    if ctx.branch or ctx.commit:
        lines.append(f"Source: {ctx.branch or '?'}@{ctx.commit[:12] if ctx.commit else '?'}")
    if result.error is not None:
        lines.append(f"Error: {result.error.kind}: {result.error}")
    for warning in result.warnings:
        lines.append(f"Warning: {warning.kind}: {warning}")
    return lines


def log_report(result):
    level = logging.INFO if result.succeeded else logging.ERROR
    for line in render_report(result):
        logger.log(level, line)


def result_json(result) -> str:
    return redact_secrets(json.dumps(result.to_dict(), indent=2, sort_keys=True))


def write_result_file(result, path) -> str:
    """Write the JSON report to *path*; returns the path written."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(result_json(result) + "\n")
    logger.info(f"Result written to {path}")
    return str(path)
