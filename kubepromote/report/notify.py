"""Webhook notification of a finished run."""

import json
import logging
import os

import httpx

from kubepromote.report.render import result_json

logger = logging.getLogger(__name__)


async def notify_webhook(result, url, timeout=10.0, dry_run=False):
    """POST the JSON report to *url*.

    Best-effort: a failing webhook is logged and returns False, it never
    changes the run's status. A bearer token is sent when
    NOTIFY_WEBHOOK_TOKEN is set.

    Returns:
        True if the webhook accepted the report (or in dry-run mode).
    """
    payload = json.loads(result_json(result))

    if dry_run:
        logger.info(f"[dry-run] POST {url}")
        return True

    headers = {"Content-Type": "application/json"}
    token = os.environ.get("NOTIFY_WEBHOOK_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        async with httpx.AsyncClient() as client:
            resp = await client.post(url, json=payload, headers=headers, timeout=timeout)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(f"WARNING: notification to {url} failed: {e}")
        return False

    logger.info(f"Notified {url} ({resp.status_code})")
    return True
