"""Cleanup handler: best-effort release of local transient state after every run."""

import asyncio
import logging
import os
import shutil

from kubepromote.deploy.errors import CleanupFailure
from kubepromote.shell import run_shell_cmd

logger = logging.getLogger(__name__)


def remove_local_image(image_reference, dry_run=False):
    """Cleanup action: drop the locally cached image layers (`docker image rm`)."""

    async def action():
        rc, _, stderr = await run_shell_cmd(["docker", "image", "rm", image_reference], dry_run=dry_run, timeout=120)
        if rc != 0:
            raise RuntimeError(stderr.strip() or f"docker exited with {rc}")

    return action


def remove_workdir(path, dry_run=False):
    """Cleanup action: delete a scratch working directory if it is still there."""

    async def action():
        if dry_run:
            logger.info(f"[dry-run] rm -rf {path}")
            return
        if os.path.isdir(path):
            await asyncio.to_thread(shutil.rmtree, path)

    return action


class CleanupHandler:
    """Runs registered cleanup actions once, in order, never raising.

    Each failing action becomes a CleanupFailure that is logged and
    returned; the remaining actions still run.
    """

    def __init__(self, actions=None):
        self.actions: list[tuple[str, object]] = list(actions or [])
        self.runs = 0

    def add(self, name, action):
        self.actions.append((name, action))

    async def run(self) -> list[CleanupFailure]:
        if self.runs:
            logger.debug("Cleanup already ran, skipping")
            return []
        self.runs += 1

        failures = []
        for name, action in self.actions:
            logger.info(f"Cleanup: {name}")
            try:
                await action()
            except Exception as e:
                failure = CleanupFailure(name, str(e) or type(e).__name__)
                logger.warning(f"WARNING: {failure}")
                failures.append(failure)
        return failures
