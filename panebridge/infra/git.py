"""Git lookups for repository root resolution."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


async def find_repository_root(path: str) -> str | None:
    """Return the absolute work-tree root owning ``path``, or None.

    ``path`` may be a file (its directory is used) or a directory.
    """
    target = Path(path).expanduser()
    directory = target if target.is_dir() else target.parent
    if not directory.is_dir():
        logger.debug("No directory to resolve a repository from: %s", path)
        return None

    try:
        proc = await asyncio.create_subprocess_exec(
            "git", "-C", str(directory), "rev-parse", "--show-toplevel",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        logger.warning("git executable not found")
        return None
    stdout, _ = await proc.communicate()
    if proc.returncode != 0:
        return None
    root = stdout.decode().strip()
    return root or None
