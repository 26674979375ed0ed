"""Shallow git clones into temp dirs."""

import asyncio
import logging
import os
import re
import shutil
import tempfile
from pathlib import Path

from skill_dock.config import settings
from skill_dock.errors import CloneError, InvalidGitUrlError

logger = logging.getLogger("skill-dock.git")

_DANGEROUS_PATTERNS = (
    re.compile(r"\s--"),  # option injection
    re.compile(r"\s-[a-zA-Z]"),
    re.compile(r"[;|&`]"),
    re.compile(r"\$\("),
    re.compile(r"[<>]"),
)

_VALID_PROTOCOLS = ("https://", "http://", "git://", "ssh://", "git@")


def is_valid_git_url(url: str) -> bool:
    """Reject URLs carrying shell/option injection or an unknown protocol."""
    if any(p.search(url) for p in _DANGEROUS_PATTERNS):
        return False
    return url.startswith(_VALID_PROTOCOLS)


async def clone_repo(url: str, ref: str | None = None) -> Path:
    """Shallow-clone url into a fresh temp dir and return it.

    Raises InvalidGitUrlError before touching the filesystem, CloneError if
    git fails (the temp dir is removed first).
    """
    if not is_valid_git_url(url):
        raise InvalidGitUrlError(url)

    temp_dir = Path(tempfile.mkdtemp(prefix="skill-dock-"))
    args = ["git", "clone", "--depth", str(settings.clone_depth), "--single-branch", "--no-tags"]
    if ref:
        args += ["--branch", ref]
    args += ["--", url, str(temp_dir)]

    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await process.communicate()
    except OSError as e:
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise CloneError(url, str(e)) from e

    if process.returncode != 0:
        shutil.rmtree(temp_dir, ignore_errors=True)
        logger.error("Git clone failed: %s", stderr.decode(errors="replace"))
        raise CloneError(url, stderr.decode(errors="replace"))

    logger.info("Cloned: %s", url)
    return temp_dir


def cleanup_temp_dir(directory: Path | str) -> None:
    """Remove a clone dir. Refuses anything outside the system temp dir."""
    target = os.path.normpath(os.path.abspath(directory))
    tmp_root = os.path.normpath(os.path.abspath(tempfile.gettempdir()))
    if target != tmp_root and not target.startswith(tmp_root + os.sep):
        raise ValueError("Attempted to clean up directory outside of temp directory")
    shutil.rmtree(target, ignore_errors=True)
