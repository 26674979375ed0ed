"""Directory links from agent skill dirs to the canonical store."""

import logging
import os
import shutil
import sys
from pathlib import Path

logger = logging.getLogger("skill-dock.linker")


def _same_path(a: str | Path, b: str | Path) -> bool:
    return os.path.normcase(os.path.normpath(os.path.abspath(a))) == os.path.normcase(
        os.path.normpath(os.path.abspath(b))
    )


def link_points_to(link_path: Path, target: Path) -> bool:
    """Return True if link_path is a symlink whose payload resolves to target."""
    if not link_path.is_symlink():
        return False
    payload = os.readlink(link_path)
    resolved = os.path.join(os.path.dirname(os.path.abspath(link_path)), payload)
    return _same_path(resolved, target) or _same_path(os.path.realpath(link_path), os.path.realpath(target))


def _remove_existing(link_path: Path) -> None:
    if link_path.is_symlink() or link_path.is_file():
        link_path.unlink()
    else:
        shutil.rmtree(link_path)


def _make_dir_link(target: Path, link_path: Path) -> None:
    """Create a directory link of the native kind for this host."""
    if sys.platform == "win32":
        # Junctions need no privilege but only accept absolute targets
        import _winapi

        _winapi.CreateJunction(str(target.resolve()), str(link_path))
        return

    # Relative to the resolved parents so the payload survives symlinked skill dirs
    real_target = os.path.join(os.path.realpath(target.parent), target.name)
    relative = os.path.relpath(real_target, os.path.realpath(link_path.parent))
    os.symlink(relative, link_path, target_is_directory=True)


def create_symlink(target: Path, link_path: Path) -> bool:
    """Link link_path to target, replacing whatever occupies link_path.

    Returns True when the link exists afterwards (including when it was
    already correct), False when the caller must fall back to copying.
    """
    try:
        if link_path.is_symlink():
            if link_points_to(link_path, target):
                logger.debug("Symlink already correct: %s -> %s", link_path, target)
                return True
            link_path.unlink()
        elif link_path.exists():
            if _same_path(os.path.realpath(link_path), os.path.realpath(target)):
                # link_path already is the target through a symlinked parent
                logger.debug("Link path resolves to target, leaving it: %s", link_path)
                return True
            _remove_existing(link_path)

        link_path.parent.mkdir(parents=True, exist_ok=True)
        _make_dir_link(target, link_path)
        logger.info("Symlink: %s -> %s", link_path, target)
        return True
    except OSError as e:
        logger.debug("Symlink %s -> %s failed: %s", link_path, target, e)
        return False
