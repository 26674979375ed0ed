"""Recursive skill tree copy that flattens symlinks into real content."""

import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger("skill-dock.copier")

EXCLUDE_FILES = frozenset({"README.md", "metadata.json"})


def is_excluded(name: str) -> bool:
    """Administrative files that never ship to an agent."""
    return name in EXCLUDE_FILES or name.startswith("_")


def _clear_dest(dest: Path, want_dir: bool) -> None:
    """Drop a destination entry that would be written through or is the wrong kind."""
    if dest.is_symlink():
        dest.unlink()
    elif want_dir and dest.is_file():
        dest.unlink()
    elif not want_dir and dest.is_dir():
        shutil.rmtree(dest)


def copy_tree(src: Path, dest: Path) -> None:
    """Mirror src into dest, minus administrative files.

    Symlinks inside src are resolved and their real content copied, so dest
    never contains symlinks. Broken symlinks are skipped. Raises OSError on
    genuine I/O failures.
    """
    _copy_dir(Path(src), Path(dest), frozenset())


def _copy_dir(src: Path, dest: Path, ancestors: frozenset[str]) -> None:
    real_src = os.path.realpath(src)
    if real_src in ancestors:
        logger.debug("Skipping symlink cycle at %s", src)
        return
    ancestors = ancestors | {real_src}

    _clear_dest(dest, want_dir=True)
    dest.mkdir(parents=True, exist_ok=True)

    with os.scandir(src) as it:
        entries = sorted(it, key=lambda e: e.name)

    for entry in entries:
        if is_excluded(entry.name):
            continue

        src_path = Path(entry.path)
        dest_path = dest / entry.name

        if entry.is_symlink():
            real = Path(os.path.realpath(src_path))
            if not real.exists():
                logger.debug("Skipping broken symlink: %s", src_path)
                continue
            if real.is_dir():
                _copy_dir(real, dest_path, ancestors)
            else:
                _clear_dest(dest_path, want_dir=False)
                shutil.copy2(real, dest_path)
        elif entry.is_dir():
            _copy_dir(src_path, dest_path, ancestors)
        else:
            _clear_dest(dest_path, want_dir=False)
            shutil.copy2(src_path, dest_path)
