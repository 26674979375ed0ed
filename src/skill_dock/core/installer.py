"""Skill installation: canonical copy, then symlink (or copy) per agent."""

import logging
import os
import shutil
from pathlib import Path

from skill_dock.agents import agent_skills_dir, get_agent
from skill_dock.config import settings
from skill_dock.core.copier import copy_tree
from skill_dock.core.linker import create_symlink
from skill_dock.core.paths import (
    get_canonical_path,
    get_install_path,
    is_path_safe,
    raw_name_escapes,
    sanitize_name,
)
from skill_dock.errors import PathTraversalError
from skill_dock.models import InstallResult, Skill

logger = logging.getLogger("skill-dock.installer")

TRAVERSAL_ERROR = "Invalid skill name: potential path traversal detected"


def _resolved_entry(path: Path) -> str:
    return os.path.normcase(os.path.join(os.path.realpath(path.parent), path.name))


def _same_location(a: Path, b: Path) -> bool:
    """True if a and b name one entry once their parent dirs are resolved."""
    return _resolved_entry(a) == _resolved_entry(b)


def _is_source_itself(source: Path, dest: Path) -> bool:
    """True if dest is a real directory that already is the source."""
    return dest.exists() and not dest.is_symlink() and os.path.realpath(source) == os.path.realpath(dest)


def install_skill_for_agent(
    skill: Skill,
    agent_type: str,
    *,
    is_global: bool = False,
    cwd: Path | None = None,
    no_symlink: bool = False,
) -> InstallResult:
    """Install one skill for one agent.

    Pipeline:
    1. Sanitize the name and validate canonical/agent targets
    2. Copy the source tree into the canonical store
    3. Link the agent dir to the canonical dir (or copy if linking is off/fails)

    Never raises; failures come back as InstallResult(success=False).
    """
    try:
        agent = get_agent(agent_type)
    except KeyError as e:
        return InstallResult(success=False, path="", error=str(e.args[0]))
    cwd = Path(cwd) if cwd is not None else Path.cwd()

    raw_name = skill.name or Path(skill.path).name
    skill_name = sanitize_name(raw_name)

    canonical_base = settings.canonical_skills_dir(is_global, cwd)
    canonical_dir = canonical_base / skill_name

    agent_base = agent_skills_dir(agent, is_global, cwd)
    agent_dir = agent_base / skill_name

    if raw_name_escapes(canonical_base, raw_name) or raw_name_escapes(agent_base, raw_name):
        logger.warning("Rejected skill name %r for %s: path traversal", raw_name, agent_type)
        return InstallResult(success=False, path=str(agent_dir), error=TRAVERSAL_ERROR)

    if not is_path_safe(canonical_base, canonical_dir) or not is_path_safe(agent_base, agent_dir):
        return InstallResult(success=False, path=str(agent_dir), error=TRAVERSAL_ERROR)

    source = Path(skill.path)
    self_loop = _same_location(canonical_dir, agent_dir)

    try:
        # Canonical store first; a leftover symlink here would be copied through
        if canonical_dir.is_symlink():
            canonical_dir.unlink()
        if not _is_source_itself(source, canonical_dir):
            copy_tree(source, canonical_dir)

        if no_symlink:
            if not self_loop:
                copy_tree(source, agent_dir)
            logger.info("Installed '%s' for %s (copy) -> %s", skill_name, agent_type, agent_dir)
            return InstallResult(success=True, path=str(agent_dir), canonical_path=str(canonical_dir))

        if self_loop:
            logger.info("Installed '%s' for %s (canonical) -> %s", skill_name, agent_type, agent_dir)
            return InstallResult(success=True, path=str(agent_dir), canonical_path=str(canonical_dir))

        if create_symlink(canonical_dir, agent_dir):
            logger.info("Installed '%s' for %s (symlink) -> %s", skill_name, agent_type, agent_dir)
            return InstallResult(success=True, path=str(agent_dir), canonical_path=str(canonical_dir))

        logger.warning("Symlink failed for '%s' (%s), copying instead", skill_name, agent_type)
        copy_tree(source, agent_dir)
        return InstallResult(
            success=True,
            path=str(agent_dir),
            canonical_path=str(canonical_dir),
            symlink_failed=True,
        )

    except OSError as e:
        logger.error("Installation failed for '%s' (%s): %s", skill_name, agent_type, e)
        return InstallResult(success=False, path=str(agent_dir), error=str(e) or type(e).__name__)


def install_skill(
    skill: Skill,
    agents: list[str],
    *,
    is_global: bool = False,
    cwd: Path | None = None,
    no_symlink: bool = False,
) -> dict[str, InstallResult]:
    """Install a skill for each agent in order. Best-effort, no rollback."""
    return {
        agent_type: install_skill_for_agent(
            skill, agent_type, is_global=is_global, cwd=cwd, no_symlink=no_symlink
        )
        for agent_type in agents
    }


def is_skill_installed(
    skill_name: str,
    agent_type: str,
    *,
    is_global: bool = False,
    cwd: Path | None = None,
) -> bool:
    """Return True if the agent has an entry (link or dir) for this skill."""
    try:
        install_path = get_install_path(skill_name, agent_type, is_global=is_global, cwd=cwd)
    except PathTraversalError:
        return False
    return install_path.is_symlink() or install_path.exists()


def remove_skill_from_agent(
    skill_name: str,
    agent_type: str,
    *,
    is_global: bool = False,
    cwd: Path | None = None,
) -> InstallResult:
    """Remove an agent's entry for a skill, leaving the canonical store alone."""
    try:
        install_path = get_install_path(skill_name, agent_type, is_global=is_global, cwd=cwd)
    except PathTraversalError as e:
        return InstallResult(success=False, path="", error=str(e))

    canonical_path = get_canonical_path(skill_name, is_global=is_global, cwd=cwd)
    if _same_location(install_path, canonical_path):
        # This agent reads the canonical store directly; the caller removes it
        return InstallResult(success=True, path=str(install_path), canonical_path=str(canonical_path))

    try:
        if install_path.is_symlink() or install_path.is_file():
            install_path.unlink()
        elif install_path.exists():
            shutil.rmtree(install_path)
        else:
            return InstallResult(success=False, path=str(install_path), error="Not installed")
    except OSError as e:
        return InstallResult(success=False, path=str(install_path), error=str(e))

    logger.info("Removed %s entry: %s", agent_type, install_path)
    return InstallResult(success=True, path=str(install_path))


def remove_canonical_skill(
    skill_name: str,
    *,
    is_global: bool = False,
    cwd: Path | None = None,
) -> bool:
    """Delete the canonical store entry. Returns False if it did not exist."""
    canonical_path = get_canonical_path(skill_name, is_global=is_global, cwd=cwd)
    if canonical_path.is_symlink():
        canonical_path.unlink()
    elif canonical_path.exists():
        shutil.rmtree(canonical_path)
    else:
        return False
    logger.info("Removed canonical directory: %s", canonical_path)
    return True
