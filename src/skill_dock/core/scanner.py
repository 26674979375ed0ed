"""Installed-skills scanner: rebuild what is installed from the filesystem.

Two strategies, because agent directory names need not match canonical names:

1. Walk the canonical store and, per agent, look for an entry under the
   sanitized name (or the canonical dir name) that resolves to it.
2. Walk each agent's skills dir for entries not yet attributed: symlinks are
   matched to canonical entries by resolved path, real directories with a
   valid manifest count as self-contained installs.
"""

import logging
import os
from pathlib import Path

from skill_dock.agents import AGENTS, agent_skills_dir
from skill_dock.config import settings
from skill_dock.core.manifest import parse_skill_md
from skill_dock.core.paths import sanitize_name
from skill_dock.models import InstalledSkill, Scope, Skill

logger = logging.getLogger("skill-dock.scanner")


def _real(path: Path) -> str:
    return os.path.normcase(os.path.realpath(path))


def _iter_entries(directory: Path) -> list[Path]:
    """Subdirectories and symlinks of a directory, sorted; empty if missing."""
    try:
        return sorted(p for p in directory.iterdir() if p.is_symlink() or p.is_dir())
    except OSError:
        return []


def _read_manifest(directory: Path) -> Skill | None:
    return parse_skill_md(directory / settings.manifest_file)


def _scan_scope(
    scope: Scope,
    agent_names: list[str],
    cwd: Path,
) -> list[InstalledSkill]:
    is_global = scope == "global"
    canonical_base = settings.canonical_skills_dir(is_global, cwd)

    # Keyed by resolved canonical path
    records: dict[str, InstalledSkill] = {}
    attributed: set[tuple[str, str]] = set()  # (agent, entry path) already accounted for

    # Strategy 1: canonical store first
    for entry in _iter_entries(canonical_base):
        skill = _read_manifest(entry)
        if skill is None:
            logger.debug("Skipping %s: no valid manifest", entry)
            continue

        real_canonical = _real(entry)
        record = InstalledSkill(
            name=skill.name,
            description=skill.description,
            canonical_path=str(entry),
            scope=scope,
        )
        records[real_canonical] = record

        for agent_name in agent_names:
            agent_base = agent_skills_dir(AGENTS[agent_name], is_global, cwd)
            for candidate_name in dict.fromkeys((sanitize_name(skill.name), entry.name)):
                candidate = agent_base / candidate_name
                if not (candidate.is_symlink() or candidate.exists()):
                    continue
                if _real(candidate) == real_canonical:
                    linked = True
                elif candidate.is_dir() and not candidate.is_symlink():
                    # Copy-mode install under the same name
                    copied = _read_manifest(candidate)
                    linked = copied is not None and copied.name == skill.name
                else:
                    linked = False
                if linked:
                    if agent_name not in record.agents:
                        record.agents.append(agent_name)
                    attributed.add((agent_name, str(candidate)))
                    break

    # Strategy 2: agent dirs, reconciled by resolved path
    for agent_name in agent_names:
        agent_base = agent_skills_dir(AGENTS[agent_name], is_global, cwd)
        if _real(agent_base) == _real(canonical_base):
            continue  # the canonical walk already covered this agent

        for entry in _iter_entries(agent_base):
            if (agent_name, str(entry)) in attributed:
                continue

            if entry.is_symlink():
                real_target = _real(entry)
                record = records.get(real_target)
                if record is None:
                    if not os.path.isdir(real_target):
                        logger.debug("Skipping dangling link %s", entry)
                        continue
                    skill = _read_manifest(Path(real_target))
                    if skill is None:
                        continue
                    record = InstalledSkill(
                        name=skill.name,
                        description=skill.description,
                        canonical_path=real_target,
                        scope=scope,
                    )
                    records[real_target] = record
            else:
                skill = _read_manifest(entry)
                if skill is None:
                    continue
                record = next((r for r in records.values() if r.name == skill.name), None)
                if record is None:
                    # Self-contained install with no canonical entry
                    record = InstalledSkill(
                        name=skill.name,
                        description=skill.description,
                        canonical_path=str(entry),
                        scope=scope,
                    )
                    records[_real(entry)] = record

            if agent_name not in record.agents:
                record.agents.append(agent_name)
            attributed.add((agent_name, str(entry)))

    return list(records.values())


def list_installed_skills(
    *,
    is_global: bool | None = None,
    agent_filter: list[str] | None = None,
    cwd: Path | None = None,
) -> list[InstalledSkill]:
    """Discover installed skills.

    Args:
        is_global: True for global only, False for project only, None for both
        agent_filter: Only check these agents for links (skills are still listed)
        cwd: Project root (defaults to the working directory)

    Returns:
        InstalledSkill records; order is not meaningful.
    """
    cwd = Path(cwd) if cwd is not None else Path.cwd()
    agent_names = [a for a in (agent_filter or list(AGENTS)) if a in AGENTS]

    scopes: list[Scope] = []
    if is_global is not True:
        scopes.append("project")
    if is_global is not False:
        scopes.append("global")

    results: list[InstalledSkill] = []
    for scope in scopes:
        # Project and global roots coincide when running from the home dir
        if scope == "global" and "project" in scopes and _real(cwd) == _real(settings.home_dir):
            continue
        results.extend(_scan_scope(scope, agent_names, cwd))

    logger.info("Found %d installed skill(s)", len(results))
    return results
