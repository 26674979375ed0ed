"""remove: drop agent entries, then the canonical copy once nothing uses it."""

import logging
from pathlib import Path

from skill_dock.agents import AGENTS, validate_agent_names
from skill_dock.config import settings
from skill_dock.core.installer import (
    is_skill_installed,
    remove_canonical_skill,
    remove_skill_from_agent,
)
from skill_dock.core.lock import remove_skill_from_lock
from skill_dock.core.paths import get_canonical_path, raw_name_escapes, sanitize_name
from skill_dock.core.scanner import list_installed_skills
from skill_dock.errors import PathTraversalError, SkillDockError

logger = logging.getLogger("skill-dock.remove")


def _agents_with_skill(name: str, is_global: bool, cwd: Path | None) -> list[str]:
    return [a for a in AGENTS if is_skill_installed(name, a, is_global=is_global, cwd=cwd)]


def remove_skill(
    name: str,
    *,
    agents: list[str] | None = None,
    is_global: bool = False,
    cwd: Path | None = None,
) -> dict:
    """Remove one skill from the given agents (default: every agent that has it).

    The canonical dir and lock entry go too once no other agent still sees
    the skill.
    """
    if raw_name_escapes(settings.canonical_skills_dir(is_global, cwd), name):
        raise PathTraversalError()

    present = _agents_with_skill(name, is_global, cwd)
    canonical_exists = get_canonical_path(name, is_global=is_global, cwd=cwd).exists()
    if not present and not canonical_exists:
        return {"skill": name, "removed": False, "error": "Not installed", "installed_for": []}

    targets = [a for a in (agents or list(AGENTS)) if a in present]
    if agents and not targets:
        return {
            "skill": name,
            "removed": False,
            "error": "Not installed for the specified agents",
            "installed_for": present,
        }

    removed_from: list[str] = []
    errors: dict[str, str] = {}
    for agent in targets:
        result = remove_skill_from_agent(name, agent, is_global=is_global, cwd=cwd)
        if result.success:
            removed_from.append(agent)
        else:
            errors[agent] = result.error or "unknown error"

    remaining = [a for a in _agents_with_skill(name, is_global, cwd) if a not in targets]
    canonical_removed = False
    if not remaining and not errors:
        canonical_removed = remove_canonical_skill(name, is_global=is_global, cwd=cwd)
        remove_skill_from_lock(sanitize_name(name), is_global=is_global, cwd=cwd)

    logger.info("Removed '%s' from %s (canonical removed: %s)", name, removed_from, canonical_removed)
    return {
        "skill": name,
        "removed": bool(removed_from) or canonical_removed,
        "agents": removed_from,
        "canonical_removed": canonical_removed,
        "errors": errors,
        "skipped": [a for a in (agents or []) if a not in present],
    }


def remove_skills(
    names: list[str],
    *,
    agents: list[str] | None = None,
    is_global: bool = False,
    cwd: Path | None = None,
    remove_all: bool = False,
) -> dict:
    """Remove several skills; with remove_all, every skill in the scope.

    Returns:
        Dictionary with per-skill results.
    """
    if agents:
        invalid = validate_agent_names(agents)
        if invalid:
            raise SkillDockError(f"Invalid agents: {', '.join(invalid)}. Valid agents: {', '.join(AGENTS)}")

    if remove_all:
        installed = list_installed_skills(is_global=is_global, cwd=cwd)
        names = sorted({Path(s.canonical_path).name for s in installed})
    if not names:
        raise SkillDockError("Please provide a skill name to remove (or --all)")

    results = [remove_skill(n, agents=agents, is_global=is_global, cwd=cwd) for n in names]
    return {"removed": sum(1 for r in results if r["removed"]), "results": results}
