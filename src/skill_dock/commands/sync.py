"""install: bring the canonical store in line with a .skills file."""

import logging
from pathlib import Path

from skill_dock.commands.add import add_skills
from skill_dock.commands.remove import remove_skill
from skill_dock.core.lock import get_all_locked_skills
from skill_dock.core.skillsfile import find_skills_file, get_installed_skill_names, skills_to_remove
from skill_dock.errors import SkillDockError

logger = logging.getLogger("skill-dock.sync")


async def install_from_file(
    *,
    cwd: Path | None = None,
    agents: list[str] | None = None,
    sync: bool = False,
    no_symlink: bool = False,
) -> dict:
    """Install every source listed in ./.skills (or ~/.skills).

    Each entry runs as a non-interactive add; a failing source does not stop
    the rest. With sync, locked skills the file no longer asks for are removed.

    Returns:
        Dictionary with the file used, per-source outcomes and removed skills.
    """
    cwd = Path(cwd) if cwd is not None else Path.cwd()
    config = find_skills_file(cwd)
    if config is None:
        return {"found": False}

    succeeded: list[dict] = []
    failed: list[dict] = []
    for entry in config.entries:
        label = f"{entry.source} {' '.join(entry.skills)}" if entry.skills else entry.source
        try:
            result = await add_skills(
                entry.source,
                agents=agents,
                skills=entry.skills,
                is_global=config.is_global,
                cwd=cwd,
                no_symlink=no_symlink,
                yes=True,
            )
        except SkillDockError as e:
            logger.warning("Failed to install %s: %s", label, e)
            failed.append({"source": label, "error": str(e)})
            continue
        succeeded.append({"source": label, "installed": sorted({r["skill"] for r in result["installed"]})})

    removed: list[str] = []
    if sync:
        locked = get_all_locked_skills(config.is_global, cwd)
        installed = get_installed_skill_names(config.is_global, cwd)
        for name in skills_to_remove(locked, config.entries, installed):
            outcome = remove_skill(name, is_global=config.is_global, cwd=cwd)
            if outcome["removed"]:
                removed.append(name)

    return {
        "found": True,
        "path": str(config.path),
        "scope": "global" if config.is_global else "project",
        "sources": len(config.entries),
        "succeeded": succeeded,
        "failed": failed,
        "removed": removed,
    }
