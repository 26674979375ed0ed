"""list: installed skills grouped by scope."""

from pathlib import Path

from skill_dock.agents import AGENTS, validate_agent_names
from skill_dock.core.scanner import list_installed_skills
from skill_dock.errors import SkillDockError


def list_skills(
    *,
    is_global: bool | None = None,
    agents: list[str] | None = None,
    cwd: Path | None = None,
) -> dict:
    """List installed skills.

    Args:
        is_global: True for global only, False for project only, None for both
        agents: Only report links for these agents

    Returns:
        Dictionary with a total and per-scope skill lists sorted by name.
    """
    if agents:
        invalid = validate_agent_names(agents)
        if invalid:
            raise SkillDockError(f"Invalid agents: {', '.join(invalid)}. Valid agents: {', '.join(AGENTS)}")

    found = list_installed_skills(is_global=is_global, agent_filter=agents, cwd=cwd)

    by_scope: dict[str, list[dict]] = {"project": [], "global": []}
    for skill in sorted(found, key=lambda s: s.name.lower()):
        by_scope[skill.scope].append({
            "name": skill.name,
            "description": skill.description,
            "path": skill.canonical_path,
            "agents": [AGENTS[a].display_name for a in skill.agents],
        })

    return {"total": len(found), **by_scope}
