"""add: fetch a source, pick skills, install them for agents, record the lock."""

import logging
from pathlib import Path

import httpx

from skill_dock.agents import AGENTS, detect_installed_agents, validate_agent_names
from skill_dock.config import settings
from skill_dock.core import remote
from skill_dock.core.git import cleanup_temp_dir, clone_repo
from skill_dock.core.installer import install_skill
from skill_dock.core.lock import add_skill_to_lock, compute_content_hash, fetch_skill_folder_hash
from skill_dock.core.manifest import discover_skills, parse_skill_md
from skill_dock.core.matcher import filter_skills, suggest_names
from skill_dock.core.paths import sanitize_name
from skill_dock.core.source import parse_source, source_identifier
from skill_dock.errors import ManifestError, RemoteFetchError, SkillDockError, SourceNotFoundError
from skill_dock.models import ParsedSource, Skill, SkillLockEntry

logger = logging.getLogger("skill-dock.add")


def resolve_agents(agents: list[str] | None, yes: bool) -> list[str]:
    """Explicit agents win; otherwise the detected ones, or all of them with --yes."""
    if agents:
        invalid = validate_agent_names(agents)
        if invalid:
            raise SkillDockError(f"Invalid agents: {', '.join(invalid)}. Valid agents: {', '.join(AGENTS)}")
        return list(dict.fromkeys(agents))

    detected = detect_installed_agents()
    if detected:
        return detected
    if yes:
        return list(AGENTS)
    raise SkillDockError("No agents detected. Pass --agent, or --yes to install for all agents.")


async def _fetch(parsed: ParsedSource) -> tuple[Path, Path | None]:
    """Return (source root, temp dir to clean up)."""
    if parsed.type == "local":
        root = Path(parsed.local_path or parsed.url)
        if not root.exists():
            raise SourceNotFoundError(str(root))
        return root, None

    temp_dir = await clone_repo(parsed.url, parsed.ref)
    return temp_dir, temp_dir


async def _unlock_private(skill: Skill, license_key: str | None, client: httpx.AsyncClient | None) -> Skill:
    """Swap a private skill's path for its licensed content."""
    if skill.auth_config is None:
        raise RemoteFetchError(f"Private skill '{skill.name}' has no valid {settings.auth_file}")
    if not license_key:
        raise RemoteFetchError(f"Skill '{skill.name}' is private: a license key is required")

    verified = await remote.verify_license(skill.auth_config, license_key, client)
    if not verified.valid:
        raise RemoteFetchError(f"License check failed for '{skill.name}': {verified.error}")

    if skill.auth_config.content is None:
        return skill

    fetched = await remote.fetch_private_skill_content(skill.auth_config, license_key, client)
    if not fetched.success:
        raise RemoteFetchError(f"Could not fetch '{skill.name}': {fetched.error}")

    if fetched.extracted_path:
        content_dir = Path(fetched.extracted_path)
    else:
        content_dir = remote.materialize_skill_content(fetched.content or "")

    unlocked = parse_skill_md(content_dir / settings.manifest_file)
    if unlocked is None:
        found = discover_skills(content_dir)
        unlocked = found[0] if found else None
    if unlocked is None:
        # Gated content without its own manifest keeps the public metadata
        return skill.model_copy(update={"path": content_dir})
    return unlocked.model_copy(update={"name": skill.name})


def _skill_path_in_repo(skill: Skill, root: Path) -> str:
    try:
        rel = skill.path.relative_to(root.resolve()).as_posix()
    except ValueError:
        return settings.manifest_file
    return settings.manifest_file if rel == "." else f"{rel}/{settings.manifest_file}"


async def _record_lock(
    skill: Skill,
    parsed: ParsedSource,
    root: Path,
    *,
    is_global: bool,
    cwd: Path | None,
    client: httpx.AsyncClient | None,
) -> None:
    identifier = source_identifier(parsed)
    skill_path = _skill_path_in_repo(skill, root)

    folder_hash = ""
    if parsed.type == "github":
        folder_hash = await fetch_skill_folder_hash(identifier, skill_path, client) or ""
    elif skill.raw_content:
        folder_hash = compute_content_hash(skill.raw_content)

    add_skill_to_lock(
        sanitize_name(skill.name),
        SkillLockEntry(
            source=identifier,
            source_type=parsed.type,
            source_url=parsed.url,
            skill_path=skill_path,
            skill_folder_hash=folder_hash,
        ),
        is_global=is_global,
        cwd=cwd,
    )


async def add_skills(
    source: str,
    *,
    agents: list[str] | None = None,
    skills: list[str] | None = None,
    is_global: bool = False,
    cwd: Path | None = None,
    no_symlink: bool = False,
    list_only: bool = False,
    yes: bool = False,
    license_key: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> dict:
    """Install skills from a source for a set of agents.

    Pipeline: parse -> fetch (local dir or shallow clone) -> discover ->
    filter -> install per agent -> lock update (remote sources) -> cleanup.

    Args:
        source: Local path, GitHub/GitLab URL, owner/repo[@skill] or git URL
        agents: Target agents (default: detected agents)
        skills: Skill names to install (default: all found; '*' for all)
        is_global: Install under the home dir instead of the project
        list_only: Only report the skills the source offers
        license_key: License for private skills

    Returns:
        Dict with the source, available skill names, per-agent results,
        and unmatched skill names with suggestions.

    Raises:
        SkillDockError: invalid agents, unreadable source, no skills found.
    """
    parsed = parse_source(source)
    wanted = list(skills or [])
    if parsed.skill_filter:
        wanted.append(parsed.skill_filter)

    root, temp_dir = await _fetch(parsed)
    try:
        found = discover_skills(root, parsed.subpath)
        if not found:
            raise ManifestError(f"No valid skills found in {source}")

        available = [s.name for s in found]
        if list_only:
            return {
                "source": source,
                "available": [{"name": s.name, "description": s.description} for s in found],
            }

        selected, missing = filter_skills(found, wanted) if wanted else (found, [])
        if not selected:
            hints = {name: suggest_names(name, available) for name in missing}
            raise ManifestError(
                f"No matching skills in {source}: {', '.join(missing)}"
                + "".join(f" (did you mean {', '.join(h)}?)" for h in hints.values() if h)
            )

        target_agents = resolve_agents(agents, yes)

        installed: list[dict] = []
        failed: list[dict] = []
        for skill in selected:
            if remote.is_private_skill(skill.metadata):
                skill = await _unlock_private(skill, license_key, client)

            results = install_skill(
                skill, target_agents, is_global=is_global, cwd=cwd, no_symlink=no_symlink
            )
            ok = [agent for agent, r in results.items() if r.success]
            for agent, result in results.items():
                entry = {"skill": skill.name, "agent": agent, **result.model_dump(exclude_none=True)}
                (installed if result.success else failed).append(entry)

            if ok and parsed.type != "local":
                await _record_lock(skill, parsed, root, is_global=is_global, cwd=cwd, client=client)

        logger.info("Installed %d skill(s) from %s", len(selected), source)
        return {
            "source": source,
            "available": available,
            "agents": target_agents,
            "installed": installed,
            "failed": failed,
            "missing": missing,
            "suggestions": {name: suggest_names(name, available) for name in missing},
        }
    finally:
        remote.cleanup_extracted_directories()
        if temp_dir is not None:
            cleanup_temp_dir(temp_dir)
