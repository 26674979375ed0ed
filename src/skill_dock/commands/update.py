"""check / update: compare locked folder hashes with GitHub and reinstall."""

import logging
from pathlib import Path

import httpx

from skill_dock.agents import AGENTS
from skill_dock.commands.add import add_skills
from skill_dock.config import settings
from skill_dock.core.installer import is_skill_installed
from skill_dock.core.lock import fetch_skill_folder_hash, get_all_locked_skills
from skill_dock.errors import SkillDockError

logger = logging.getLogger("skill-dock.update")


async def check_updates(
    *,
    is_global: bool = True,
    cwd: Path | None = None,
    client: httpx.AsyncClient | None = None,
) -> dict:
    """Find locked GitHub skills whose folder hash changed upstream.

    Returns:
        Dictionary with checked count, updates (name, source, current and
        latest hash), skipped skills and lookup errors.
    """
    locked = get_all_locked_skills(is_global, cwd)
    updates: list[dict] = []
    skipped: list[str] = []
    errors: list[dict] = []

    http = client or httpx.AsyncClient(timeout=settings.http_timeout, follow_redirects=True)
    try:
        for name, entry in sorted(locked.items()):
            if entry.source_type != "github" or not entry.skill_path or not entry.skill_folder_hash:
                skipped.append(name)
                continue
            latest = await fetch_skill_folder_hash(entry.source, entry.skill_path, http)
            if latest is None:
                errors.append({"name": name, "source": entry.source, "error": "Could not fetch folder hash"})
            elif latest != entry.skill_folder_hash:
                updates.append({
                    "name": name,
                    "source": entry.source,
                    "source_url": entry.source_url,
                    "current": entry.skill_folder_hash,
                    "latest": latest,
                })
    finally:
        if client is None:
            await http.aclose()

    logger.info("Checked %d skill(s), %d update(s)", len(locked) - len(skipped), len(updates))
    return {
        "checked": len(locked) - len(skipped),
        "updates": updates,
        "skipped": skipped,
        "errors": errors,
    }


async def update_skills(
    *,
    is_global: bool = True,
    cwd: Path | None = None,
    client: httpx.AsyncClient | None = None,
) -> dict:
    """Reinstall every skill check_updates reports, for the agents that have it."""
    report = await check_updates(is_global=is_global, cwd=cwd, client=client)

    updated: list[str] = []
    failed: list[dict] = []
    for item in report["updates"]:
        name = item["name"]
        agents = [a for a in AGENTS if is_skill_installed(name, a, is_global=is_global, cwd=cwd)]
        try:
            await add_skills(
                item["source_url"],
                agents=agents or None,
                skills=[name],
                is_global=is_global,
                cwd=cwd,
                yes=True,
                client=client,
            )
        except SkillDockError as e:
            logger.warning("Failed to update %s: %s", name, e)
            failed.append({"name": name, "error": str(e)})
            continue
        updated.append(name)

    return {**report, "updated": updated, "failed": failed}
