"""Lock file: which skills are installed, from where, at which folder hash."""

import hashlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import httpx
from pydantic import ValidationError

from skill_dock.config import settings
from skill_dock.core.cache import get_cached, set_cached
from skill_dock.models import SkillLockEntry, SkillLockFile

logger = logging.getLogger("skill-dock.lock")

CURRENT_VERSION = 3  # v3 added skillFolderHash


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def read_skill_lock(is_global: bool = True, cwd: Path | None = None) -> SkillLockFile:
    """Load the lock file.

    Missing, unreadable or pre-v3 files yield an empty lock (old formats are
    dropped so fresh installs repopulate folder hashes).
    """
    lock_path = settings.lock_path(is_global, cwd)
    if not lock_path.exists():
        return SkillLockFile(version=CURRENT_VERSION)

    try:
        data = json.loads(lock_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Failed to load lock file %s: %s", lock_path, e)
        return SkillLockFile(version=CURRENT_VERSION)

    if not isinstance(data, dict) or not isinstance(data.get("version"), int) or "skills" not in data:
        return SkillLockFile(version=CURRENT_VERSION)
    if data["version"] < CURRENT_VERSION:
        logger.info("Discarding lock file version %s", data["version"])
        return SkillLockFile(version=CURRENT_VERSION)

    try:
        return SkillLockFile.model_validate(data)
    except ValidationError as e:
        logger.warning("Invalid lock file %s: %s", lock_path, e)
        return SkillLockFile(version=CURRENT_VERSION)


def write_skill_lock(lock: SkillLockFile, is_global: bool = True, cwd: Path | None = None) -> None:
    """Save the lock file (pretty-printed, camelCase keys)."""
    lock_path = settings.lock_path(is_global, cwd)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.write_text(
        lock.model_dump_json(indent=2, by_alias=True, exclude_none=True),
        encoding="utf-8",
    )


def compute_content_hash(content: str) -> str:
    """SHA-256 hex digest of text content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def add_skill_to_lock(
    skill_name: str,
    entry: SkillLockEntry,
    is_global: bool = True,
    cwd: Path | None = None,
) -> SkillLockEntry:
    """Add or update a skill, keeping its original installed_at."""
    lock = read_skill_lock(is_global, cwd)
    now = _now_iso()
    existing = lock.skills.get(skill_name)

    stored = entry.model_copy(
        update={
            "installed_at": existing.installed_at if existing and existing.installed_at else now,
            "updated_at": now,
        }
    )
    lock.skills[skill_name] = stored
    write_skill_lock(lock, is_global, cwd)
    return stored


def remove_skill_from_lock(skill_name: str, is_global: bool = True, cwd: Path | None = None) -> bool:
    """Drop a skill from the lock. Returns False if it was not tracked."""
    lock = read_skill_lock(is_global, cwd)
    if skill_name not in lock.skills:
        return False
    del lock.skills[skill_name]
    write_skill_lock(lock, is_global, cwd)
    return True


def get_skill_from_lock(skill_name: str, is_global: bool = True, cwd: Path | None = None) -> SkillLockEntry | None:
    return read_skill_lock(is_global, cwd).skills.get(skill_name)


def get_all_locked_skills(is_global: bool = True, cwd: Path | None = None) -> dict[str, SkillLockEntry]:
    return read_skill_lock(is_global, cwd).skills


def get_skills_by_source(
    is_global: bool = True, cwd: Path | None = None
) -> dict[str, tuple[list[str], SkillLockEntry]]:
    """Group locked skills by source for batch updates."""
    by_source: dict[str, tuple[list[str], SkillLockEntry]] = {}
    for name, entry in read_skill_lock(is_global, cwd).skills.items():
        if entry.source in by_source:
            by_source[entry.source][0].append(name)
        else:
            by_source[entry.source] = ([name], entry)
    return by_source


def is_prompt_dismissed(prompt_key: str, is_global: bool = True, cwd: Path | None = None) -> bool:
    return bool(getattr(read_skill_lock(is_global, cwd).dismissed, prompt_key, False))


def dismiss_prompt(prompt_key: str, is_global: bool = True, cwd: Path | None = None) -> None:
    lock = read_skill_lock(is_global, cwd)
    setattr(lock.dismissed, prompt_key, True)
    write_skill_lock(lock, is_global, cwd)


def _folder_path(skill_path: str) -> str:
    """'skills/foo/SKILL.md' -> 'skills/foo'; '' for a root-level skill."""
    folder = skill_path.replace("\\", "/")
    manifest = settings.manifest_file
    if folder.endswith("/" + manifest):
        folder = folder[: -len(manifest) - 1]
    elif folder.endswith(manifest):
        folder = folder[: -len(manifest)]
    return folder.strip("/")


async def _fetch_tree(client: httpx.AsyncClient, owner_repo: str, branch: str) -> dict | None:
    cached = get_cached("tree", owner_repo, branch)
    if cached:
        return cached

    headers = {"Accept": "application/vnd.github.v3+json", "User-Agent": "skill-dock"}
    if settings.github_token:
        headers["Authorization"] = f"Bearer {settings.github_token}"

    try:
        resp = await client.get(
            f"https://api.github.com/repos/{owner_repo}/git/trees/{branch}",
            params={"recursive": "1"},
            headers=headers,
        )
    except httpx.HTTPError as e:
        logger.warning("GitHub tree request failed for %s@%s: %s", owner_repo, branch, e)
        return None
    if not resp.is_success:
        logger.debug("GitHub tree %s@%s: HTTP %d", owner_repo, branch, resp.status_code)
        return None

    try:
        data = resp.json()
    except ValueError as e:
        logger.warning("GitHub tree %s@%s: unreadable response: %s", owner_repo, branch, e)
        return None
    if not isinstance(data, dict):
        logger.warning("GitHub tree %s@%s: unexpected payload", owner_repo, branch)
        return None
    payload = {
        "sha": data.get("sha", ""),
        "trees": {e["path"]: e["sha"] for e in data.get("tree", []) if e.get("type") == "tree"},
    }
    set_cached("tree", owner_repo, branch, payload=payload)
    return payload


async def fetch_skill_folder_hash(
    owner_repo: str,
    skill_path: str,
    client: httpx.AsyncClient | None = None,
) -> str | None:
    """Return the GitHub tree SHA of a skill folder (main, then master).

    One Trees API call per branch; the SHA changes whenever any file in
    the folder changes.
    """
    folder = _folder_path(skill_path)
    http = client or httpx.AsyncClient(timeout=settings.http_timeout, follow_redirects=True)
    try:
        for branch in ("main", "master"):
            tree = await _fetch_tree(http, owner_repo, branch)
            if tree is None:
                continue
            if not folder:
                return tree["sha"] or None
            if folder in tree["trees"]:
                return tree["trees"][folder]
    finally:
        if client is None:
            await http.aclose()
    return None
