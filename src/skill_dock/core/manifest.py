"""SKILL.md frontmatter parsing and skill discovery inside a fetched source."""

import logging
import re
from pathlib import Path

import yaml

from skill_dock.config import settings
from skill_dock.core.paths import is_path_safe
from skill_dock.core.remote import parse_auth_config
from skill_dock.models import Skill

logger = logging.getLogger("skill-dock.manifest")

_FRONTMATTER = re.compile(r"^---\s*\n(.*?)\n---", re.DOTALL)

# Conventional places multi-skill repos keep their skills
_PRIORITY_DIRS = ("skills", ".agents/skills", ".claude/skills", "skills/.curated", "skills/.experimental")
_SKIP_DIRS = {".git", "node_modules", "__pycache__", ".venv", "dist", "build"}
_MAX_DEPTH = 5


def parse_frontmatter(content: str) -> dict | None:
    """Return the YAML frontmatter of a markdown document, or None."""
    fm_match = _FRONTMATTER.match(content.lstrip("\ufeff"))
    if not fm_match:
        return None
    try:
        meta = yaml.safe_load(fm_match.group(1))
    except yaml.YAMLError as e:
        logger.debug("Invalid frontmatter: %s", e)
        return None
    return meta if isinstance(meta, dict) else None


def parse_skill_md(path: Path) -> Skill | None:
    """Parse a SKILL.md file into a Skill rooted at its directory.

    Returns None when the file is missing or lacks a string name/description.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Cannot read %s: %s", path, e)
        return None

    meta = parse_frontmatter(content)
    if meta is None:
        return None

    name = meta.get("name")
    description = meta.get("description")
    if not isinstance(name, str) or not name.strip():
        return None
    if not isinstance(description, str):
        return None

    auth_config = None
    auth_path = path.parent / settings.auth_file
    if auth_path.is_file():
        auth_config = parse_auth_config(auth_path.read_text(encoding="utf-8"))
        if auth_config is None:
            logger.warning("Ignoring invalid %s in %s", settings.auth_file, path.parent)

    extra = {k: v for k, v in meta.items() if k not in ("name", "description")}
    return Skill(
        name=name.strip(),
        description=description.strip(),
        path=path.parent.resolve(),
        raw_content=content,
        metadata=extra,
        auth_config=auth_config,
    )


def _skill_in(directory: Path) -> Skill | None:
    manifest = directory / settings.manifest_file
    if manifest.is_file():
        return parse_skill_md(manifest)
    return None


def _walk(directory: Path, depth: int):
    """Yield subdirectories, parents before children, up to _MAX_DEPTH."""
    if depth > _MAX_DEPTH:
        return
    try:
        children = sorted(p for p in directory.iterdir() if p.is_dir() and p.name not in _SKIP_DIRS)
    except OSError:
        return
    yield from children
    for child in children:
        yield from _walk(child, depth + 1)


def discover_skills(root: Path, subpath: str | None = None) -> list[Skill]:
    """Find skills in a fetched source tree.

    Searches in order of preference:
    1. SKILL.md at the (sub)root: a single-skill source
    2. Conventional skill folders (skills/, .agents/skills/, ...)
    3. Any directory below the root (depth-limited)
    """
    search_root = root / subpath if subpath else root
    if subpath and not is_path_safe(root, search_root):
        logger.warning("Ignoring subpath outside the source: %s", subpath)
        return []
    if not search_root.is_dir():
        return []

    root_skill = _skill_in(search_root)
    if root_skill:
        return [root_skill]

    found: dict[str, Skill] = {}

    for rel in _PRIORITY_DIRS:
        base = search_root / rel
        if not base.is_dir():
            continue
        for child in sorted(base.iterdir()):
            if child.is_dir():
                skill = _skill_in(child)
                if skill and skill.name not in found:
                    found[skill.name] = skill

    if not found:
        for directory in _walk(search_root, 1):
            skill = _skill_in(directory)
            if skill and skill.name not in found:
                found[skill.name] = skill

    logger.info("Discovered %d skill(s) under %s", len(found), search_root)
    return list(found.values())
