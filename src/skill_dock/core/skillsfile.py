"""Declarative .skills file: one source per line, optional skill names after it.

    # .skills
    vercel-labs/agent-skills
    owner/repo specific-skill
    owner/repo 'skill with spaces' another-skill
    ./local-path/to/skill
"""

import logging
from pathlib import Path

from skill_dock.config import settings
from skill_dock.core.paths import sanitize_name
from skill_dock.core.source import parse_source, source_identifier
from skill_dock.models import SkillLockEntry, SkillsFileConfig, SkillsFileEntry

logger = logging.getLogger("skill-dock.skillsfile")


def tokenize(line: str) -> list[str]:
    """Split on spaces/tabs, honoring single and double quotes.

    "a 'b c'd" -> ["a", "b cd"]: a quote runs until its closing quote.
    """
    tokens: list[str] = []
    current = ""
    quote: str | None = None

    for char in line:
        if quote:
            if char == quote:
                quote = None
            else:
                current += char
        elif char in ("'", '"'):
            quote = char
        elif char in (" ", "\t"):
            if current:
                tokens.append(current)
                current = ""
        else:
            current += char

    if current:
        tokens.append(current)
    return tokens


def parse_skills_entry(raw: str) -> SkillsFileEntry:
    tokens = tokenize(raw)
    if not tokens:
        return SkillsFileEntry(source=raw)
    if len(tokens) == 1:
        return SkillsFileEntry(source=tokens[0])
    return SkillsFileEntry(source=tokens[0], skills=tokens[1:])


def parse_skills_file(path: Path) -> list[str]:
    """Non-empty, non-comment lines of a .skills file, stripped."""
    sources = []
    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            sources.append(stripped)
    return sources


def _load(path: Path, is_global: bool) -> SkillsFileConfig:
    sources = parse_skills_file(path)
    return SkillsFileConfig(
        path=path,
        is_global=is_global,
        sources=sources,
        entries=[parse_skills_entry(s) for s in sources],
    )


def find_skills_file(cwd: Path | None = None, home: Path | None = None) -> SkillsFileConfig | None:
    """Project ./.skills wins over ~/.skills. None if neither exists."""
    cwd = cwd or Path.cwd()
    home = home or settings.home_dir

    local = cwd / settings.skills_file
    if local.is_file():
        return _load(local, is_global=False)

    global_file = home / settings.skills_file
    if global_file.is_file():
        return _load(global_file, is_global=True)

    return None


def get_installed_skill_names(is_global: bool, cwd: Path | None = None) -> list[str]:
    """Entries of the canonical store that have a manifest or any content."""
    skills_dir = settings.canonical_skills_dir(is_global, cwd)
    try:
        entries = sorted(skills_dir.iterdir())
    except OSError:
        return []

    names = []
    for entry in entries:
        if not entry.is_dir():
            continue
        if (entry / settings.manifest_file).is_file():
            names.append(entry.name)
            continue
        try:
            if any(entry.iterdir()):
                names.append(entry.name)
        except OSError:
            continue
    return names


def _source_keys(source: str) -> set[str]:
    """A .skills source and its normalized lock identifier."""
    keys = {source}
    parsed = parse_source(source)
    keys.add(parsed.url)
    keys.add(source_identifier(parsed))
    return keys


def _name_matches(skill_name: str, wanted: list[str]) -> bool:
    name = skill_name.lower()
    return any(name == w.lower() or sanitize_name(skill_name) == sanitize_name(w) for w in wanted)


def skills_to_remove(
    locked: dict[str, SkillLockEntry],
    entries: list[SkillsFileEntry],
    installed: list[str],
) -> list[str]:
    """Locked, installed skills that no .skills entry asks for.

    Skills installed by hand (not in the lock) are never removed.
    """
    keep: set[str] = set()
    for skill_name, lock_entry in locked.items():
        for entry in entries:
            keys = _source_keys(entry.source)
            if lock_entry.source not in keys and lock_entry.source_url not in keys:
                continue
            if not entry.skills or _name_matches(skill_name, entry.skills):
                keep.add(skill_name)
                break

    removable = [name for name in installed if name in locked and name not in keep]
    logger.debug("Sync: keep=%s remove=%s", sorted(keep), removable)
    return removable
