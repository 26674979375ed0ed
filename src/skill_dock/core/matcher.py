"""Select skills by name, with typo-tolerant suggestions on a miss."""

import logging

from rapidfuzz import fuzz, process

from skill_dock.core.paths import sanitize_name
from skill_dock.models import Skill

logger = logging.getLogger("skill-dock.matcher")

SUGGEST_CUTOFF = 60.0
SUGGEST_LIMIT = 3


def _keys(skill: Skill) -> set[str]:
    return {skill.name.lower(), skill.path.name.lower(), sanitize_name(skill.name).lower()}


def filter_skills(skills: list[Skill], wanted: list[str]) -> tuple[list[Skill], list[str]]:
    """Split wanted names into matched skills and unmatched names.

    A skill matches on its manifest name, its directory name or its
    sanitized name, case-insensitively. '*' selects everything.
    """
    if "*" in wanted:
        return list(skills), []

    selected: list[Skill] = []
    missing: list[str] = []
    for name in wanted:
        needle = name.lower()
        hits = [s for s in skills if needle in _keys(s)]
        if not hits:
            missing.append(name)
            continue
        for hit in hits:
            if hit not in selected:
                selected.append(hit)
    return selected, missing


def suggest_names(query: str, candidates: list[str], limit: int = SUGGEST_LIMIT) -> list[str]:
    """Closest candidate names to query, best first."""
    if not query or not candidates:
        return []
    matches = process.extract(
        query.lower(),
        {c: c.lower() for c in candidates},
        scorer=fuzz.WRatio,
        limit=limit,
        score_cutoff=SUGGEST_CUTOFF,
    )
    logger.debug("Suggestions for '%s': %s", query, matches)
    return [key for _, _, key in matches]
