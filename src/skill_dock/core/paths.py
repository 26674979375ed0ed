"""Name sanitization and path containment checks for install targets."""

import os
import re
from pathlib import Path

from skill_dock.agents import agent_skills_dir, get_agent
from skill_dock.config import settings
from skill_dock.errors import PathTraversalError

MAX_NAME_LENGTH = 255
FALLBACK_NAME = "unnamed-skill"

_UNSAFE_CHARS = re.compile(r"[/\\:\0]")
_EDGE_DOTS_SPACES = re.compile(r"^[.\s]+|[.\s]+$")
_LEADING_DOTS = re.compile(r"^\.+")


def sanitize_name(name: str) -> str:
    """Turn an arbitrary skill name into a single safe path segment.

    Lossy: distinct unsafe names may map to the same result.
    """
    sanitized = _UNSAFE_CHARS.sub("", name)
    sanitized = _EDGE_DOTS_SPACES.sub("", sanitized)
    sanitized = _LEADING_DOTS.sub("", sanitized)

    if not sanitized:
        sanitized = FALLBACK_NAME

    return sanitized[:MAX_NAME_LENGTH]


def is_path_safe(base_path: str | Path, target_path: str | Path) -> bool:
    """Return True if target_path is base_path or lies inside it."""
    base = os.path.normpath(os.path.abspath(base_path))
    target = os.path.normpath(os.path.abspath(target_path))

    prefix = base if base.endswith(os.sep) else base + os.sep
    return target == base or target.startswith(prefix)


def raw_name_escapes(base_path: str | Path, raw_name: str) -> bool:
    """Return True if the unsanitized name would leave base_path.

    Catches names like '../../etc' or '/etc/passwd' and NUL injection
    before sanitization hides them.
    """
    if "\0" in raw_name:
        return True
    return not is_path_safe(base_path, os.path.join(os.fspath(base_path), raw_name))


def get_canonical_path(
    skill_name: str,
    *,
    is_global: bool = False,
    cwd: Path | None = None,
) -> Path:
    """Return <scope-root>/.agents/skills/<sanitized-name>."""
    canonical_base = settings.canonical_skills_dir(is_global, cwd)
    canonical_path = canonical_base / sanitize_name(skill_name)

    if not is_path_safe(canonical_base, canonical_path):
        raise PathTraversalError()

    return canonical_path


def get_install_path(
    skill_name: str,
    agent_type: str,
    *,
    is_global: bool = False,
    cwd: Path | None = None,
) -> Path:
    """Return the agent-visible install location for a skill."""
    agent_base = agent_skills_dir(get_agent(agent_type), is_global, cwd)
    install_path = agent_base / sanitize_name(skill_name)

    if not is_path_safe(agent_base, install_path):
        raise PathTraversalError()

    return install_path
