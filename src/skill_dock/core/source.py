"""Classify a user-supplied skill source string."""

import os
import re
from pathlib import Path

from skill_dock.models import ParsedSource

_WINDOWS_ABS = re.compile(r"^[a-zA-Z]:[/\\]")

_GITHUB_TREE_PATH = re.compile(r"github\.com/([^/]+)/([^/]+)/tree/([^/]+)/(.+)")
_GITHUB_TREE = re.compile(r"github\.com/([^/]+)/([^/]+)/tree/([^/]+)/?$")
_GITHUB_REPO = re.compile(r"github\.com/([^/]+)/([^/?#]+)")

_GITLAB_TREE_PATH = re.compile(r"gitlab\.com/([^/]+)/([^/]+)/-/tree/([^/]+)/(.+)")
_GITLAB_TREE = re.compile(r"gitlab\.com/([^/]+)/([^/]+)/-/tree/([^/]+)/?$")
_GITLAB_REPO = re.compile(r"gitlab\.com/([^/]+)/([^/?#]+)")

_SHORTHAND = re.compile(r"^([^/@]+)/([^/@]+)(?:/([^@]+?))?/?(?:@(.+))?$")


def is_local_path(value: str) -> bool:
    return (
        os.path.isabs(value)
        or value.startswith(("./", "../", ".\\", "..\\"))
        or value in (".", "..")
        or bool(_WINDOWS_ABS.match(value))
    )


def _clean_repo(repo: str) -> str:
    return repo[:-4] if repo.endswith(".git") else repo


def parse_source(value: str) -> ParsedSource:
    """Parse a source into local / github / gitlab / git.

    Supports local paths, GitHub and GitLab URLs (with /tree/<ref>[/path]),
    owner/repo[/path][@skill] shorthand, and direct git URLs.
    """
    value = value.strip()

    if is_local_path(value):
        resolved = str(Path(value).expanduser().resolve())
        return ParsedSource(type="local", url=resolved, local_path=resolved)

    if m := _GITHUB_TREE_PATH.search(value):
        owner, repo, ref, subpath = m.groups()
        return ParsedSource(
            type="github",
            url=f"https://github.com/{owner}/{_clean_repo(repo)}.git",
            ref=ref,
            subpath=subpath.rstrip("/"),
        )
    if m := _GITHUB_TREE.search(value):
        owner, repo, ref = m.groups()
        return ParsedSource(type="github", url=f"https://github.com/{owner}/{_clean_repo(repo)}.git", ref=ref)
    if m := _GITHUB_REPO.search(value):
        owner, repo = m.groups()
        return ParsedSource(type="github", url=f"https://github.com/{owner}/{_clean_repo(repo)}.git")

    if m := _GITLAB_TREE_PATH.search(value):
        owner, repo, ref, subpath = m.groups()
        return ParsedSource(
            type="gitlab",
            url=f"https://gitlab.com/{owner}/{_clean_repo(repo)}.git",
            ref=ref,
            subpath=subpath.rstrip("/"),
        )
    if m := _GITLAB_TREE.search(value):
        owner, repo, ref = m.groups()
        return ParsedSource(type="gitlab", url=f"https://gitlab.com/{owner}/{_clean_repo(repo)}.git", ref=ref)
    if m := _GITLAB_REPO.search(value):
        owner, repo = m.groups()
        return ParsedSource(type="gitlab", url=f"https://gitlab.com/{owner}/{_clean_repo(repo)}.git")

    if ":" not in value and not value.startswith((".", "/")):
        if m := _SHORTHAND.match(value):
            owner, repo, subpath, skill_filter = m.groups()
            return ParsedSource(
                type="github",
                url=f"https://github.com/{owner}/{_clean_repo(repo)}.git",
                subpath=subpath,
                skill_filter=skill_filter,
            )

    return ParsedSource(type="git", url=value)


def source_identifier(parsed: ParsedSource) -> str:
    """Short lock-file key: owner/repo for GitHub/GitLab, else the URL."""
    if parsed.type in ("github", "gitlab"):
        m = re.search(r"\.com/([^/]+)/([^/]+?)(?:\.git)?$", parsed.url)
        if m:
            return f"{m.group(1)}/{m.group(2)}"
    return parsed.url
