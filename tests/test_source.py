"""Source string classification."""

import pytest

from skill_dock.core.source import is_local_path, parse_source, source_identifier


def test_local_paths(tmp_path):
    parsed = parse_source(str(tmp_path))
    assert parsed.type == "local"
    assert parsed.local_path == str(tmp_path.resolve())

    for value in ["./skills", "../x", ".", "..", "C:\\skills", "D:/skills"]:
        assert is_local_path(value), value
    assert not is_local_path("owner/repo")


def test_github_repo_url():
    parsed = parse_source("https://github.com/vercel-labs/agent-skills")
    assert parsed.type == "github"
    assert parsed.url == "https://github.com/vercel-labs/agent-skills.git"
    assert parsed.subpath is None
    assert parsed.ref is None

    assert parse_source("https://github.com/o/r.git").url == "https://github.com/o/r.git"


def test_github_tree_urls():
    parsed = parse_source("https://github.com/o/r/tree/main/skills/pdf")
    assert parsed.type == "github"
    assert parsed.url == "https://github.com/o/r.git"
    assert parsed.ref == "main"
    assert parsed.subpath == "skills/pdf"

    parsed = parse_source("https://github.com/o/r/tree/dev")
    assert parsed.ref == "dev"
    assert parsed.subpath is None


def test_gitlab_urls():
    parsed = parse_source("https://gitlab.com/group/proj/-/tree/main/skills/x")
    assert parsed.type == "gitlab"
    assert parsed.url == "https://gitlab.com/group/proj.git"
    assert parsed.ref == "main"
    assert parsed.subpath == "skills/x"

    parsed = parse_source("https://gitlab.com/group/proj")
    assert parsed.url == "https://gitlab.com/group/proj.git"


@pytest.mark.parametrize(
    "value, subpath, skill_filter",
    [
        ("owner/repo", None, None),
        ("owner/repo/skills/pdf", "skills/pdf", None),
        ("owner/repo@pdf-tools", None, "pdf-tools"),
        ("owner/repo/skills@pdf-tools", "skills", "pdf-tools"),
    ],
)
def test_shorthand(value, subpath, skill_filter):
    parsed = parse_source(value)
    assert parsed.type == "github"
    assert parsed.url == "https://github.com/owner/repo.git"
    assert parsed.subpath == subpath
    assert parsed.skill_filter == skill_filter


def test_git_fallback():
    parsed = parse_source("git@example.com:team/skills.git")
    assert parsed.type == "git"
    assert parsed.url == "git@example.com:team/skills.git"


def test_source_identifier():
    assert source_identifier(parse_source("owner/repo")) == "owner/repo"
    assert source_identifier(parse_source("https://gitlab.com/g/p")) == "g/p"
    assert source_identifier(parse_source("git@example.com:t/s.git")) == "git@example.com:t/s.git"
