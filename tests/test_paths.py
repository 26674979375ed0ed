"""Name sanitizer and path containment checks."""

import os

import pytest

from skill_dock.core.paths import (
    FALLBACK_NAME,
    get_canonical_path,
    get_install_path,
    is_path_safe,
    raw_name_escapes,
    sanitize_name,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("my-skill", "my-skill"),
        ("../../etc", "etc"),
        ("/etc/passwd", "etcpasswd"),
        ("a\\b:c", "abc"),
        ("evil\0name", "evilname"),
        ("  .hidden. ", "hidden"),
        ("...", FALLBACK_NAME),
        ("", FALLBACK_NAME),
        ("Web Design", "Web Design"),
    ],
)
def test_sanitize_name(raw, expected):
    assert sanitize_name(raw) == expected


def test_sanitize_name_truncates():
    """Names are capped at 255 characters."""
    assert len(sanitize_name("x" * 400)) == 255


def test_sanitized_names_are_single_segments():
    for raw in ["../a", "a/../../b", "..\\..\\c", "C:\\Windows", ". .", "\0"]:
        safe = sanitize_name(raw)
        assert safe
        assert not any(ch in safe for ch in "/\\:\0")
        assert not safe.startswith(".")
        assert safe == safe.strip()


def test_is_path_safe(tmp_path):
    base = tmp_path / "skills"
    assert is_path_safe(base, base)
    assert is_path_safe(base, base / "foo")
    assert is_path_safe(base, base / "foo" / ".." / "bar")
    assert not is_path_safe(base, base / ".." / "other")
    assert not is_path_safe(base, tmp_path / "skills-evil")
    assert not is_path_safe(base, "/etc/passwd")


def test_raw_name_escapes(tmp_path):
    base = tmp_path / "skills"
    assert raw_name_escapes(base, "../../etc")
    assert raw_name_escapes(base, "/etc/passwd")
    assert raw_name_escapes(base, "ok\0name")
    assert not raw_name_escapes(base, "plain-name")
    assert not raw_name_escapes(base, "nested/inside")


def test_canonical_and_install_paths(home, project):
    """Both scopes resolve under the expected roots."""
    assert get_canonical_path("demo") == project / ".agents" / "skills" / "demo"
    assert get_canonical_path("demo", is_global=True) == home / ".agents" / "skills" / "demo"
    assert get_install_path("demo", "claude-code") == project / ".claude" / "skills" / "demo"
    assert get_install_path("demo", "claude-code", is_global=True) == home / ".claude" / "skills" / "demo"
    assert get_install_path("../../x", "cursor").parent == project / ".cursor" / "skills"


def test_install_path_unknown_agent(project):
    with pytest.raises(KeyError):
        get_install_path("demo", "not-an-agent")


def test_paths_stay_in_base_for_hostile_names(project):
    base = os.fspath(project / ".agents" / "skills")
    for raw in ["../../etc", "/etc/passwd", "..", "a/../../b"]:
        assert is_path_safe(base, get_canonical_path(raw))
