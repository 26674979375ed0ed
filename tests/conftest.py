"""Shared fixtures: every test runs against a throwaway home and project dir."""

from pathlib import Path

import pytest

from skill_dock.config import settings


@pytest.fixture
def home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(settings, "home_dir", home)
    monkeypatch.setattr(settings, "github_token", "")
    return home


@pytest.fixture
def project(tmp_path, home, monkeypatch):
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    return project


@pytest.fixture
def make_skill(tmp_path):
    """Factory writing a skill source dir with a SKILL.md and extra files."""

    def _make(
        dirname: str,
        name: str | None = None,
        description: str = "A test skill",
        files: dict[str, str] | None = None,
        root: Path | None = None,
    ) -> Path:
        skill_dir = (root or tmp_path / "sources") / dirname
        skill_dir.mkdir(parents=True, exist_ok=True)
        (skill_dir / "SKILL.md").write_text(
            "---\n"
            f"name: {name or dirname}\n"
            f"description: {description}\n"
            "---\n\n"
            f"# {name or dirname}\n\nInstructions.\n"
        )
        for rel, content in (files or {}).items():
            path = skill_dir / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return skill_dir

    return _make
