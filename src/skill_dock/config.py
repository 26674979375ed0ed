"""Configuration for skill-dock."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """skill-dock configuration loaded from environment and .env file."""

    # Scope root for global installs (agent global dirs are relative to it)
    home_dir: Path = Path.home()

    # Canonical store layout: <scope-root>/.agents/skills/<name>/
    agents_dir_name: str = ".agents"
    skills_subdir: str = "skills"

    # Lock file lives next to the canonical store: <scope-root>/.agents/.skill-lock.json
    lock_file: str = ".skill-lock.json"

    # Skill descriptor files
    manifest_file: str = "SKILL.md"
    auth_file: str = "SKILL.auth.json"

    # Declarative skill list (./.skills or ~/.skills)
    skills_file: str = ".skills"

    # Authentication tokens (loaded from env or .env, never committed)
    github_token: str = ""

    # HTTP settings for GitHub API and private skill endpoints
    http_timeout: float = 30.0
    http_max_retries: int = 2
    http_backoff: float = 0.5  # seconds, doubled per retry

    # git clone depth for remote sources
    clone_depth: int = 1

    # Cache settings
    cache_dir: str = ".cache"  # relative to the global .agents dir
    cache_tree_ttl: int = 300  # GitHub tree lookups

    model_config = {"env_prefix": "SKILL_DOCK_", "env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def scope_root(self, is_global: bool, cwd: Path | str | None = None) -> Path:
        """Return the home dir for global scope, else the working directory."""
        if is_global:
            return self.home_dir
        return Path(cwd) if cwd is not None else Path.cwd()

    def canonical_skills_dir(self, is_global: bool, cwd: Path | str | None = None) -> Path:
        """Return <scope-root>/.agents/skills"""
        return self.scope_root(is_global, cwd) / self.agents_dir_name / self.skills_subdir

    def lock_path(self, is_global: bool = True, cwd: Path | str | None = None) -> Path:
        return self.scope_root(is_global, cwd) / self.agents_dir_name / self.lock_file

    @property
    def cache_path(self) -> Path:
        return self.home_dir / self.agents_dir_name / self.cache_dir


settings = Settings()
