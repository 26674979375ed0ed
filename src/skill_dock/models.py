"""Data models for skill-dock."""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Scope = Literal["project", "global"]
SourceType = Literal["github", "gitlab", "git", "local"]


class AuthEndpoint(BaseModel):
    """One endpoint of a private skill's SKILL.auth.json."""

    endpoint: str
    method: Literal["GET", "POST"]
    token_header: str = Field(alias="tokenHeader")
    token_prefix: str = Field(alias="tokenPrefix")

    model_config = ConfigDict(populate_by_name=True)


class SkillAuthConfig(BaseModel):
    """Private skill auth configuration (verify is required, content optional)."""

    verify: AuthEndpoint
    content: AuthEndpoint | None = None


class Skill(BaseModel):
    """A resolved skill: manifest metadata plus its fetched source directory."""

    name: str
    description: str = ""
    path: Path  # already-fetched source dir, never mutated by the installer
    raw_content: str | None = None  # raw SKILL.md text, used for hashing
    metadata: dict[str, Any] = Field(default_factory=dict)
    auth_config: SkillAuthConfig | None = None


class AgentConfig(BaseModel):
    """Static per-agent directory layout."""

    name: str
    display_name: str
    skills_dir: str  # relative to the project root
    global_skills_dir: str  # relative to the home dir
    detect_paths: tuple[str, ...] = ()  # relative to the home dir

    model_config = ConfigDict(frozen=True)

    def project_skills_path(self, cwd: Path) -> Path:
        return cwd / self.skills_dir

    def global_skills_path(self, home: Path) -> Path:
        return home / self.global_skills_dir

    def detect_installed(self, home: Path) -> bool:
        """Probe the home dir for this agent's config directories."""
        return any((home / p).exists() for p in self.detect_paths)


class InstallResult(BaseModel):
    """Result of installing one skill for one agent."""

    success: bool
    path: str  # agent-visible install location
    canonical_path: str | None = None
    symlink_failed: bool = False
    error: str | None = None

    model_config = ConfigDict(frozen=True)


class InstalledSkill(BaseModel):
    """A skill discovered on disk by the installed-skills scanner."""

    name: str
    description: str = ""
    canonical_path: str
    scope: Scope
    agents: list[str] = Field(default_factory=list)


class ParsedSource(BaseModel):
    """A classified skill source string."""

    type: SourceType
    url: str
    subpath: str | None = None
    local_path: str | None = None
    ref: str | None = None
    skill_filter: str | None = None  # from owner/repo@skill-name


class SkillLockEntry(BaseModel):
    """A single installed skill in the lock file (camelCase on disk)."""

    source: str
    source_type: str = Field(alias="sourceType")
    source_url: str = Field(alias="sourceUrl")
    skill_path: str | None = Field(default=None, alias="skillPath")
    skill_folder_hash: str = Field(default="", alias="skillFolderHash")
    installed_at: str = Field(default="", alias="installedAt")
    updated_at: str = Field(default="", alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class DismissedPrompts(BaseModel):
    find_skills_prompt: bool = Field(default=False, alias="findSkillsPrompt")

    model_config = ConfigDict(populate_by_name=True)


class SkillLockFile(BaseModel):
    """Lock file tracking installed skills per scope."""

    version: int = 3
    skills: dict[str, SkillLockEntry] = Field(default_factory=dict)
    dismissed: DismissedPrompts = Field(default_factory=DismissedPrompts)


class SkillsFileEntry(BaseModel):
    """A line of a .skills file: a source plus optional skill names."""

    source: str
    skills: list[str] | None = None


class SkillsFileConfig(BaseModel):
    path: Path
    is_global: bool
    sources: list[str] = Field(default_factory=list)
    entries: list[SkillsFileEntry] = Field(default_factory=list)


class LicenseVerificationResult(BaseModel):
    valid: bool
    error: str | None = None
    expires_at: str | None = None


class FetchContentResult(BaseModel):
    """Private skill content: plain SKILL.md text or an extracted tarball dir."""

    success: bool
    content: str | None = None
    extracted_path: str | None = None
    error: str | None = None
