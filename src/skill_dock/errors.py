"""Exception classes for skill-dock."""


class SkillDockError(Exception):
    """Base class for all skill-dock errors."""

    pass


class PathTraversalError(SkillDockError):
    """Raised when a computed path escapes its base directory."""

    def __init__(self, message: str = "Invalid skill name: potential path traversal detected"):
        super().__init__(message)


class SourceNotFoundError(SkillDockError):
    """Raised when a local source path does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Local path does not exist: {path}")


class InvalidGitUrlError(SkillDockError):
    """Raised when a git URL fails the injection/protocol checks."""

    def __init__(self, url: str):
        self.url = url
        super().__init__("Invalid or potentially malicious git URL")


class CloneError(SkillDockError):
    """Raised when git clone fails."""

    def __init__(self, url: str, stderr: str = ""):
        self.url = url
        self.stderr = stderr
        message = f"Failed to clone {url}"
        if stderr:
            message += f": {stderr.strip()}"
        super().__init__(message)


class ManifestError(SkillDockError):
    """Raised when no valid SKILL.md can be found for a source."""

    pass


class RemoteFetchError(SkillDockError):
    """Raised when a remote endpoint (GitHub API, private skill server) fails."""

    pass


class UnsafeArchiveError(SkillDockError):
    """Raised when a skill tarball cannot be extracted safely."""

    pass
