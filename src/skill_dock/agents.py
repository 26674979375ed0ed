"""Supported agents and where each one reads skills from."""

from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from skill_dock.config import settings
from skill_dock.models import AgentConfig

# name, display name, project dir, global dir (home-relative), detection probes
_AGENT_TABLE: list[tuple[str, str, str, str, tuple[str, ...]]] = [
    ("amp", "Amp", ".agents/skills", ".config/agents/skills", (".config/amp",)),
    ("antigravity", "Antigravity", ".agent/skills", ".gemini/antigravity/skills", (".gemini/antigravity",)),
    ("augment", "Augment", ".augment/rules", ".augment/rules", (".augment",)),
    ("claude-code", "Claude Code", ".claude/skills", ".claude/skills", (".claude",)),
    ("cline", "Cline", ".cline/skills", ".cline/skills", (".cline",)),
    ("codebuddy", "CodeBuddy", ".codebuddy/skills", ".codebuddy/skills", (".codebuddy",)),
    ("codex", "Codex", ".codex/skills", ".codex/skills", (".codex",)),
    ("command-code", "Command Code", ".commandcode/skills", ".commandcode/skills", (".commandcode",)),
    ("continue", "Continue", ".continue/skills", ".continue/skills", (".continue",)),
    ("crush", "Crush", ".crush/skills", ".config/crush/skills", (".config/crush",)),
    ("cursor", "Cursor", ".cursor/skills", ".cursor/skills", (".cursor",)),
    ("droid", "Droid", ".factory/skills", ".factory/skills", (".factory",)),
    ("gemini-cli", "Gemini CLI", ".gemini/skills", ".gemini/skills", (".gemini",)),
    ("github-copilot", "GitHub Copilot", ".github/skills", ".copilot/skills", (".copilot",)),
    ("goose", "Goose", ".goose/skills", ".config/goose/skills", (".config/goose",)),
    ("junie", "Junie", ".junie/skills", ".junie/skills", (".junie",)),
    ("kilo", "Kilo Code", ".kilocode/skills", ".kilocode/skills", (".kilocode",)),
    ("kimi-cli", "Kimi Code CLI", ".agents/skills", ".config/agents/skills", (".kimi",)),
    ("kiro-cli", "Kiro CLI", ".kiro/skills", ".kiro/skills", (".kiro",)),
    ("kode", "Kode", ".kode/skills", ".kode/skills", (".kode",)),
    ("mcpjam", "MCPJam", ".mcpjam/skills", ".mcpjam/skills", (".mcpjam",)),
    ("moltbot", "Moltbot", "skills", ".moltbot/skills", (".moltbot",)),
    ("mux", "Mux", ".mux/skills", ".mux/skills", (".mux",)),
    ("neovate", "Neovate", ".neovate/skills", ".neovate/skills", (".neovate",)),
    ("opencode", "OpenCode", ".opencode/skill", ".config/opencode/skill", (".config/opencode",)),
    ("openhands", "OpenHands", ".openhands/skills", ".openhands/skills", (".openhands",)),
    ("pi", "Pi", ".pi/skills", ".pi/agent/skills", (".pi/agent",)),
    ("qoder", "Qoder", ".qoder/skills", ".qoder/skills", (".qoder",)),
    ("qwen-code", "Qwen Code", ".qwen/skills", ".qwen/skills", (".qwen",)),
    ("roo", "Roo Code", ".roo/skills", ".roo/skills", (".roo",)),
    ("trae", "Trae", ".trae/skills", ".trae/skills", (".trae",)),
    ("windsurf", "Windsurf", ".windsurf/skills", ".codeium/windsurf/skills", (".codeium/windsurf",)),
    ("zencoder", "Zencoder", ".zencoder/skills", ".zencoder/skills", (".zencoder",)),
    ("pochi", "Pochi", ".pochi/skills", ".pochi/skills", (".pochi",)),
]


def _build_registry() -> Mapping[str, AgentConfig]:
    agents = {
        name: AgentConfig(
            name=name,
            display_name=display,
            skills_dir=skills_dir,
            global_skills_dir=global_dir,
            detect_paths=probes,
        )
        for name, display, skills_dir, global_dir, probes in _AGENT_TABLE
    }
    return MappingProxyType(agents)


AGENTS: Mapping[str, AgentConfig] = _build_registry()


def get_agent(name: str) -> AgentConfig:
    """Look up an agent by identifier."""
    try:
        return AGENTS[name]
    except KeyError:
        raise KeyError(f"Unknown agent '{name}'. Valid agents: {', '.join(AGENTS)}") from None


def validate_agent_names(names: list[str]) -> list[str]:
    """Return the names that are not known agents."""
    return [n for n in names if n not in AGENTS]


def detect_installed_agents(home: Path | None = None) -> list[str]:
    """Return identifiers of agents whose config dirs exist under home."""
    home = home if home is not None else settings.home_dir
    return [name for name, agent in AGENTS.items() if agent.detect_installed(home)]


def agent_skills_dir(agent: AgentConfig, is_global: bool, cwd: Path | None = None) -> Path:
    """Return the agent's skills dir for the given scope."""
    if is_global:
        return agent.global_skills_path(settings.home_dir)
    return agent.project_skills_path(Path(cwd) if cwd is not None else Path.cwd())
