"""
Detect other coding assistants installed for the current user.

Used to suggest their wrapped tools at the end of a run.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.text import Text


@dataclass(frozen=True)
class AgentInfo:
    """An assistant with its own wrapped command."""
    name: str
    id: str
    data_dir: str
    wrapped_command: str
    repo_url: str
    brand_color: str


AGENTS = (
    AgentInfo(
        name="Claude Code",
        id="claude",
        data_dir=".claude",
        wrapped_command="npx cc-wrapped",
        repo_url="https://github.com/numman-ali/cc-wrapped",
        brand_color="#D97757",
    ),
    AgentInfo(
        name="Codex",
        id="codex",
        data_dir=".codex",
        wrapped_command="npx codex-wrapped",
        repo_url="https://github.com/numman-ali/codex-wrapped",
        brand_color="#3b82f6",
    ),
    AgentInfo(
        name="Gemini CLI",
        id="gemini",
        data_dir=".gemini",
        wrapped_command="npx gemini-wrapped",
        repo_url="https://github.com/jackwotherspoon/gemini-cli-wrapped",
        brand_color="#CBA6F7",
    ),
)


def detect_installed_agents(home: Optional[Path] = None) -> List[AgentInfo]:
    """Agents whose data directory exists under ``home``."""
    home = home or Path.home()
    return [agent for agent in AGENTS if (home / agent.data_dir).exists()]


def display_agent_suggestions(console: Console, agents: List[AgentInfo]) -> None:
    if not agents:
        return

    width = max(len(agent.name) for agent in agents)
    body = Text()
    for agent in agents:
        body.append("  ")
        body.append(agent.name, style=f"underline {agent.brand_color} link {agent.repo_url}")
        body.append(" " * (width - len(agent.name)))
        body.append(f"  →  {agent.wrapped_command}\n", style="dim")
    body.append("\nGenerate wrapped stats for those too!")

    console.print(Panel(body, title="Other AI agents detected on your system", expand=False))
