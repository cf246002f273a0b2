"""
Data models for storage layer.

Defines the records read from the OpenCode storage directory.
"""

from dataclasses import dataclass
from typing import Optional

from opencode_wrapped.core.token_counter import TokenUsage


ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


@dataclass(frozen=True)
class SessionRecord:
    """A coding session as stored under ``session/<project>/``.

    Timestamps are epoch milliseconds.
    """
    id: str
    project_id: str
    created_ms: int
    updated_ms: int
    directory: Optional[str] = None
    title: Optional[str] = None
    version: Optional[str] = None


@dataclass(frozen=True)
class MessageRecord:
    """A single user or assistant message as stored under ``message/<session>/``.

    Cost is only meaningful for the first-party provider. Absent token
    breakdowns are kept as None so callers can tell "no data" from zero.
    """
    id: str
    session_id: str
    role: str
    created_ms: int
    model_id: Optional[str] = None
    provider_id: Optional[str] = None
    cost: Optional[float] = None
    tokens: Optional[TokenUsage] = None
    completed_ms: Optional[int] = None
    agent: Optional[str] = None
    mode: Optional[str] = None

    @property
    def is_assistant(self) -> bool:
        return self.role == ROLE_ASSISTANT


@dataclass(frozen=True)
class ProjectRecord:
    """A project (worktree) known to OpenCode."""
    id: str
    worktree: str
    created_ms: int
    updated_ms: int
    vcs: Optional[str] = None
