"""Agent events emitted during one user turn.

Each case of the event variant is its own dataclass; :data:`AgentEvent`
is their union.  Exactly one :class:`Completed` or :class:`ErrorEvent`
ends a turn.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from chatwire.streaming import Usage


@dataclass
class IterationStart:
    """A new model round-trip begins (1-based)."""

    iteration: int = 1


@dataclass
class Thinking:
    """The model has been called and is producing its answer."""


@dataclass
class AssistantMessage:
    """Assistant text so far in the current iteration.

    ``content`` is cumulative, not a delta, and restarts with every
    ``iteration``.  ``0`` leaves the iteration to the last
    :class:`IterationStart`.
    """

    content: str = ""
    iteration: int = 0


@dataclass
class ToolStart:
    tool_name: str = ""
    call_id: str | None = None


@dataclass
class ToolResult:
    """Output of one tool call; failures carry ``{"error": ...}``."""

    tool_name: str = ""
    result: Any = None


@dataclass
class Completed:
    """Final event of a successful turn."""

    final_message: str = ""
    usage: Usage | None = None


@dataclass
class ErrorEvent:
    """Final event of a failed turn."""

    message: str = ""


AgentEvent = Union[
    IterationStart,
    Thinking,
    AssistantMessage,
    ToolStart,
    ToolResult,
    Completed,
    ErrorEvent,
]

TERMINAL_EVENTS = (Completed, ErrorEvent)


def is_terminal(event: AgentEvent) -> bool:
    return isinstance(event, TERMINAL_EVENTS)
