"""Streaming primitives for provider responses.

Providers yield :class:`StreamChunk` objects.  The
:class:`DeltaReassembler` turns them into text deltas as they arrive and
reassembles tool calls whose name and arguments are split across many
chunks, keyed by the position index the provider assigns to each call.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class ToolCallFragment:
    """A fragment of a tool call from a streaming chunk."""

    index: int
    call_id: str | None = None
    name: str | None = None
    arguments_delta: str | None = None


@dataclass
class Usage:
    """Token counts reported by the provider, usually on the last chunk."""

    prompt_tokens: int = 0
    completion_tokens: int = 0


@dataclass
class StreamChunk:
    """Normalised streaming chunk from any provider."""

    content_delta: str | None = None
    tool_call_fragments: list[ToolCallFragment] | None = None
    finish_reason: str | None = None
    usage: Usage | None = None


@dataclass
class TextDelta:
    """Incremental assistant text, passed through verbatim."""

    content: str


@dataclass
class ToolCall:
    """A resolved tool call ready for the transcript.

    ``arguments`` holds the parsed JSON value.  When the provider sent
    text that is not valid JSON it holds that raw string instead, and
    consumers must check the type before using it.
    """

    id: str = ""
    name: str = ""
    arguments: Any = field(default_factory=dict)
    raw_arguments: str = ""

    @property
    def parsed(self) -> bool:
        return not isinstance(self.arguments, str)


@dataclass
class ToolCallAccumulator:
    """Name and argument text collected so far for one call index."""

    index: int
    call_id: str = ""
    name: str = ""
    arguments: str = ""

    def feed(self, fragment: ToolCallFragment) -> None:
        if fragment.call_id:
            self.call_id = fragment.call_id
        if fragment.name is not None:
            self.name += fragment.name
        if fragment.arguments_delta is not None:
            self.arguments += fragment.arguments_delta

    def finalize(self) -> ToolCall:
        if not self.arguments:
            arguments: Any = {}
        else:
            try:
                arguments = json.loads(self.arguments)
            except json.JSONDecodeError as e:
                logger.warning(
                    f"Unparseable arguments for tool call {self.index} "
                    f"({self.name}): {e}"
                )
                arguments = self.arguments
        return ToolCall(
            id=self.call_id,
            name=self.name,
            arguments=arguments,
            raw_arguments=self.arguments,
        )


class DeltaReassembler:
    """Reassembles one provider stream into text deltas and tool calls.

    One instance serves a single model call.  Text fragments come back
    from :meth:`absorb` immediately; tool-call fragments stay silent
    until :meth:`finalize`, which also discards the accumulated state.
    """

    def __init__(self) -> None:
        self._pending: dict[int, ToolCallAccumulator] = {}
        self.finish_reason: str | None = None
        self.usage: Usage | None = None

    def absorb(self, chunk: StreamChunk) -> TextDelta | None:
        if chunk.tool_call_fragments:
            for frag in chunk.tool_call_fragments:
                acc = self._pending.get(frag.index)
                if acc is None:
                    acc = self._pending[frag.index] = ToolCallAccumulator(index=frag.index)
                acc.feed(frag)
        if chunk.finish_reason is not None:
            self.finish_reason = chunk.finish_reason
        if chunk.usage is not None:
            self.usage = chunk.usage
        if chunk.content_delta:
            return TextDelta(content=chunk.content_delta)
        return None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self._pending)

    def finalize(self) -> list[ToolCall]:
        """Return completed tool calls in index order."""
        calls = [self._pending[i].finalize() for i in sorted(self._pending)]
        self._pending.clear()
        return calls
