"""Encodes agent events into wire frames.

A :class:`FrameEncoder` belongs to exactly one outgoing stream.  It keeps
the delta tracker for assistant text and refuses to encode anything once
a finish or error frame has gone out.
"""

from __future__ import annotations

import asyncio
import logging
import re
import uuid
from collections.abc import AsyncIterator
from typing import assert_never

from chatwire import frames
from chatwire.config import StreamingConfig
from chatwire.delta import DeltaTracker
from chatwire.events import (
    AgentEvent,
    AssistantMessage,
    Completed,
    ErrorEvent,
    IterationStart,
    Thinking,
    ToolResult,
    ToolStart,
)

logger = logging.getLogger(__name__)

CODE_MARKERS = ("```", "def ", "function ", "class ")

_LINES = re.compile(r"(\n)")
_WORDS = re.compile(r"(\s+)")


def looks_like_code(text: str) -> bool:
    return any(marker in text for marker in CODE_MARKERS)


def split_text(text: str, granularity: str = "auto") -> list[str]:
    """Cut text into frame-sized pieces whose concatenation is ``text``.

    ``"character"`` yields single characters.  ``"auto"`` keeps code
    line-oriented and splits prose into words, keeping the separators
    as pieces of their own.
    """
    if granularity == "character":
        return list(text)
    pattern = _LINES if looks_like_code(text) else _WORDS
    return [piece for piece in pattern.split(text) if piece]


class FrameEncoder:
    """Maps agent events of one stream to ordered wire frames.

    Args:
        config: Chunking and pacing policy for assistant text.
    """

    def __init__(self, config: StreamingConfig | None = None):
        self.config = config or StreamingConfig()
        self.tracker = DeltaTracker()
        self.terminated = False
        self._iteration = 0
        self._last_content = ""

    @property
    def _stream_id(self) -> str:
        return f"iteration-{self._iteration}"

    async def encode(self, event: AgentEvent) -> AsyncIterator[str]:
        if self.terminated:
            logger.warning(
                f"Dropping {type(event).__name__} received after the stream terminated"
            )
            return

        match event:
            case IterationStart(iteration=iteration):
                self._iteration = iteration
                yield frames.data_frame(
                    {"type": "iteration_start", "iteration": iteration}
                )
            case Thinking():
                yield frames.data_frame({"type": "thinking"})
            case AssistantMessage(content=content, iteration=iteration):
                if iteration:
                    self._iteration = iteration
                async for frame in self._encode_text(content):
                    yield frame
            case ToolStart(tool_name=tool_name, call_id=call_id):
                yield frames.tool_call_start_frame(
                    call_id or f"tool-{uuid.uuid4().hex}",
                    tool_name or "unknown",
                )
            case ToolResult(tool_name=tool_name, result=result):
                yield frames.data_frame(
                    {"type": "tool_result", "toolName": tool_name, "result": result}
                )
            case Completed(final_message=final_message, usage=usage):
                self.terminated = True
                yield frames.finish_frame(
                    completion_tokens=len(final_message or self._last_content),
                    prompt_tokens=usage.prompt_tokens if usage else 0,
                )
            case ErrorEvent(message=message):
                self.terminated = True
                yield frames.error_frame(message or "Unknown error")
            case _:
                assert_never(event)

    async def encode_error(self, message: str) -> AsyncIterator[str]:
        """Terminate the stream with an error raised outside the event flow."""
        async for frame in self.encode(ErrorEvent(message=message)):
            yield frame

    async def _encode_text(self, content: str) -> AsyncIterator[str]:
        if not content:
            return
        self._last_content = content
        suffix = self.tracker.diff(self._stream_id, content)
        if not suffix:
            return
        delay = self.config.delay_per_frame_ms / 1000
        for i, piece in enumerate(split_text(suffix, self.config.chunk_granularity)):
            if i and delay > 0:
                await asyncio.sleep(delay)
            yield frames.text_frame(piece)
