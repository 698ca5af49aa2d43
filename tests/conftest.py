import json

import pytest

from chatwire.agent import Agent
from chatwire.errors import TransportClosedError
from chatwire.provider import ModelProvider
from chatwire.streaming import StreamChunk, ToolCallFragment, Usage
from chatwire.tools import tool


# ---------------------------------------------------------------------------
# Mock provider
# ---------------------------------------------------------------------------

class MockProvider(ModelProvider):
    """Provider that streams pre-queued chunk lists. No network calls.

    Each queued response is a list of chunks; an exception instance in
    the list is raised when the stream reaches it.
    """

    def __init__(self):
        self.responses: list[list] = []
        self.call_log: list[dict] = []

    async def stream_complete(self, model, messages, tools=None, temperature=None):
        self.call_log.append({
            "model": model, "messages": messages,
            "tools": tools, "temperature": temperature,
        })
        for item in self.responses.pop(0):
            if isinstance(item, BaseException):
                raise item
            yield item


# ---------------------------------------------------------------------------
# Chunk builder helpers
# ---------------------------------------------------------------------------

def make_text_chunks(text: str, size: int = 4, usage: Usage | None = None) -> list[StreamChunk]:
    """Split *text* into content-delta chunks of *size* characters."""
    chunks = [
        StreamChunk(content_delta=text[i:i + size])
        for i in range(0, len(text), size)
    ]
    chunks.append(StreamChunk(finish_reason="stop", usage=usage))
    return chunks


def make_tool_call_chunks(
    name: str,
    args: dict,
    call_id: str = "call_1",
    index: int = 0,
    size: int = 5,
) -> list[StreamChunk]:
    """Stream one tool call with its JSON arguments cut into pieces."""
    raw = json.dumps(args)
    chunks = [StreamChunk(tool_call_fragments=[
        ToolCallFragment(index=index, call_id=call_id, name=name),
    ])]
    chunks.extend(
        StreamChunk(tool_call_fragments=[
            ToolCallFragment(index=index, arguments_delta=raw[i:i + size]),
        ])
        for i in range(0, len(raw), size)
    )
    chunks.append(StreamChunk(finish_reason="tool_calls"))
    return chunks


# ---------------------------------------------------------------------------
# Transports
# ---------------------------------------------------------------------------

class RecordingTransport:
    """Keeps every written frame; records whether close() was called."""

    def __init__(self):
        self.lines: list[str] = []
        self.closed = False
        self.close_calls = 0

    async def write(self, line: str) -> None:
        if self.closed:
            raise AssertionError("write after close")
        self.lines.append(line)

    async def close(self) -> None:
        self.closed = True
        self.close_calls += 1


class FailingTransport(RecordingTransport):
    """Accepts *fail_after* writes, then behaves like a vanished peer."""

    def __init__(self, fail_after: int = 0):
        super().__init__()
        self.fail_after = fail_after
        self.attempts = 0

    async def write(self, line: str) -> None:
        self.attempts += 1
        if self.attempts > self.fail_after:
            raise TransportClosedError("peer went away")
        await super().write(line)


async def collect(aiter) -> list:
    return [item async for item in aiter]


async def events_from(items):
    for item in items:
        yield item


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@tool
def echo(text: str):
    """Echo the text back."""
    return text


@pytest.fixture
def mock_provider():
    return MockProvider()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def make_agent(mock_provider):
    """Factory fixture to build agents with the mock provider."""
    def _make(
        name="test_agent",
        tools=None,
        system_prompt="You are helpful.",
        max_iterations=3,
        report_progress=True,
        provider=None,
    ):
        return Agent(
            name=name,
            system_prompt=system_prompt,
            tools=tools or [],
            model="mock-model",
            provider=provider or mock_provider,
            max_iterations=max_iterations,
            report_progress=report_progress,
        )
    return _make
