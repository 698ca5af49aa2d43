__version__ = "0.1.0"

from chatwire.adapter import StreamOutcome, fail_fast, stream_turn
from chatwire.agent import Agent
from chatwire.config import Settings, StreamingConfig
from chatwire.delta import DeltaTracker
from chatwire.encoder import FrameEncoder, split_text
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
from chatwire.instrumentation import instrument, uninstrument
from chatwire.intent import Intent, classify_intent
from chatwire.runner import Runner, RunResult
from chatwire.streaming import DeltaReassembler, StreamChunk, ToolCall, ToolCallFragment
from chatwire.tools import Tool, tool
from chatwire.transport import QueueTransport, Transport

__all__ = [
    "Agent",
    "AgentEvent",
    "AssistantMessage",
    "Completed",
    "DeltaReassembler",
    "DeltaTracker",
    "ErrorEvent",
    "FrameEncoder",
    "Intent",
    "IterationStart",
    "QueueTransport",
    "RunResult",
    "Runner",
    "Settings",
    "StreamChunk",
    "StreamOutcome",
    "StreamingConfig",
    "Thinking",
    "Tool",
    "ToolCall",
    "ToolCallFragment",
    "ToolResult",
    "ToolStart",
    "Transport",
    "classify_intent",
    "fail_fast",
    "instrument",
    "split_text",
    "stream_turn",
    "tool",
    "uninstrument",
]
