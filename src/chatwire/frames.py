"""Wire frames of the line-based data stream protocol.

Every frame is ``<prefix>:<json>\\n``.  The client's state machine
depends on frame order, so nothing here buffers or reorders.
"""

from __future__ import annotations

import json
from typing import Any

TEXT = "0"
DATA = "2"
ERROR = "3"
TOOL_CALL_START = "b"
FINISH = "d"

PREFIXES = frozenset({TEXT, DATA, ERROR, TOOL_CALL_START, FINISH})
TERMINAL_PREFIXES = frozenset({ERROR, FINISH})


def _dumps(payload: Any) -> str:
    return json.dumps(
        payload, ensure_ascii=False, separators=(",", ":"), default=str,
    )


def encode_frame(prefix: str, payload: Any) -> str:
    if prefix not in PREFIXES:
        raise ValueError(f"Unknown frame prefix: {prefix!r}")
    return f"{prefix}:{_dumps(payload)}\n"


def text_frame(text: str) -> str:
    return encode_frame(TEXT, text)


def data_frame(*items: dict) -> str:
    return encode_frame(DATA, list(items))


def tool_call_start_frame(tool_call_id: str, tool_name: str) -> str:
    return encode_frame(
        TOOL_CALL_START, {"toolCallId": tool_call_id, "toolName": tool_name},
    )


def finish_frame(
    completion_tokens: int,
    prompt_tokens: int = 0,
    finish_reason: str = "stop",
) -> str:
    return encode_frame(FINISH, {
        "finishReason": finish_reason,
        "usage": {
            "promptTokens": prompt_tokens,
            "completionTokens": completion_tokens,
        },
    })


def error_frame(message: str) -> str:
    return encode_frame(ERROR, message)


def parse_frame(line: str) -> tuple[str, Any]:
    """Split a frame into its prefix and decoded payload.

    Raises:
        ValueError: If the line is not a well-formed frame.
    """
    prefix, sep, body = line.rstrip("\n").partition(":")
    if not sep or prefix not in PREFIXES:
        raise ValueError(f"Malformed frame: {line!r}")
    return prefix, json.loads(body)


def is_terminal_frame(line: str) -> bool:
    return line[:1] in TERMINAL_PREFIXES and line[1:2] == ":"
