import json
import logging
import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from chatwire.agent import Agent
from chatwire.errors import ModelCallError
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
from chatwire.instrumentation import record_error, tool_span, turn_span
from chatwire.message import Message, MessageRole, ToolCallRequestMessage, ToolCallResultMessage
from chatwire.streaming import DeltaReassembler, ToolCall, Usage

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """The result of a single Runner.run() invocation."""

    final_message: str
    transcript: list[Message]
    tool_calls: list[dict] = field(default_factory=list)
    usage: Usage | None = None


class Runner:
    """Executes an agent's tool-calling loop for one user turn.

    Each iteration streams one model response.  Text is re-emitted as
    cumulative :class:`AssistantMessage` events; tool calls are
    reassembled, executed in order and fed back to the model.  The loop
    ends when the model answers without tool calls or the agent's
    iteration cap is reached, and always finishes with exactly one
    :class:`Completed` or :class:`ErrorEvent`.

    ``run()`` drains ``iter()``.  ``iter()`` is the streaming entry point.
    """

    async def run(self, agent: Agent, messages: list[Message]) -> RunResult:
        """Run the agent loop and return its final answer.

        Raises:
            ModelCallError: If the provider failed during the turn.
        """
        transcript = list(messages)
        tool_log: list[dict] = []
        async for event in self.iter(agent, transcript, tool_log):
            if isinstance(event, ErrorEvent):
                raise ModelCallError(event.message)
            if isinstance(event, Completed):
                return RunResult(
                    final_message=event.final_message,
                    transcript=transcript,
                    tool_calls=tool_log,
                    usage=event.usage,
                )
        raise RuntimeError("iter() ended without a terminal event")

    async def iter(
        self,
        agent: Agent,
        transcript: list[Message],
        tool_log: list[dict] | None = None,
    ) -> AsyncIterator[AgentEvent]:
        """Run the agent loop, yielding events as execution proceeds.

        *transcript* is extended in place with assistant replies, tool-call
        requests and tool results.
        """
        tool_log = tool_log if tool_log is not None else []
        tool_schemas = agent.tool_schemas() or None
        final_message = ""
        usage: Usage | None = None

        async with turn_span(agent.name, agent.model) as span:
            for iteration in range(1, agent.max_iterations + 1):
                if agent.report_progress:
                    yield IterationStart(iteration=iteration)
                    yield Thinking()

                messages = [
                    {"role": "system", "content": agent.system_prompt},
                    *[m.model_dump() for m in transcript],
                ]
                reassembler = DeltaReassembler()
                content = ""
                try:
                    async for chunk in agent.provider.stream_complete(
                        model=agent.model, messages=messages,
                        tools=tool_schemas, temperature=agent.temperature,
                    ):
                        delta = reassembler.absorb(chunk)
                        if delta is not None:
                            content += delta.content
                            yield AssistantMessage(
                                content=content, iteration=iteration,
                            )
                except Exception as e:
                    logger.error(f"Model call failed for {agent.name}: {e}")
                    record_error(span, e)
                    yield ErrorEvent(message=str(e) or type(e).__name__)
                    return

                final_message = content
                usage = _merge_usage(usage, reassembler.usage)
                calls = reassembler.finalize()

                if not calls:
                    transcript.append(
                        Message(role=MessageRole.ASSISTANT, content=content)
                    )
                    break

                for tc in calls:
                    tc.id = tc.id or f"tool-{uuid.uuid4().hex}"
                transcript.append(ToolCallRequestMessage(
                    role=MessageRole.ASSISTANT, content=content, tool_calls=calls,
                ))
                for tc in calls:
                    if agent.report_progress:
                        yield ToolStart(tool_name=tc.name or "unknown", call_id=tc.id)
                    result = await self._execute_one(tc, agent)
                    tool_log.append({"tool": tc.name, "args": tc.arguments, "result": result})
                    transcript.append(ToolCallResultMessage(
                        role=MessageRole.TOOL,
                        content=result if isinstance(result, str) else json.dumps(result, ensure_ascii=False, default=str),
                        tool_call_id=tc.id,
                    ))
                    if agent.report_progress:
                        yield ToolResult(tool_name=tc.name, result=result)
            else:
                logger.warning(
                    f"{agent.name} reached {agent.max_iterations} iterations "
                    "with tool calls still pending"
                )

        yield Completed(final_message=final_message, usage=usage)

    async def _execute_one(self, tc: ToolCall, agent: Agent) -> Any:
        tool_obj = agent.tool_registry.get(tc.name)
        if tool_obj is None:
            logger.warning(f"Tool not found: {tc.name}")
            return {"error": f"tool '{tc.name}' not found"}

        if not isinstance(tc.arguments, dict):
            logger.warning(f"Unusable arguments for {tc.name}: {tc.raw_arguments!r}")
            return {"error": f"invalid arguments: {tc.raw_arguments}"}

        logger.info(f"Calling {tc.name} with {tc.arguments}")
        async with tool_span(tc.name, tc.id) as span:
            try:
                result = await tool_obj(**tc.arguments)
            except Exception as e:
                logger.error(f"Tool {tc.name} raised: {e}")
                record_error(span, e)
                return {"error": f"tool execution failed: {e}"}
        return result.output


def _merge_usage(total: Usage | None, new: Usage | None) -> Usage | None:
    if new is None:
        return total
    if total is None:
        return Usage(new.prompt_tokens, new.completion_tokens)
    return Usage(
        prompt_tokens=total.prompt_tokens + new.prompt_tokens,
        completion_tokens=total.completion_tokens + new.completion_tokens,
    )
