import logging
import os
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from chatwire.instrumentation import completion_span, record_usage
from chatwire.streaming import StreamChunk, ToolCallFragment, Usage

logger = logging.getLogger(__name__)


def chunk_from_openai(chunk: Any) -> StreamChunk:
    """Normalise one ``ChatCompletionChunk`` into a :class:`StreamChunk`."""
    usage = None
    if getattr(chunk, "usage", None) is not None:
        usage = Usage(
            prompt_tokens=chunk.usage.prompt_tokens or 0,
            completion_tokens=chunk.usage.completion_tokens or 0,
        )
    if not chunk.choices:
        return StreamChunk(usage=usage)

    choice = chunk.choices[0]
    delta = choice.delta
    fragments = None
    if delta is not None and delta.tool_calls:
        fragments = [
            ToolCallFragment(
                index=tc.index,
                call_id=tc.id,
                name=tc.function.name if tc.function else None,
                arguments_delta=tc.function.arguments if tc.function else None,
            )
            for tc in delta.tool_calls
        ]
    return StreamChunk(
        content_delta=delta.content if delta is not None else None,
        tool_call_fragments=fragments,
        finish_reason=choice.finish_reason,
        usage=usage,
    )


class ModelProvider(ABC):
    """Source of streamed completions."""

    system = "unknown"

    @abstractmethod
    def stream_complete(
            self,
            model: str,
            messages: list[dict],
            tools: list[dict] | None = None,
            temperature: float | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream one completion as :class:`StreamChunk` objects. Fragments of
        one tool call must arrive in order.
        """
        pass


class OpenAICompatibleProvider(ModelProvider):
    """Any endpoint speaking the OpenAI chat-completions protocol."""

    system = "openai"
    api_key_env = "OPENAI_API_KEY"
    default_base_url: str | None = None

    def __init__(self, api_key: str | None = None, base_url: str | None = None):
        if not api_key:
            api_key = os.getenv(self.api_key_env)
        self.base_url = base_url or self.default_base_url
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            max_retries=0,
            timeout=600.0
        )

    async def stream_complete(
            self,
            model: str,
            messages: list[dict],
            tools: list[dict] | None = None,
            temperature: float | None = None,
    ) -> AsyncIterator[StreamChunk]:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        if tools:
            kwargs["tools"] = tools
        if temperature is not None:
            kwargs["temperature"] = temperature

        async with completion_span(self.system, model) as span:
            stream = await self.client.chat.completions.create(**kwargs)
            async for raw in stream:
                chunk = chunk_from_openai(raw)
                if chunk.usage is not None:
                    record_usage(span, chunk.usage)
                yield chunk


class OpenAIProvider(OpenAICompatibleProvider):
    pass


class DeepSeekProvider(OpenAICompatibleProvider):

    system = "deepseek"
    api_key_env = "DEEPSEEK_API_KEY"
    default_base_url = "https://api.deepseek.com"
