from pydantic import BaseModel, Field

from chatwire.provider import ModelProvider
from chatwire.tools import Tool


class Agent(BaseModel):
    """A model, a system prompt and the tools the model may call.

    Args:
        name: Identifier used in logs and traces.
        system_prompt: Injected at call time, never stored in the transcript.
        model: Model name passed to the provider.
        provider: Where completions are streamed from.
        tools: Tools offered to the model.
        temperature: Sampling temperature, or ``None`` for the provider default.
        max_iterations: Cap on model round-trips per user turn.
        report_progress: Whether the turn loop emits iteration, thinking
            and tool notices, or only assistant text.
    """

    name: str
    system_prompt: str
    model: str
    provider: ModelProvider
    tools: list[Tool] = Field(default_factory=list)
    temperature: float | None = None
    max_iterations: int = Field(default=3, ge=1)
    report_progress: bool = True

    model_config = {"arbitrary_types_allowed": True}

    @property
    def tool_registry(self) -> dict[str, Tool]:
        return {t.name: t for t in self.tools}

    def tool_schemas(self) -> list[dict]:
        return [t.model_dump() for t in self.tools]
