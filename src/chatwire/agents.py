"""Built-in agents and the registry that resolves them by intent."""

import logging
from collections.abc import Callable

from chatwire.agent import Agent
from chatwire.builtin_tools import calculator, text_analysis
from chatwire.config import Settings
from chatwire.errors import AgentUnavailableError
from chatwire.intent import Intent
from chatwire.provider import DeepSeekProvider, ModelProvider

logger = logging.getLogger(__name__)

CHAT_PROMPT = "You are a helpful, friendly assistant. Answer concisely."

MATH_PROMPT = """You are a mathematics assistant that helps users with calculations and maths questions.

You can:
- perform basic arithmetic (addition, subtraction, multiplication, division)
- evaluate compound arithmetic expressions
- explain how to approach a maths problem

Whenever the user needs a calculation, use the calculator tool to get an exact result,
then give a clear answer with any explanation that helps."""

TEXT_PROMPT = """You are a text analysis assistant that helps users understand written content.

You can:
- report basic statistics (characters, words, lines, sentences)
- analyse the content in depth
- suggest improvements

Whenever the user asks about a text, use the text_analysis tool for the statistics,
then write an insightful report with practical suggestions."""


def create_chat_agent(provider: ModelProvider, settings: Settings) -> Agent:
    return Agent(
        name="chat",
        system_prompt=CHAT_PROMPT,
        model=settings.model,
        provider=provider,
        temperature=settings.chat_temperature,
        max_iterations=1,
        report_progress=False,
    )


def create_math_agent(provider: ModelProvider, settings: Settings) -> Agent:
    return Agent(
        name="math",
        system_prompt=MATH_PROMPT,
        model=settings.model,
        provider=provider,
        tools=[calculator],
        temperature=settings.math_temperature,
        max_iterations=settings.max_iterations,
    )


def create_text_agent(provider: ModelProvider, settings: Settings) -> Agent:
    return Agent(
        name="text",
        system_prompt=TEXT_PROMPT,
        model=settings.model,
        provider=provider,
        tools=[text_analysis],
        temperature=settings.text_temperature,
        max_iterations=settings.max_iterations,
    )


AgentFactory = Callable[[ModelProvider, Settings], Agent]

DEFAULT_FACTORIES: dict[Intent, AgentFactory] = {
    Intent.CHAT: create_chat_agent,
    Intent.MATH: create_math_agent,
    Intent.TEXT: create_text_agent,
}


class AgentRegistry:
    """Builds each intent's agent on first use and caches it.

    Args:
        settings: Model name, temperatures and API credentials.
        provider: Shared provider; built from *settings* when omitted.
        factories: Intent to agent factory mapping.
    """

    def __init__(
        self,
        settings: Settings,
        provider: ModelProvider | None = None,
        factories: dict[Intent, AgentFactory] | None = None,
    ):
        self.settings = settings
        self._provider = provider
        self._factories = dict(DEFAULT_FACTORIES if factories is None else factories)
        self._agents: dict[Intent, Agent] = {}

    def _get_provider(self) -> ModelProvider:
        if self._provider is None:
            if not self.settings.api_key:
                raise AgentUnavailableError(
                    "No API key found. Set DEEPSEEK_API_KEY or OPENAI_API_KEY"
                )
            self._provider = DeepSeekProvider(
                api_key=self.settings.api_key, base_url=self.settings.base_url,
            )
        return self._provider

    def get(self, intent: Intent) -> Agent:
        """Return the agent for *intent*.

        Raises:
            AgentUnavailableError: If no agent serves *intent* or it
                cannot be built.
        """
        agent = self._agents.get(intent)
        if agent is not None:
            return agent
        factory = self._factories.get(intent)
        if factory is None:
            raise AgentUnavailableError(
                f"No streaming agent available for intent: {intent.value}"
            )
        agent = self._agents[intent] = factory(self._get_provider(), self.settings)
        logger.info(f"Created {agent.name} agent for intent {intent.value}")
        return agent
