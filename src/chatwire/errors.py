class ChatwireError(Exception):
    """Base class for errors raised by chatwire."""


class TransportClosedError(ChatwireError):
    """The peer is gone; nothing more can be written to the transport."""


class AgentUnavailableError(ChatwireError):
    """No agent can serve the classified intent."""


class ModelCallError(ChatwireError):
    """The model provider failed during a turn."""
