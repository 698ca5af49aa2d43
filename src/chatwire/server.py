"""HTTP surface: a chat endpoint speaking the data stream protocol."""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from chatwire import __version__
from chatwire.adapter import fail_fast, stream_turn
from chatwire.agents import AgentRegistry
from chatwire.config import Settings
from chatwire.errors import AgentUnavailableError
from chatwire.intent import Intent, classify_intent
from chatwire.message import Message, MessageRole
from chatwire.runner import Runner
from chatwire.transport import QueueTransport

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["chat"])

STREAM_HEADERS = {"X-Vercel-AI-Data-Stream": "v1"}
STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"


class FrameStreamResponse(StreamingResponse):
    """Streams a transport's frames as the response body.

    The transport is detached once the response is torn down, whether or
    not the body was ever iterated, so the adapter stops at its next write.
    """

    def __init__(self, transport: QueueTransport):
        super().__init__(
            transport.lines(), media_type=STREAM_MEDIA_TYPE, headers=STREAM_HEADERS,
        )
        self.transport = transport

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            if not self.transport.closed:
                logger.info("Response ended before the stream closed")
                self.transport.detach()


class UIMessagePart(BaseModel):
    type: str
    text: str = ""


class UIMessage(BaseModel):
    id: str | None = None
    role: Literal["user", "assistant", "system"]
    parts: list[UIMessagePart] = []

    @property
    def text(self) -> str:
        return " ".join(p.text for p in self.parts if p.type == "text")

    def to_message(self) -> Message:
        return Message(role=MessageRole(self.role), content=self.text)


class ChatRequest(BaseModel):
    messages: list[UIMessage] | None = None


@router.post("/chat")
async def chat(body: ChatRequest, request: Request) -> StreamingResponse:
    """
    Classify the latest user message and stream the matching pipeline's
    answer as line-framed data stream parts.
    """
    if not body.messages:
        raise HTTPException(
            status_code=400, detail="Invalid request: messages array required"
        )
    latest = body.messages[-1]
    if latest.role != "user":
        raise HTTPException(
            status_code=400, detail="Invalid message format: expected user message"
        )

    intent = classify_intent(latest.text)
    logger.info(f"Classified intent {intent.value} for message {latest.text!r}")

    state = request.app.state
    transport = QueueTransport()
    try:
        agent = state.registry.get(intent)
    except AgentUnavailableError as e:
        logger.warning(f"No agent for intent {intent.value}: {e}")
        await fail_fast(transport, str(e))
    else:
        transcript = [m.to_message() for m in body.messages]
        events = state.runner.iter(agent, transcript)
        task = asyncio.create_task(
            stream_turn(events, transport, state.settings.streaming)
        )
        state.stream_tasks.add(task)
        task.add_done_callback(state.stream_tasks.discard)

    return FrameStreamResponse(transport)


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "chatwire",
    }


def create_app(
    settings: Settings | None = None,
    registry: AgentRegistry | None = None,
    runner: Runner | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    app = FastAPI(title="chatwire", version=__version__)
    app.state.settings = settings
    app.state.registry = registry or AgentRegistry(settings)
    app.state.runner = runner or Runner()
    app.state.stream_tasks = set()

    @app.get("/")
    async def root() -> dict[str, object]:
        return {
            "message": "chatwire server is running",
            "version": __version__,
            "timestamp": datetime.now(UTC).isoformat(),
            "endpoints": {"chat": "/api/chat", "health": "/api/health"},
            "features": {
                "agents": [i.value for i in Intent if i is not Intent.CHAT],
                "streaming": True,
                "intentRouting": True,
            },
        }

    app.include_router(router)
    return app
