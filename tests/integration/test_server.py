"""End-to-end tests for the HTTP chat endpoint."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from chatwire.adapter import stream_turn
from chatwire.agents import AgentRegistry
from chatwire.config import Settings, StreamingConfig
from chatwire.events import AssistantMessage, Completed
from chatwire.frames import parse_frame
from chatwire.intent import Intent
from chatwire.server import FrameStreamResponse, create_app
from chatwire.transport import QueueTransport

from tests.conftest import (
    MockProvider,
    events_from,
    make_text_chunks,
    make_tool_call_chunks,
)


def body(*texts, roles=None):
    roles = roles or ["user"] * len(texts)
    return {"messages": [
        {"id": str(i), "role": role, "parts": [{"type": "text", "text": text}]}
        for i, (role, text) in enumerate(zip(roles, texts))
    ]}


def frames_of(response):
    return [parse_frame(line) for line in response.text.splitlines()]


@pytest.fixture
def provider():
    return MockProvider()


@pytest.fixture
def settings():
    return Settings(api_key="test", streaming=StreamingConfig())


@pytest.fixture
def client(provider, settings):
    registry = AgentRegistry(settings, provider=provider)
    return TestClient(create_app(settings=settings, registry=registry))


class TestValidation:
    def test_missing_messages(self, client):
        response = client.post("/api/chat", json={})
        assert response.status_code == 400
        assert "messages array required" in response.json()["detail"]

    def test_last_message_must_be_user(self, client):
        response = client.post(
            "/api/chat", json=body("hi", "hello", roles=["user", "assistant"]),
        )
        assert response.status_code == 400


class TestChat:
    def test_plain_chat_streams_text_then_finish(self, client, provider):
        provider.responses = [make_text_chunks("Hi there, friend.")]
        response = client.post("/api/chat", json=body("你好"))

        assert response.status_code == 200
        assert response.headers["x-vercel-ai-data-stream"] == "v1"
        assert response.headers["content-type"].startswith("text/plain")

        frames = frames_of(response)
        assert {p for p, _ in frames[:-1]} == {"0"}
        assert "".join(payload for _, payload in frames[:-1]) == "Hi there, friend."
        assert frames[-1] == ("d", {
            "finishReason": "stop",
            "usage": {"promptTokens": 0, "completionTokens": 17},
        })

    def test_math_intent_streams_tool_progress(self, client, provider):
        provider.responses = [
            make_tool_call_chunks("calculator", {"expression": "2+3"}, call_id="c1"),
            make_text_chunks("2+3 = 5"),
        ]
        response = client.post("/api/chat", json=body("计算 2+3"))
        frames = frames_of(response)

        assert [p for p, _ in frames[:5]] == ["2", "2", "b", "2", "2"]
        assert frames[0][1] == [{"type": "iteration_start", "iteration": 1}]
        assert frames[2][1] == {"toolCallId": "c1", "toolName": "calculator"}
        assert frames[3][1] == [{
            "type": "tool_result", "toolName": "calculator", "result": "Result: 2+3 = 5",
        }]
        assert frames[-1][0] == "d"
        assert provider.call_log[0]["tools"][0]["function"]["name"] == "calculator"

    def test_text_intent_uses_text_agent(self, client, provider):
        provider.responses = [make_text_chunks("Eight characters.")]
        client.post("/api/chat", json=body("分析这段文本的字数"))
        assert provider.call_log[0]["tools"][0]["function"]["name"] == "text_analysis"

    def test_history_forwarded(self, client, provider):
        provider.responses = [make_text_chunks("Sure.")]
        client.post("/api/chat", json=body(
            "hi", "hello!", "tell me more", roles=["user", "assistant", "user"],
        ))
        sent = provider.call_log[0]["messages"]
        assert [m["role"] for m in sent] == ["system", "user", "assistant", "user"]
        assert sent[-1]["content"] == "tell me more"

    def test_provider_error_yields_single_error_frame(self, client, provider):
        provider.responses = [[RuntimeError("upstream unavailable")]]
        response = client.post("/api/chat", json=body("你好"))

        assert frames_of(response) == [("3", "upstream unavailable")]


class TestAgentUnavailable:
    def test_missing_factory_fails_fast(self, provider, settings):
        registry = AgentRegistry(settings, provider=provider, factories={})
        client = TestClient(create_app(settings=settings, registry=registry))

        response = client.post("/api/chat", json=body("计算 1+1"))

        assert response.status_code == 200
        assert frames_of(response) == [
            ("3", "No streaming agent available for intent: math"),
        ]
        assert provider.call_log == []

    def test_missing_api_key_fails_fast(self):
        settings = Settings(api_key=None)
        client = TestClient(create_app(settings=settings))

        response = client.post("/api/chat", json=body("你好"))

        [(prefix, message)] = frames_of(response)
        assert prefix == "3"
        assert "API key" in message


class TestInfoEndpoints:
    def test_health(self, client):
        payload = client.get("/api/health").json()
        assert payload["status"] == "ok"
        assert payload["service"] == "chatwire"

    def test_root(self, client):
        payload = client.get("/").json()
        assert payload["endpoints"]["chat"] == "/api/chat"
        assert payload["features"]["agents"] == [Intent.MATH.value, Intent.TEXT.value]


class TestResponseTeardown:
    @pytest.mark.asyncio
    async def test_transport_detached_when_body_never_starts(self):
        transport = QueueTransport()
        response = FrameStreamResponse(transport)

        async def receive():
            await asyncio.Event().wait()

        async def send(message):
            raise RuntimeError("connection reset before headers")

        scope = {"type": "http", "asgi": {"spec_version": "2.4"}}
        with pytest.raises(RuntimeError, match="connection reset"):
            await response(scope, receive, send)

        assert transport.detached
        outcome = await stream_turn(
            events_from([AssistantMessage(content="never read"), Completed()]),
            transport,
        )
        assert outcome.disconnected
        assert outcome.frames_written == 0

    @pytest.mark.asyncio
    async def test_completed_stream_is_not_detached(self):
        transport = QueueTransport()
        await stream_turn(
            events_from([AssistantMessage(content="hi"), Completed()]), transport,
        )
        sent = []

        async def receive():
            await asyncio.Event().wait()

        async def send(message):
            sent.append(message)

        scope = {"type": "http", "asgi": {"spec_version": "2.4"}}
        await FrameStreamResponse(transport)(scope, receive, send)

        assert not transport.detached
        assert b"".join(m.get("body", b"") for m in sent).decode().startswith('0:"hi"')
