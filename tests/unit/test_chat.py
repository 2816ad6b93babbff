"""Tests for the chat completion proxy, the SSE delta parser and the chat client."""

import json
from unittest.mock import Mock

import httpx
import pytest

from survivor_hub.config import settings
from survivor_hub.core.errors import TransientNetworkError, UpstreamServiceError
from survivor_hub.services.chat import (
    FAILURE_MESSAGE,
    RATE_LIMIT_MESSAGE,
    SYSTEM_PROMPTS,
    UNAVAILABLE_MESSAGE,
    WELCOME_MESSAGES,
    SupportChat,
    build_completion_payload,
    iter_sse_deltas,
    open_completion_stream,
    system_prompt_for,
)


def _delta(content: str) -> str:
    payload = {"choices": [{"delta": {"content": content}}]}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


async def _chunks(*parts):
    for part in parts:
        yield part


async def _collect(chunks) -> list[str]:
    return [delta async for delta in iter_sse_deltas(chunks)]


class FailingStream(httpx.AsyncByteStream):
    """Response body that drops the connection after its first chunk."""

    def __init__(self, first: bytes) -> None:
        self._first = first

    async def __aiter__(self):
        yield self._first
        raise httpx.ReadError("connection reset")


@pytest.mark.unit
class TestIterSseDeltas:
    async def test_extracts_content(self):
        body = _delta("Hel") + _delta("lo") + "data: [DONE]\n\n"

        assert await _collect(_chunks(body.encode())) == ["Hel", "lo"]

    async def test_lines_split_across_chunks(self):
        body = (_delta("Hello") + _delta(" there")).encode()

        parts = [body[i : i + 7] for i in range(0, len(body), 7)]

        assert "".join(await _collect(_chunks(*parts))) == "Hello there"

    async def test_multibyte_character_split(self):
        body = _delta("Habari 👋").encode()
        cut = body.index("👋".encode()) + 2

        assert await _collect(_chunks(body[:cut], body[cut:])) == ["Habari 👋"]

    async def test_skips_comments_blank_lines_and_other_fields(self):
        body = ": keep-alive\n\nevent: message\nid: 7\n" + _delta("ok")

        assert await _collect(_chunks(body)) == ["ok"]

    async def test_crlf_line_endings(self):
        body = _delta("ok").replace("\n", "\r\n")

        assert await _collect(_chunks(body)) == ["ok"]

    async def test_ignores_invalid_json_and_empty_deltas(self):
        body = (
            "data: {not json}\n\n"
            + "data: "
            + json.dumps({"choices": [{"delta": {"role": "assistant"}}]})
            + "\n\n"
            + "data: "
            + json.dumps({"choices": []})
            + "\n\n"
            + _delta("fine")
        )

        assert await _collect(_chunks(body)) == ["fine"]

    async def test_stops_at_done(self):
        body = _delta("a") + "data: [DONE]\n\n" + _delta("never")

        assert await _collect(_chunks(body)) == ["a"]

    async def test_incomplete_trailing_line_is_dropped(self):
        body = _delta("a") + 'data: {"choices": [{"delta": {"content": "b"'

        assert await _collect(_chunks(body)) == ["a"]


@pytest.mark.unit
class TestCompletionPayload:
    def test_system_prompt_prepended(self):
        payload = build_completion_payload([{"role": "user", "content": "hi"}], "sw")

        assert payload["stream"] is True
        assert payload["messages"][0] == {"role": "system", "content": SYSTEM_PROMPTS["sw"]}
        assert payload["messages"][1] == {"role": "user", "content": "hi"}

    def test_long_conversation_is_trimmed(self, monkeypatch):
        monkeypatch.setattr(settings, "CHAT_HISTORY_LIMIT", 4)
        messages = [{"role": "user", "content": f"turn {i}"} for i in range(10)]

        payload = build_completion_payload(messages, "en")

        assert payload["messages"][0]["role"] == "system"
        assert [m["content"] for m in payload["messages"][1:]] == [
            "turn 6",
            "turn 7",
            "turn 8",
            "turn 9",
        ]

    def test_unknown_language_uses_english(self):
        assert system_prompt_for("fr") == SYSTEM_PROMPTS["en"]


@pytest.mark.unit
class TestOpenCompletionStream:
    @pytest.fixture(autouse=True)
    def chat_key(self, monkeypatch):
        monkeypatch.setattr(settings, "CHAT_API_KEY", "test-key")

    async def test_relays_stream(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=_delta("hi").encode())

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            stream = await open_completion_stream(
                [{"role": "user", "content": "hello"}], "en", client=client
            )
            relayed = b"".join([chunk async for chunk in stream.iter_bytes()])

        assert relayed == _delta("hi").encode()
        assert seen["auth"] == "Bearer test-key"
        assert seen["body"]["messages"][0]["role"] == "system"
        assert seen["body"]["stream"] is True

    @pytest.mark.parametrize(
        "upstream_status,expected_status",
        [(429, 429), (402, 402), (500, 502), (401, 502)],
    )
    async def test_error_status_mapping(self, upstream_status, expected_status):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(upstream_status, json={"error": "nope"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(UpstreamServiceError) as exc_info:
                await open_completion_stream([{"role": "user", "content": "x"}], client=client)

        assert exc_info.value.status_code == expected_status
        assert exc_info.value.upstream_status == upstream_status

    async def test_payment_required_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(402)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(UpstreamServiceError) as exc_info:
                await open_completion_stream([{"role": "user", "content": "x"}], client=client)

        assert exc_info.value.message == UNAVAILABLE_MESSAGE

    async def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("no route")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TransientNetworkError):
                await open_completion_stream([{"role": "user", "content": "x"}], client=client)

    async def test_not_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "CHAT_API_KEY", None)

        with pytest.raises(UpstreamServiceError) as exc_info:
            await open_completion_stream([{"role": "user", "content": "x"}])

        assert exc_info.value.status_code == 502

    async def test_mid_stream_drop(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, stream=FailingStream(_delta("par").encode()))

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            stream = await open_completion_stream([{"role": "user", "content": "x"}], client=client)
            received = []
            with pytest.raises(TransientNetworkError):
                async for chunk in stream.iter_bytes():
                    received.append(chunk)

        assert received == [_delta("par").encode()]


def _chat_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")


@pytest.mark.unit
class TestSupportChat:
    def test_starts_with_welcome(self):
        chat = SupportChat(Mock(), language="sw")

        assert chat.messages == [{"role": "assistant", "content": WELCOME_MESSAGES["sw"]}]

    async def test_streams_reply_into_transcript(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            body = _delta("You are ") + _delta("safe here.") + "data: [DONE]\n\n"
            return httpx.Response(200, content=body.encode())

        deltas = []
        async with _chat_client(handler) as client:
            chat = SupportChat(client)
            reply = await chat.send("  I need help  ", on_delta=deltas.append)

        assert reply.ok
        assert reply.content == "You are safe here."
        assert deltas == ["You are ", "safe here."]
        assert chat.messages[1] == {"role": "user", "content": "I need help"}
        assert chat.messages[2] == {"role": "assistant", "content": "You are safe here."}
        # The welcome message travels with the conversation
        assert seen["body"]["messages"][0]["role"] == "assistant"
        assert seen["body"]["language"] == "en"

    async def test_blank_message_is_not_sent(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("should not be called")

        async with _chat_client(handler) as client:
            chat = SupportChat(client)
            reply = await chat.send("   ")

        assert not reply.ok
        assert len(chat.messages) == 1

    async def test_rate_limited(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={"detail": "Too many requests"})

        async with _chat_client(handler) as client:
            chat = SupportChat(client)
            reply = await chat.send("hello")

        assert reply.error == RATE_LIMIT_MESSAGE
        assert [m["role"] for m in chat.messages] == ["assistant", "user"]

    async def test_payment_required(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(402)

        async with _chat_client(handler) as client:
            chat = SupportChat(client)
            reply = await chat.send("hello")

        assert reply.error == UNAVAILABLE_MESSAGE
        assert [m["role"] for m in chat.messages] == ["assistant", "user"]

    async def test_server_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, json={"detail": "bad gateway"})

        async with _chat_client(handler) as client:
            chat = SupportChat(client)
            reply = await chat.send("hello")

        assert reply.error == FAILURE_MESSAGE
        assert [m["role"] for m in chat.messages] == ["assistant", "user"]

    async def test_partial_reply_is_kept_on_drop(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, stream=FailingStream(_delta("I hear").encode()))

        async with _chat_client(handler) as client:
            chat = SupportChat(client)
            reply = await chat.send("hello")

        assert reply.error == FAILURE_MESSAGE
        assert reply.content == "I hear"
        assert chat.messages[-1] == {"role": "assistant", "content": "I hear"}

    async def test_drop_before_content_removes_placeholder(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, stream=FailingStream(b": connected\n\n"))

        async with _chat_client(handler) as client:
            chat = SupportChat(client)
            reply = await chat.send("hello")

        assert reply.error == FAILURE_MESSAGE
        assert [m["role"] for m in chat.messages] == ["assistant", "user"]

    async def test_empty_reply_is_dropped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"data: [DONE]\n\n")

        async with _chat_client(handler) as client:
            chat = SupportChat(client)
            reply = await chat.send("hello")

        assert reply.error == FAILURE_MESSAGE
        assert [m["role"] for m in chat.messages] == ["assistant", "user"]
