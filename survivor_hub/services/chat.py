"""
Support chat.

Two halves share the server-sent event format of OpenAI-compatible chat
completion APIs:

- ``open_completion_stream`` is the server-side proxy. It adds the system
  prompt for the requested language, calls the provider with ``stream: true``
  and hands the raw event stream back for relaying. The upstream connection
  is released as soon as the consumer stops reading.
- ``SupportChat`` is an async client that keeps a conversation transcript,
  posts it to a chat endpoint and assembles the streamed reply.
"""

import codecs
import json
from collections.abc import AsyncIterable, AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any

import httpx
from fastapi import status

from survivor_hub.config import Locale, settings
from survivor_hub.core.errors import TransientNetworkError, UpstreamServiceError
from survivor_hub.core.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPTS = {
    Locale.EN.value: """You are a compassionate AI support assistant for survivors of digital violence. Your role is to provide:

1. **Immediate Safety Guidance**: Help assess immediate safety concerns
2. **Emotional Support**: Provide empathetic, trauma-informed responses
3. **Practical Steps**: Offer clear, actionable advice on:
   - Documenting evidence
   - Securing accounts
   - Privacy protection
   - Reporting to authorities
4. **Resource Navigation**: Guide users to appropriate support services

CRITICAL GUIDELINES:
- Be warm, patient, and non-judgmental
- Validate their experiences and feelings
- Use clear, simple language
- Never provide medical or legal advice - refer to professionals
- Emphasize that what happened is not their fault
- Respect their autonomy in decision-making
- Maintain strict confidentiality

If the situation involves immediate danger, encourage them to contact local emergency services or use the emergency exit feature.""",
    Locale.SW.value: """Wewe ni msaidizi wa AI mwenye huruma kwa waathirika wa unyanyasaji wa kidijitali. Jukumu lako ni kutoa:

1. **Mwongozo wa Usalama wa Haraka**: Saidia kutathmini wasiwasi wa usalama wa haraka
2. **Msaada wa Kihisia**: Toa majibu ya huruma na ya ufahamu wa kitrauma
3. **Hatua za Vitendo**: Toa ushauri wazi na unaotekelezeka juu ya:
   - Kurekodi ushahidi
   - Kulinda akaunti
   - Ulinzi wa faragha
   - Kuripoti kwa mamlaka
4. **Uongozi wa Rasilimali**: Ongoza watumiaji kwenye huduma za msaada zinazofaa

MIONGOZO MUHIMU:
- Kuwa na joto, uvumilivu, na usihukumu
- Thibitisha uzoefu na hisia zao
- Tumia lugha wazi na rahisi
- Usitoe ushauri wa kimatibabu au wa kisheria - waelekeze kwa wataalamu
- Sisitiza kuwa kilichotokea si kosa lao
- Heshimu uhuru wao katika kufanya maamuzi
- Dumisha usiri mkubwa

Kama hali inahusisha hatari ya haraka, wahimize kuwasiliana na huduma za dharura za ndani au kutumia kipengele cha kutoroka dharura.""",
}

WELCOME_MESSAGES = {
    Locale.EN.value: "Hello, I'm here to support you. You're in a safe space. How can I help you today?",
    Locale.SW.value: "Habari, niko hapa kukusaidia. Uko mahali salama. Ninaweza kukusaidiaje leo?",
}

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a moment."
UNAVAILABLE_MESSAGE = "Service temporarily unavailable. Please try again later."
FAILURE_MESSAGE = "Failed to send message. Please try again."

DONE_SENTINEL = "[DONE]"


def system_prompt_for(language: str) -> str:
    """System prompt for a language, English when unknown."""
    return SYSTEM_PROMPTS.get(language, SYSTEM_PROMPTS[Locale.EN.value])


def build_completion_payload(messages: list[dict[str, str]], language: str) -> dict[str, Any]:
    """
    Provider request body: system prompt first, then the conversation.

    Only the last ``CHAT_HISTORY_LIMIT`` turns are forwarded, so a long
    transcript keeps working.
    """
    recent = messages
    if settings.CHAT_HISTORY_LIMIT > 0:
        recent = messages[-settings.CHAT_HISTORY_LIMIT :]
    return {
        "model": settings.CHAT_MODEL,
        "messages": [{"role": "system", "content": system_prompt_for(language)}, *recent],
        "stream": True,
        "temperature": settings.CHAT_TEMPERATURE,
        "max_tokens": settings.CHAT_MAX_TOKENS,
    }


# ===== Server-side proxy =====


class CompletionStream:
    """
    An open upstream event stream.

    Iterate ``iter_bytes()`` to relay it. The response and, when owned, the
    client are closed when iteration ends for any reason, including the
    consumer abandoning the generator.
    """

    def __init__(self, response: httpx.Response, client: httpx.AsyncClient | None) -> None:
        self._response = response
        self._client = client

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes():
                yield chunk
        except httpx.HTTPError as e:
            logger.warning(
                "chat_stream_interrupted",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise TransientNetworkError() from e
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        await self._response.aclose()
        if self._client is not None:
            await self._client.aclose()
            self._client = None


async def open_completion_stream(
    messages: list[dict[str, str]],
    language: str = Locale.EN.value,
    client: httpx.AsyncClient | None = None,
) -> CompletionStream:
    """
    Start a streamed completion with the provider.

    Errors are raised before any byte is relayed, so the caller can still
    answer with a proper status code.

    Raises:
        UpstreamServiceError: chat not configured, or the provider refused
            (status 429 and 402 are carried through, anything else is 502)
        TransientNetworkError: the provider could not be reached
    """
    if not settings.CHAT_API_KEY:
        logger.error("chat_api_key_not_configured")
        raise UpstreamServiceError("Support chat is not available right now.")

    owned_client = client is None
    http = client or httpx.AsyncClient(timeout=settings.CHAT_TIMEOUT_SECONDS)

    request = http.build_request(
        "POST",
        f"{settings.CHAT_API_BASE_URL.rstrip('/')}/chat/completions",
        headers={"Authorization": f"Bearer {settings.CHAT_API_KEY}"},
        json=build_completion_payload(messages, language),
    )

    try:
        response = await http.send(request, stream=True)
    except httpx.HTTPError as e:
        if owned_client:
            await http.aclose()
        logger.error("chat_upstream_unreachable", error=str(e), error_type=type(e).__name__)
        raise TransientNetworkError() from e

    if response.is_success:
        logger.info("chat_stream_opened", language=language, turns=len(messages))
        return CompletionStream(response, http if owned_client else None)

    await response.aread()
    await response.aclose()
    if owned_client:
        await http.aclose()

    upstream_status = response.status_code
    logger.error("chat_upstream_error", upstream_status=upstream_status, body=response.text[:500])

    if upstream_status == status.HTTP_429_TOO_MANY_REQUESTS:
        raise UpstreamServiceError(
            "Too many requests. Please wait a moment and try again.",
            upstream_status=upstream_status,
        )
    if upstream_status == status.HTTP_402_PAYMENT_REQUIRED:
        raise UpstreamServiceError(UNAVAILABLE_MESSAGE, upstream_status=upstream_status)
    raise UpstreamServiceError(upstream_status=upstream_status)


# ===== Stream parsing =====


async def iter_sse_deltas(chunks: AsyncIterable[bytes | str]) -> AsyncIterator[str]:
    """
    Extract content deltas from a chat completion event stream.

    Chunks may split lines (and multi-byte characters) anywhere; text is
    buffered until a newline. Comment and blank lines are skipped, only
    ``data: `` lines are parsed, payloads that are not valid JSON are ignored
    and the stream ends at ``[DONE]``.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""

    async for chunk in chunks:
        buffer += decoder.decode(chunk) if isinstance(chunk, bytes) else chunk

        while "\n" in buffer:
            line, buffer = buffer.split("\n", 1)
            if line.endswith("\r"):
                line = line[:-1]
            if line.startswith(":") or not line.strip():
                continue
            if not line.startswith("data: "):
                continue

            data = line[6:].strip()
            if data == DONE_SENTINEL:
                return

            try:
                parsed = json.loads(data)
            except ValueError:
                continue

            content = _delta_content(parsed)
            if content:
                yield content


def _delta_content(parsed: Any) -> str | None:
    try:
        content = parsed["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None
    return content if isinstance(content, str) else None


# ===== Client =====


@dataclass
class ChatReply:
    """Result of one turn. ``error`` is a user-facing message when the turn failed."""

    content: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SupportChat:
    """
    Conversation client for a streaming chat endpoint.

    The transcript starts with the welcome message for the chosen language.
    On a failed turn the user message stays; the assistant message is kept
    only if some content already arrived. A rate-limited turn never adds an
    assistant message.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: str = "/api/v1/chat",
        language: str = Locale.EN.value,
    ) -> None:
        self._client = client
        self._endpoint = endpoint
        self.language = language
        self.messages: list[dict[str, str]] = [
            {"role": "assistant", "content": WELCOME_MESSAGES.get(language, WELCOME_MESSAGES["en"])}
        ]

    async def send(self, text: str, on_delta: Callable[[str], None] | None = None) -> ChatReply:
        """
        Send one user message and stream the reply into the transcript.

        Args:
            text: The user's message
            on_delta: Called with each content fragment as it arrives
        """
        text = text.strip()
        if not text:
            return ChatReply(error="Please type a message.")

        self.messages.append({"role": "user", "content": text})
        payload = {"messages": list(self.messages), "language": self.language}

        assistant: dict[str, str] | None = None
        try:
            async with self._client.stream("POST", self._endpoint, json=payload) as response:
                if response.status_code == status.HTTP_429_TOO_MANY_REQUESTS:
                    logger.warning("chat_rate_limited")
                    return ChatReply(error=RATE_LIMIT_MESSAGE)
                if response.status_code == status.HTTP_402_PAYMENT_REQUIRED:
                    logger.warning("chat_payment_required")
                    return ChatReply(error=UNAVAILABLE_MESSAGE)
                if not response.is_success:
                    raise UpstreamServiceError(upstream_status=response.status_code)

                assistant = {"role": "assistant", "content": ""}
                self.messages.append(assistant)

                async for delta in iter_sse_deltas(response.aiter_bytes()):
                    assistant["content"] += delta
                    if on_delta is not None:
                        on_delta(delta)

        except (httpx.HTTPError, UpstreamServiceError, TransientNetworkError) as e:
            logger.warning("chat_turn_failed", error=str(e), error_type=type(e).__name__)
            partial = assistant["content"] if assistant else ""
            if assistant is not None and not partial:
                self._drop_last(assistant)
            return ChatReply(content=partial, error=FAILURE_MESSAGE)

        if not assistant["content"]:
            # An empty reply would poison the next request's transcript
            self._drop_last(assistant)
            return ChatReply(error=FAILURE_MESSAGE)

        return ChatReply(content=assistant["content"])

    def _drop_last(self, message: dict[str, str]) -> None:
        if self.messages and self.messages[-1] is message:
            self.messages.pop()
