"""
Support chat proxy.

Relays the provider's server-sent event stream unchanged. Provider errors
detected before streaming starts are answered with a JSON error instead.
"""

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from survivor_hub.schemas.chat import ChatRequest
from survivor_hub.services.chat import open_completion_stream


router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("")
async def chat(request: ChatRequest) -> StreamingResponse:
    """
    Stream a supportive reply to the conversation.

    Conversation content is not stored or logged.
    """
    stream = await open_completion_stream(
        [message.model_dump() for message in request.messages],
        language=request.language.value,
    )
    return StreamingResponse(
        stream.iter_bytes(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
