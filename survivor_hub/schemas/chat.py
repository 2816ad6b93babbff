"""
Pydantic schemas for the support chat proxy.
"""

from typing import Literal

from pydantic import BaseModel, Field

from survivor_hub.config import Locale


class ChatMessage(BaseModel):
    """One turn of the conversation."""

    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1)


class ChatRequest(BaseModel):
    """Conversation so far plus the interface language."""

    messages: list[ChatMessage] = Field(..., min_length=1)
    language: Locale = Locale.EN
