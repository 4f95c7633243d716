# =============================================
# File: giftbot/services/messages.py
# Purpose: Chat message schema shared by the controller, persistence and API
# =============================================
from __future__ import annotations
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from giftbot.services.catalog import Product

Role = Literal["user", "assistant"]
MessageKind = Literal["plain", "product-list"]
MessageFeedback = Literal["up", "down"]


class Message(BaseModel):
    """
    One entry of the conversation.
    - kind "plain": free text, never empty
    - kind "product-list": ordered products shown inline (text is a caption)
    - feedback: thumbs up/down, only on assistant plain messages
    """
    role: Role
    text: str = ""
    kind: MessageKind = "plain"
    products: List[Product] = Field(default_factory=list)
    feedback: Optional[MessageFeedback] = None

    @model_validator(mode="after")
    def _check_shape(self) -> "Message":
        if self.kind == "plain" and not self.text.strip():
            raise ValueError("plain messages must have text")
        if self.kind == "plain" and self.products:
            raise ValueError("plain messages cannot carry products")
        if self.feedback is not None and (self.role != "assistant" or self.kind != "plain"):
            raise ValueError("feedback is only allowed on assistant plain messages")
        return self


def user_message(text: str) -> Message:
    return Message(role="user", text=text)


def assistant_message(text: str) -> Message:
    return Message(role="assistant", text=text)


def product_list_message(caption: str, products: List[Product]) -> Message:
    return Message(role="assistant", text=caption, kind="product-list", products=list(products))
