# =============================================
# File: giftbot/utils/prompting.py
# Purpose: Build chat messages for the gift-suggestion model
# =============================================
from __future__ import annotations
from typing import Dict, List, Sequence

from .sanitize import clean_user_text

LANGUAGE_NAMES = {"en": "English", "bn": "Bengali (Bangla)"}

SYS_PROMPT = (
    "You are GiftBot, a helpful assistant for a toy shop named ToyWonder. "
    "Recommend 2-3 specific toys from typical toy categories. "
    "Keep the tone cheerful, helpful, and concise (under 100 words). Use emojis."
)

USER_TEMPLATE = (
    "The user is looking for a gift for: {recipient}.\n"
    "Interests: {interests}.\n"
    "Price Range: {price_range}.\n\n"
    "Reply strictly in {language}.\n"
    "Mention at least one product name from this list if relevant: {product_names}."
)


def build_messages(
    message: str,
    domain: str,
    audience: str,
    locale: str,
    product_names: Sequence[str] = (),
) -> List[Dict[str, str]]:
    """
    Messages for the Chat Completions API.
    `message` is the user's own text, `domain` the shop area ("toys") and
    `audience` the price/audience hint ("any").
    """
    user = USER_TEMPLATE.format(
        recipient=clean_user_text(message) or "someone special",
        interests=clean_user_text(domain, max_chars=80) or "toys",
        price_range=clean_user_text(audience, max_chars=80) or "any",
        language=LANGUAGE_NAMES.get(locale, "English"),
        product_names=", ".join(product_names) if product_names else "(any)",
    )
    return [
        {"role": "system", "content": SYS_PROMPT},
        {"role": "user", "content": user},
    ]
