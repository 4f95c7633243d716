# =============================================
# File: giftbot/services/generation.py
# Purpose: Gift-suggestion replies from OpenAI (gpt-4o-mini) + offline canned reply
# =============================================
from __future__ import annotations
import os
from typing import Awaitable, Callable, Optional, Sequence, Union

from loguru import logger
from openai import AsyncOpenAI, OpenAIError

from ..utils.i18n import normalize_locale, t
from ..utils.prompting import build_messages
from ..utils.sanitize import clean_reply

# generate(message, domain, audience, locale) -> reply text (sync or async)
SuggestionGenerator = Callable[[str, str, str, str], Union[str, Awaitable[str]]]


class ExternalCallError(RuntimeError):
    """The suggestion service failed or timed out."""


def _model() -> str:
    return os.getenv("LLM_MODEL", "gpt-4o-mini")


def _temperature() -> float:
    try:
        return float(os.getenv("LLM_TEMPERATURE", "0.5"))
    except ValueError:
        return 0.5


def _max_tokens() -> int:
    try:
        return int(os.getenv("LLM_MAX_TOKENS", "300"))
    except ValueError:
        return 300


def _timeout_s() -> float:
    try:
        return float(os.getenv("LLM_TIMEOUT_SECONDS", "20"))
    except ValueError:
        return 20.0


def has_api_key() -> bool:
    return bool(os.getenv("OPENAI_API_KEY"))


def offline_reply(message: str, domain: str, audience: str, locale: str) -> str:
    """Canned reply used when no API key is configured (demo/dev)."""
    return t("ai.offline", normalize_locale(locale), recipient=message.strip(), interests=domain)


class OpenAISuggestionGenerator:
    """
    Async generator backed by the Chat Completions API.
    Any SDK failure is raised as ExternalCallError; no retries are attempted here.
    """
    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        product_names: Sequence[str] = (),
        model: Optional[str] = None,
    ) -> None:
        self._client = client
        self._product_names = list(product_names)
        self._model = model

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(timeout=_timeout_s(), max_retries=0)
        return self._client

    async def __call__(self, message: str, domain: str, audience: str, locale: str) -> str:
        locale = normalize_locale(locale)
        messages = build_messages(message, domain, audience, locale, self._product_names)
        model = self._model or _model()
        try:
            resp = await self._get_client().chat.completions.create(
                model=model,
                temperature=_temperature(),
                max_tokens=_max_tokens(),
                messages=messages,
            )
        except OpenAIError as e:
            logger.warning(f"[generation] model={model} failed: {e}")
            raise ExternalCallError(str(e)) from e

        text = clean_reply(resp.choices[0].message.content or "") if resp.choices else ""
        if not text:
            return t("ai.empty_reply", locale)
        return text


def default_generator(product_names: Sequence[str] = ()) -> SuggestionGenerator:
    """OpenAI when OPENAI_API_KEY is set, otherwise the offline canned reply."""
    if has_api_key():
        logger.info(f"[generation] using OpenAI model={_model()}")
        return OpenAISuggestionGenerator(product_names=product_names)
    logger.info("[generation] OPENAI_API_KEY not set, using offline replies")
    return offline_reply
