# =============================================
# File: tests/test_generation.py
# Purpose: OpenAI-backed suggestion generator with a fake async client
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import asyncio
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from giftbot.services.generation import (
    ExternalCallError,
    OpenAISuggestionGenerator,
    default_generator,
    offline_reply,
)
from giftbot.utils.i18n import t

def _fake_client(content=None, exc=None, calls=None):
    async def create(**kwargs):
        if calls is not None:
            calls.append(kwargs)
        if exc is not None:
            raise exc
        msg = SimpleNamespace(content=content)
        return SimpleNamespace(choices=[SimpleNamespace(message=msg)])

    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))

def test_reply_text_is_returned_trimmed(monkeypatch):
    monkeypatch.setenv("LLM_MODEL", "gpt-test")
    monkeypatch.setenv("LLM_MAX_TOKENS", "123")
    calls = []
    gen = OpenAISuggestionGenerator(client=_fake_client("  Try the Mega Art Kit! 🎨\n\n\n\n", calls=calls),
                                    product_names=["Mega Art Kit"])
    out = asyncio.run(gen("my niece loves painting", "toys", "any", "en"))
    assert out == "Try the Mega Art Kit! 🎨"

    kw = calls[0]
    assert kw["model"] == "gpt-test"
    assert kw["max_tokens"] == 123
    assert kw["messages"][0]["role"] == "system"
    assert "Mega Art Kit" in kw["messages"][1]["content"]

def test_locale_reaches_the_prompt():
    calls = []
    gen = OpenAISuggestionGenerator(client=_fake_client("ঠিক আছে", calls=calls))
    asyncio.run(gen("রোবট", "toys", "any", "bn"))
    assert "Bengali" in calls[0]["messages"][1]["content"]

def test_sdk_errors_become_external_call_errors():
    gen = OpenAISuggestionGenerator(client=_fake_client(exc=OpenAIError("boom")))
    with pytest.raises(ExternalCallError):
        asyncio.run(gen("hi", "toys", "any", "en"))

def test_empty_completion_gets_a_canned_reply():
    gen = OpenAISuggestionGenerator(client=_fake_client(None))
    assert asyncio.run(gen("hi", "toys", "any", "en")) == t("ai.empty_reply", "en")

def test_offline_reply_mentions_recipient():
    out = offline_reply("  my 5 year old nephew ", "toys", "any", "en")
    assert "my 5 year old nephew" in out
    assert "toys" in out
    assert "{recipient}" not in out

def test_offline_reply_in_bengali():
    assert offline_reply("ভাই", "toys", "any", "bn").startswith("আমি")

def test_default_generator_depends_on_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert default_generator() is offline_reply

    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    gen = default_generator(["Rainbow Stacker"])
    assert isinstance(gen, OpenAISuggestionGenerator)
