# =============================================
# File: giftbot/utils/i18n.py
# Purpose: Assistant strings for English and Bengali; t(key, locale) lookup
# =============================================
from __future__ import annotations
import os
from typing import Callable, Dict

Translator = Callable[[str, str], str]

SUPPORTED_LOCALES = ("en", "bn")

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "en": {
        "ai.intro": "Hi there! 👋 I'm GiftBot. I can help you find the perfect toy or gift. Who are we shopping for today?",
        "ai.matches": "Here are the best matches for that:",
        "ai.error": "I'm having a little trouble connecting to my brain right now.",
        "ai.you_might_like": "You might also like",
        "ai.suggested.gift": "🎁 Gift for 5 year old",
        "ai.suggested.edu": "📚 Educational toys under ₹1000",
        "ai.suggested.rc": "🏎️ Remote control cars",
        "ai.suggested.plush": "🧸 Plushies for toddlers",
        "ai.suggested.art": "🎨 Arts & Crafts ideas",
        "ai.offline": (
            "I can definitely help you find a gift for {recipient}! Based on interests in {interests}, "
            "I'd recommend looking at our Educational or Outdoor Fun categories."
        ),
        "ai.empty_reply": "I'm having a little trouble thinking of ideas right now. 🎁",
    },
    "bn": {
        "ai.intro": "নমস্কার! 👋 আমি গিফটবট। আমি আপনাকে সেরা খেলনা বা উপহার খুঁজে পেতে সাহায্য করতে পারি। আজ আমরা কার জন্য কেনাকাটা করছি?",
        "ai.matches": "এখানে কিছু সেরা বিকল্প রয়েছে:",
        "ai.error": "আমার সংযোগে একটু সমস্যা হচ্ছে। অনুগ্রহ করে আবার চেষ্টা করুন।",
        "ai.you_might_like": "আপনার পছন্দ হতে পারে",
        "ai.suggested.gift": "🎁 ৫ বছরের শিশুর উপহার",
        "ai.suggested.edu": "📚 ১০০০ টাকার নিচে শিক্ষামূলক খেলনা",
        "ai.suggested.rc": "🏎️ রিমোট কন্ট্রোল গাড়ি",
        "ai.suggested.plush": "🧸 বাচ্চাদের জন্য পুতুল",
        "ai.suggested.art": "🎨 আর্ট এবং ক্রাফট আইডিয়া",
        "ai.offline": (
            "আমি নিশ্চিতভাবে {recipient}-এর জন্য উপহার খুঁজতে সাহায্য করতে পারি! {interests}-এর উপর ভিত্তি করে, "
            "আমি আমাদের শিক্ষামূলক বা আউটডোর ফান বিভাগটি দেখার পরামর্শ দেব।"
        ),
        "ai.empty_reply": "দুঃখিত, আমি এই মুহূর্তে কোন আইডিয়া পাচ্ছি না।",
    },
}

SUGGESTED_PROMPT_KEYS = (
    "ai.suggested.gift",
    "ai.suggested.edu",
    "ai.suggested.rc",
    "ai.suggested.plush",
    "ai.suggested.art",
)


def default_locale() -> str:
    loc = os.getenv("GIFTBOT_DEFAULT_LOCALE", "en").strip().lower()
    return loc if loc in SUPPORTED_LOCALES else "en"


def normalize_locale(locale: str | None) -> str:
    loc = (locale or "").strip().lower()
    return loc if loc in SUPPORTED_LOCALES else default_locale()


def t(key: str, locale: str, **replacements: object) -> str:
    """
    Look up `key` for `locale`; falls back to English, then to the key itself.
    `{name}` placeholders are filled from keyword arguments.
    """
    table = TRANSLATIONS.get(locale) or TRANSLATIONS["en"]
    text = table.get(key) or TRANSLATIONS["en"].get(key) or key
    for name, value in replacements.items():
        text = text.replace("{" + name + "}", str(value))
    return text


def suggested_prompts(locale: str) -> list[str]:
    return [t(k, locale) for k in SUGGESTED_PROMPT_KEYS]
