# giftbot/utils/sanitize.py
from __future__ import annotations
import re

# Lines in a chat message that try to steer the model instead of describing a gift
_INJECTION_RE = re.compile(
    r"(ignore|disregard|forget)\s+(all\s+|the\s+)?(previous|above|prior)\s+instruction"
    r"|system\s+prompt"
    r"|developer\s+message"
    r"|you\s+are\s+(now\s+)?chatgpt"
    r"|jailbreak",
    re.IGNORECASE,
)
_WHITESPACE_RE = re.compile(r"\s+")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_TRAILING_WS_RE = re.compile(r"[ \t]+\n")


def collapse_ws(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def strip_injection_lines(text: str) -> str:
    return "\n".join(ln for ln in (text or "").splitlines() if not _INJECTION_RE.search(ln))


def clean_user_text(text: str, max_chars: int = 500) -> str:
    """
    Text that goes into the prompt: injection-looking lines dropped,
    whitespace collapsed, hard-capped at `max_chars`.
    """
    out = collapse_ws(strip_injection_lines(text))
    if max_chars and len(out) > max_chars:
        out = out[:max_chars].rstrip()
    return out


def clean_reply(text: str) -> str:
    """Model output trimmed of surrounding whitespace and runs of blank lines."""
    text = _BLANK_RUN_RE.sub("\n\n", text or "")
    return _TRAILING_WS_RE.sub("\n", text).strip()
