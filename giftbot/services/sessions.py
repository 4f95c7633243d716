# =============================================
# File: giftbot/services/sessions.py
# Purpose: One conversation controller per session id over a shared key-value store
# =============================================
from __future__ import annotations
import re
from typing import Dict, Optional, Sequence

from loguru import logger

from giftbot.services.catalog import Product, default_catalog
from giftbot.services.conversation import ConversationController
from giftbot.services.generation import SuggestionGenerator, default_generator
from giftbot.services.persistence import KeyValueStore, PersistenceAdapter, store_from_env
from giftbot.utils.i18n import Translator, t

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_\-]{1,64}$")


def valid_session_id(session_id: str) -> bool:
    return bool(_SESSION_ID_RE.match(session_id or ""))


class SessionRegistry:
    """
    Controllers are created on first use and stay in memory for the process lifetime.
    Each session's keys are namespaced as "<session_id>:chatHistory" etc.
    """
    def __init__(
        self,
        catalog: Sequence[Product],
        store: KeyValueStore,
        generator: SuggestionGenerator,
        translate: Translator = t,
    ) -> None:
        self.catalog = list(catalog)
        self._store = store
        self._generator = generator
        self._t = translate
        self._sessions: Dict[str, ConversationController] = {}

    def get(self, session_id: str, locale: Optional[str] = None) -> ConversationController:
        if not valid_session_id(session_id):
            raise ValueError(f"invalid session id: {session_id!r}")
        ctl = self._sessions.get(session_id)
        if ctl is None:
            ctl = ConversationController(
                self.catalog,
                self._generator,
                PersistenceAdapter(self._store, namespace=session_id),
                translate=self._t,
                locale=locale,
                session_id=session_id,
            )
            self._sessions[session_id] = ctl
            logger.info(f"[sessions] opened session={session_id} messages={len(ctl.messages)}")
        elif locale:
            ctl.set_locale(locale)
        return ctl

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


_REGISTRY: Optional[SessionRegistry] = None


def get_registry() -> SessionRegistry:
    global _REGISTRY
    if _REGISTRY is None:
        catalog = default_catalog()
        _REGISTRY = SessionRegistry(
            catalog,
            store_from_env(),
            default_generator([p.name for p in catalog]),
        )
    return _REGISTRY


def set_registry(registry: Optional[SessionRegistry]) -> None:
    """Swap the process-wide registry (tests); None rebuilds it from env on next use."""
    global _REGISTRY
    _REGISTRY = registry
