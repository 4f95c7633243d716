# =============================================
# File: giftbot/services/conversation.py
# Purpose: Conversation turn state machine: submit -> await reply -> score -> append
# =============================================
from __future__ import annotations
import asyncio
import inspect
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from loguru import logger

from giftbot.services.catalog import Product
from giftbot.services.feedback import FeedbackStore
from giftbot.services.generation import ExternalCallError, SuggestionGenerator
from giftbot.services.messages import (
    Message,
    MessageFeedback,
    assistant_message,
    product_list_message,
    user_message,
)
from giftbot.services.persistence import PersistenceAdapter, Verdict
from giftbot.services.recommender import POOL_CAP, Selection, initial_pool, select
from giftbot.utils import metrics, slog
from giftbot.utils.i18n import Translator, normalize_locale, t


class ConversationState(str, Enum):
    IDLE = "idle"
    AWAITING = "awaiting"
    ERROR_RECOVERING = "error_recovering"


class ConversationEvent(str, Enum):
    SUBMIT = "submit"
    RESOLVE = "resolve"
    REJECT = "reject"
    RECOVERED = "recovered"


class IllegalTransition(RuntimeError):
    pass


_TRANSITIONS: Dict[tuple, ConversationState] = {
    (ConversationState.IDLE, ConversationEvent.SUBMIT): ConversationState.AWAITING,
    (ConversationState.AWAITING, ConversationEvent.RESOLVE): ConversationState.IDLE,
    (ConversationState.AWAITING, ConversationEvent.REJECT): ConversationState.ERROR_RECOVERING,
    (ConversationState.ERROR_RECOVERING, ConversationEvent.RECOVERED): ConversationState.IDLE,
}


def transition(state: ConversationState, event: ConversationEvent) -> ConversationState:
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise IllegalTransition(f"{event.value} is not allowed in state {state.value}") from None


def reply_timeout_s() -> Optional[float]:
    """GIFTBOT_REPLY_TIMEOUT_SECONDS; 0 or negative disables the timeout."""
    try:
        value = float(os.getenv("GIFTBOT_REPLY_TIMEOUT_SECONDS", "30"))
    except ValueError:
        value = 30.0
    return value if value > 0 else None


@dataclass
class ChatSession:
    messages: List[Message]
    recommendation_pool: List[Product]
    locale: str = "en"
    state: ConversationState = ConversationState.IDLE
    last_error: Optional[str] = None
    last_selection: Optional[Selection] = field(default=None, repr=False)

    @property
    def is_awaiting(self) -> bool:
        return self.state is ConversationState.AWAITING


class ConversationController:
    """
    One chat session.

    While a reply is pending, further submissions are refused, so a reply
    always belongs to the message that triggered it. Generator failures and
    timeouts end the turn with a single localized fallback message.
    """

    def __init__(
        self,
        catalog: Sequence[Product],
        generator: SuggestionGenerator,
        persistence: PersistenceAdapter,
        translate: Translator = t,
        locale: Optional[str] = None,
        domain: str = "toys",
        audience: str = "any",
        reply_timeout: Optional[float] = None,
        session_id: str = "",
    ) -> None:
        self._catalog = list(catalog)
        self._generator = generator
        self._persistence = persistence
        self._t = translate
        self._domain = domain
        self._audience = audience
        self._reply_timeout = reply_timeout if reply_timeout is not None else reply_timeout_s()
        self.session_id = session_id

        self.feedback = FeedbackStore.load(persistence)
        loc = normalize_locale(locale)
        self._session = ChatSession(
            messages=persistence.load_history(lambda: self._greeting(loc)),
            recommendation_pool=initial_pool(self._catalog),
            locale=loc,
        )

    # ----- read surface -----

    @property
    def messages(self) -> List[Message]:
        return list(self._session.messages)

    @property
    def recommendation_pool(self) -> List[Product]:
        return list(self._session.recommendation_pool)

    @property
    def is_awaiting(self) -> bool:
        return self._session.is_awaiting

    @property
    def last_error(self) -> Optional[str]:
        return self._session.last_error

    @property
    def state(self) -> ConversationState:
        return self._session.state

    @property
    def locale(self) -> str:
        return self._session.locale

    @property
    def last_selection(self) -> Optional[Selection]:
        return self._session.last_selection

    # ----- helpers -----

    def _greeting(self, locale: str) -> Message:
        return assistant_message(self._t("ai.intro", locale))

    def _dispatch(self, event: ConversationEvent) -> None:
        self._session.state = transition(self._session.state, event)

    def _save_history(self) -> None:
        try:
            self._persistence.save_history(self._session.messages)
        except Exception as e:  # in-memory history stays authoritative
            logger.warning(f"[store] session={self.session_id} could not save chat history: {e!r}")

    def _append(self, *msgs: Message) -> None:
        self._session.messages.extend(msgs)
        self._save_history()

    async def _call_generator(self, text: str) -> str:
        result = self._generator(text, self._domain, self._audience, self._session.locale)
        if inspect.isawaitable(result):
            try:
                if self._reply_timeout:
                    result = await asyncio.wait_for(result, self._reply_timeout)
                else:
                    result = await result
            except asyncio.TimeoutError as e:
                raise ExternalCallError(f"no reply within {self._reply_timeout}s") from e
        if not isinstance(result, str) or not result.strip():
            raise ExternalCallError("empty reply")
        return result

    # ----- turn -----

    async def submit(self, text: str) -> bool:
        """
        Start a turn. Returns False (and changes nothing) when a reply is
        still pending or the text is blank.
        """
        if self._session.state is not ConversationState.IDLE:
            logger.info(f"[chat] session={self.session_id} submit ignored, state={self._session.state.value}")
            return False
        if not text or not text.strip():
            return False

        t0 = time.perf_counter()
        self._dispatch(ConversationEvent.SUBMIT)
        self._session.last_error = None
        self._append(user_message(text))

        try:
            reply = await self._call_generator(text)
        except asyncio.CancelledError:
            self._recover("cancelled", t0, text)
            raise
        except Exception as e:  # generator is external; every failure ends in the fallback message
            logger.warning(f"[chat] session={self.session_id} generator failed: {e!r}")
            self._recover(type(e).__name__, t0, text)
            return True

        self._resolve(reply, t0, text)
        return True

    def _resolve(self, reply: str, t0: float, text: str) -> None:
        sel = select(self._catalog, reply, self.feedback)
        self._session.last_selection = sel
        self._dispatch(ConversationEvent.RESOLVE)

        new = [assistant_message(reply)]
        if sel.top_matches:
            new.append(product_list_message(self._t("ai.matches", self._session.locale), sel.top_matches))
        self._session.recommendation_pool = sel.related[:POOL_CAP]
        self._append(*new)
        latency_ms = int((time.perf_counter() - t0) * 1000)
        metrics.record_turn(latency_ms, fallback=False, related_source=sel.related_source)

        slog.log_turn(
            self.session_id,
            "reply",
            text,
            latency_ms,
            top_matches=[p.id for p in sel.top_matches],
            related_source=sel.related_source,
        )

    def _recover(self, reason: str, t0: float, text: str) -> None:
        self._dispatch(ConversationEvent.REJECT)
        fallback = self._t("ai.error", self._session.locale)
        self._session.last_error = fallback
        self._append(assistant_message(fallback))
        self._dispatch(ConversationEvent.RECOVERED)
        latency_ms = int((time.perf_counter() - t0) * 1000)
        metrics.record_turn(latency_ms, fallback=True)

        slog.log_turn(self.session_id, "fallback", text, latency_ms, error=reason)

    # ----- other user actions -----

    def toggle_feedback(self, product_id: str, verdict: Verdict) -> Optional[Verdict]:
        """Only future turns see the change; past messages are not rescored."""
        return self.feedback.toggle(product_id, verdict)

    def rate_message(self, index: int, verdict: MessageFeedback) -> Message:
        msgs = self._session.messages
        if index < 0 or index >= len(msgs):
            raise IndexError(f"no message at index {index}")
        msg = msgs[index]
        if msg.role != "assistant" or msg.kind != "plain":
            raise ValueError("only assistant replies can be rated")
        msgs[index] = msg.model_copy(update={"feedback": verdict})
        self._save_history()
        return msgs[index]

    def reset(self) -> bool:
        """
        Back to the greeting and the catalog-head carousel; product feedback is kept.
        Returns False (and changes nothing) while a reply is pending.
        """
        if self._session.state is not ConversationState.IDLE:
            logger.info(f"[chat] session={self.session_id} reset ignored, state={self._session.state.value}")
            return False
        self._session.messages = [self._greeting(self._session.locale)]
        self._session.recommendation_pool = list(self._catalog[:POOL_CAP])
        self._session.last_error = None
        self._session.last_selection = None
        try:
            self._persistence.clear_history()
        except Exception as e:
            logger.warning(f"[store] session={self.session_id} could not clear chat history: {e!r}")
        logger.info(f"[chat] session={self.session_id} reset")
        return True

    def set_locale(self, locale: str) -> None:
        loc = normalize_locale(locale)
        if loc == self._session.locale:
            return
        self._session.locale = loc
        msgs = self._session.messages
        if len(msgs) == 1 and msgs[0].role == "assistant":
            msgs[0] = self._greeting(loc)
            self._save_history()
