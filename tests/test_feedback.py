# =============================================
# File: tests/test_feedback.py
# Purpose: Tri-state like/dislike toggling and its persistence
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import json
import pytest

from giftbot.services.feedback import FeedbackStore
from giftbot.services.persistence import FEEDBACK_KEY, InMemoryStore, PersistenceAdapter

def test_toggle_cycles_through_states():
    fb = FeedbackStore()
    assert fb.get("3") is None
    assert fb.toggle("3", "like") == "like"
    assert fb.get("3") == "like"
    # same verdict again clears it
    assert fb.toggle("3", "like") is None
    assert "3" not in fb
    assert fb.toggle("3", "dislike") == "dislike"
    # opposite verdict replaces it
    assert fb.toggle("3", "like") == "like"
    assert len(fb) == 1

def test_multiplier_follows_verdict():
    fb = FeedbackStore({"1": "like", "2": "dislike"})
    assert fb.multiplier("1") == 1.5
    assert fb.multiplier("2") == 0.5
    assert fb.multiplier("9") == 1.0

def test_unknown_verdict_is_rejected():
    fb = FeedbackStore()
    with pytest.raises(ValueError):
        fb.toggle("1", "love")
    assert len(fb) == 0

def test_every_toggle_is_persisted_and_reloadable():
    store = InMemoryStore()
    adapter = PersistenceAdapter(store)
    fb = FeedbackStore.load(adapter)
    fb.toggle("3", "like")
    fb.toggle("7", "dislike")
    assert json.loads(store.get(FEEDBACK_KEY)) == {"3": "like", "7": "dislike"}

    fb.toggle("3", "like")
    again = FeedbackStore.load(PersistenceAdapter(store))
    assert again.as_dict() == {"7": "dislike"}

def test_as_dict_is_a_copy():
    fb = FeedbackStore({"1": "like"})
    d = fb.as_dict()
    d["2"] = "dislike"
    assert "2" not in fb
