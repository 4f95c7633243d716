# =============================================
# File: tests/test_chat_endpoint.py
# Purpose: /chat session endpoints end to end with a stub generator
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from fastapi.testclient import TestClient

from giftbot.services.catalog import default_catalog
from giftbot.services.persistence import InMemoryStore
from giftbot.services.sessions import SessionRegistry, set_registry
from giftbot.utils.i18n import t
from giftbot.utils.metrics import reset as metrics_reset
from giftbot.utils.ratelimit import reset_rate_limit

SPEED_REPLY = "You could try the Speed Racer RC!"

def _stub_generator(message, domain, audience, locale):
    return SPEED_REPLY

def _mount_client(monkeypatch, generator=None):
    monkeypatch.setenv("RL_MAX_REQS", "100")
    monkeypatch.setenv("RL_WINDOW_SECONDS", "60")
    reset_rate_limit()
    metrics_reset()
    set_registry(SessionRegistry(default_catalog(), InMemoryStore(), generator or _stub_generator))

    from giftbot.main import app
    return TestClient(app)

def _ids(items):
    return [p["id"] for p in items]

def test_new_session_snapshot(monkeypatch):
    client = _mount_client(monkeypatch)
    r = client.get("/chat/s-new")
    assert r.status_code == 200
    data = r.json()
    assert data["session_id"] == "s-new"
    assert data["state"] == "idle"
    assert data["is_awaiting"] is False
    assert len(data["messages"]) == 1
    assert data["messages"][0]["text"] == t("ai.intro", "en")
    assert _ids(data["recommendation_pool"]) == ["3", "1", "5", "2", "4"]
    assert data["feedback"] == {}
    assert len(data["suggested_prompts"]) == 5

def test_submit_runs_a_full_turn(monkeypatch):
    client = _mount_client(monkeypatch)
    r = client.post("/chat/s1/messages", json={"text": "  a gift for my nephew  "})
    assert r.status_code == 200
    data = r.json()
    msgs = data["messages"]
    assert msgs[1] == {"role": "user", "text": "a gift for my nephew", "kind": "plain", "products": [], "feedback": None}
    assert msgs[2]["text"] == SPEED_REPLY
    assert msgs[3]["kind"] == "product-list"
    assert _ids(msgs[3]["products"]) == ["1", "10"]
    assert _ids(data["recommendation_pool"]) == ["6"]
    assert data["last_error"] is None

def test_submit_validation(monkeypatch):
    client = _mount_client(monkeypatch)
    assert client.post("/chat/s1/messages", json={"text": "   "}).status_code == 422
    assert client.post("/chat/s1/messages", json={"text": "x" * 501}).status_code == 422
    assert client.post("/chat/s1/messages", json={"text": "hi", "locale": "fr"}).status_code == 422
    assert client.post("/chat/bad id!/messages", json={"text": "hi"}).status_code == 422

def test_generator_failure_returns_fallback_not_500(monkeypatch):
    def boom(*a):
        raise RuntimeError("down")

    client = _mount_client(monkeypatch, generator=boom)
    r = client.post("/chat/s1/messages", json={"text": "hello"})
    assert r.status_code == 200
    data = r.json()
    assert data["last_error"] == t("ai.error", "en")
    assert data["messages"][-1]["text"] == t("ai.error", "en")
    assert data["state"] == "idle"

def test_locale_switch_on_submit(monkeypatch):
    client = _mount_client(monkeypatch)
    r = client.post("/chat/s-bn/messages", json={"text": "রোবট", "locale": "bn"})
    data = r.json()
    assert data["locale"] == "bn"
    assert data["messages"][0]["text"] == t("ai.intro", "bn")
    assert data["messages"][-1]["text"] == t("ai.matches", "bn")
    assert data["suggested_prompts"][0] == t("ai.suggested.gift", "bn")

def test_message_feedback(monkeypatch):
    client = _mount_client(monkeypatch)
    client.post("/chat/s1/messages", json={"text": "hi"})
    r = client.post("/chat/s1/messages/2/feedback", json={"verdict": "up"})
    assert r.status_code == 200
    assert r.json()["feedback"] == "up"
    assert client.get("/chat/s1").json()["messages"][2]["feedback"] == "up"

    assert client.post("/chat/s1/messages/1/feedback", json={"verdict": "up"}).status_code == 422
    assert client.post("/chat/s1/messages/42/feedback", json={"verdict": "up"}).status_code == 404
    assert client.post("/chat/s1/messages/2/feedback", json={"verdict": "meh"}).status_code == 422

def test_product_feedback_toggle_and_effect(monkeypatch):
    client = _mount_client(monkeypatch, generator=lambda *a: "How about a speed racer?")
    r = client.post("/chat/s1/products/1/feedback", json={"verdict": "dislike"})
    assert r.json() == {"product_id": "1", "verdict": "dislike"}
    assert client.get("/chat/s1").json()["feedback"] == {"1": "dislike"}

    data = client.post("/chat/s1/messages", json={"text": "fast cars"}).json()
    assert _ids(data["messages"][-1]["products"]) == ["10", "1"]

    r = client.post("/chat/s1/products/1/feedback", json={"verdict": "dislike"})
    assert r.json()["verdict"] is None

def test_product_feedback_unknown_product(monkeypatch):
    client = _mount_client(monkeypatch)
    r = client.post("/chat/s1/products/999/feedback", json={"verdict": "like"})
    assert r.status_code == 404

def test_reset_keeps_feedback(monkeypatch):
    client = _mount_client(monkeypatch)
    client.post("/chat/s1/messages", json={"text": "hi"})
    client.post("/chat/s1/products/3/feedback", json={"verdict": "like"})
    data = client.post("/chat/s1/reset").json()
    assert len(data["messages"]) == 1
    assert data["feedback"] == {"3": "like"}
    assert _ids(data["recommendation_pool"]) == ["1", "2", "3", "4", "5"]

def test_sessions_are_isolated(monkeypatch):
    client = _mount_client(monkeypatch)
    client.post("/chat/alice/messages", json={"text": "hi"})
    assert len(client.get("/chat/alice").json()["messages"]) == 4
    assert len(client.get("/chat/bob").json()["messages"]) == 1

def test_health(monkeypatch):
    client = _mount_client(monkeypatch)
    assert client.get("/health").json() == {"status": "ok"}
