# tests/test_recommend_endpoint.py

import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from fastapi.testclient import TestClient

from giftbot.services.catalog import default_catalog
from giftbot.services.persistence import InMemoryStore
from giftbot.services.sessions import SessionRegistry, set_registry

def _mount_client():
    set_registry(SessionRegistry(default_catalog(), InMemoryStore(), lambda *a: "ok"))
    from giftbot.main import app
    return TestClient(app)

def _ids(items):
    return [p["id"] for p in items]

def test_recommend_scores_text_against_catalog():
    client = _mount_client()
    r = client.post("/recommend", json={"text": "You could try the Speed Racer RC!"})
    assert r.status_code == 200
    data = r.json()
    assert _ids(data["top_matches"]) == ["1", "10"]
    assert _ids(data["related"]) == ["6"]
    assert data["related_source"] == "category"

    first = data["scores"][0]
    assert first["product"]["id"] == "1"
    assert first["mention"] == 50
    assert first["category"] == 0
    assert first["keywords"] == 20
    assert abs(first["score"] - 85.6) < 1e-6
    assert first["multiplier"] == 1.0

def test_recommend_without_matches_falls_back():
    client = _mount_client()
    data = client.post("/recommend", json={"text": "asdf qwer"}).json()
    assert data["top_matches"] == []
    assert data["scores"] == []
    assert _ids(data["related"]) == ["1", "2", "3", "4", "5"]
    assert data["related_source"] == "catalog"

def test_recommend_uses_session_feedback():
    client = _mount_client()
    client.post("/chat/u42/products/1/feedback", json={"verdict": "dislike"})
    data = client.post("/recommend", json={"text": "a speed racer", "session_id": "u42"}).json()
    assert _ids(data["top_matches"]) == ["10", "1"]
    assert data["scores"][1]["multiplier"] == 0.5

def test_recommend_rejects_bad_session_id():
    client = _mount_client()
    r = client.post("/recommend", json={"text": "robot", "session_id": "no spaces allowed"})
    assert r.status_code == 422

def test_products_lists_catalog():
    client = _mount_client()
    data = client.get("/products").json()
    assert len(data) == 11
    assert data[4]["name"] == "Super Galactic Robot"
    assert data[4]["specs"]
