import pytest
from fastapi.testclient import TestClient

from app.agents.normalizer_agent import IdentityNormalizer
from app.agents.task_router import PsalmLookupRouter
from app.main import app


@pytest.fixture
def lookup_router(retriever):
    return PsalmLookupRouter(retriever, IdentityNormalizer())


@pytest.fixture
def client(lookup_router):
    app.state.lookup_router = lookup_router
    with TestClient(app) as c:
        yield c
    app.state.lookup_router = None


def test_post_lookup_returns_verses(client):
    r = client.post("/api/psalms/lookup", json={"prompt": "Psalm 23:1-3"})
    assert r.status_code == 200
    j = r.json()
    assert j["found"] is True
    assert j["error"] is None
    assert [v["verse"] for v in j["results"]] == [1, 2, 3]
    assert j["results"][0]["reference"] == "Psalm 23:1"
    assert j["lines"][0] == "Psalm 23:1 The LORD is my shepherd; I shall not want."


def test_get_lookup_multiple_references(client):
    r = client.get("/api/psalms/lookup", params={"prompt": "Psalm 1, Psalm 2:1"})
    assert r.status_code == 200
    refs = [v["reference"] for v in r.json()["results"]]
    assert refs == ["Psalm 1:1", "Psalm 1:2", "Psalm 1:3", "Psalm 2:1"]


def test_lookup_errors_are_in_body(client):
    r = client.post("/api/psalms/lookup", json={"prompt": "Psalm 999"})
    assert r.status_code == 200
    assert r.json()["found"] is False
    assert r.json()["error"] == "No verses found"

    r = client.post("/api/psalms/lookup", json={"prompt": "hello there"})
    assert r.json()["error"] == "Could not understand the reference."


def test_lookup_rejects_empty_prompt(client):
    r = client.post("/api/psalms/lookup", json={"prompt": ""})
    assert r.status_code == 422


def test_lookup_while_busy_conflicts(client, lookup_router):
    lookup_router._busy = True
    r = client.post("/api/psalms/lookup", json={"prompt": "Psalm 23"})
    assert r.status_code == 409
    lookup_router._busy = False


def test_chapters_and_status(client):
    assert client.get("/api/psalms/chapters").json() == [1, 2, 23]
    assert client.get("/api/psalms/status").json() == {"busy": False, "normalizer": "identity"}


def test_chapters_without_corpus(monkeypatch, tmp_path):
    monkeypatch.setenv("PSALMS_CORPUS_PATH", str(tmp_path / "missing.json"))
    app.state.lookup_router = PsalmLookupRouter(None)
    with TestClient(app) as c:
        r = c.get("/api/psalms/chapters")
    app.state.lookup_router = None
    assert r.status_code == 503


def test_health(client):
    assert client.get("/api/psalms/health").json()["status"] == "healthy"
    assert client.get("/health").json()["status"] == "healthy"


def test_form_page_renders(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "Load Verses" in r.text


def test_form_submit_renders_lines(client):
    r = client.post("/", data={"prompt": "Psalm 23:4"})
    assert r.status_code == 200
    assert "Psalm 23:4 Yea, though I walk through the valley." in r.text


def test_form_submit_renders_error(client):
    r = client.post("/", data={"prompt": "Psalm 999"})
    assert "No verses found" in r.text


def test_lifespan_builds_router_from_env(monkeypatch, corpus_file):
    monkeypatch.setenv("PSALMS_CORPUS_PATH", str(corpus_file))
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    app.state.lookup_router = None

    with TestClient(app) as c:
        r = c.get("/api/psalms/lookup", params={"prompt": "psalm 2:2"})
    app.state.lookup_router = None

    assert [v["verse"] for v in r.json()["results"]] == [2]
