from fastapi.testclient import TestClient

from src.forge.api.main import app
from src.forge.core.extractor import extract

client = TestClient(app)


def _body(text="a login form", model_id="gemini-3-pro"):
    return {
        "messages": [{"id": "m1", "role": "user", "parts": [{"type": "text", "text": text}]}],
        "modelId": model_id,
    }


def test_streams_structured_plain_text_without_provider():
    res = client.post("/api/chat", json=_body())
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/plain")
    doc = extract(res.text)
    assert "a login form" in doc.plan
    assert doc.code


def test_stream_is_read_incrementally():
    with client.stream("POST", "/api/chat", json=_body()) as res:
        chunks = [c for c in res.iter_text() if c]
    assert len(chunks) >= 1
    assert extract("".join(chunks)).summary


def test_unknown_model_still_served():
    res = client.post("/api/chat", json=_body(model_id="retired-model"))
    assert res.status_code == 200


def test_empty_messages_rejected():
    res = client.post("/api/chat", json={"messages": [], "modelId": "gemini-3-pro"})
    assert res.status_code == 400


def test_unconfigured_without_fallback_is_503(monkeypatch):
    monkeypatch.setenv("FORGE_DETERMINISTIC_FALLBACK", "0")
    assert client.post("/api/chat", json=_body()).status_code == 503


def test_provider_failure_before_output_is_502(monkeypatch):
    def broken(*_args, **_kwargs):
        def gen():
            raise RuntimeError("upstream 500")
            yield ""  # pragma: no cover

        return gen()

    monkeypatch.setattr("src.forge.api.routers.generate.stream_generation", broken)
    res = client.post("/api/chat", json=_body())
    assert res.status_code == 502
    assert res.json()["detail"] == "Generation backend unavailable"


def test_provider_failure_mid_stream_keeps_partial(monkeypatch):
    def flaky(*_args, **_kwargs):
        def gen():
            yield "## Plan\nHalf"
            raise RuntimeError("connection reset")

        return gen()

    monkeypatch.setattr("src.forge.api.routers.generate.stream_generation", flaky)
    res = client.post("/api/chat", json=_body())
    assert res.status_code == 200
    assert res.text == "## Plan\nHalf"

