from fastapi.testclient import TestClient

from src.forge.api.main import app

client = TestClient(app)


def test_root_and_health():
    assert client.get("/").json()["name"] == "Forge API"
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["timestamp"].endswith("Z")


def test_metrics_endpoint_exposes_latency_histogram():
    client.get("/health")
    res = client.get("/metrics")
    assert res.status_code == 200
    assert "forge_request_latency_seconds" in res.text


def test_models_lists_catalog_with_default(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "k")
    res = client.get("/api/models")
    assert res.status_code == 200
    data = res.json()
    assert data["default"] == "gemini-3-pro"
    by_id = {m["id"]: m for m in data["models"]}
    assert by_id["claude-opus-4-5"]["available"] is True
    assert by_id["gemini-3-pro"]["available"] is False


def test_preview_endpoint_serves_sandboxed_html():
    res = client.post("/api/preview", json={"code": "export default function App() { return <p>Hi</p>; }"})
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/html")
    assert res.headers["content-security-policy"] == "sandbox allow-scripts"
    assert "function App()" in res.text


def test_preview_requires_code():
    assert client.post("/api/preview", json={"code": ""}).status_code == 422
