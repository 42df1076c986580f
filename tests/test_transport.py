import json

import pytest
import requests

from src.forge.client.transport import ForgeApiClient, TransportError


def _response(status: int, body: bytes, content_type: str = "text/plain") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = body
    resp._content_consumed = True
    resp.headers["Content-Type"] = content_type
    return resp


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response

    def request(self, method, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.response


def test_open_stream_posts_messages_and_model():
    session = FakeSession(_response(200, "## Plan\nHéllo".encode("utf-8")))
    client = ForgeApiClient(base_url="http://api.test/", session=session)
    messages = [{"id": "1", "role": "user", "parts": [{"type": "text", "text": "hi"}]}]

    chunks = list(client.open_stream(messages, "claude-opus-4-5"))

    url, kwargs = session.calls[0]
    assert url == "http://api.test/api/chat"
    assert kwargs["json"] == {"messages": messages, "modelId": "claude-opus-4-5"}
    assert kwargs["stream"] is True
    assert "".join(chunks) == "## Plan\nHéllo"


def test_rejected_request_raises_before_streaming():
    body = json.dumps({"detail": "Generation backend unavailable"}).encode()
    client = ForgeApiClient(base_url="http://api.test", session=FakeSession(_response(502, body, "application/json")))
    with pytest.raises(TransportError) as excinfo:
        client.open_stream([], "gemini-3-pro")
    assert excinfo.value.status_code == 502
    assert str(excinfo.value) == "Generation backend unavailable"


def test_connection_error_is_transport_error():
    session = FakeSession(error=requests.exceptions.ConnectionError("refused"))
    client = ForgeApiClient(base_url="http://api.test", session=session)
    with pytest.raises(TransportError):
        client.open_stream([], "gemini-3-pro")


def test_json_endpoints_unwrap_payloads():
    body = json.dumps({"chat": {"id": 3, "title": "New Chat"}}).encode()
    session = FakeSession(_response(200, body, "application/json"))
    client = ForgeApiClient(base_url="http://api.test", session=session)
    assert client.create_chat(model_id="gemini-3-pro")["id"] == 3
    url, kwargs = session.calls[0]
    assert url == "http://api.test/api/chats"
    assert kwargs["json"] == {"title": None, "modelId": "gemini-3-pro"}


def test_fractional_timeouts_from_env(monkeypatch):
    monkeypatch.setenv("FORGE_CONNECT_TIMEOUT", "2.5")
    monkeypatch.setenv("FORGE_READ_TIMEOUT", "1.5")
    session = FakeSession(_response(200, b"ok"))
    client = ForgeApiClient(base_url="http://api.test", session=session)
    list(client.open_stream([], "gemini-3-pro"))
    _, kwargs = session.calls[0]
    assert kwargs["timeout"] == (2.5, 1.5)
