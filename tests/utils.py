from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi.testclient import TestClient

DEFAULT_PASSWORD = "correct-horse-battery"


def signup(
    client: TestClient,
    email: str,
    *,
    password: str = DEFAULT_PASSWORD,
    name: Optional[str] = None,
) -> Dict[str, Any]:
    """Create an account; the client keeps the session cookie."""
    res = client.post("/api/auth/signup", json={"email": email, "password": password, "name": name})
    assert res.status_code == 200, res.text
    return res.json()["user"]


def login(client: TestClient, email: str, *, password: str = DEFAULT_PASSWORD) -> Dict[str, Any]:
    res = client.post("/api/auth/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return res.json()["user"]


def bearer_headers(client: TestClient) -> Dict[str, str]:
    token = client.cookies.get("auth_token")
    assert token, "auth cookie missing; sign up or log in first"
    return {"Authorization": f"Bearer {token}"}


def new_client(email: Optional[str] = None) -> TestClient:
    from src.forge.api.main import app

    client = TestClient(app)
    if email:
        signup(client, email)
    return client
