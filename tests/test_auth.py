from fastapi.testclient import TestClient

from src.forge.api.main import app
from src.forge.security.auth import COOKIE_NAME, decode_token, hash_password, verify_password

from .utils import DEFAULT_PASSWORD, bearer_headers, login, signup


def test_signup_sets_cookie_and_me_returns_user():
    client = TestClient(app)
    user = signup(client, "Ada@Example.com", name="Ada")
    assert user["email"] == "ada@example.com"
    assert isinstance(user["id"], int)
    token = client.cookies.get(COOKIE_NAME)
    assert token
    claims = decode_token(token)
    assert claims.id == user["id"] and claims.email == "ada@example.com"

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["user"]["name"] == "Ada"


def test_cookie_attributes():
    client = TestClient(app)
    res = client.post("/api/auth/signup", json={"email": "c@example.com", "password": DEFAULT_PASSWORD})
    header = res.headers["set-cookie"].lower()
    assert "httponly" in header
    assert "samesite=lax" in header
    assert "path=/" in header
    assert "max-age=604800" in header
    assert "secure" not in header


def test_short_password_rejected():
    client = TestClient(app)
    res = client.post("/api/auth/signup", json={"email": "s@example.com", "password": "short"})
    assert res.status_code == 400


def test_invalid_email_rejected():
    client = TestClient(app)
    res = client.post("/api/auth/signup", json={"email": "not-an-email", "password": DEFAULT_PASSWORD})
    assert res.status_code == 422


def test_duplicate_signup_conflicts():
    client = TestClient(app)
    signup(client, "dup@example.com")
    res = client.post("/api/auth/signup", json={"email": "DUP@example.com", "password": DEFAULT_PASSWORD})
    assert res.status_code == 409


def test_login_and_wrong_password():
    signup(TestClient(app), "login@example.com")
    client = TestClient(app)
    bad = client.post("/api/auth/login", json={"email": "login@example.com", "password": "wrong-password"})
    assert bad.status_code == 401
    assert bad.json()["detail"] == "Invalid email or password"
    unknown = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": DEFAULT_PASSWORD})
    assert unknown.json()["detail"] == "Invalid email or password"
    assert login(client, "login@example.com")["email"] == "login@example.com"


def test_me_requires_authentication():
    res = TestClient(app).get("/api/auth/me")
    assert res.status_code == 401
    assert res.json()["detail"] == "Not authenticated"


def test_garbage_cookie_is_not_authenticated():
    client = TestClient(app, cookies={COOKIE_NAME: "garbage"})
    assert client.get("/api/auth/me").status_code == 401


def test_logout_clears_cookie():
    client = TestClient(app)
    signup(client, "out@example.com")
    res = client.post("/api/auth/logout")
    assert res.status_code == 200
    assert client.cookies.get(COOKIE_NAME) is None
    assert client.get("/api/auth/me").status_code == 401


def test_bearer_header_is_accepted():
    owner = TestClient(app)
    signup(owner, "bearer@example.com")
    headers = bearer_headers(owner)
    res = TestClient(app).get("/api/auth/me", headers=headers)
    assert res.status_code == 200
    assert res.json()["user"]["email"] == "bearer@example.com"


def test_password_hash_format():
    stored = hash_password("hunter2hunter2")
    salt, key = stored.split(":")
    assert len(bytes.fromhex(salt)) == 16
    assert len(bytes.fromhex(key)) == 32
    assert verify_password("hunter2hunter2", stored)
    assert not verify_password("hunter3hunter3", stored)
    assert not verify_password("x", "not-a-hash")
    assert hash_password("same") != hash_password("same")
