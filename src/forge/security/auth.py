from __future__ import annotations

"""Authentication utilities: password hashing, JWT session credential, cookie.

This module provides:
- PBKDF2 password hashing and constant-time verification
- JWT encode/decode helpers (PyJWT, HS256)
- Cookie helpers for the ``auth_token`` session cookie
- A FastAPI dependency that resolves the current user from the cookie or a
  bearer header

Env vars:
- FORGE_ENV (``production`` turns on Secure cookies and requires JWT_SECRET)
- JWT_SECRET (required in production; development default otherwise)
- JWT_EXPIRES_MIN (default 7 days)
"""

import hashlib
import hmac
import logging
import os
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..domain.chat_models import UserPublic
from ..infrastructure.user_store import UserRecord, get_user_store

logger = logging.getLogger(__name__)
bearer_scheme = HTTPBearer(auto_error=False)

COOKIE_NAME = "auth_token"
DEFAULT_EXPIRES_MIN = 7 * 24 * 60
DEV_SECRET = "dev-secret-change-me"

PBKDF2_ITERATIONS = 100_000
SALT_BYTES = 16
KEY_BYTES = 32


def is_production() -> bool:
    return (os.getenv("FORGE_ENV") or "development").strip().lower() in ("prod", "production")


@dataclass
class JwtConfig:
    secret: str
    algorithm: str = "HS256"
    expires_min: int = DEFAULT_EXPIRES_MIN

    @staticmethod
    def from_env() -> "JwtConfig":
        secret = os.getenv("JWT_SECRET")
        if not secret:
            if is_production():
                raise RuntimeError("Missing required environment variable: JWT_SECRET")
            secret = DEV_SECRET
        expires = int(os.getenv("JWT_EXPIRES_MIN", str(DEFAULT_EXPIRES_MIN)))
        return JwtConfig(secret=secret, expires_min=expires)


@dataclass
class CookieConfig:
    name: str = COOKIE_NAME
    secure: bool = False
    samesite: str = "lax"
    path: str = "/"
    max_age: int = DEFAULT_EXPIRES_MIN * 60

    @staticmethod
    def from_env(jwt_cfg: Optional[JwtConfig] = None) -> "CookieConfig":
        jwt_cfg = jwt_cfg or JwtConfig.from_env()
        return CookieConfig(secure=is_production(), max_age=jwt_cfg.expires_min * 60)


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(SALT_BYTES)
    key = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS, dklen=KEY_BYTES)
    return f"{salt.hex()}:{key.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        salt_hex, key_hex = stored.split(":", 1)
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(key_hex)
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False
    key = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS, dklen=len(expected))
    return hmac.compare_digest(key, expected)


def to_public(record: UserRecord) -> UserPublic:
    return UserPublic(id=record.id, email=record.email, name=record.name)


def create_access_token(user: UserPublic, cfg: Optional[JwtConfig] = None) -> str:
    cfg = cfg or JwtConfig.from_env()
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=cfg.expires_min)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, cfg.secret, algorithm=cfg.algorithm)


def decode_token(token: str, cfg: Optional[JwtConfig] = None) -> UserPublic:
    cfg = cfg or JwtConfig.from_env()
    try:
        data = jwt.decode(token, cfg.secret, algorithms=[cfg.algorithm])
        return UserPublic(id=int(data["sub"]), email=data["email"], name=data.get("name"))
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def set_auth_cookie(response: Response, token: str, cfg: Optional[CookieConfig] = None) -> None:
    cfg = cfg or CookieConfig.from_env()
    response.set_cookie(
        key=cfg.name,
        value=token,
        max_age=cfg.max_age,
        path=cfg.path,
        httponly=True,
        secure=cfg.secure,
        samesite=cfg.samesite,
    )


def clear_auth_cookie(response: Response, cfg: Optional[CookieConfig] = None) -> None:
    cfg = cfg or CookieConfig.from_env()
    response.delete_cookie(key=cfg.name, path=cfg.path, httponly=True, secure=cfg.secure, samesite=cfg.samesite)


def get_current_user(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> UserPublic:
    """Resolve the current user from the session cookie, else a bearer token."""
    token = request.cookies.get(COOKIE_NAME)
    if not token and creds is not None and creds.scheme and creds.scheme.lower() == "bearer":
        token = creds.credentials
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        claims = decode_token(token)
    except HTTPException:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    record = get_user_store().get(claims.id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return to_public(record)
