from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from ...domain.chat_models import AuthResponse, LoginRequest, SignupRequest, UserPublic
from ...infrastructure.user_store import get_user_store
from ...security.auth import (
    JwtConfig,
    CookieConfig,
    clear_auth_cookie,
    create_access_token,
    get_current_user,
    hash_password,
    set_auth_cookie,
    to_public,
    verify_password,
)
from ...security.rate_limit import enforce_auth_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 8
INVALID_CREDENTIALS = "Invalid email or password"


def _issue_session(response: Response, user: UserPublic) -> None:
    jwt_cfg = JwtConfig.from_env()
    token = create_access_token(user, jwt_cfg)
    set_auth_cookie(response, token, CookieConfig.from_env(jwt_cfg))


@router.post("/signup", response_model=AuthResponse)
def signup(req: SignupRequest, request: Request, response: Response) -> AuthResponse:
    enforce_auth_limit(request, req.email, "signup", default_limit=5, default_window_seconds=900)
    if len(req.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )
    try:
        record = get_user_store().create(req.email, hash_password(req.password), name=req.name)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with this email already exists")
    user = to_public(record)
    _issue_session(response, user)
    logger.info("User %s signed up", user.id)
    return AuthResponse(user=user)


@router.post("/login", response_model=AuthResponse)
def login(req: LoginRequest, request: Request, response: Response) -> AuthResponse:
    enforce_auth_limit(request, req.email, "login", default_limit=10, default_window_seconds=900)
    record = get_user_store().get_by_email(req.email)
    if record is None or not verify_password(req.password, record.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)
    user = to_public(record)
    _issue_session(response, user)
    return AuthResponse(user=user)


@router.post("/logout")
def logout(response: Response) -> dict:
    clear_auth_cookie(response)
    return {"success": True}


@router.get("/me", response_model=AuthResponse)
def me(user: UserPublic = Depends(get_current_user)) -> AuthResponse:
    return AuthResponse(user=user)
