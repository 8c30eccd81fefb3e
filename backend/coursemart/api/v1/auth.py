from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from coursemart.core.security import (
    clear_access_cookie,
    clear_refresh_cookie,
    create_access_token,
    create_csrf_token,
    set_access_cookie,
    set_csrf_cookie,
    set_refresh_cookie,
)
from coursemart.core.settings import Settings, get_settings
from coursemart.db.models.user import User
from coursemart.db.session import get_db
from coursemart.schemas.auth import (
    CsrfResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RefreshResponse,
    SignupRequest,
    SignupResponse,
)
from coursemart.services import accounts

router = APIRouter(prefix="/auth", tags=["auth"])

NAME_MAX_LENGTH = 60
PASSWORD_MIN_LENGTH = 8


def _session_response(
    body: dict,
    *,
    user: User,
    refresh_token: str,
    settings: Settings,
    persistent: bool,
) -> JSONResponse:
    response = JSONResponse(body)
    access_token = create_access_token(
        subject=str(user.id),
        ttl_seconds=settings.jwt_access_ttl_seconds,
        secret=settings.jwt_secret,
    )
    set_access_cookie(response=response, token=access_token, settings=settings)
    set_refresh_cookie(response=response, token=refresh_token, settings=settings, persistent=persistent)
    return response


@router.get("/csrf", response_model=CsrfResponse)
async def csrf(settings: Settings = Depends(get_settings)):
    token = create_csrf_token()
    response = JSONResponse(CsrfResponse(ok=True, csrfToken=token).model_dump())
    response.headers["Cache-Control"] = "no-store"
    set_csrf_cookie(response=response, token=token, settings=settings)
    return response


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = await accounts.authenticate(db, email=body.email, password=body.password)
    refresh_token = await accounts.open_refresh_session(
        db, user_id=user.id, secret=settings.jwt_secret, ttl_seconds=settings.jwt_refresh_ttl_seconds
    )
    return _session_response(
        LoginResponse(ok=True).model_dump(),
        user=user,
        refresh_token=refresh_token,
        settings=settings,
        persistent=body.remember_me,
    )


@router.post("/signup", response_model=SignupResponse)
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    first_name = (body.first_name or "").strip()
    last_name = (body.last_name or "").strip()

    if not first_name or not last_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="First and last name are required")
    if len(first_name) > NAME_MAX_LENGTH or len(last_name) > NAME_MAX_LENGTH:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is too long")
    if len(body.password or "") < PASSWORD_MIN_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
        )

    user = await accounts.register(
        db,
        email=body.email,
        password=body.password,
        first_name=first_name,
        last_name=last_name,
    )
    refresh_token = await accounts.open_refresh_session(
        db, user_id=user.id, secret=settings.jwt_secret, ttl_seconds=settings.jwt_refresh_ttl_seconds
    )
    return _session_response(
        SignupResponse(ok=True).model_dump(),
        user=user,
        refresh_token=refresh_token,
        settings=settings,
        persistent=False,
    )


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user, refresh_token = await accounts.rotate_refresh_session(
        db,
        refresh_token=request.cookies.get(settings.refresh_cookie_name),
        secret=settings.jwt_secret,
        ttl_seconds=settings.jwt_refresh_ttl_seconds,
    )
    return _session_response(
        RefreshResponse(ok=True).model_dump(),
        user=user,
        refresh_token=refresh_token,
        settings=settings,
        persistent=True,
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    await accounts.revoke_refresh_session(
        db,
        refresh_token=request.cookies.get(settings.refresh_cookie_name),
        secret=settings.jwt_secret,
    )
    response = JSONResponse(LogoutResponse(ok=True).model_dump())
    clear_access_cookie(response=response, settings=settings)
    clear_refresh_cookie(response=response, settings=settings)
    return response
