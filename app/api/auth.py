"""인증 라우터 — 회원가입, 로그인, 로그아웃, 토큰 갱신, 프로필 조회.

Auth Router — Registration, login, logout, token refresh, and profile endpoints.

리프레시 토큰은 응답 본문에 포함되지 않고 HttpOnly 쿠키로만 전달됩니다.
The refresh token never appears in a response body; it travels only as an
HttpOnly, Secure, SameSite=None cookie whose expiry matches the stored row.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Cookie, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import enforce_login_rate_limit, get_auth_service, get_current_user_id
from app.config import settings
from app.database import get_db
from app.schemas.auth import (
    AccessTokenResponse,
    LoginRequest,
    LoginResponse,
    LoginResult,
    RegisterRequest,
    SessionTokens,
    UserPublic,
)
from app.schemas.common import MessageResponse
from app.services.auth_service import AuthService

router: APIRouter = APIRouter()

RefreshCookie = Annotated[str | None, Cookie(alias=settings.REFRESH_COOKIE_NAME)]


def _set_refresh_cookie(response: Response, tokens: SessionTokens) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=tokens.refresh_token,
        expires=tokens.refresh_expires_at,
        httponly=True,
        secure=True,
        samesite="none",
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        httponly=True,
        secure=True,
        samesite="none",
    )


@router.post("/register", response_model=MessageResponse, status_code=201)
async def register(
    data: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    """회원가입 — 세션은 발급하지 않음.

    Register a new account. The caller must log in separately.
    """
    await service.register(db, data)
    await db.commit()
    return MessageResponse(message="User registered please sign in")


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(enforce_login_rate_limit)],
)
async def login(
    data: LoginRequest,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> LoginResponse:
    """로그인 — 액세스 토큰은 본문, 리프레시 토큰은 쿠키.

    Log in. Returns the public profile and access token; sets the refresh cookie.
    """
    result: LoginResult = await service.login(db, data)
    await db.commit()
    _set_refresh_cookie(response, result.tokens)
    return LoginResponse(user=result.user, access_token=result.tokens.access_token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    refresh_token: RefreshCookie = None,
) -> MessageResponse:
    """로그아웃 — 리프레시 토큰 폐기 및 쿠키 삭제.

    Logout endpoint. Revokes the cookie's refresh token and clears the cookie.
    """
    await service.logout(db, refresh_token)
    await db.commit()
    _clear_refresh_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.post("/refresh", response_model=AccessTokenResponse)
async def refresh(
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    refresh_token: RefreshCookie = None,
) -> AccessTokenResponse:
    """토큰 갱신 — 리프레시 토큰 회전 후 새 액세스 토큰 발급.

    Refresh endpoint. Rotates the refresh cookie and issues a new access token.
    """
    tokens: SessionTokens = await service.refresh(db, refresh_token)
    await db.commit()
    _set_refresh_cookie(response, tokens)
    return AccessTokenResponse(access_token=tokens.access_token)


@router.get("/me", response_model=UserPublic)
async def get_me(
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    user_id: Annotated[UUID, Depends(get_current_user_id)],
) -> UserPublic:
    """현재 사용자 프로필 조회 (Profile of the authenticated user)."""
    return await service.get_profile(db, user_id)
