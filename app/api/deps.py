"""FastAPI 의존성 주입 모듈 — 액세스 토큰 검사 및 로그인 시도 제한.

FastAPI dependency injection module — Access-control gate and login throttling.

Authentication Flow (get_current_user_id):
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. HTTPBearer가 토큰을 추출, 없으면 401 (Token extracted; 401 when absent)
    3. TokenIssuer.verify_access()가 서명과 만료를 검증, 실패 시 406
       (Signature and expiry verified; 406 on failure)
    4. 사용자 ID를 request.state에 기록하고 반환
       (User id stored on request.state and returned)

DB 조회 없음 — 서명만 신뢰하므로 액세스 토큰은 짧게 유지됩니다.
No storage lookup: the signature alone is trusted, which is why access
tokens stay short-lived.
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.config import settings
from app.services.auth_service import AuthService, auth_service
from app.utils.exceptions import InvalidTokenError, RateLimitedError, UnauthorizedError
from app.utils.jwt import TokenIssuer, token_issuer
from app.utils.rate_limit import LoginRateLimiter

# HTTP Bearer 토큰 추출기 — 헤더가 없으면 None (auto_error=False: missing header yields None)
security: HTTPBearer = HTTPBearer(auto_error=False)

# 로그인 시도 제한기 — Per-address login limiter
login_rate_limiter: LoginRateLimiter = LoginRateLimiter(
    max_attempts=settings.LOGIN_RATE_LIMIT_MAX_ATTEMPTS,
    window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_MINUTES * 60,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
)


def get_token_issuer() -> TokenIssuer:
    return token_issuer


def get_auth_service() -> AuthService:
    return auth_service


def get_login_rate_limiter() -> LoginRateLimiter:
    return login_rate_limiter


async def get_current_user_id(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> UUID:
    """액세스 토큰에서 현재 사용자 ID를 추출합니다.

    Verify the bearer access token and return the authenticated user id.

    Args:
        request: 현재 요청 (Current request; receives ``state.user_id``)
        credentials: HTTP Bearer 자격 증명 또는 None (Bearer credentials, None when absent)
        issuer: 토큰 발급기 (Token issuer used for verification)

    Returns:
        UUID: 인증된 사용자 ID (Authenticated user id)

    Raises:
        UnauthorizedError: 토큰 없음 (401, no access token)
        InvalidTokenError: 검증 실패 (406, tampered, malformed or expired token)
    """
    if credentials is None:
        raise UnauthorizedError("Access token required")

    user_id: UUID | None = issuer.verify_access(credentials.credentials)
    if user_id is None:
        raise InvalidTokenError("Invalid token")

    request.state.user_id = user_id
    return user_id


async def enforce_login_rate_limit(
    request: Request,
    limiter: Annotated[LoginRateLimiter, Depends(get_login_rate_limiter)],
) -> None:
    """출발지 주소별 로그인 시도 횟수를 제한합니다.

    Count this attempt against the client address and refuse it once the
    window ceiling is exceeded, before credentials are even parsed.

    The key is the socket peer address. Behind a reverse proxy run uvicorn
    with ``--proxy-headers --forwarded-allow-ips=<proxy ip>`` so that
    ``request.client`` carries the real client address; otherwise every
    client shares the proxy's bucket.

    Raises:
        RateLimitedError: 한도 초과 시 (429 with Retry-After)
    """
    client_host: str = request.client.host if request.client else "unknown"
    retry_after: int | None = await limiter.hit(client_host)
    if retry_after is not None:
        raise RateLimitedError(retry_after)
