"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Provides pre-configured HTTPException subclasses for the authentication
error taxonomy. Services raise these directly; FastAPI turns them into
``{"detail": ...}`` responses with the fixed status code.

Usage:
    from app.utils.exceptions import NotFoundError, ConflictError
    raise NotFoundError("User not found")
    raise ConflictError("This email is already in use. Consider sign in")
"""

from fastapi import HTTPException, status


class BadRequestError(HTTPException):
    """400 Bad Request 예외 — 잘못된 요청 시 사용.

    Raised when the request is missing something the operation needs
    (e.g. logout without a refresh token cookie).
    """

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ConflictError(HTTPException):
    """중복 리소스 예외 — 이미 사용 중인 이메일로 가입 시도.

    Raised when registration hits an email that already exists.
    The public HTTP contract reports this as 400, not 409.
    """

    def __init__(self, detail: str = "Resource already exists") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnauthorizedError(HTTPException):
    """401 Unauthorized 예외 — 인증 실패 시 사용.

    Raised for a wrong password, a missing access token,
    or a refresh request without a refresh token.
    """

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class ForbiddenError(HTTPException):
    """403 Forbidden 예외 — 유효하지 않거나 만료된 리프레시 토큰.

    Unknown and expired refresh tokens share this signal so callers
    cannot tell which tokens exist.
    """

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    """404 Not Found 예외 — 요청한 리소스를 찾을 수 없을 때 사용."""

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class InvalidTokenError(HTTPException):
    """406 예외 — 액세스 토큰 검증 실패 (Access token failed verification)."""

    def __init__(self, detail: str = "Invalid token") -> None:
        super().__init__(status_code=status.HTTP_406_NOT_ACCEPTABLE, detail=detail)


class RateLimitedError(HTTPException):
    """429 Too Many Requests 예외 — 로그인 시도 한도 초과.

    Carries a Retry-After header with the number of seconds until
    the current window resets.

    Args:
        retry_after: 재시도까지 남은 초 (Seconds until attempts are accepted again)
        detail: 오류 메시지 (Error message)
    """

    def __init__(
        self,
        retry_after: int,
        detail: str = "Too many login attempts. Please try again later.",
    ) -> None:
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=detail,
            headers={"Retry-After": str(retry_after)},
        )
        self.retry_after: int = retry_after


class StorageError(HTTPException):
    """500 예외 — 저장소 오류를 일반 내부 오류로 노출.

    Storage failures are fatal to the request. The response never carries
    driver or SQL details.
    """

    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
