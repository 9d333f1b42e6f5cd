"""인증 관련 Pydantic 요청/응답 스키마 정의.

Authentication-related Pydantic request/response schema definitions.
Covers registration, login, token refresh, and the public user profile.
Request shape rules are checked here, once, at the HTTP boundary.
"""

from datetime import datetime

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from app.utils.password import MAX_PASSWORD_BYTES


def _check_email(value: str) -> str:
    # 형식만 검사, DNS 조회 없음 (syntax only, no deliverability lookup)
    try:
        validated = validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError:
        raise PydanticCustomError("invalid_email", "Invalid email address") from None
    return validated.normalized.lower()


def _check_password(value: str) -> str:
    if len(value) < 6:
        raise PydanticCustomError("password_too_short", "Password must be at least 6 characters")
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise PydanticCustomError("password_too_long", "Password must be at most 72 bytes")
    return value


class RegisterRequest(BaseModel):
    """회원가입 요청 스키마.

    Registration request schema. Field order is the order rules are reported in.

    Attributes:
        username: 사용자명, 최소 3자 (Display name, at least 3 characters)
        email: 이메일 (Email address, normalized to lower case)
        password: 비밀번호, 최소 6자 (Plain text, at least 6 characters; hashed on server)
    """

    username: str
    email: str
    password: str

    @field_validator("username")
    @classmethod
    def _username_length(cls, value: str) -> str:
        if len(value.strip()) < 3:
            raise PydanticCustomError("username_too_short", "Username must be at least 3 characters")
        return value.strip()

    @field_validator("email")
    @classmethod
    def _email_format(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def _password_length(cls, value: str) -> str:
        return _check_password(value)


class LoginRequest(BaseModel):
    """로그인 요청 스키마.

    Attributes:
        email: 이메일 (Login email)
        password: 비밀번호 (Plain text password, verified against bcrypt hash)
    """

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email_format(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def _password_length(cls, value: str) -> str:
        return _check_password(value)


class UserPublic(BaseModel):
    """공개 사용자 프로필 — 비밀번호 해시는 절대 포함하지 않음.

    Public user profile. Never includes the password hash.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: object) -> str:
        return str(value)


class SessionTokens(BaseModel):
    """세션 시작/갱신 시 발급된 토큰 묶음 (내부 전달용).

    Tokens minted when a session starts or rotates. Internal contract between
    the session manager and the router; only the access token reaches the
    response body, the refresh token travels as a cookie.

    Attributes:
        access_token: 서명된 액세스 토큰 (Signed access token, 15 minutes)
        refresh_token: 불투명 리프레시 토큰 (Opaque refresh token)
        refresh_expires_at: 리프레시 토큰 만료 시각 (Refresh token expiry)
    """

    access_token: str
    refresh_token: str
    refresh_expires_at: datetime


class LoginResult(BaseModel):
    """로그인 결과 (Login outcome: public profile plus issued tokens)."""

    user: UserPublic
    tokens: SessionTokens


class LoginResponse(BaseModel):
    """로그인 응답 스키마 — ``{"user": {...}, "accessToken": "..."}``."""

    model_config = ConfigDict(populate_by_name=True)

    user: UserPublic
    access_token: str = Field(serialization_alias="accessToken")


class AccessTokenResponse(BaseModel):
    """토큰 갱신 응답 스키마 — ``{"accessToken": "..."}``."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(serialization_alias="accessToken")
