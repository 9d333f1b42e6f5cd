"""JWT 액세스 토큰 및 불투명 리프레시 토큰 발급 모듈.

Access token (JWT) and opaque refresh token issuance module.

JWT Payload Structure (access token only):
    {
        "sub": "user_uuid",   # 사용자 ID (User identifier)
        "iat": 1234567000,    # 발급 시간 (Issued at)
        "exp": 1234567890,    # 만료 시간 UNIX timestamp (Expiration)
        "type": "access"      # 토큰 유형 (Token type discriminator)
    }

리프레시 토큰은 클레임이 없는 무작위 문자열이며 DB 조회로만 의미를 가집니다.
Refresh tokens carry no claims; they only mean something once looked up in storage.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from app.config import Settings, settings


class TokenIssuer:
    """액세스/리프레시 토큰 발급기.

    Mints short-lived signed access tokens and opaque refresh identifiers.
    The signing secret is injected at construction and never changes afterwards.

    Args:
        secret_key: 서명 비밀키 (HMAC signing secret, must be non-empty)
        algorithm: 서명 알고리즘 (JWT signing algorithm)
        access_token_ttl: 액세스 토큰 유효 기간 (Access token lifetime)

    Raises:
        ValueError: 비밀키가 비어 있을 때 (Signing secret missing — fatal configuration error)
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_ttl: timedelta = timedelta(minutes=15),
    ) -> None:
        if not secret_key:
            raise ValueError("JWT_SECRET_KEY must be configured")
        self._secret_key: str = secret_key
        self.algorithm: str = algorithm
        self.access_token_ttl: timedelta = access_token_ttl

    @classmethod
    def from_settings(cls, config: Settings) -> "TokenIssuer":
        """설정 객체로부터 발급기를 생성합니다 (Build an issuer from settings)."""
        return cls(
            secret_key=config.JWT_SECRET_KEY,
            algorithm=config.JWT_ALGORITHM,
            access_token_ttl=timedelta(minutes=config.JWT_ACCESS_TOKEN_EXPIRE_MINUTES),
        )

    def issue_access(self, user_id: uuid.UUID, now: datetime | None = None) -> str:
        """JWT 액세스 토큰을 생성합니다.

        Generate a signed access token asserting the given user id.

        Args:
            user_id: 토큰 주체 사용자 ID (Subject user UUID)
            now: 발급 기준 시각, None이면 현재 UTC (Issue time; defaults to current UTC)

        Returns:
            str: 인코딩된 JWT 문자열 (Encoded JWT token string)
        """
        issued_at: datetime = now or datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self.access_token_ttl,
            "type": "access",
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify_access(self, token: str) -> uuid.UUID | None:
        """액세스 토큰을 검증하고 사용자 ID를 반환합니다.

        Verify signature, expiry and token type. Any failure (tampering,
        malformed structure, expiry, wrong type, bad subject) yields None.

        Args:
            token: JWT 토큰 문자열 (Encoded JWT token string)

        Returns:
            uuid.UUID | None: 사용자 ID 또는 None (Subject user id, or None when invalid)
        """
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.InvalidTokenError:
            return None

        if payload.get("type") != "access":
            return None
        try:
            return uuid.UUID(str(payload["sub"]))
        except ValueError:
            return None

    def issue_refresh(self) -> str:
        """불투명 리프레시 토큰을 생성합니다.

        Generate a cryptographically random, globally unique refresh token.
        """
        return str(uuid.uuid4())


# 싱글턴 인스턴스 — Singleton instance built from the process configuration
token_issuer: TokenIssuer = TokenIssuer.from_settings(settings)
