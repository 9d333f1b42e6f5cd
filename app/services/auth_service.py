"""인증 서비스 — 회원가입, 로그인, 로그아웃, 토큰 갱신 비즈니스 로직.

Auth Service — Session lifecycle for note authors.

Session state per user is never stored as a flag. A user is *authenticated*
while at least one unexpired refresh token row exists for them and
*anonymous* otherwise. This service is the only writer of refresh token rows:
login and refresh create them, logout, refresh and the expiry sweep delete them.

Refresh tokens are single-use. Every refresh deletes the presented row and
inserts a replacement in the same transaction; a replayed token no longer
has a row and is refused.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.logger import logger
from app.models.user import User
from app.repositories.auth_repository import auth_repository
from app.repositories.user_repository import user_repository
from app.schemas.auth import (
    LoginRequest,
    LoginResult,
    RegisterRequest,
    SessionTokens,
    UserPublic,
)
from app.utils.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from app.utils.jwt import TokenIssuer, token_issuer
from app.utils.password import PasswordHasher, password_hasher

EMAIL_IN_USE: str = "This email is already in use. Consider sign in"
INVALID_REFRESH_TOKEN: str = "Refresh token is invalid or expired"
NO_REFRESH_TOKEN: str = "No refresh token provided"


class AuthService:
    """인증 관련 비즈니스 로직을 처리하는 서비스.

    Service orchestrating registration, login, logout and refresh rotation
    on top of the password hasher, token issuer and repositories.

    Args:
        issuer: 토큰 발급기 (Token issuer holding the signing secret)
        hasher: 비밀번호 해셔 (Password hasher)
        refresh_token_ttl: 리프레시 토큰 유효 기간 (Refresh token lifetime)
    """

    def __init__(
        self,
        issuer: TokenIssuer,
        hasher: PasswordHasher,
        refresh_token_ttl: timedelta = timedelta(days=7),
    ) -> None:
        self.issuer: TokenIssuer = issuer
        self.hasher: PasswordHasher = hasher
        self.refresh_token_ttl: timedelta = refresh_token_ttl

    async def _start_session(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> SessionTokens:
        """액세스 토큰과 리프레시 토큰을 발급하고 리프레시 토큰을 저장합니다.

        Mint an access token and a refresh token, persisting the latter.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 세션 소유자 ID (Session owner UUID)

        Returns:
            SessionTokens: 발급된 토큰 묶음 (Issued tokens)
        """
        now: datetime = datetime.now(timezone.utc)
        expires_at: datetime = now + self.refresh_token_ttl
        refresh_token: str = self.issuer.issue_refresh()

        await auth_repository.create_refresh_token(
            db, user_id=user_id, token=refresh_token, expires_at=expires_at
        )
        return SessionTokens(
            access_token=self.issuer.issue_access(user_id, now=now),
            refresh_token=refresh_token,
            refresh_expires_at=expires_at,
        )

    async def register(
        self,
        db: AsyncSession,
        data: RegisterRequest,
    ) -> UserPublic:
        """회원가입을 처리합니다.

        Create a user account. No session is issued; the caller logs in
        separately. The email pre-check only avoids hashing for obvious
        duplicates; the unique constraint decides concurrent races.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 검증된 회원가입 요청 (Validated registration request)

        Returns:
            UserPublic: 생성된 사용자 공개 프로필 (Public profile of the new user)

        Raises:
            ConflictError: 이메일이 이미 사용 중일 때 (Email already registered)
        """
        existing: User | None = await user_repository.get_by_email(db, data.email)
        if existing is not None:
            raise ConflictError(EMAIL_IN_USE)

        password_hash: str = self.hasher.hash(data.password)
        try:
            user: User = await user_repository.create(
                db,
                email=data.email,
                username=data.username,
                password_hash=password_hash,
            )
        except IntegrityError:
            # 동시 가입 경쟁에서 패배 — lost a concurrent registration race
            await db.rollback()
            raise ConflictError(EMAIL_IN_USE)

        logger.info("Registered user {user_id}", user_id=user.id)
        return UserPublic.model_validate(user)

    async def login(
        self,
        db: AsyncSession,
        data: LoginRequest,
    ) -> LoginResult:
        """로그인을 처리합니다.

        Verify credentials and start a new session. Other sessions of the
        same user are left untouched.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 검증된 로그인 요청 (Validated login request)

        Returns:
            LoginResult: 공개 프로필과 발급 토큰 (Public profile and issued tokens)

        Raises:
            NotFoundError: 사용자가 없을 때 (No user with that email)
            UnauthorizedError: 비밀번호 불일치 (Password does not match)
        """
        user: User | None = await user_repository.get_by_email(db, data.email)
        if user is None:
            raise NotFoundError("User not found")
        if not self.hasher.verify(data.password, user.password_hash):
            raise UnauthorizedError("Password is incorrect")

        tokens: SessionTokens = await self._start_session(db, user.id)
        logger.info("User {user_id} logged in", user_id=user.id)
        return LoginResult(user=UserPublic.model_validate(user), tokens=tokens)

    async def logout(
        self,
        db: AsyncSession,
        refresh_token: str | None,
    ) -> None:
        """로그아웃 처리 — 리프레시 토큰을 삭제합니다.

        Revoke the presented refresh token. Revoking a token that is
        already gone succeeds, so repeated logouts are harmless.

        Raises:
            BadRequestError: 토큰이 제시되지 않았을 때 (No token presented)
        """
        if not refresh_token:
            raise BadRequestError(NO_REFRESH_TOKEN)

        removed: bool = await auth_repository.delete_refresh_token(db, refresh_token)
        if removed:
            logger.info("Refresh token revoked on logout")
        else:
            logger.debug("Logout presented an unknown refresh token")

    async def refresh(
        self,
        db: AsyncSession,
        refresh_token: str | None,
    ) -> SessionTokens:
        """리프레시 토큰을 회전시키고 새 액세스 토큰을 발급합니다.

        Rotate the presented refresh token: delete its row, insert a fresh
        one and issue a new access token for the same user. The delete must
        report exactly one affected row; a concurrent request that consumed
        the token first leaves zero and this call is refused.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            refresh_token: 제시된 리프레시 토큰 (Presented refresh token)

        Returns:
            SessionTokens: 새 토큰 묶음 (Rotated tokens)

        Raises:
            UnauthorizedError: 토큰이 제시되지 않았을 때 (No token presented)
            ForbiddenError: 알 수 없거나 만료된 토큰 (Unknown, expired or already used token)
        """
        if not refresh_token:
            raise UnauthorizedError(NO_REFRESH_TOKEN)

        now: datetime = datetime.now(timezone.utc)
        stored = await auth_repository.get_active_refresh_token(db, refresh_token, now)
        if stored is None:
            raise ForbiddenError(INVALID_REFRESH_TOKEN)
        user_id: UUID = stored.user_id

        consumed: bool = await auth_repository.delete_refresh_token(db, refresh_token)
        if not consumed:
            raise ForbiddenError(INVALID_REFRESH_TOKEN)

        tokens: SessionTokens = await self._start_session(db, user_id)
        logger.info("Rotated refresh token for user {user_id}", user_id=user_id)
        return tokens

    async def sweep_expired(self, db: AsyncSession) -> int:
        """만료된 리프레시 토큰을 정리합니다 (Delete expired refresh tokens).

        Returns:
            int: 삭제된 토큰 수 (Number of tokens deleted)
        """
        deleted: int = await auth_repository.delete_expired_refresh_tokens(
            db, datetime.now(timezone.utc)
        )
        logger.info("Deleted {count} expired refresh tokens", count=deleted)
        return deleted

    async def is_authenticated(self, db: AsyncSession, user_id: UUID) -> bool:
        """사용자의 세션 상태를 계산합니다.

        Derive the session state: True while the user holds at least one
        unexpired refresh token.
        """
        return await auth_repository.has_active_refresh_token(
            db, user_id, datetime.now(timezone.utc)
        )

    async def get_profile(self, db: AsyncSession, user_id: UUID) -> UserPublic:
        """현재 사용자 공개 프로필을 반환합니다.

        Raises:
            NotFoundError: 사용자가 없을 때 (User no longer exists)
        """
        user: User | None = await user_repository.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return UserPublic.model_validate(user)


# 싱글턴 인스턴스 — Singleton instance
auth_service: AuthService = AuthService(
    issuer=token_issuer,
    hasher=password_hasher,
    refresh_token_ttl=timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS),
)
