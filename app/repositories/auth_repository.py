"""인증 레포지토리 — 리프레시 토큰 CRUD.

Auth Repository — Refresh token lifecycle queries.
Deletes are issued as single conditional DELETE statements so the affected
row count tells the caller whether *this* transaction removed the row.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.token import RefreshToken


class AuthRepository:
    """리프레시 토큰 관련 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling refresh token persistence.
    """

    async def create_refresh_token(
        self,
        db: AsyncSession,
        user_id: UUID,
        token: str,
        expires_at: datetime,
    ) -> RefreshToken:
        """새 리프레시 토큰을 생성합니다.

        Create a new refresh token record in the database.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 토큰 소유자 사용자 ID (Token owner user UUID)
            token: 불투명 리프레시 토큰 문자열 (Opaque refresh token string)
            expires_at: 토큰 만료 일시 (Token expiration timestamp)

        Returns:
            RefreshToken: 생성된 리프레시 토큰 레코드 (Created refresh token record)
        """
        db_token: RefreshToken = RefreshToken(
            user_id=user_id,
            token=token,
            expires_at=expires_at,
        )
        db.add(db_token)
        await db.flush()
        return db_token

    async def get_active_refresh_token(
        self,
        db: AsyncSession,
        token: str,
        now: datetime,
    ) -> RefreshToken | None:
        """유효한 리프레시 토큰 레코드를 조회합니다.

        Retrieve a refresh token record that exists and has not expired.
        Unknown and expired tokens are indistinguishable to the caller.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            token: 조회할 리프레시 토큰 문자열 (Refresh token string to look up)
            now: 기준 시각 (Reference time, UTC)

        Returns:
            RefreshToken | None: 유효한 토큰 레코드 또는 None (Valid token record or None)
        """
        query: Select = select(RefreshToken).where(
            RefreshToken.token == token,
            RefreshToken.expires_at > now,
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def delete_refresh_token(
        self,
        db: AsyncSession,
        token: str,
    ) -> bool:
        """리프레시 토큰을 삭제합니다.

        Delete a specific refresh token with one conditional DELETE.
        When two transactions race on the same token, only one of them
        sees an affected row.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            token: 삭제할 리프레시 토큰 문자열 (Refresh token string to delete)

        Returns:
            bool: 이 호출이 행을 삭제했는지 여부 (Whether this call removed the row)
        """
        stmt = delete(RefreshToken).where(RefreshToken.token == token)
        result = await db.execute(stmt)
        await db.flush()
        return result.rowcount == 1

    async def delete_expired_refresh_tokens(
        self,
        db: AsyncSession,
        now: datetime,
    ) -> int:
        """만료된 리프레시 토큰을 일괄 삭제합니다.

        Delete every refresh token whose expiry is not in the future.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            now: 기준 시각 (Reference time, UTC)

        Returns:
            int: 삭제된 행 수 (Number of rows deleted)
        """
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        await db.flush()
        return result.rowcount

    async def has_active_refresh_token(
        self,
        db: AsyncSession,
        user_id: UUID,
        now: datetime,
    ) -> bool:
        """사용자에게 유효한 리프레시 토큰이 있는지 확인합니다.

        Whether at least one unexpired refresh token exists for the user.
        """
        query = select(
            exists().where(
                RefreshToken.user_id == user_id,
                RefreshToken.expires_at > now,
            )
        )
        result = await db.execute(query)
        return bool(result.scalar())


# 싱글턴 인스턴스 — Singleton instance
auth_repository: AuthRepository = AuthRepository()
