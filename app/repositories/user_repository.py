"""사용자 레포지토리 — 사용자 조회 및 생성.

User Repository — Lookup by email/id and creation of user records.
Email uniqueness is enforced by the ``uq_users_email`` constraint;
``create`` surfaces a violation as ``IntegrityError`` for the caller to translate.
"""

from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


class UserRepository:
    """사용자 관련 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling user record queries.
    """

    async def get_by_email(
        self,
        db: AsyncSession,
        email: str,
    ) -> User | None:
        """이메일로 사용자를 조회합니다.

        Retrieve a user by (already normalized) email.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            email: 소문자 정규화된 이메일 (Lower-cased email)

        Returns:
            User | None: 조회된 사용자 또는 None (Found user or None)
        """
        query: Select = select(User).where(User.email == email)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_id(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> User | None:
        """ID로 사용자를 조회합니다 (Retrieve a user by UUID)."""
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def create(
        self,
        db: AsyncSession,
        email: str,
        username: str,
        password_hash: str,
    ) -> User:
        """새 사용자를 생성합니다.

        Insert a new user with a server-generated UUID and flush so the
        unique constraint is checked immediately.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            email: 소문자 정규화된 이메일 (Lower-cased email)
            username: 사용자명 (Display username)
            password_hash: bcrypt 해시 (bcrypt digest)

        Returns:
            User: 생성된 사용자 (Created user)

        Raises:
            sqlalchemy.exc.IntegrityError: 이메일 중복 시 (Duplicate email)
        """
        user: User = User(email=email, username=username, password_hash=password_hash)
        db.add(user)
        await db.flush()
        await db.refresh(user)
        return user


# 싱글턴 인스턴스 — Singleton instance
user_repository: UserRepository = UserRepository()
