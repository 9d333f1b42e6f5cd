"""사용자 SQLAlchemy ORM 모델 정의.

User SQLAlchemy ORM model definition.

Tables:
    - users: 사용자 계정 (User accounts, email is globally unique)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, DateTime, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class User(Base):
    """사용자 모델 — 시스템 사용자 계정 정보.

    User model — Identity record for note authors.
    Email is unique across the whole system and stored lower-cased;
    the unique constraint is the authority for duplicate detection.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier, generated server-side)
        email: 이메일 (Login email, unique, lower-cased)
        username: 표시 이름 (Display username)
        password_hash: bcrypt 해시된 비밀번호 (bcrypt-hashed password)
        created_at: 생성 일시 UTC (Creation timestamp)

    Relationships:
        refresh_tokens: 리프레시 토큰 목록 (Refresh tokens, cascade delete)

    Constraints:
        uq_users_email: 이메일 고유 (Unique email)
    """

    __tablename__ = "users"

    # 사용자 고유 식별자 — User unique identifier (UUID v4, immutable)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 이메일 — Login email (소문자 정규화, lower-case normalized)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    # 사용자명 — Display username
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    # 비밀번호 해시 — bcrypt hashed password (평문 저장 금지, never store plaintext)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
    )

    # 관계 — Relationships
    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
