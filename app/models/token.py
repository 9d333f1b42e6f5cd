"""리프레시 토큰 모델 — 불투명 리프레시 토큰 저장.

Refresh Token model — Stores opaque refresh tokens for session management.
The token string itself is the primary key and the bearer credential.
A token is valid only while its row exists and expires_at is in the future.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class RefreshToken(Base):
    """리프레시 토큰 테이블.

    Refresh token table for long-lived, single-use session credentials.

    Attributes:
        token: 불투명 토큰 문자열, 기본 키 (Opaque token string, primary key)
        user_id: 소유 사용자 ID (Owner user UUID)
        expires_at: 만료 일시 (Expiration timestamp, issuance + 7 days)
        created_at: 생성 일시 (Creation timestamp)
    """

    __tablename__ = "refresh_tokens"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # 만료 일시 — 만료 토큰 정리 스윕에서 범위 조회 (range-scanned by the expiry sweep)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    user = relationship("User", back_populates="refresh_tokens")
