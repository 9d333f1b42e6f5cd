"""비밀번호 해싱 및 검증 유틸리티 모듈.

Password hashing and verification utility module.
Uses bcrypt directly for secure password storage.
Passwords are never stored in plain text — always hashed with bcrypt.
"""

import bcrypt

from app.config import settings

# bcrypt는 72바이트까지만 입력을 사용 — bcrypt only consumes the first 72 bytes
MAX_PASSWORD_BYTES: int = 72


class PasswordHasher:
    """bcrypt 기반 비밀번호 해셔.

    bcrypt-backed password hasher. Each hash carries its own random salt,
    so hashing the same password twice yields different digests that both
    verify.

    Args:
        rounds: bcrypt 비용 인자 (bcrypt cost factor, 2^rounds iterations)
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds: int = rounds

    def hash(self, password: str) -> str:
        """평문 비밀번호를 bcrypt 해시로 변환합니다.

        Hash a plain text password with a freshly generated salt.

        Args:
            password: 평문 비밀번호 (Plain text password to hash)

        Returns:
            str: bcrypt 해시 문자열 (Bcrypt hash string, ~60 chars)

        Example:
            hashed = password_hasher.hash("my-secret-password")
            # "$2b$12$LJ3m4ys3..."
        """
        salt: bytes = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, hashed_password: str) -> bool:
        """평문 비밀번호와 bcrypt 해시를 비교 검증합니다.

        Verify a plain text password against a bcrypt hash using bcrypt's
        constant-time comparison. Malformed hashes and over-long passwords
        yield False instead of raising.

        Args:
            password: 검증할 평문 비밀번호 (Plain text password to verify)
            hashed_password: 저장된 bcrypt 해시 (Stored bcrypt hash)

        Returns:
            bool: 일치하면 True (True if password matches hash)
        """
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
        except ValueError:
            # 잘못된 salt 형식 또는 72바이트 초과 — invalid salt or password too long
            return False


# 싱글턴 인스턴스 — Singleton instance
password_hasher: PasswordHasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
