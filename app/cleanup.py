"""만료 리프레시 토큰 정리 스크립트.

Expired refresh token sweep. Meant to run periodically (cron, scheduler).

Usage:
    python -m app.cleanup
"""

import asyncio
import sys

from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.database import async_session, engine
from app.logger import logger, setup_logging
from app.services.auth_service import auth_service


async def cleanup_expired_refresh_tokens() -> int:
    """만료된 리프레시 토큰을 삭제하고 커밋합니다.

    Delete every expired refresh token in one transaction.

    Returns:
        int: 삭제된 토큰 수 (Number of tokens deleted)
    """
    async with async_session() as db:
        deleted: int = await auth_service.sweep_expired(db)
        await db.commit()
    return deleted


async def main() -> int:
    setup_logging(settings.LOG_LEVEL)
    try:
        await cleanup_expired_refresh_tokens()
    except SQLAlchemyError:
        logger.exception("Failed to clean refresh tokens")
        return 1
    finally:
        await engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
