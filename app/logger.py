"""애플리케이션 로깅 설정 — loguru 기반.

Application logging setup based on loguru.
Standard library loggers (uvicorn, SQLAlchemy) are intercepted and routed
into loguru so every record shares one format and one sink.

Usage:
    from app.logger import logger, setup_logging
    setup_logging()
    logger.info("User {user_id} logged in", user_id=user.id)
"""

import logging
import sys

from loguru import logger

_FMT: str = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<lvl>{level:<8}</lvl> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<lvl>{message}</lvl>"
)


class _InterceptHandler(logging.Handler):
    """표준 logging 레코드를 loguru로 전달하는 핸들러 (Forwards stdlib records to loguru)."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO") -> None:
    """loguru 싱크를 구성하고 표준 logging을 가로챕니다.

    Rebuild loguru sinks (stderr only) and route stdlib logging into loguru.

    Args:
        level: 최소 로그 레벨 (Minimum log level name)
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=_FMT,
        colorize=True,
        backtrace=False,
        diagnose=False,
    )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    # 접근 로그는 Axiom 미들웨어가 담당 — access logs are covered by the Axiom middleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


__all__ = ["logger", "setup_logging"]
