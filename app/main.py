"""FastAPI 애플리케이션 엔트리포인트 — 미들웨어, 예외 처리기, 라우터 등록.

FastAPI application entry point — Middleware, exception handlers, and routers.
Every error leaves the application as a ``{"detail": ...}`` body with a
status code; storage internals never reach the client.
"""

from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.logger import logger, setup_logging
from app.middleware.axiom_logging import AxiomLoggingMiddleware
from app.utils.exceptions import StorageError

setup_logging(settings.LOG_LEVEL)

app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Axiom API 로깅 미들웨어 — CORS보다 먼저 등록하여 모든 요청을 캡처
# (Registered before CORS to capture all requests)
app.add_middleware(AxiomLoggingMiddleware)

# CORS 미들웨어 — 리프레시 쿠키 전달을 위해 credentials 허용, 출처는 명시 목록
# (Credentials are allowed for the refresh cookie, so origins must be explicit)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _first_error_message(exc: RequestValidationError) -> str:
    """첫 번째로 위반된 규칙의 메시지 (Message of the first violated rule)."""
    errors: list[dict[str, Any]] = list(exc.errors())
    if not errors:
        return "Invalid request"
    first: dict[str, Any] = errors[0]
    if first.get("type") == "missing":
        return f"{first['loc'][-1]} is required"
    return str(first.get("msg", "Invalid request"))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """요청 검증 실패를 400으로 변환합니다 (Report validation failures as 400)."""
    return JSONResponse(status_code=400, content={"detail": _first_error_message(exc)})


@app.exception_handler(SQLAlchemyError)
async def storage_exception_handler(request: Request, exc: SQLAlchemyError) -> Response:
    """저장소 오류를 기록하고 일반 500으로 응답합니다.

    Log the storage failure with its traceback and answer with a generic 500.
    """
    logger.opt(exception=exc).error(
        "Storage error on {method} {path}", method=request.method, path=request.url.path
    )
    return await http_exception_handler(request, StorageError())


@app.get("/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트.

    Health check endpoint for load balancers and monitoring.
    """
    return {"status": "ok"}


from app.api.auth import router as auth_router  # noqa: E402

app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
