"""Axiom API 로깅 미들웨어.

Axiom API logging middleware.
Sends one structured event per request: method, path, client address,
status code, duration, masked request body, and the error detail for
failed requests. Password, token and cookie fields are always masked.
"""

import json
import re
import time
from typing import Any

from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings
from app.logger import logger

# 마스킹 대상 필드 패턴 — Fields to mask in request bodies
_SENSITIVE_KEYS = re.compile(
    r"(password|secret|token|authorization|cookie|credential)",
    re.IGNORECASE,
)

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

_MAX_DETAIL: int = 500


def _mask(data: Any, depth: int = 0) -> Any:
    """민감 필드 자동 마스킹 — Recursively mask sensitive fields in dicts/lists."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            k: "***" if _SENSITIVE_KEYS.search(str(k)) else _mask(v, depth + 1)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [_mask(item, depth + 1) for item in data[:20]]
    return data


async def _read_json_body(request: Request) -> Any:
    body: bytes = await request.body()
    if not body:
        return None
    try:
        return _mask(json.loads(body))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return "(non-json body)"


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """모든 API 요청/응답을 Axiom에 로깅하는 미들웨어.

    Middleware that logs API requests and responses to Axiom.
    Passes requests through untouched when Axiom is not configured.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = None
        self._dataset: str = settings.AXIOM_DATASET

        if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if self._client is None or request.url.path in _SKIP_PATHS:
            return await call_next(request)

        start_time: float = time.perf_counter()
        event: dict[str, Any] = {
            "method": request.method,
            "path": request.url.path,
            "client": request.client.host if request.client else None,
            "status_code": 500,
        }
        if request.method in ("POST", "PUT", "PATCH"):
            body: Any = await _read_json_body(request)
            if body is not None:
                event["request_body"] = body

        try:
            response: Response = await call_next(request)
            event["status_code"] = response.status_code
            if response.status_code >= 400:
                response = await self._capture_error(response, event)
            return response
        except Exception as exc:
            event["error"] = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            event["duration_ms"] = round((time.perf_counter() - start_time) * 1000, 2)
            self._ingest(event)

    async def _capture_error(self, response: Response, event: dict[str, Any]) -> Response:
        """에러 응답 본문에서 사유를 추출하고 응답을 재구성합니다.

        Read the streamed error body, record its detail, and rebuild the
        response since the body iterator can only be consumed once.
        """
        raw: bytes = b""
        async for chunk in response.body_iterator:
            raw += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")

        try:
            detail: Any = json.loads(raw).get("detail")
        except (json.JSONDecodeError, UnicodeDecodeError, AttributeError):
            detail = raw.decode("utf-8", errors="replace")
        event["error"] = str(detail)[:_MAX_DETAIL]

        return Response(
            content=raw,
            status_code=response.status_code,
            headers=dict(response.headers),
            media_type=response.media_type,
        )

    def _ingest(self, event: dict[str, Any]) -> None:
        # 로깅 실패가 요청 처리에 영향주지 않도록 — log shipping never fails a request
        try:
            self._client.ingest_events(self._dataset, [event])
        except Exception as exc:
            logger.warning("Axiom ingest failed: {error}", error=exc)
