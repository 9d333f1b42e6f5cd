"""로그인 시도 제한기 모듈 — limits 라이브러리 기반 고정 윈도우.

Fixed-window attempt limiter keyed by client address, built on ``limits``.
Used to throttle POST /auth/login. Counters live in the storage named by
``RATE_LIMIT_STORAGE_URI``: ``async+memory://`` keeps them in the worker,
``async+redis://host:6379`` shares one ceiling across every worker.
"""

import math
import time

from limits import RateLimitItem, RateLimitItemPerSecond
from limits.aio.storage import Storage
from limits.aio.strategies import FixedWindowRateLimiter
from limits.storage import storage_from_string

# 카운터 키 네임스페이스 — Identifier prefix for login counters
_LOGIN_NAMESPACE: str = "login"


class LoginRateLimiter:
    """주소별 고정 윈도우 로그인 시도 제한기.

    Counts attempts per key inside a fixed window that starts on the key's
    first attempt. Once ``max_attempts`` is exceeded, further attempts in the
    same window are refused until the window elapses. Refused attempts are
    still counted.

    Args:
        max_attempts: 윈도우당 허용 시도 수 (Attempts allowed per window)
        window_seconds: 윈도우 길이(초) (Window length in seconds)
        storage_uri: limits 저장소 URI (Async ``limits`` storage URI)
        storage: 이미 생성된 저장소, 지정 시 URI 무시 (Prebuilt storage; overrides the URI)

    Raises:
        ValueError: 비동기 저장소가 아닌 URI (URI does not name an async storage)
    """

    def __init__(
        self,
        max_attempts: int,
        window_seconds: int,
        storage_uri: str = "async+memory://",
        storage: Storage | None = None,
    ) -> None:
        if storage is None:
            storage = storage_from_string(storage_uri)
        if not isinstance(storage, Storage):
            raise ValueError(f"Rate limit storage must be async, got {storage_uri!r}")

        self.item: RateLimitItem = RateLimitItemPerSecond(max_attempts, window_seconds)
        self._storage: Storage = storage
        self._strategy: FixedWindowRateLimiter = FixedWindowRateLimiter(storage)

    async def hit(self, key: str) -> int | None:
        """시도를 기록하고 거부 여부를 반환합니다.

        Record one attempt for ``key``.

        Returns:
            int | None: 거부 시 재시도까지 남은 초, 허용 시 None
                        (Seconds until retry when refused, None when allowed)
        """
        if await self._strategy.hit(self.item, _LOGIN_NAMESPACE, key):
            return None

        stats = await self._strategy.get_window_stats(self.item, _LOGIN_NAMESPACE, key)
        return max(1, math.ceil(stats.reset_time - time.time()))

    async def reset(self) -> None:
        """모든 카운터를 초기화합니다 (Forget every window)."""
        await self._storage.reset()
