"""테스트 인프라 — 인메모리 SQLite DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure — In-memory SQLite database, session, and httpx client fixtures.
Each test gets a fresh schema; the app's get_db dependency is overridden
to hand out the test session.
"""

import os

# 앱 모듈 임포트 전에 설정 — must be set before app modules read settings
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from collections.abc import AsyncGenerator, Generator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient, Response  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.deps import get_login_rate_limiter  # noqa: E402
from app.config import settings  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import *  # noqa: F401,F403,E402 — register all models with metadata
from app.repositories.user_repository import user_repository  # noqa: E402
from app.utils.password import password_hasher  # noqa: E402
from app.utils.rate_limit import LoginRateLimiter  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

AUTH = "/api/auth"


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진. 매 테스트마다 스키마를 새로 만듭니다."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def login_rate_limiter() -> Generator[LoginRateLimiter, None, None]:
    """테스트마다 새 로그인 시도 카운터를 사용합니다 (Fresh login counters per test)."""
    limiter = LoginRateLimiter(
        max_attempts=settings.LOGIN_RATE_LIMIT_MAX_ATTEMPTS,
        window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_MINUTES * 60,
    )
    app.dependency_overrides[get_login_rate_limiter] = lambda: limiter
    yield limiter
    app.dependency_overrides.pop(get_login_rate_limiter, None)


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def alice(db: AsyncSession):
    """기본 사용자 alice / secret1 을 생성합니다."""
    user = await user_repository.create(
        db,
        email="a@x.com",
        username="alice",
        password_hash=password_hasher.hash("secret1"),
    )
    await db.commit()
    return user


async def login(client: AsyncClient, email: str = "a@x.com", password: str = "secret1") -> Response:
    return await client.post(f"{AUTH}/login", json={"email": email, "password": password})


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def cookie_header(refresh_token: str) -> dict[str, str]:
    return {"Cookie": f"{settings.REFRESH_COOKIE_NAME}={refresh_token}"}


def set_cookie_line(response: Response) -> str | None:
    """리프레시 쿠키의 Set-Cookie 헤더 한 줄 (Raw Set-Cookie line for the refresh cookie)."""
    for line in response.headers.get_list("set-cookie"):
        if line.startswith(f"{settings.REFRESH_COOKIE_NAME}="):
            return line
    return None


def refresh_cookie_value(response: Response) -> str | None:
    line = set_cookie_line(response)
    if line is None:
        return None
    value = line.split(";", 1)[0].split("=", 1)[1]
    return value.strip('"') or None
