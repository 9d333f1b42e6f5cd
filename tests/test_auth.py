"""인증 API 테스트 — 회원가입, 로그인, 토큰 갱신, 로그아웃, /me 엔드포인트.

Auth API tests — Registration, login, refresh rotation, logout, and /me.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import delete, func, select
from sqlalchemy.exc import OperationalError

from app.api.deps import get_auth_service
from app.main import app
from app.models import RefreshToken, User
from app.repositories.auth_repository import auth_repository
from app.repositories.user_repository import user_repository
from app.services.auth_service import auth_service
from app.utils.exceptions import ForbiddenError
from app.utils.jwt import token_issuer
from tests.conftest import (
    AUTH,
    auth_header,
    cookie_header,
    login,
    refresh_cookie_value,
    set_cookie_line,
)


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


# ===== Register =====

class TestRegister:
    """회원가입 테스트."""

    async def test_register_success(self, client: AsyncClient, db):
        res = await client.post(f"{AUTH}/register", json={
            "username": "alice",
            "email": "a@x.com",
            "password": "secret1",
        })
        assert res.status_code == 201
        assert res.json() == {"message": "User registered please sign in"}
        # 세션은 발급하지 않음 — no session on registration
        assert set_cookie_line(res) is None

        user = await user_repository.get_by_email(db, "a@x.com")
        assert user is not None
        assert user.username == "alice"
        assert user.password_hash != "secret1"

    async def test_register_normalizes_email(self, client: AsyncClient, db):
        res = await client.post(f"{AUTH}/register", json={
            "username": "alice",
            "email": "  A@X.Com ",
            "password": "secret1",
        })
        assert res.status_code == 201
        assert await user_repository.get_by_email(db, "a@x.com") is not None

    async def test_register_duplicate_email(self, client: AsyncClient, db, alice):
        """이미 사용 중인 이메일은 400."""
        res = await client.post(f"{AUTH}/register", json={
            "username": "alice2",
            "email": "A@x.com",
            "password": "secret1",
        })
        assert res.status_code == 400
        assert res.json()["detail"] == "This email is already in use. Consider sign in"
        assert await _count(db, User) == 1

    async def test_register_race_is_decided_by_unique_constraint(
        self, client: AsyncClient, db, monkeypatch
    ):
        """사전 확인을 통과해도 유니크 제약이 중복을 막음."""
        body = {"username": "alice", "email": "a@x.com", "password": "secret1"}
        assert (await client.post(f"{AUTH}/register", json=body)).status_code == 201

        async def _no_precheck(db, email):
            return None

        monkeypatch.setattr(user_repository, "get_by_email", _no_precheck)
        res = await client.post(f"{AUTH}/register", json=body)
        assert res.status_code == 400
        assert res.json()["detail"] == "This email is already in use. Consider sign in"
        assert await _count(db, User) == 1

    async def test_register_short_username(self, client: AsyncClient):
        res = await client.post(f"{AUTH}/register", json={
            "username": "al",
            "email": "a@x.com",
            "password": "secret1",
        })
        assert res.status_code == 400
        assert res.json()["detail"] == "Username must be at least 3 characters"

    async def test_register_invalid_email(self, client: AsyncClient):
        res = await client.post(f"{AUTH}/register", json={
            "username": "alice",
            "email": "not-an-email",
            "password": "secret1",
        })
        assert res.status_code == 400
        assert res.json()["detail"] == "Invalid email address"

    async def test_register_rejects_malformed_addresses(self, client: AsyncClient, db):
        """점 연속, 선행 점, 하이픈 시작 도메인 등은 거부."""
        for email in ("a..b@x.com", ".a@x.com", "a.@x.com", "a@x..com", "a@-x.com", "a b@x.com"):
            res = await client.post(f"{AUTH}/register", json={
                "username": "alice",
                "email": email,
                "password": "secret1",
            })
            assert res.status_code == 400, email
            assert res.json()["detail"] == "Invalid email address"
        assert await _count(db, User) == 0

    async def test_register_short_password(self, client: AsyncClient):
        res = await client.post(f"{AUTH}/register", json={
            "username": "alice",
            "email": "a@x.com",
            "password": "12345",
        })
        assert res.status_code == 400
        assert res.json()["detail"] == "Password must be at least 6 characters"

    async def test_register_reports_first_violation(self, client: AsyncClient, db):
        """여러 규칙 위반 시 첫 번째 규칙만 보고, 상태 변경 없음."""
        res = await client.post(f"{AUTH}/register", json={
            "username": "al",
            "email": "bad",
            "password": "1",
        })
        assert res.status_code == 400
        assert res.json()["detail"] == "Username must be at least 3 characters"
        assert await _count(db, User) == 0

    async def test_register_missing_field(self, client: AsyncClient):
        res = await client.post(f"{AUTH}/register", json={
            "username": "alice",
            "email": "a@x.com",
        })
        assert res.status_code == 400
        assert res.json()["detail"] == "password is required"


# ===== Login =====

class TestLogin:
    """로그인 테스트."""

    async def test_login_success(self, client: AsyncClient, db, alice):
        res = await login(client)
        assert res.status_code == 200
        data = res.json()
        assert data["user"] == {"id": str(alice.id), "username": "alice", "email": "a@x.com"}
        assert "password" not in str(data)
        assert token_issuer.verify_access(data["accessToken"]) == alice.id

        refresh = refresh_cookie_value(res)
        assert refresh is not None
        assert refresh not in res.text

        stored = await auth_repository.get_active_refresh_token(
            db, refresh, datetime.now(timezone.utc)
        )
        assert stored is not None
        assert stored.user_id == alice.id

    async def test_login_cookie_attributes(self, client: AsyncClient, alice):
        """리프레시 쿠키는 HttpOnly, Secure, SameSite=None, 7일 만료."""
        res = await login(client)
        line = set_cookie_line(res).lower()
        assert "httponly" in line
        assert "secure" in line
        assert "samesite=none" in line
        assert "expires=" in line

    async def test_login_unknown_user(self, client: AsyncClient, alice):
        res = await login(client, email="nobody@x.com")
        assert res.status_code == 404
        assert res.json()["detail"] == "User not found"

    async def test_login_wrong_password(self, client: AsyncClient, db, alice):
        res = await login(client, password="wrong-pass")
        assert res.status_code == 401
        assert res.json()["detail"] == "Password is incorrect"
        assert set_cookie_line(res) is None
        assert await _count(db, RefreshToken) == 0

    async def test_login_invalid_email(self, client: AsyncClient):
        res = await login(client, email="nope")
        assert res.status_code == 400
        assert res.json()["detail"] == "Invalid email address"

    async def test_login_keeps_other_sessions(self, client: AsyncClient, db, alice):
        """다른 기기의 세션은 유지."""
        first = refresh_cookie_value(await login(client))
        second = refresh_cookie_value(await login(client))
        assert first != second
        assert await _count(db, RefreshToken) == 2


# ===== Token Refresh =====

class TestRefresh:
    """토큰 갱신(회전) 테스트."""

    async def test_full_scenario(self, client: AsyncClient):
        """가입 → 로그인 → 갱신 → 원래 토큰 재사용 거부."""
        res = await client.post(f"{AUTH}/register", json={
            "username": "alice",
            "email": "a@x.com",
            "password": "secret1",
        })
        assert res.status_code == 201

        res = await login(client)
        assert res.status_code == 200
        assert "accessToken" in res.json()
        original = refresh_cookie_value(res)

        res = await client.post(f"{AUTH}/refresh", headers=cookie_header(original))
        assert res.status_code == 200
        assert token_issuer.verify_access(res.json()["accessToken"]) is not None
        rotated = refresh_cookie_value(res)
        assert rotated is not None
        assert rotated != original

        res = await client.post(f"{AUTH}/refresh", headers=cookie_header(original))
        assert res.status_code == 403
        assert res.json()["detail"] == "Refresh token is invalid or expired"

    async def test_rotation_replaces_row(self, client: AsyncClient, db, alice):
        original = refresh_cookie_value(await login(client))
        res = await client.post(f"{AUTH}/refresh", headers=cookie_header(original))
        rotated = refresh_cookie_value(res)

        now = datetime.now(timezone.utc)
        assert await auth_repository.get_active_refresh_token(db, original, now) is None
        assert await auth_repository.get_active_refresh_token(db, rotated, now) is not None
        assert await _count(db, RefreshToken) == 1

    async def test_rotated_token_can_refresh_again(self, client: AsyncClient, alice):
        token = refresh_cookie_value(await login(client))
        for _ in range(3):
            res = await client.post(f"{AUTH}/refresh", headers=cookie_header(token))
            assert res.status_code == 200
            token = refresh_cookie_value(res)

    async def test_new_access_token_opens_gate(self, client: AsyncClient, alice):
        token = refresh_cookie_value(await login(client))
        res = await client.post(f"{AUTH}/refresh", headers=cookie_header(token))
        me = await client.get(f"{AUTH}/me", headers=auth_header(res.json()["accessToken"]))
        assert me.status_code == 200
        assert me.json()["username"] == "alice"

    async def test_refresh_without_cookie(self, client: AsyncClient):
        res = await client.post(f"{AUTH}/refresh")
        assert res.status_code == 401
        assert res.json()["detail"] == "No refresh token provided"

    async def test_refresh_unknown_token(self, client: AsyncClient, alice):
        res = await client.post(f"{AUTH}/refresh", headers=cookie_header(str(uuid.uuid4())))
        assert res.status_code == 403

    async def test_refresh_expired_token(self, client: AsyncClient, db, alice):
        """만료 토큰은 미존재 토큰과 같은 403."""
        await auth_repository.create_refresh_token(
            db,
            user_id=alice.id,
            token="expired-token",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
        await db.commit()

        res = await client.post(f"{AUTH}/refresh", headers=cookie_header("expired-token"))
        assert res.status_code == 403
        assert res.json()["detail"] == "Refresh token is invalid or expired"

    async def test_consumed_token_cannot_be_deleted_twice(self, db, alice):
        """동시 갱신 경쟁에서 삭제는 한쪽만 성공."""
        await auth_repository.create_refresh_token(
            db,
            user_id=alice.id,
            token="race-token",
            expires_at=datetime.now(timezone.utc) + timedelta(days=7),
        )
        assert await auth_repository.delete_refresh_token(db, "race-token") is True
        assert await auth_repository.delete_refresh_token(db, "race-token") is False

    async def test_refresh_loses_race_after_lookup(self, db, alice, monkeypatch):
        """조회 후 다른 요청이 먼저 소비하면 403, 새 토큰 없음."""
        await auth_repository.create_refresh_token(
            db,
            user_id=alice.id,
            token="race-token",
            expires_at=datetime.now(timezone.utc) + timedelta(days=7),
        )
        await db.commit()

        lookup = auth_repository.get_active_refresh_token

        async def _lookup_then_consumed_elsewhere(db, token, now):
            stored = await lookup(db, token, now)
            await db.execute(delete(RefreshToken).where(RefreshToken.token == token))
            return stored

        monkeypatch.setattr(
            auth_repository, "get_active_refresh_token", _lookup_then_consumed_elsewhere
        )
        with pytest.raises(ForbiddenError) as exc_info:
            await auth_service.refresh(db, "race-token")

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "Refresh token is invalid or expired"
        assert await _count(db, RefreshToken) == 0


# ===== Logout =====

class TestLogout:
    """로그아웃 테스트."""

    async def test_logout_success(self, client: AsyncClient, db, alice):
        token = refresh_cookie_value(await login(client))

        res = await client.post(f"{AUTH}/logout", headers=cookie_header(token))
        assert res.status_code == 200
        assert res.json() == {"message": "Logged out successfully"}
        # 쿠키 삭제 — cookie cleared
        assert set_cookie_line(res) is not None
        assert refresh_cookie_value(res) is None
        assert await _count(db, RefreshToken) == 0

    async def test_refresh_after_logout_fails(self, client: AsyncClient, alice):
        token = refresh_cookie_value(await login(client))
        await client.post(f"{AUTH}/logout", headers=cookie_header(token))

        res = await client.post(f"{AUTH}/refresh", headers=cookie_header(token))
        assert res.status_code == 403

    async def test_logout_without_cookie(self, client: AsyncClient):
        res = await client.post(f"{AUTH}/logout")
        assert res.status_code == 400
        assert res.json()["detail"] == "No refresh token provided"

    async def test_logout_is_idempotent(self, client: AsyncClient, alice):
        """이미 삭제된 토큰으로 로그아웃해도 성공."""
        token = refresh_cookie_value(await login(client))
        assert (await client.post(f"{AUTH}/logout", headers=cookie_header(token))).status_code == 200
        assert (await client.post(f"{AUTH}/logout", headers=cookie_header(token))).status_code == 200


# ===== Access-Control Gate (/me) =====

class TestGate:
    """액세스 토큰 게이트 테스트."""

    async def test_me_success(self, client: AsyncClient, alice):
        access = (await login(client)).json()["accessToken"]
        res = await client.get(f"{AUTH}/me", headers=auth_header(access))
        assert res.status_code == 200
        assert res.json() == {"id": str(alice.id), "username": "alice", "email": "a@x.com"}

    async def test_me_without_token(self, client: AsyncClient):
        res = await client.get(f"{AUTH}/me")
        assert res.status_code == 401
        assert res.json()["detail"] == "Access token required"

    async def test_me_with_non_bearer_scheme(self, client: AsyncClient):
        res = await client.get(f"{AUTH}/me", headers={"Authorization": "Basic abc"})
        assert res.status_code == 401

    async def test_me_invalid_token(self, client: AsyncClient):
        res = await client.get(f"{AUTH}/me", headers=auth_header("invalid.jwt.token"))
        assert res.status_code == 406
        assert res.json()["detail"] == "Invalid token"

    async def test_me_expired_token(self, client: AsyncClient, alice):
        expired = token_issuer.issue_access(
            alice.id, now=datetime.now(timezone.utc) - timedelta(minutes=16)
        )
        res = await client.get(f"{AUTH}/me", headers=auth_header(expired))
        assert res.status_code == 406

    async def test_me_refresh_token_is_not_access_token(self, client: AsyncClient, alice):
        refresh = refresh_cookie_value(await login(client))
        res = await client.get(f"{AUTH}/me", headers=auth_header(refresh))
        assert res.status_code == 406

    async def test_me_unknown_user(self, client: AsyncClient):
        """서명은 유효하지만 사용자가 없으면 404."""
        token = token_issuer.issue_access(uuid.uuid4())
        res = await client.get(f"{AUTH}/me", headers=auth_header(token))
        assert res.status_code == 404


# ===== Session state & sweep =====

class TestSessionLifecycle:
    """세션 상태 파생 및 만료 토큰 정리 테스트."""

    async def test_state_follows_refresh_rows(self, client: AsyncClient, db, alice):
        assert await auth_service.is_authenticated(db, alice.id) is False

        token = refresh_cookie_value(await login(client))
        assert await auth_service.is_authenticated(db, alice.id) is True

        await client.post(f"{AUTH}/logout", headers=cookie_header(token))
        assert await auth_service.is_authenticated(db, alice.id) is False

    async def test_expired_row_means_anonymous(self, db, alice):
        await auth_repository.create_refresh_token(
            db,
            user_id=alice.id,
            token="old-token",
            expires_at=datetime.now(timezone.utc) - timedelta(seconds=1),
        )
        assert await auth_service.is_authenticated(db, alice.id) is False

    async def test_sweep_deletes_only_expired(self, db, alice):
        now = datetime.now(timezone.utc)
        await auth_repository.create_refresh_token(
            db, user_id=alice.id, token="stale", expires_at=now - timedelta(days=1)
        )
        await auth_repository.create_refresh_token(
            db, user_id=alice.id, token="fresh", expires_at=now + timedelta(days=1)
        )
        await db.commit()

        assert await auth_service.sweep_expired(db) == 1
        await db.commit()

        remaining = (await db.execute(select(RefreshToken.token))).scalars().all()
        assert remaining == ["fresh"]


# ===== Storage failures =====

class TestStorageFailure:
    """저장소 오류는 일반 500으로 노출."""

    async def test_storage_error_is_generic_500(self, client: AsyncClient):
        class _BrokenService:
            async def register(self, db, data):
                raise OperationalError("INSERT INTO users ...", {}, Exception("connection lost"))

        app.dependency_overrides[get_auth_service] = lambda: _BrokenService()
        res = await client.post(f"{AUTH}/register", json={
            "username": "alice",
            "email": "a@x.com",
            "password": "secret1",
        })
        assert res.status_code == 500
        assert res.json() == {"detail": "Internal server error"}
        assert "INSERT" not in res.text
