"""Test Users 프로필과 관리자 계정 관리 동작을 검증하는 자동화 테스트입니다."""

import pytest

from agora.errors import DomainRuleViolation
from agora.services import user_service
from tests.conftest import headers_for, login


def test_public_profile(client, seed_users):
    resp = client.get(f"/api/users/{seed_users['member'].user_id}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["username"] == "alice"
    assert "email" not in data
    assert client.get("/api/users/9999").status_code == 404


def test_update_own_profile(client, seed_users):
    headers = headers_for(client, seed_users["member"])
    resp = client.put("/api/users/me", json={"display_name": "앨리스", "bio": "hello"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["display_name"] == "앨리스"
    assert resp.json()["bio"] == "hello"


def test_search_users_admin_only(client, seed_users):
    assert client.patch("/api/users", json={}, headers=headers_for(client, seed_users["member"])).status_code == 403
    assert client.patch("/api/users", json={}, headers=headers_for(client, seed_users["moderator"])).status_code == 403

    admin = headers_for(client, seed_users["admin"])
    resp = client.patch("/api/users", json={}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["pagination"]["records"] == 4

    resp = client.patch("/api/users", json={"role": "member", "sort_by": "username", "order": "asc"}, headers=admin)
    assert [u["username"] for u in resp.json()["data"]] == ["alice", "bob"]

    resp = client.patch("/api/users", json={"keyword": "bob"}, headers=admin)
    assert resp.json()["pagination"]["records"] == 1


def test_deactivate_revokes_sessions_and_blocks_login(client, seed_users):
    admin = headers_for(client, seed_users["admin"])
    bob = headers_for(client, seed_users["member2"])
    user_id = seed_users["member2"].user_id

    resp = client.post(f"/api/users/{user_id}/deactivate", headers=admin)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    assert client.get("/api/auth/me", headers=bob).status_code == 401
    assert login(client, "bob@agora-mail.com", "member").status_code == 401
    assert client.get(f"/api/users/{user_id}").status_code == 404

    resp = client.post(f"/api/users/{user_id}/activate", headers=admin)
    assert resp.status_code == 200
    assert login(client, "bob@agora-mail.com", "member").status_code == 200
    assert client.post(f"/api/users/{user_id}/activate", headers=admin).status_code == 409


def test_admin_cannot_deactivate_self(client, seed_users):
    admin = headers_for(client, seed_users["admin"])
    resp = client.post(f"/api/users/{seed_users['admin'].user_id}/deactivate", headers=admin)
    assert resp.status_code == 400


def test_last_admin_cannot_be_deactivated(db, seed_users):
    from agora.models.user import User

    # 비활성 관리자가 유일한 활성 관리자를 비활성화하려는 경우
    retired = User(
        role="admin",
        username="retired",
        email="retired@agora-mail.com",
        password_hash="x",
        is_active=False,
        failed_login_attempts=0,
    )
    db.add(retired)
    db.commit()

    with pytest.raises(DomainRuleViolation):
        user_service.deactivate_user(db, seed_users["admin"].user_id, retired)


def test_deactivate_requires_admin(client, seed_users):
    headers = headers_for(client, seed_users["moderator"])
    assert client.post(f"/api/users/{seed_users['member'].user_id}/deactivate", headers=headers).status_code == 403
