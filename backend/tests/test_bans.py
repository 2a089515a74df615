"""Test Bans 커뮤니티 밴 발급/수정/해제와 활동 제한을 검증하는 자동화 테스트입니다."""

from datetime import datetime, timedelta, timezone

from agora.models.moderation import CommunityBan
from agora.utils.helpers import utcnow
from tests.conftest import create_post, headers_for


def _future(days=7):
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def _ban(client, community_id, user_id, headers, **extra):
    payload = {"banned_user_id": user_id, "reason_category": "spam"}
    payload.update(extra)
    return client.post(f"/api/communities/{community_id}/bans", json=payload, headers=headers)


def test_moderator_bans_member_and_blocks_posting(client, seed_users, seed_community):
    moderator = headers_for(client, seed_users["moderator"])
    bob = headers_for(client, seed_users["member2"])
    cid = seed_community.community_id
    post = create_post(client, cid, bob)

    resp = _ban(client, cid, seed_users["member2"].user_id, moderator, expires_at=_future())
    assert resp.status_code == 201, resp.text
    assert resp.json()["status"] == "active"

    blocked = client.post(f"/api/communities/{cid}/posts", json={"title": "hello"}, headers=bob)
    assert blocked.status_code == 403
    blocked = client.post(f"/api/posts/{post['post_id']}/comments", json={"content": "x"}, headers=bob)
    assert blocked.status_code == 403


def test_ban_rules(client, seed_users, seed_community):
    moderator = headers_for(client, seed_users["moderator"])
    cid = seed_community.community_id

    assert _ban(client, cid, seed_users["moderator"].user_id, moderator, is_permanent=True).status_code == 400
    assert _ban(client, cid, seed_users["admin"].user_id, moderator, is_permanent=True).status_code == 400
    # 기간 밴은 미래의 만료 시각이 필요하다
    assert _ban(client, cid, seed_users["member2"].user_id, moderator).status_code == 422
    past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    assert _ban(client, cid, seed_users["member2"].user_id, moderator, expires_at=past).status_code == 422
    kwargs = {"is_permanent": True, "expires_at": _future()}
    assert _ban(client, cid, seed_users["member2"].user_id, moderator, **kwargs).status_code == 422

    assert _ban(client, cid, seed_users["member2"].user_id, moderator, is_permanent=True).status_code == 201
    dup = _ban(client, cid, seed_users["member2"].user_id, moderator, is_permanent=True)
    assert dup.status_code == 409


def test_member_cannot_ban(client, seed_users, seed_community):
    alice = headers_for(client, seed_users["member"])
    resp = _ban(client, seed_community.community_id, seed_users["member2"].user_id, alice, is_permanent=True)
    assert resp.status_code == 403


def test_expired_ban_is_replaced(client, db, seed_users, seed_community):
    cid = seed_community.community_id
    target_id = seed_users["member2"].user_id
    db.add(CommunityBan(
        community_id=cid,
        banned_user_id=target_id,
        issued_by=seed_users["moderator"].user_id,
        reason_category="spam",
        is_permanent=False,
        expires_at=utcnow() - timedelta(hours=1),
    ))
    db.commit()

    # 만료된 밴은 활동을 막지 않는다
    bob = headers_for(client, seed_users["member2"])
    assert client.post(f"/api/communities/{cid}/posts", json={"title": "hello"}, headers=bob).status_code == 201

    resp = _ban(client, cid, target_id, headers_for(client, seed_users["moderator"]), is_permanent=True)
    assert resp.status_code == 201
    statuses = client.patch(
        f"/api/communities/{cid}/bans",
        json={"sort_by": "created_at", "order": "asc"},
        headers=headers_for(client, seed_users["admin"]),
    ).json()["data"]
    assert [b["status"] for b in statuses] == ["lifted", "active"]


def test_update_and_lift_ban(client, seed_users, seed_community):
    moderator = headers_for(client, seed_users["moderator"])
    cid = seed_community.community_id
    ban = _ban(client, cid, seed_users["member2"].user_id, moderator, expires_at=_future()).json()
    url = f"/api/communities/{cid}/bans/{ban['ban_id']}"

    resp = client.put(url, json={"is_permanent": True, "reason_text": "반복 스팸"}, headers=moderator)
    assert resp.status_code == 200
    assert resp.json()["is_permanent"] is True
    assert resp.json()["expires_at"] is None

    resp = client.request("DELETE", url, json={"reason": "소명 완료"}, headers=moderator)
    assert resp.status_code == 200
    lifted = resp.json()
    assert lifted["status"] == "lifted"
    assert lifted["lifted_by"] == seed_users["moderator"].user_id
    assert lifted["lift_reason"] == "소명 완료"

    again = client.delete(url, headers=moderator)
    assert again.status_code == 200
    assert again.json()["lifted_at"] == lifted["lifted_at"]

    assert client.put(url, json={"reason_text": "x"}, headers=moderator).status_code == 400

    bob = headers_for(client, seed_users["member2"])
    assert client.post(f"/api/communities/{cid}/posts", json={"title": "hello"}, headers=bob).status_code == 201


def test_permanent_ban_rejects_expiry(client, seed_users, seed_community):
    moderator = headers_for(client, seed_users["moderator"])
    cid = seed_community.community_id
    ban = _ban(client, cid, seed_users["member2"].user_id, moderator, is_permanent=True).json()
    url = f"/api/communities/{cid}/bans/{ban['ban_id']}"

    resp = client.put(url, json={"expires_at": _future()}, headers=moderator)
    assert resp.status_code == 422
    resp = client.put(url, json={"is_permanent": True, "expires_at": _future()}, headers=moderator)
    assert resp.status_code == 422

    current = client.get(url, headers=moderator).json()
    assert current["is_permanent"] is True
    assert current["expires_at"] is None

    resp = client.put(url, json={"is_permanent": False, "expires_at": _future(3)}, headers=moderator)
    assert resp.status_code == 200
    assert resp.json()["expires_at"] is not None

def test_admin_issued_ban_requires_admin(client, seed_users, seed_community):
    admin = headers_for(client, seed_users["admin"])
    moderator = headers_for(client, seed_users["moderator"])
    cid = seed_community.community_id
    ban = _ban(client, cid, seed_users["member2"].user_id, admin, is_permanent=True).json()
    url = f"/api/communities/{cid}/bans/{ban['ban_id']}"

    assert client.put(url, json={"reason_text": "완화"}, headers=moderator).status_code == 403
    assert client.delete(url, headers=moderator).status_code == 403
    assert client.delete(url, headers=admin).status_code == 200


def test_banned_user_can_view_own_ban(client, seed_users, seed_community):
    moderator = headers_for(client, seed_users["moderator"])
    cid = seed_community.community_id
    ban = _ban(client, cid, seed_users["member2"].user_id, moderator, is_permanent=True).json()
    url = f"/api/communities/{cid}/bans/{ban['ban_id']}"

    assert client.get(url, headers=headers_for(client, seed_users["member2"])).status_code == 200
    assert client.get(url, headers=headers_for(client, seed_users["member"])).status_code == 403

    own = client.patch(f"/api/communities/{cid}/bans", json={}, headers=headers_for(client, seed_users["member"]))
    assert own.json()["pagination"]["records"] == 0


def test_search_bans_by_status(client, seed_users, seed_community):
    moderator = headers_for(client, seed_users["moderator"])
    cid = seed_community.community_id
    first = _ban(client, cid, seed_users["member2"].user_id, moderator, is_permanent=True).json()
    client.delete(f"/api/communities/{cid}/bans/{first['ban_id']}", headers=moderator)
    _ban(client, cid, seed_users["member2"].user_id, moderator, expires_at=_future(1))
    _ban(client, cid, seed_users["member"].user_id, moderator, expires_at=_future(3))

    active = client.patch(f"/api/communities/{cid}/bans", json={"status": "active"}, headers=moderator).json()
    assert active["pagination"]["records"] == 2
    lifted = client.patch(f"/api/communities/{cid}/bans", json={"status": "lifted"}, headers=moderator).json()
    assert [b["ban_id"] for b in lifted["data"]] == [first["ban_id"]]

    by_user = client.patch(
        f"/api/communities/{cid}/bans",
        json={"banned_user_id": seed_users["member"].user_id, "sort_by": "expires_at"},
        headers=moderator,
    ).json()
    assert by_user["pagination"]["records"] == 1
