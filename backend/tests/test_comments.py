"""Test Comments 스레드 깊이, 삭제 placeholder, 수정 권한을 검증하는 자동화 테스트입니다."""

from agora.config import settings
from agora.models.post import Comment
from tests.conftest import create_post, headers_for


def _comment(client, post_id, headers, content="댓글", parent_id=None):
    payload = {"content": content}
    if parent_id is not None:
        payload["parent_id"] = parent_id
    return client.post(f"/api/posts/{post_id}/comments", json=payload, headers=headers)


def test_top_level_and_reply_depth(client, seed_users, seed_community):
    headers = headers_for(client, seed_users["member"])
    post = create_post(client, seed_community.community_id, headers)

    top = _comment(client, post["post_id"], headers)
    assert top.status_code == 201, top.text
    assert top.json()["depth"] == 0
    assert top.json()["parent_id"] is None

    reply = _comment(client, post["post_id"], headers, parent_id=top.json()["comment_id"])
    assert reply.status_code == 201
    assert reply.json()["depth"] == 1

    resp = client.get(f"/api/posts/{post['post_id']}")
    assert resp.json()["comment_count"] == 2


def test_max_depth_enforced(client, seed_users, seed_community):
    headers = headers_for(client, seed_users["member"])
    post = create_post(client, seed_community.community_id, headers)

    parent_id = None
    for expected_depth in range(settings.MAX_COMMENT_DEPTH + 1):
        resp = _comment(client, post["post_id"], headers, parent_id=parent_id)
        assert resp.status_code == 201
        assert resp.json()["depth"] == expected_depth
        parent_id = resp.json()["comment_id"]

    too_deep = _comment(client, post["post_id"], headers, parent_id=parent_id)
    assert too_deep.status_code == 400


def test_parent_must_belong_to_same_post(client, seed_users, seed_community):
    headers = headers_for(client, seed_users["member"])
    first = create_post(client, seed_community.community_id, headers)
    second = create_post(client, seed_community.community_id, headers, title="두 번째 글")
    parent = _comment(client, first["post_id"], headers).json()

    resp = _comment(client, second["post_id"], headers, parent_id=parent["comment_id"])
    assert resp.status_code == 404
    assert _comment(client, first["post_id"], headers, parent_id=9999).status_code == 404


def test_delete_comment_keeps_thread_shape(client, db, seed_users, seed_community):
    alice = headers_for(client, seed_users["member"])
    bob = headers_for(client, seed_users["member2"])
    post = create_post(client, seed_community.community_id, alice)
    parent = _comment(client, post["post_id"], bob, content="원댓글").json()
    child = _comment(client, post["post_id"], alice, content="답글", parent_id=parent["comment_id"]).json()

    resp = client.delete(f"/api/comments/{parent['comment_id']}", headers=bob)
    assert resp.status_code == 200
    data = resp.json()
    assert data["content"] == "[deleted]"
    assert data["deleted_at"] is not None
    assert data["depth"] == parent["depth"]
    assert data["vote_score"] == parent["vote_score"]

    listed = client.patch(f"/api/posts/{post['post_id']}/comments", json={"sort_by": "created_at", "order": "asc"})
    assert [c["content"] for c in listed.json()["data"]] == ["[deleted]", "답글"]

    # 삭제된 댓글에는 답글/수정 불가
    assert _comment(client, post["post_id"], alice, parent_id=parent["comment_id"]).status_code == 400
    assert client.put(f"/api/comments/{parent['comment_id']}", json={"content": "부활"}, headers=bob).status_code == 400

    # 두 번째 삭제는 no-op
    again = client.delete(f"/api/comments/{parent['comment_id']}", headers=bob)
    assert again.status_code == 200
    assert again.json()["deleted_at"] == data["deleted_at"]

    child_row = db.query(Comment).filter(Comment.comment_id == child["comment_id"]).first()
    assert child_row.parent_id == parent["comment_id"]


def test_moderator_comment_removal_is_logged(client, db, seed_users, seed_community):
    from agora.models.moderation import ModerationLog

    bob = headers_for(client, seed_users["member2"])
    post = create_post(client, seed_community.community_id, bob)
    comment = _comment(client, post["post_id"], bob).json()

    resp = client.delete(f"/api/comments/{comment['comment_id']}", headers=headers_for(client, seed_users["moderator"]))
    assert resp.status_code == 200
    log = db.query(ModerationLog).first()
    assert log.action == "remove_comment"
    assert log.target_id == comment["comment_id"]


def test_update_comment_owner_or_admin(client, seed_users, seed_community):
    bob = headers_for(client, seed_users["member2"])
    post = create_post(client, seed_community.community_id, bob)
    comment = _comment(client, post["post_id"], bob).json()
    url = f"/api/comments/{comment['comment_id']}"

    assert client.put(url, json={"content": "x"}, headers=headers_for(client, seed_users["member"])).status_code == 403
    assert client.put(url, json={"content": "x"}, headers=headers_for(client, seed_users["moderator"])).status_code == 403
    assert client.delete(url, headers=headers_for(client, seed_users["member"])).status_code == 403

    after = client.get(url).json()
    assert after == comment
    assert after["content"] == comment["content"]
    assert after["deleted_at"] is None
    assert after["updated_at"] is None

    resp = client.put(url, json={"content": "고친 댓글"}, headers=bob)
    assert resp.status_code == 200
    assert resp.json()["content"] == "고친 댓글"
    assert resp.json()["updated_at"] is not None

    assert client.put(url, json={"content": "관리자"}, headers=headers_for(client, seed_users["admin"])).status_code == 200


def test_no_comment_on_deleted_post(client, seed_users, seed_community):
    bob = headers_for(client, seed_users["member2"])
    post = create_post(client, seed_community.community_id, bob)
    client.delete(f"/api/posts/{post['post_id']}", headers=bob)
    assert _comment(client, post["post_id"], bob).status_code == 404

    admin = headers_for(client, seed_users["admin"])
    assert _comment(client, post["post_id"], admin).status_code == 400


def test_guest_can_read_comments(client, seed_users, seed_community):
    bob = headers_for(client, seed_users["member2"])
    post = create_post(client, seed_community.community_id, bob)
    comment = _comment(client, post["post_id"], bob).json()
    assert client.get(f"/api/comments/{comment['comment_id']}").status_code == 200
    resp = client.patch(f"/api/posts/{post['post_id']}/comments", json={"top_level_only": True})
    assert resp.status_code == 200
    assert resp.json()["pagination"]["records"] == 1
