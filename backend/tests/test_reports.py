"""Test Reports 게시글/댓글 신고 접수와 모더레이터 처리 범위를 검증하는 자동화 테스트입니다."""

from agora.models.moderation import ContentReport
from tests.conftest import create_post, headers_for


def _report(client, kind, target_id, headers, reason="spam", **extra):
    payload = {"reason_category": reason}
    payload.update(extra)
    return client.post(f"/api/{kind}/{target_id}/reports", json=payload, headers=headers)


def test_member_reports_post(client, db, seed_users, seed_community):
    bob = headers_for(client, seed_users["member2"])
    alice = headers_for(client, seed_users["member"])
    post = create_post(client, seed_community.community_id, bob)

    resp = _report(client, "posts", post["post_id"], alice, reason_text="광고 글")
    assert resp.status_code == 201, resp.text
    report = resp.json()
    assert report["status"] == "open"
    assert report["community_id"] == seed_community.community_id
    assert report["reporter_id"] == seed_users["member"].user_id
    assert report["target_type"] == "post"

    assert _report(client, "posts", post["post_id"], alice, reason="harassment").status_code == 409
    assert _report(client, "posts", post["post_id"], bob).status_code == 400
    assert client.post(f"/api/posts/{post['post_id']}/reports", json={"reason_category": "spam"}).status_code == 401
    assert _report(client, "posts", 9999, alice).status_code == 404
    assert db.query(ContentReport).count() == 1


def test_report_comment_and_deleted_targets(client, seed_users, seed_community):
    alice = headers_for(client, seed_users["member"])
    bob = headers_for(client, seed_users["member2"])
    post = create_post(client, seed_community.community_id, alice)
    comment = client.post(f"/api/posts/{post['post_id']}/comments", json={"content": "c"}, headers=alice).json()

    resp = _report(client, "comments", comment["comment_id"], bob, reason="off_topic")
    assert resp.status_code == 201
    assert resp.json()["target_type"] == "comment"
    assert resp.json()["community_id"] == seed_community.community_id

    other = client.post(f"/api/posts/{post['post_id']}/comments", json={"content": "d"}, headers=alice).json()
    client.delete(f"/api/comments/{other['comment_id']}", headers=alice)
    assert _report(client, "comments", other["comment_id"], bob).status_code == 400

    client.delete(f"/api/posts/{post['post_id']}", headers=alice)
    assert _report(client, "posts", post["post_id"], bob).status_code == 404


def test_moderator_resolves_report_once(client, seed_users, seed_community):
    cid = seed_community.community_id
    bob = headers_for(client, seed_users["member2"])
    moderator = headers_for(client, seed_users["moderator"])
    post = create_post(client, cid, bob)
    report = _report(client, "posts", post["post_id"], headers_for(client, seed_users["member"])).json()
    url = f"/api/communities/{cid}/reports/{report['report_id']}"

    resp = client.put(url, json={"status": "resolved", "resolution_note": "글 삭제 처리"}, headers=moderator)
    assert resp.status_code == 200
    resolved = resp.json()
    assert resolved["status"] == "resolved"
    assert resolved["resolved_by"] == seed_users["moderator"].user_id
    assert resolved["resolved_at"] is not None

    again = client.put(url, json={"status": "dismissed"}, headers=moderator)
    assert again.status_code == 400
    assert client.get(url, headers=moderator).json()["status"] == "resolved"

    resp = client.patch(f"/api/communities/{cid}/moderation-logs", json={"action": "resolve_report"}, headers=moderator)
    logs = resp.json()["data"]
    assert len(logs) == 1
    assert logs[0]["target_type"] == "post"
    assert logs[0]["target_id"] == post["post_id"]
    assert logs[0]["reason"] == "글 삭제 처리"


def test_dismiss_report_is_logged(client, seed_users, seed_community):
    cid = seed_community.community_id
    post = create_post(client, cid, headers_for(client, seed_users["member2"]))
    report = _report(client, "posts", post["post_id"], headers_for(client, seed_users["member"])).json()
    admin = headers_for(client, seed_users["admin"])

    resp = client.put(f"/api/communities/{cid}/reports/{report['report_id']}", json={"status": "dismissed"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["status"] == "dismissed"

    resp = client.patch(f"/api/communities/{cid}/moderation-logs", json={}, headers=admin)
    assert [row["action"] for row in resp.json()["data"]] == ["dismiss_report"]


def test_report_invalid_resolution_status(client, seed_users, seed_community):
    cid = seed_community.community_id
    post = create_post(client, cid, headers_for(client, seed_users["member2"]))
    report = _report(client, "posts", post["post_id"], headers_for(client, seed_users["member"])).json()
    resp = client.put(
        f"/api/communities/{cid}/reports/{report['report_id']}",
        json={"status": "open"},
        headers=headers_for(client, seed_users["moderator"]),
    )
    assert resp.status_code == 422


def test_reports_are_scoped_to_moderated_communities(client, seed_users, seed_community):
    alice = headers_for(client, seed_users["member"])
    bob = headers_for(client, seed_users["member2"])
    moderator = headers_for(client, seed_users["moderator"])
    admin = headers_for(client, seed_users["admin"])

    other = client.post("/api/communities", json={"code": "rust", "name": "Rust"}, headers=bob).json()
    other_post = create_post(client, other["community_id"], alice)
    report = _report(client, "posts", other_post["post_id"], bob).json()
    assert report["community_id"] == other["community_id"]

    own_post = create_post(client, seed_community.community_id, alice)
    _report(client, "posts", own_post["post_id"], bob)

    # 담당하지 않는 커뮤니티의 신고는 볼 수도 처리할 수도 없다
    resp = client.patch(f"/api/communities/{other['community_id']}/reports", json={}, headers=moderator)
    assert resp.status_code == 200
    assert resp.json()["pagination"]["records"] == 0
    url = f"/api/communities/{other['community_id']}/reports/{report['report_id']}"
    assert client.get(url, headers=moderator).status_code == 403
    assert client.put(url, json={"status": "resolved"}, headers=moderator).status_code == 403

    resp = client.patch(f"/api/communities/{seed_community.community_id}/reports", json={}, headers=moderator)
    assert resp.json()["pagination"]["records"] == 1

    resp = client.patch(f"/api/communities/{other['community_id']}/reports", json={}, headers=admin)
    assert resp.json()["pagination"]["records"] == 1

    # 다른 커뮤니티 경로로는 조회되지 않는다
    assert client.get(
        f"/api/communities/{seed_community.community_id}/reports/{report['report_id']}", headers=admin,
    ).status_code == 404


def test_reporter_sees_only_own_reports(client, seed_users, seed_community):
    cid = seed_community.community_id
    alice = headers_for(client, seed_users["member"])
    bob = headers_for(client, seed_users["member2"])
    admin = headers_for(client, seed_users["admin"])

    bob_post = create_post(client, cid, bob)
    alice_post = create_post(client, cid, alice)
    alice_report = _report(client, "posts", bob_post["post_id"], alice).json()
    _report(client, "posts", alice_post["post_id"], bob, reason="harassment")

    resp = client.patch(f"/api/communities/{cid}/reports", json={}, headers=alice)
    data = resp.json()["data"]
    assert [row["report_id"] for row in data] == [alice_report["report_id"]]

    url = f"/api/communities/{cid}/reports/{alice_report['report_id']}"
    assert client.get(url, headers=alice).status_code == 200
    assert client.get(url, headers=bob).status_code == 403
    assert client.put(url, json={"status": "resolved"}, headers=alice).status_code == 403

    resp = client.patch(f"/api/communities/{cid}/reports", json={"reason_category": "harassment"}, headers=admin)
    assert resp.json()["pagination"]["records"] == 1
    resp = client.patch(f"/api/communities/{cid}/reports", json={"status": "resolved"}, headers=admin)
    assert resp.json()["pagination"]["records"] == 0
