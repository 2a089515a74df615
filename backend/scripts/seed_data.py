"""Seed the database with demo accounts and a community."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from agora.database import SessionLocal, engine, Base
import agora.models  # noqa: F401

from agora.models.user import User
from agora.models.community import Community, CommunityModerator, Subscription
from agora.models.post import Post, Comment
from agora.services.auth_service import hash_password

DEMO_PASSWORD = "Agora1234"


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(User).count() > 0:
            print("Database already seeded. Skipping.")
            return

        password_hash = hash_password(DEMO_PASSWORD)
        users = [
            User(role="admin", username="admin", email="admin@agora-mail.com", display_name="관리자"),
            User(role="moderator", username="mod", email="mod@agora-mail.com", display_name="모더레이터 이영희"),
            User(role="member", username="alice", email="alice@agora-mail.com", display_name="회원 정수연"),
            User(role="member", username="bob", email="bob@agora-mail.com", display_name="회원 최동현"),
        ]
        for user in users:
            user.password_hash = password_hash
            user.failed_login_attempts = 0
        db.add_all(users)
        db.flush()
        admin, moderator, alice, bob = users

        community = Community(
            code="general",
            name="자유게시판",
            description="무엇이든 이야기하는 커뮤니티",
            owner_id=alice.user_id,
            posting_permission="anyone",
        )
        db.add(community)
        db.flush()

        db.add(CommunityModerator(
            community_id=community.community_id,
            user_id=moderator.user_id,
            assigned_by=admin.user_id,
        ))
        db.add_all([
            Subscription(user_id=alice.user_id, community_id=community.community_id),
            Subscription(user_id=bob.user_id, community_id=community.community_id),
        ])

        post = Post(
            community_id=community.community_id,
            author_id=alice.user_id,
            title="Agora에 오신 것을 환영합니다",
            body="첫 글입니다. 자유롭게 댓글을 남겨 주세요.",
            vote_score=0,
        )
        db.add(post)
        db.flush()
        db.add(Comment(post_id=post.post_id, author_id=bob.user_id, content="반갑습니다!", depth=0, vote_score=0))

        db.commit()
        print("Seed data created successfully.")
        print(f"  Accounts: admin/mod/alice/bob (@agora-mail.com), password: {DEMO_PASSWORD}")
        print(f"  Community: {community.code} (id={community.community_id})")
    except Exception as e:
        db.rollback()
        print(f"Seeding failed: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
