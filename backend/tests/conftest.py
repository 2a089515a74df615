import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from agora.database import Base, get_db  # noqa: E402
from agora.main import app  # noqa: E402
from agora.models.community import Community, CommunityModerator, Subscription  # noqa: E402
from agora.models.user import User  # noqa: E402
from agora.services.auth_service import hash_password  # noqa: E402

TEST_DB_URL = "sqlite:///./test_agora.db"
PASSWORD = "Passw0rd!"

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def seed_users(db):
    password_hash = hash_password(PASSWORD)
    users = {
        "admin": User(role="admin", username="admin", email="admin@agora-mail.com", display_name="Admin"),
        "moderator": User(role="moderator", username="mod", email="mod@agora-mail.com", display_name="Mod"),
        "member": User(role="member", username="alice", email="alice@agora-mail.com", display_name="Alice"),
        "member2": User(role="member", username="bob", email="bob@agora-mail.com", display_name="Bob"),
    }
    for u in users.values():
        u.password_hash = password_hash
        u.is_active = True
        u.failed_login_attempts = 0
        db.add(u)
    db.commit()
    for u in users.values():
        db.refresh(u)
    return users


@pytest.fixture
def seed_community(db, seed_users):
    community = Community(
        code="python",
        name="Python",
        description="파이썬 이야기",
        owner_id=seed_users["member"].user_id,
        posting_permission="anyone",
    )
    db.add(community)
    db.flush()
    db.add(CommunityModerator(
        community_id=community.community_id,
        user_id=seed_users["moderator"].user_id,
        assigned_by=seed_users["admin"].user_id,
    ))
    db.add(Subscription(user_id=seed_users["member"].user_id, community_id=community.community_id))
    db.commit()
    db.refresh(community)
    return community


def login(client, email: str, role: str, password: str = PASSWORD):
    return client.post(f"/api/auth/{role}/login", json={"email": email, "password": password})


def get_token(client, email: str, role: str) -> str:
    resp = login(client, email, role)
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]["access"]


def auth_headers(client, email: str, role: str = "member") -> dict:
    return {"Authorization": f"Bearer {get_token(client, email, role)}"}


def headers_for(client, user: User) -> dict:
    return auth_headers(client, user.email, user.role)


def create_post(client, community_id: int, headers: dict, title: str = "첫 번째 글", body: str = "본문") -> dict:
    resp = client.post(f"/api/communities/{community_id}/posts", json={"title": title, "body": body}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()
