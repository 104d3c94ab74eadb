import pytest
import os
from dataclasses import dataclass
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# test environment, must be set before the app is imported
os.environ["APP_ENV"] = "test"

from newsdesk.main import app
from newsdesk.core.security import create_access_token, get_password_hash
from newsdesk.db.database import Base, create_tables, get_session, SQLITE_TEST_DB
from newsdesk.models.user import User, UserRole

# test database
test_engine = create_engine(SQLITE_TEST_DB, connect_args={"check_same_thread": False})
TestSessionLocal = sessionmaker(bind=test_engine)

PASSWORD = "password123"
PASSWORD_HASH = get_password_hash(PASSWORD)


@dataclass
class Actor:
    """A user of some role with a client that sends their token"""
    id: str
    username: str
    role: UserRole
    client: TestClient


@pytest.fixture(autouse=True)
def clean_db():
    """Drop and recreate every table"""
    Base.metadata.drop_all(bind=test_engine)
    create_tables(test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)

@pytest.fixture
def client(clean_db):
    """Anonymous test client"""
    test_session = TestSessionLocal()

    def override_get_session():
        try:
            yield test_session
        finally:
            test_session.close()

    app.dependency_overrides[get_session] = override_get_session

    client = TestClient(app)
    yield client

    test_session.close()
    app.dependency_overrides.clear()

@pytest.fixture
def db_session(clean_db):
    """Direct database access for setup and assertions"""
    session = TestSessionLocal()
    yield session
    session.close()

@pytest.fixture
def make_actor(client):
    """Insert a user with the given role and return it with an authenticated client"""
    def _make(role: UserRole, username: str | None = None) -> Actor:
        username = username or f"{role.value}_user"
        session = TestSessionLocal()
        try:
            user = User(
                username=username,
                display_name=username.replace("_", " ").title(),
                email=f"{username}@example.com",
                password_hash=PASSWORD_HASH,
                role=role,
            )
            session.add(user)
            session.commit()
            user_id = user.id
        finally:
            session.close()

        token = create_access_token({"sub": user_id})
        actor_client = TestClient(app)
        actor_client.headers = {"Authorization": f"Bearer {token}"}
        return Actor(id=user_id, username=username, role=role, client=actor_client)
    return _make

@pytest.fixture
def admin(make_actor):
    return make_actor(UserRole.ADMIN)

@pytest.fixture
def editor(make_actor):
    return make_actor(UserRole.EDITOR)

@pytest.fixture
def author(make_actor):
    return make_actor(UserRole.AUTHOR)

@pytest.fixture
def other_author(make_actor):
    return make_actor(UserRole.AUTHOR, "other_author")

@pytest.fixture
def reader(make_actor):
    return make_actor(UserRole.READER)

@pytest.fixture
def category(editor):
    """A category created through the API"""
    response = editor.client.post("/api/categories", json={
        "name": "Thời sự",
        "description": "Tin tức thời sự trong nước"
    })
    assert response.status_code == 201
    return response.json()

@pytest.fixture
def test_article_data(category):
    return {
        "title": "Giá xăng giảm lần thứ ba liên tiếp",
        "content": "Từ 15h chiều nay, giá xăng trong nước giảm mạnh.",
        "excerpt": "Giá xăng giảm",
        "category_id": category["id"]
    }

@pytest.fixture
def draft_article(author, test_article_data):
    """A draft written by `author`"""
    response = author.client.post("/api/articles", json=test_article_data)
    assert response.status_code == 201
    return response.json()

@pytest.fixture
def pending_article(author, draft_article):
    response = author.client.post(f"/api/articles/{draft_article['id']}:submit")
    assert response.status_code == 200
    return response.json()

@pytest.fixture
def approved_article(editor, pending_article):
    response = editor.client.post(
        f"/api/articles/{pending_article['id']}:review", json={"status": "approved"}
    )
    assert response.status_code == 200
    return response.json()

@pytest.fixture
def published_article(editor, approved_article):
    response = editor.client.post(f"/api/articles/{approved_article['id']}:publish")
    assert response.status_code == 200
    return response.json()
