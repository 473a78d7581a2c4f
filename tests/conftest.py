import os
import tempfile

# Configure the app before anything imports config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["UPLOADS_DIR"] = tempfile.mkdtemp(prefix="drawing-tutorial-uploads-")
os.environ["SMTP_USERNAME"] = ""
os.environ["SMTP_PASSWORD"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import SECURITY_QUESTIONS, AuthSettings, get_auth_settings
from core.database import build_engine, get_db
from core.dependencies import get_image_storage
from core.security import PasswordHasher, TokenService
from models.base import Base
from utils.image_storage import LocalImageStorage
from utils.user_manager import UserManager

TEST_SETTINGS = AuthSettings(jwt_secret_key="test-secret-key", bcrypt_rounds=4)

QUESTION = SECURITY_QUESTIONS[1]
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=TEST_SETTINGS.bcrypt_rounds)


@pytest.fixture
def token_service():
    return TokenService(TEST_SETTINGS)


@pytest.fixture
def user_manager(db_session, hasher):
    return UserManager(db_session, hasher)


@pytest.fixture
def storage(tmp_path):
    return LocalImageStorage(tmp_path / "uploads")


@pytest.fixture
def client(session_factory, storage):
    from app import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_auth_settings] = lambda: TEST_SETTINGS
    app.dependency_overrides[get_image_storage] = lambda: storage
    previous_factory = app.state.session_factory
    app.state.session_factory = session_factory

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.state.session_factory = previous_factory


def make_user(
    user_manager: UserManager,
    username: str,
    password: str = "password123",
    role: str = "student",
    status: str = "active",
    email=None,
    answer: str = "Fluffy",
):
    return user_manager.create_user(
        username=username,
        password=password,
        name=username.title(),
        security_question=QUESTION,
        security_answer=answer,
        email=email,
        role=role,
        status=status,
    )


def auth_header(token_service: TokenService, user) -> dict:
    token = token_service.create_access_token(user.user_id, user.role, username=user.username)
    return {"Authorization": f"Bearer {token}"}


def registration(**overrides) -> dict:
    payload = {
        "username": "alice",
        "password": "password123",
        "name": "Alice",
        "security_question": QUESTION,
        "security_answer": "Fluffy",
        "email": "alice@example.com",
    }
    payload.update(overrides)
    return payload
