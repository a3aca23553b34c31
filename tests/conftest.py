import os

# Must be set before app.config is imported (get_settings is cached)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "10"
os.environ["SESSION_EXPIRE_MINUTES"] = "60"
os.environ["MAILGUN_API_KEY"] = ""
os.environ["SENDGRID_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.dependencies import get_image_storage, get_notifier
from app.main import app
from app.models.listing import Category, Price
from app.seed import seed_catalog
from app.services.storage import ImageStorage


class RecordingNotifier:
    """Stands in for EmailNotifier; keeps every link that would have been mailed."""

    def __init__(self):
        self.confirmations = []
        self.resets = []

    def send_confirmation(self, name, email, token):
        self.confirmations.append({"name": name, "email": email, "token": token})
        return True

    def send_password_reset(self, name, email, token):
        self.resets.append({"name": name, "email": email, "token": token})
        return True

    def last_confirmation(self, email):
        return [c for c in self.confirmations if c["email"] == email][-1]["token"]

    def last_reset(self, email):
        return [r for r in self.resets if r["email"] == email][-1]["token"]


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = factory()
    try:
        seed_catalog(db)
    finally:
        db.close()
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def storage(tmp_path):
    return ImageStorage(tmp_path / "uploads", max_bytes=10_000)


@pytest.fixture
def make_client(session_factory, notifier, storage):
    """Each client has its own cookie jar, so each one can be a different logged-in user."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_image_storage] = lambda: storage

    def _make():
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def catalog(db):
    return db.query(Category).first().id, db.query(Price).first().id
