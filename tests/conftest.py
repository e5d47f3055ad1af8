import os
import tempfile

os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("JWT_EXPIRES_MINUTES", "60")
os.environ["DATABASE_URL"] = ""
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="intima-uploads-")
os.environ["VALIDATION_MAX_ATTEMPTS"] = "3"
os.environ["VALIDATION_RETRY_WAIT_SECONDS"] = "0"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from intima.core.db import get_db, get_session_factory, make_engine
from intima.main import app
from intima.models.base import Base
from intima.models.enums import UserRole
from intima.models import activity_log_model, affiliate_model, submission_model, user_model  # noqa: F401
from intima.services.validation import get_validator

from factories import FakeValidator, seed_affiliate, seed_user


@pytest.fixture()
def session_factory():
    engine = make_engine("sqlite+pysqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def validator():
    return FakeValidator()


@pytest.fixture()
def client(session_factory, validator):
    # One session per request, like the real get_db
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_validator] = lambda: validator
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def student(db_session):
    return seed_user(db_session, "2021-00001", UserRole.STUDENT)


@pytest.fixture()
def staff(db_session):
    return seed_user(db_session, "2021-00002", UserRole.INTIMA, permissions=["admin"])


@pytest.fixture()
def affiliate(db_session):
    return seed_affiliate(db_session)
