import os
import tempfile

# settings are read once at import time
_TMP = tempfile.mkdtemp(prefix="ulasis-tests-")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_PATH"] = os.path.join(_TMP, "logs")
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["CLEANUP_INTERVAL"] = "0"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["SENTIMENT_BACKEND"] = "keyword"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ulasis.app.core.config import settings
from ulasis.app.core.security import hash_password
from ulasis.app.main import app
from ulasis.app.services.scan_tracking import scan_tracker
from ulasis.app.services.tokens import sign_token
from ulasis.db import Base
from ulasis.db.models import User, Questionnaire, QRCode, Review, Sentiment, SubscriptionPlan
from ulasis.db.session import get_db

PASSWORD = "secret-pass-123"
# PBKDF2 is slow on purpose, hash once for the whole run
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "qr-codes"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture(autouse=True)
def fresh_scan_cache():
    scan_tracker._recent.clear()
    yield
    scan_tracker._recent.clear()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(plan=SubscriptionPlan.free, email=None):
        counter["n"] += 1
        user = User(
            email=email or f"owner{counter['n']}@example.com",
            first_name="Owner",
            business_name="Kopi Test",
            password_hash=PASSWORD_HASH,
            subscription_plan=SubscriptionPlan(plan),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def business_user(make_user):
    return make_user(SubscriptionPlan.business)


@pytest.fixture
def headers_for():
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {sign_token({'sub': str(user.user_id)})}"}

    return _headers


@pytest.fixture
def make_questionnaire(db):
    def _make(user, title="Umpan Balik", **fields):
        questionnaire = Questionnaire(user_id=user.user_id, title=title, **fields)
        db.add(questionnaire)
        db.commit()
        db.refresh(questionnaire)
        return questionnaire

    return _make


@pytest.fixture
def make_qr_code(db):
    def _make(questionnaire, **fields):
        fields.setdefault("qr_code_data", f"http://test/api/v1/questionnaires/{questionnaire.questionnaire_id}?qr=x")
        qr_code = QRCode(questionnaire_id=questionnaire.questionnaire_id, **fields)
        db.add(qr_code)
        db.commit()
        db.refresh(qr_code)
        return qr_code

    return _make


@pytest.fixture
def make_review(db):
    def _make(user, questionnaire=None, rating=5, sentiment=Sentiment.positive, **fields):
        review = Review(
            user_id=user.user_id,
            questionnaire_id=questionnaire.questionnaire_id if questionnaire else None,
            rating=rating,
            sentiment=sentiment,
            **fields,
        )
        db.add(review)
        db.commit()
        db.refresh(review)
        return review

    return _make


@pytest.fixture
def logo_png() -> bytes:
    from io import BytesIO
    from PIL import Image

    buffer = BytesIO()
    Image.new("RGBA", (64, 64), (200, 30, 30, 255)).save(buffer, format="PNG")
    return buffer.getvalue()
