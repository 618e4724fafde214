from datetime import timedelta, timezone

import pytest

from ulasis.db import utcnow
from ulasis.db.models import QRCode, Questionnaire, Review


def test_qr_code_without_expiry_never_expires():
    qr = QRCode(questionnaire_id=1, qr_code_data="x", expires_at=None, is_active=True)
    assert qr.is_expired() is False
    assert qr.is_valid() is True


def test_qr_code_expiry_in_the_past():
    qr = QRCode(questionnaire_id=1, qr_code_data="x", is_active=True, expires_at=utcnow() - timedelta(minutes=1))
    assert qr.is_expired() is True
    assert qr.is_valid() is False


def test_qr_code_expiry_in_the_future():
    qr = QRCode(questionnaire_id=1, qr_code_data="x", is_active=True, expires_at=utcnow() + timedelta(days=1))
    assert qr.is_expired() is False
    assert qr.is_valid() is True


def test_inactive_qr_code_is_not_valid():
    qr = QRCode(questionnaire_id=1, qr_code_data="x", is_active=False)
    assert qr.is_valid() is False


def test_expiry_survives_sqlite_roundtrip(db, user, make_questionnaire, make_qr_code):
    questionnaire = make_questionnaire(user)
    qr = make_qr_code(questionnaire, expires_at=utcnow() - timedelta(hours=1))
    db.expire_all()
    assert qr.is_expired() is True


def test_offset_expiry_is_stored_as_utc(db, user, make_questionnaire, make_qr_code):
    jakarta = timezone(timedelta(hours=7))
    expires = (utcnow() - timedelta(hours=1)).astimezone(jakarta)
    qr = make_qr_code(make_questionnaire(user), expires_at=expires)
    db.expire_all()
    assert qr.expires_at.replace(tzinfo=timezone.utc) == expires
    assert qr.is_expired() is True


def test_naive_expiry_is_taken_as_utc():
    expires = (utcnow() + timedelta(hours=2)).replace(tzinfo=None)
    qr = QRCode(questionnaire_id=1, qr_code_data="x", expires_at=expires)
    assert qr.expires_at == expires.replace(tzinfo=timezone.utc)
    assert qr.is_expired() is False


def test_qr_code_defaults_and_validators():
    qr = QRCode(questionnaire_id=1, qr_code_data="x", size=None, error_correction_level=None)
    assert qr.size == 200
    assert qr.error_correction_level == "M"

    with pytest.raises(ValueError):
        QRCode(questionnaire_id=1, qr_code_data="x", size=49)
    with pytest.raises(ValueError):
        QRCode(questionnaire_id=1, qr_code_data="x", size=1001)
    with pytest.raises(ValueError):
        QRCode(questionnaire_id=1, qr_code_data="x", error_correction_level="Z")
    with pytest.raises(ValueError):
        QRCode(questionnaire_id=1, qr_code_data="x", location_tag="a" * 256)


def test_review_rating_bounds():
    assert Review(user_id=1, rating=5).rating == 5
    with pytest.raises(ValueError):
        Review(user_id=1, rating=0)
    with pytest.raises(ValueError):
        Review(user_id=1, rating=6)


def test_questionnaire_title_required():
    with pytest.raises(ValueError):
        Questionnaire(user_id=1, title="  ")
    with pytest.raises(ValueError):
        Questionnaire(user_id=1, title="x" * 256)


def test_summary_turns_lists_into_index_maps(user, make_questionnaire):
    questionnaire = make_questionnaire(user, category_mapping={"service": ["q1", "q2"], "weight": 2})
    summary = questionnaire.to_summary()
    assert summary["category_mapping"] == {"service": {"0": "q1", "1": "q2"}, "weight": 2}
    assert summary["id"] == questionnaire.questionnaire_id
    assert summary["response_count"] == 0


def test_soft_delete(db, user, make_questionnaire):
    questionnaire = make_questionnaire(user)
    assert not questionnaire.is_deleted
    questionnaire.soft_delete()
    db.commit()
    assert questionnaire.is_deleted
