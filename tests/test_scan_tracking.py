from datetime import timedelta

import pytest

from ulasis.app.services.scan_tracking import ScanTracker, QRCodeExpired, device_fingerprint
from ulasis.db import utcnow


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return ScanTracker(window_seconds=300, retention_seconds=3600, clock=clock)


@pytest.fixture
def qr(user, make_questionnaire, make_qr_code):
    return make_qr_code(make_questionnaire(user))


def test_fingerprint_is_stable_and_normalized():
    headers = {"user-agent": "Mozilla/5.0 ", "accept-language": "id-ID"}
    assert device_fingerprint(headers, "10.0.0.1") == device_fingerprint(
        {"user-agent": "mozilla/5.0", "accept-language": "ID-id"}, "10.0.0.1"
    )
    assert len(device_fingerprint(headers, "10.0.0.1")) == 64
    assert device_fingerprint(headers, "10.0.0.1") != device_fingerprint(headers, "10.0.0.2")


def test_fingerprint_prefers_forwarded_address():
    forwarded = {"user-agent": "ua", "x-forwarded-for": "203.0.113.9, 10.0.0.1"}
    direct = {"user-agent": "ua"}
    assert device_fingerprint(forwarded, "10.0.0.1") == device_fingerprint(direct, "203.0.113.9")


def test_first_scan_is_unique(db, tracker, qr):
    result = tracker.track_scan(db, qr.qr_code_id, "device-a")
    assert result.is_unique and not result.is_duplicate
    assert (qr.scan_count, qr.unique_scans) == (1, 1)


def test_repeat_within_window_is_duplicate(db, tracker, clock, qr):
    tracker.track_scan(db, qr.qr_code_id, "device-a")
    clock.now += 60
    result = tracker.track_scan(db, qr.qr_code_id, "device-a")
    assert result.is_duplicate
    assert (qr.scan_count, qr.unique_scans) == (1, 1)


def test_return_after_window_counts_but_not_unique(db, tracker, clock, qr):
    tracker.track_scan(db, qr.qr_code_id, "device-a")
    clock.now += 301
    result = tracker.track_scan(db, qr.qr_code_id, "device-a")
    assert not result.is_duplicate and not result.is_unique
    assert (qr.scan_count, qr.unique_scans) == (2, 1)


def test_other_devices_are_unique(db, tracker, qr):
    tracker.track_scan(db, qr.qr_code_id, "device-a")
    result = tracker.track_scan(db, qr.qr_code_id, "device-b")
    assert result.is_unique
    assert (qr.scan_count, qr.unique_scans) == (2, 2)


def test_device_that_already_reviewed_is_not_unique(db, tracker, qr, user, make_review):
    make_review(user, qr.questionnaire, qr_code_id=qr.qr_code_id, device_fingerprint="device-a")
    result = tracker.track_scan(db, qr.qr_code_id, "device-a")
    assert not result.is_unique
    assert (qr.scan_count, qr.unique_scans) == (1, 0)


def test_expired_code_is_refused(db, tracker, user, make_questionnaire, make_qr_code):
    qr = make_qr_code(make_questionnaire(user), expires_at=utcnow() - timedelta(seconds=1))
    with pytest.raises(QRCodeExpired):
        tracker.track_scan(db, qr.qr_code_id, "device-a")
    assert qr.scan_count == 0


def test_inactive_deleted_and_unknown_codes(db, tracker, user, make_questionnaire, make_qr_code):
    questionnaire = make_questionnaire(user)
    inactive = make_qr_code(questionnaire, is_active=False)
    deleted = make_qr_code(questionnaire)
    deleted.soft_delete()
    db.commit()
    for qr_code_id in (inactive.qr_code_id, deleted.qr_code_id, 9999):
        with pytest.raises(LookupError):
            tracker.track_scan(db, qr_code_id, "device-a")


def test_clean_cache_drops_old_entries(db, tracker, clock, qr):
    tracker.track_scan(db, qr.qr_code_id, "device-a")
    clock.now += 1800
    tracker.track_scan(db, qr.qr_code_id, "device-b")
    clock.now += 1900
    assert tracker.clean_cache() == 1
    # device-a is forgotten, so it is unique again
    assert tracker.track_scan(db, qr.qr_code_id, "device-a").is_unique


def test_result_dict(db, tracker, qr):
    data = tracker.track_scan(db, qr.qr_code_id, "device-a").to_dict()
    assert data == {
        "qr_code_id": qr.qr_code_id,
        "questionnaire_id": qr.questionnaire_id,
        "scan_count": 1,
        "unique_scans": 1,
        "is_unique": True,
        "is_duplicate": False,
    }


def test_codes_of_inactive_or_deleted_questionnaires_are_not_counted(db, tracker, user, make_questionnaire, make_qr_code):
    inactive = make_qr_code(make_questionnaire(user, is_active=False))
    deleted_parent = make_questionnaire(user)
    orphaned = make_qr_code(deleted_parent)
    deleted_parent.soft_delete()
    db.commit()

    for qr in (inactive, orphaned):
        with pytest.raises(LookupError):
            tracker.track_scan(db, qr.qr_code_id, "device-a")
        db.refresh(qr)
        assert (qr.scan_count, qr.unique_scans) == (0, 0)
    assert not tracker._recent
