import os
from datetime import timedelta, timezone

import pytest

from ulasis.app.services import qr_codes as service
from ulasis.db import utcnow


@pytest.fixture
def questionnaire(user, make_questionnaire):
    return make_questionnaire(user)


def test_unique_scan_bumps_both_counters(db, questionnaire, make_qr_code):
    qr = make_qr_code(questionnaire)
    service.increment_scan(db, qr, is_unique=True)
    assert qr.scan_count == 1
    assert qr.unique_scans == 1
    assert qr.last_scan_at is not None


def test_repeat_scan_bumps_only_scan_count(db, questionnaire, make_qr_code):
    qr = make_qr_code(questionnaire)
    service.increment_scan(db, qr, is_unique=False)
    service.increment_scan(db, qr)
    assert qr.scan_count == 2
    assert qr.unique_scans == 0
    assert qr.last_scan_at is not None


def test_statistics_of_empty_table(db):
    assert service.get_scan_statistics(db) == {
        "total_scans": 0,
        "unique_scans": 0,
        "total_qr_codes": 0,
        "active_qr_codes": 0,
        "average_scans_per_qr": 0,
    }


def test_statistics_round_half_up(db, questionnaire, make_qr_code):
    make_qr_code(questionnaire, scan_count=2, unique_scans=1)
    make_qr_code(questionnaire, scan_count=3, unique_scans=2)
    make_qr_code(questionnaire, scan_count=0, is_active=False)
    make_qr_code(questionnaire, scan_count=0, expires_at=utcnow() - timedelta(days=1))
    stats = service.get_scan_statistics(db, questionnaire_id=questionnaire.questionnaire_id)
    # 5 / 4 = 1.25
    assert stats["average_scans_per_qr"] == 1
    assert stats["total_scans"] == 5
    assert stats["unique_scans"] == 3
    assert stats["total_qr_codes"] == 4
    assert stats["active_qr_codes"] == 2


def test_statistics_half_rounds_up(db, questionnaire, make_qr_code):
    make_qr_code(questionnaire, scan_count=2)
    make_qr_code(questionnaire, scan_count=3)
    # 5 / 2 = 2.5
    assert service.get_scan_statistics(db)["average_scans_per_qr"] == 3


def test_statistics_scoped_to_user(db, questionnaire, make_user, make_questionnaire, make_qr_code):
    make_qr_code(questionnaire, scan_count=4)
    make_qr_code(make_questionnaire(make_user()), scan_count=10)
    assert service.get_scan_statistics(db, user_id=questionnaire.user_id)["total_scans"] == 4


def test_cleanup_expired_deactivates_only_past_codes(db, questionnaire, make_qr_code):
    past = make_qr_code(questionnaire, expires_at=utcnow() - timedelta(minutes=5))
    future = make_qr_code(questionnaire, expires_at=utcnow() + timedelta(days=1))
    forever = make_qr_code(questionnaire)
    already_off = make_qr_code(questionnaire, is_active=False, expires_at=utcnow() - timedelta(days=2))

    assert service.cleanup_expired(db) == 1
    db.expire_all()
    assert past.is_active is False
    assert future.is_active is True
    assert forever.is_active is True
    assert already_off.is_active is False
    assert service.cleanup_expired(db) == 0


def test_find_by_questionnaire_filters(db, questionnaire, make_qr_code):
    make_qr_code(questionnaire, location_tag="Kasir")
    make_qr_code(questionnaire, location_tag="Teras", is_active=False)
    make_qr_code(questionnaire, location_tag="Kasir", expires_at=utcnow() - timedelta(days=1))

    qid = questionnaire.questionnaire_id
    assert len(service.find_by_questionnaire(db, qid)) == 2
    assert len(service.find_by_questionnaire(db, qid, include_inactive=True)) == 3
    assert len(service.find_by_questionnaire(db, qid, location_tag="Kasir")) == 2
    assert len(service.find_by_questionnaire(db, qid, only_valid=True)) == 1


def test_find_by_location(db, questionnaire, make_qr_code, make_user, make_questionnaire):
    make_qr_code(questionnaire, location_tag="Kasir")
    make_qr_code(make_questionnaire(make_user()), location_tag="Kasir")
    assert len(service.find_by_location(db, "Kasir")) == 2
    assert len(service.find_by_location(db, "Kasir", user_id=questionnaire.user_id)) == 1


def test_create_writes_image(db, questionnaire, upload_dir):
    qr = service.create_qr_code(db, questionnaire, {"location_tag": "Meja 1", "size": 300})
    assert os.path.isfile(qr.qr_code_image)
    assert os.path.dirname(qr.qr_code_image) == str(upload_dir)
    assert qr.size == 300
    assert qr.error_correction_level == "M"
    assert f"/questionnaires/{questionnaire.questionnaire_id}?qr=" in qr.qr_code_data


def test_create_rejects_bad_colors(db, questionnaire):
    with pytest.raises(ValueError):
        service.create_qr_code(db, questionnaire, {"custom_colors": {"foreground": "red"}})


def test_update_regenerates_image(db, questionnaire):
    qr = service.create_qr_code(db, questionnaire, {})
    old_image = qr.qr_code_image
    service.update_qr_code(db, qr, {"size": 400})
    assert qr.qr_code_image != old_image
    assert not os.path.exists(old_image)
    assert os.path.isfile(qr.qr_code_image)


def test_update_without_image_fields_keeps_image(db, questionnaire):
    qr = service.create_qr_code(db, questionnaire, {})
    old_image = qr.qr_code_image
    service.update_qr_code(db, qr, {"location_tag": "Pintu"})
    assert qr.qr_code_image == old_image
    assert qr.location_tag == "Pintu"


def test_delete_soft_deletes_and_removes_image(db, questionnaire):
    qr = service.create_qr_code(db, questionnaire, {})
    service.delete_qr_code(db, qr)
    assert qr.is_deleted
    assert qr.is_active is False
    assert not os.path.exists(qr.qr_code_image)


def test_cleanup_orphaned_images(db, questionnaire, upload_dir):
    kept = service.create_qr_code(db, questionnaire, {})
    upload_dir.joinpath("qr-1-123-abcdef01.png").write_bytes(b"stale")
    upload_dir.joinpath("notes.txt").write_text("not ours")

    assert service.cleanup_orphaned_images(db) == 1
    assert os.path.isfile(kept.qr_code_image)
    assert upload_dir.joinpath("notes.txt").exists()


def test_batch_reports_failures_per_location(db, questionnaire):
    results = service.create_batch(db, questionnaire, ["Kasir", "x" * 300, "Teras"], {"size": 150})
    assert [r["success"] for r in results] == [True, False, True]
    assert results[0]["qr_code"].location_tag == "Kasir"
    assert "location_tag" in results[1]["error"]


def test_logo_attach_and_remove(db, questionnaire, logo_png):
    qr = service.create_qr_code(db, questionnaire, {"size": 300})
    plain_image = qr.qr_code_image

    service.attach_logo(db, qr, logo_png)
    assert qr.logo_url and os.path.isfile(qr.logo_url)
    assert qr.qr_code_image != plain_image
    assert not os.path.exists(plain_image)

    logo_path = qr.logo_url
    service.remove_logo(db, qr)
    assert qr.logo_url is None
    assert not os.path.exists(logo_path)


def test_get_owned(db, questionnaire, make_qr_code, make_user):
    qr = make_qr_code(questionnaire)
    assert service.get_owned(db, questionnaire.user_id, qr.qr_code_id) is qr
    with pytest.raises(LookupError):
        service.get_owned(db, make_user().user_id, qr.qr_code_id)


def test_get_owned_hides_codes_of_deleted_questionnaire(db, questionnaire, make_qr_code):
    qr = make_qr_code(questionnaire)
    questionnaire.soft_delete()
    db.commit()
    with pytest.raises(LookupError):
        service.get_owned(db, questionnaire.user_id, qr.qr_code_id)


def test_cleanup_expired_with_offset_expiry(db, questionnaire, make_qr_code):
    jakarta = timezone(timedelta(hours=7))
    past = make_qr_code(questionnaire, expires_at=(utcnow() - timedelta(hours=1)).astimezone(jakarta))
    future = make_qr_code(questionnaire, expires_at=(utcnow() + timedelta(hours=1)).astimezone(jakarta))

    assert service.cleanup_expired(db) == 1
    db.expire_all()
    assert past.is_active is False
    assert future.is_active is True


def test_location_performance(db, questionnaire, make_qr_code, make_review):
    user = questionnaire.user
    kasir = make_qr_code(questionnaire, location_tag="Kasir", scan_count=6, unique_scans=4)
    make_qr_code(questionnaire, location_tag="Kasir", scan_count=2, unique_scans=2)
    make_qr_code(questionnaire, location_tag="Teras", scan_count=9)
    for _ in range(3):
        make_review(user, questionnaire, qr_code_id=kasir.qr_code_id)

    perf = service.get_location_performance(db, "Kasir", user_id=user.user_id)
    assert perf == {
        "location_tag": "Kasir",
        "qr_code_count": 2,
        "total_scans": 8,
        "total_unique_scans": 6,
        "total_responses": 3,
        "conversion_rate": 37.5,
        "average_scans_per_qr": 4,
    }


def test_location_performance_unknown_tag(db, questionnaire, make_qr_code, make_user):
    make_qr_code(questionnaire, location_tag="Kasir")
    assert service.get_location_performance(db, "Dapur") is None
    # codes of other users do not count
    assert service.get_location_performance(db, "Kasir", user_id=make_user().user_id) is None


def test_location_performance_without_scans(db, questionnaire, make_qr_code):
    make_qr_code(questionnaire, location_tag="Kasir")
    perf = service.get_location_performance(db, "Kasir")
    assert perf["conversion_rate"] == 0
    assert perf["average_scans_per_qr"] == 0


def test_top_locations_sorted_by_scans(db, questionnaire, make_qr_code):
    make_qr_code(questionnaire, location_tag="Teras", scan_count=3)
    make_qr_code(questionnaire, location_tag="Kasir", scan_count=10)
    make_qr_code(questionnaire, location_tag="Parkir", scan_count=7)
    make_qr_code(questionnaire, scan_count=50)

    top = service.get_top_locations(db, user_id=questionnaire.user_id)
    assert [item["location_tag"] for item in top] == ["Kasir", "Parkir", "Teras"]
    assert [item["location_tag"] for item in service.get_top_locations(db, user_id=questionnaire.user_id, limit=2)] == [
        "Kasir", "Parkir",
    ]
    with pytest.raises(ValueError):
        service.get_top_locations(db, limit=0)


def test_scan_analytics(db, questionnaire, make_qr_code, make_review):
    user = questionnaire.user
    qr = make_qr_code(questionnaire, location_tag="Kasir", scan_count=4, unique_scans=3)
    created = utcnow().replace(hour=9, minute=15)
    make_review(user, questionnaire, rating=4, qr_code_id=qr.qr_code_id, created_at=created)
    make_review(user, questionnaire, rating=5, qr_code_id=qr.qr_code_id, created_at=created)
    make_review(user, questionnaire, rating=1)

    data = service.get_scan_analytics(db, qr)
    assert data["qr_code"]["scan_count"] == 4
    assert data["questionnaire"] == {"id": questionnaire.questionnaire_id, "title": questionnaire.title}
    stats = data["analytics"]["response_stats"]
    assert stats["total_responses"] == 2
    assert stats["average_rating"] == 4.5
    assert stats["responses_by_hour"][9] == {"hour": 9, "count": 2}
    assert sum(item["count"] for item in stats["responses_by_hour"]) == 2
    assert data["analytics"]["conversion_rate"] == 50
    assert data["analytics"]["location_performance"]["total_responses"] == 2


def test_scan_analytics_date_window(db, questionnaire, make_qr_code, make_review):
    qr = make_qr_code(questionnaire)
    make_review(questionnaire.user, questionnaire, qr_code_id=qr.qr_code_id, created_at=utcnow() - timedelta(days=10))
    make_review(questionnaire.user, questionnaire, qr_code_id=qr.qr_code_id)

    data = service.get_scan_analytics(db, qr, date_from=utcnow() - timedelta(days=1))
    assert data["analytics"]["response_stats"]["total_responses"] == 1
    assert data["analytics"]["location_performance"] is None
    assert data["analytics"]["conversion_rate"] == 0
