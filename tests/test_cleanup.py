import asyncio
import os
from datetime import timedelta

from ulasis.app.services import cleanup_manager
from ulasis.app.services.scan_tracking import scan_tracker
from ulasis.db import utcnow


def test_process_tick(db, session_factory, monkeypatch, user, make_questionnaire, make_qr_code, upload_dir):
    monkeypatch.setattr(cleanup_manager, "LocalSession", session_factory)
    questionnaire = make_questionnaire(user)
    expired = make_qr_code(questionnaire, expires_at=utcnow() - timedelta(hours=2))
    make_qr_code(questionnaire)
    os.makedirs(upload_dir, exist_ok=True)
    upload_dir.joinpath("qr-9-1700000000000-deadbeef.png").write_bytes(b"orphan")

    stats = asyncio.run(cleanup_manager.process_tick())

    assert stats["qr_codes_expired"] == 1
    assert stats["images_removed"] == 1
    assert stats["scan_cache_cleared"] == 0
    db.refresh(expired)
    assert expired.is_active is False


def test_process_tick_clears_old_scan_cache(session_factory, monkeypatch):
    monkeypatch.setattr(cleanup_manager, "LocalSession", session_factory)
    scan_tracker._recent[(1, "old-device")] = scan_tracker.clock() - scan_tracker.retention - 1
    stats = asyncio.run(cleanup_manager.process_tick())
    assert stats["scan_cache_cleared"] == 1
