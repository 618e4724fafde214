"""Counting QR scans with per-device de-duplication.

A scan from the same device fingerprint within `SCAN_DEDUP_WINDOW` seconds
of the previous one is reported as a duplicate and not counted. Devices stay
in the recent-scan cache for `retention` seconds (a day by default) so a
returning device is not counted as unique again. The cache lives in process
memory and is lost on restart.
"""
# app/services/scan_tracking.py
import hashlib
import threading
import time
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from ulasis.app.core.config import settings
from ulasis.app.core.logging import get_logs_writer_logger
from ulasis.app.services.qr_codes import increment_scan
from ulasis.db.models import QRCode, Review

logger = get_logs_writer_logger()

FINGERPRINT_HEADERS = (
    "user-agent",
    "accept-language",
    "accept-encoding",
)
CLIENT_HINT_HEADERS = (
    "x-timezone",
    "sec-ch-ua-platform",
    "sec-ch-ua-mobile",
)


class QRCodeExpired(Exception):
    """The QR code exists but its `expires_at` has passed."""


def device_fingerprint(headers, client_ip: str | None) -> str:
    """SHA-256 over normalized request headers and the client address."""
    forwarded = headers.get("x-forwarded-for")
    ip = forwarded.split(",")[0] if forwarded else client_ip
    parts = [headers.get(h, "") for h in FINGERPRINT_HEADERS]
    parts.append(ip or "")
    parts.extend(headers.get(h, "") for h in CLIENT_HINT_HEADERS)
    raw = "|".join(p.strip().lower() for p in parts)
    return hashlib.sha256(raw.encode()).hexdigest()


@dataclass
class ScanResult:
    qr_code: QRCode
    is_unique: bool
    is_duplicate: bool

    def to_dict(self) -> dict:
        return {
            "qr_code_id": self.qr_code.qr_code_id,
            "questionnaire_id": self.qr_code.questionnaire_id,
            "scan_count": self.qr_code.scan_count,
            "unique_scans": self.qr_code.unique_scans,
            "is_unique": self.is_unique,
            "is_duplicate": self.is_duplicate,
        }


class ScanTracker:
    def __init__(self, window_seconds: int | None = None, retention_seconds: int = 24 * 60 * 60, clock=time.monotonic):
        self.window = settings.SCAN_DEDUP_WINDOW if window_seconds is None else window_seconds
        self.retention = max(retention_seconds, self.window)
        self.clock = clock
        self._recent: dict[tuple[int, str], float] = {}
        self._lock = threading.Lock()

    def _seen_recently(self, key: tuple[int, str], now: float) -> bool:
        last = self._recent.get(key)
        return last is not None and now - last < self.window

    def _seen_ever(self, key: tuple[int, str]) -> bool:
        return key in self._recent

    def track_scan(self, db: Session, qr_code_id: int, fingerprint: str) -> ScanResult:
        qr_code = db.get(QRCode, qr_code_id)
        if not qr_code or qr_code.is_deleted or not qr_code.is_active:
            raise LookupError("QR code not found or inactive")
        questionnaire = qr_code.questionnaire
        if questionnaire is None or questionnaire.is_deleted or not questionnaire.is_active:
            raise LookupError("Questionnaire not found or inactive")
        if qr_code.is_expired():
            raise QRCodeExpired("QR code has expired")

        key = (qr_code_id, fingerprint)
        now = self.clock()
        with self._lock:
            if self._seen_recently(key, now):
                logger.info("Duplicate scan of QR %s ignored", qr_code_id)
                return ScanResult(qr_code, is_unique=False, is_duplicate=True)
            cached = self._seen_ever(key)
            self._recent[key] = now

        answered = db.execute(
            select(Review.review_id)
            .where(Review.qr_code_id == qr_code_id, Review.device_fingerprint == fingerprint)
            .limit(1)
        ).first()
        is_unique = not answered and not cached

        increment_scan(db, qr_code, is_unique)
        logger.info("Scan of QR %s counted (unique=%s)", qr_code_id, is_unique)
        return ScanResult(qr_code, is_unique=is_unique, is_duplicate=False)

    def clean_cache(self) -> int:
        """Drop cache entries older than the retention period, returns how many were removed."""
        now = self.clock()
        with self._lock:
            stale = [key for key, seen in self._recent.items() if now - seen >= self.retention]
            for key in stale:
                del self._recent[key]
        return len(stale)


scan_tracker = ScanTracker()
