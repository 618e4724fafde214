# db/models/qr_code.py
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from sqlalchemy import String, Text, Boolean, Integer, DateTime, JSON, ForeignKey, Index
from ulasis.db import Base, utcnow, as_utc, to_utc
from ulasis.db.mixins import TimestampMixin, SoftDeleteMixin
import enum


class ErrorCorrectionLevel(str, enum.Enum):
    L = "L"
    M = "M"
    Q = "Q"
    H = "H"


MIN_SIZE = 50
MAX_SIZE = 1000
DEFAULT_SIZE = 200


class QRCode(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "qr_codes"

    qr_code_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    questionnaire_id: Mapped[int] = mapped_column(Integer, ForeignKey("questionnaires.questionnaire_id"), nullable=False, index=True)
    qr_code_data: Mapped[str] = mapped_column(Text, nullable=False)
    qr_code_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    location_tag: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    logo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    custom_colors: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    size: Mapped[int] = mapped_column(Integer, default=DEFAULT_SIZE, nullable=False)
    error_correction_level: Mapped[str] = mapped_column(String(1), default=ErrorCorrectionLevel.M.value, nullable=False)
    scan_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unique_scans: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_scan_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    settings: Mapped[dict | None] = mapped_column(JSON, default=dict, nullable=True)

    questionnaire = relationship("Questionnaire", back_populates="qr_codes")
    reviews = relationship("Review", back_populates="qr_code")

    __table_args__ = (
        Index("idx_qr_codes_questionnaire_active", "questionnaire_id", "is_active", "deleted_at"),
        Index("idx_qr_codes_expires", "expires_at"),
    )

    @validates("size")
    def _validate_size(self, key, value):
        if value is None:
            return DEFAULT_SIZE
        if not MIN_SIZE <= int(value) <= MAX_SIZE:
            raise ValueError(f"size must be between {MIN_SIZE} and {MAX_SIZE}")
        return int(value)

    @validates("error_correction_level")
    def _validate_ecl(self, key, value):
        if value is None:
            return ErrorCorrectionLevel.M.value
        value = ErrorCorrectionLevel(getattr(value, "value", value)).value
        return value

    @validates("location_tag")
    def _validate_location_tag(self, key, value):
        if value is not None and len(value) > 255:
            raise ValueError("location_tag must be at most 255 characters")
        return value

    @validates("expires_at")
    def _validate_expires_at(self, key, value):
        # the column keeps wall-clock time only, so the offset has to be folded in here
        return to_utc(value)

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return as_utc(self.expires_at) < (to_utc(now) or utcnow())

    def is_valid(self, now: datetime | None = None) -> bool:
        return bool(self.is_active) and self.deleted_at is None and not self.is_expired(now)

    def to_summary(self) -> dict:
        return {
            "id": self.qr_code_id,
            "questionnaire_id": self.questionnaire_id,
            "qr_code_data": self.qr_code_data,
            "qr_code_image": self.qr_code_image,
            "location_tag": self.location_tag,
            "logo_url": self.logo_url,
            "custom_colors": self.custom_colors,
            "size": self.size,
            "error_correction_level": self.error_correction_level,
            "scan_count": self.scan_count,
            "unique_scans": self.unique_scans,
            "last_scan_at": self.last_scan_at,
            "is_active": self.is_active,
            "is_expired": self.is_expired(),
            "expires_at": self.expires_at,
            "created_at": self.created_at,
        }
