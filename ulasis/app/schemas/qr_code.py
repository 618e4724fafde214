"""Pydantic schemes for QR codes and scan statistics.
"""
# app/schemas/qr_code.py
from pydantic import BaseModel, Field
from typing import Optional, Any
from datetime import datetime
from ulasis.db.models import ErrorCorrectionLevel

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class CustomColors(BaseModel):
    foreground: Optional[str] = Field(None, pattern=HEX_COLOR)
    background: Optional[str] = Field(None, pattern=HEX_COLOR)


class QRCodeOptions(BaseModel):
    size: Optional[int] = Field(None, ge=50, le=1000)
    error_correction_level: Optional[ErrorCorrectionLevel] = None
    custom_colors: Optional[CustomColors] = None
    expires_at: Optional[datetime] = None


class QRCodeCreate(QRCodeOptions):
    questionnaire_id: int
    location_tag: Optional[str] = Field(None, max_length=255)
    settings: Optional[dict[str, Any]] = None


class QRCodeBatchCreate(QRCodeOptions):
    questionnaire_id: int
    locations: list[str] = Field(min_length=1, max_length=50)


class QRCodeUpdate(BaseModel):
    location_tag: str | None = Field(None, max_length=255)
    size: int | None = Field(None, ge=50, le=1000)
    error_correction_level: ErrorCorrectionLevel | None = None
    custom_colors: CustomColors | None = None
    is_active: bool | None = None
    expires_at: datetime | None = None
    settings: dict[str, Any] | None = None


class QRCodeOut(BaseModel):
    id: int
    questionnaire_id: int
    qr_code_data: str
    qr_code_image: str | None = None
    location_tag: str | None = None
    logo_url: str | None = None
    custom_colors: dict[str, Any] | None = None
    size: int
    error_correction_level: str
    scan_count: int
    unique_scans: int
    last_scan_at: datetime | None = None
    is_active: bool
    is_expired: bool
    expires_at: datetime | None = None
    created_at: datetime | None = None


class BatchItemOut(BaseModel):
    location_tag: str
    success: bool
    qr_code: QRCodeOut | None = None
    error: str | None = None


class ScanStatisticsOut(BaseModel):
    total_scans: int
    unique_scans: int
    total_qr_codes: int
    active_qr_codes: int
    average_scans_per_qr: int


class ScanOut(BaseModel):
    qr_code_id: int
    questionnaire_id: int
    scan_count: int
    unique_scans: int
    is_unique: bool
    is_duplicate: bool
