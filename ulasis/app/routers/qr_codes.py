"""QR code management and scan tracking.

Everything except `POST /{qr_code_id}/scan` requires the owner's bearer
token; the scan endpoint is hit by customers' phones.
"""
# app/routers/qr_codes.py
import os
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, Request, UploadFile, File, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from ulasis.app.core.config import settings
from ulasis.app.core.errors import service_errors
from ulasis.app.core.security import get_current_user
from ulasis.app.services import qr_codes as service
from ulasis.app.services.questionnaires import get_owned as get_owned_questionnaire
from ulasis.app.services.scan_tracking import scan_tracker, device_fingerprint
from ulasis.app.schemas.qr_code import (
    QRCodeCreate, QRCodeBatchCreate, QRCodeUpdate, QRCodeOut, BatchItemOut, ScanStatisticsOut, ScanOut,
)
from ulasis.db.session import get_db
from ulasis.db.models import User

router = APIRouter(prefix=f"{settings.API_PREFIX}/qr-codes", tags=["qr-codes"])

MAX_LOGO_BYTES = 2 * 1024 * 1024


@router.get("", response_model=list[QRCodeOut])
async def list_qr_codes(
    questionnaire_id: int | None = None,
    location_tag: str | None = None,
    include_inactive: bool = False,
    only_valid: bool = False,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if questionnaire_id is not None:
        with service_errors():
            get_owned_questionnaire(db, user.user_id, questionnaire_id)
        rows = service.find_by_questionnaire(
            db, questionnaire_id,
            include_inactive=include_inactive, location_tag=location_tag, only_valid=only_valid,
        )
    elif location_tag:
        rows = service.find_by_location(db, location_tag, include_inactive=include_inactive, user_id=user.user_id)
    else:
        rows = service.list_for_user(db, user.user_id, include_inactive=include_inactive)
    return [qr.to_summary() for qr in rows]


@router.post("", response_model=QRCodeOut, status_code=status.HTTP_201_CREATED)
async def create_qr_code(payload: QRCodeCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Generate a QR code image for one of the user's questionnaires.

    Errors:
        404: The questionnaire does not exist or belongs to someone else.
        400: Invalid size, error-correction level or colors.
    """
    with service_errors():
        questionnaire = get_owned_questionnaire(db, user.user_id, payload.questionnaire_id)
        qr_code = service.create_qr_code(db, questionnaire, payload.model_dump(exclude={"questionnaire_id"}, mode="json") | {
            "expires_at": payload.expires_at,
        })
    return qr_code.to_summary()


@router.post("/batch", response_model=list[BatchItemOut], status_code=status.HTTP_201_CREATED)
async def create_qr_codes_batch(payload: QRCodeBatchCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """One QR code per location; failures are reported per location."""
    options = payload.model_dump(exclude={"questionnaire_id", "locations"}, mode="json") | {"expires_at": payload.expires_at}
    with service_errors():
        questionnaire = get_owned_questionnaire(db, user.user_id, payload.questionnaire_id)
        results = service.create_batch(db, questionnaire, payload.locations, options)
    return [
        item | {"qr_code": item["qr_code"].to_summary()} if item["success"] else item
        for item in results
    ]


@router.get("/statistics", response_model=ScanStatisticsOut)
async def scan_statistics(
    questionnaire_id: int | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if questionnaire_id is not None:
        with service_errors():
            get_owned_questionnaire(db, user.user_id, questionnaire_id)
    return service.get_scan_statistics(db, questionnaire_id=questionnaire_id, user_id=user.user_id)


@router.get("/locations/top")
async def top_locations(
    limit: int = Query(10, ge=1, le=100),
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The user's location tags, most scanned first."""
    return service.get_top_locations(db, user_id=user.user_id, limit=limit, date_from=date_from, date_to=date_to)


@router.get("/locations/{location_tag:path}")
async def location_performance(
    location_tag: str,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Scans, responses and conversion rate for one location tag.

    Errors:
        404: None of the user's QR codes carries the tag.
    """
    performance = service.get_location_performance(
        db, location_tag, user_id=user.user_id, date_from=date_from, date_to=date_to,
    )
    if performance is None:
        raise HTTPException(status_code=404, detail="Location not found")
    return performance


@router.get("/{qr_code_id}", response_model=QRCodeOut)
async def get_qr_code(qr_code_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with service_errors():
        return service.get_owned(db, user.user_id, qr_code_id).to_summary()


@router.get("/{qr_code_id}/analytics")
async def qr_code_analytics(
    qr_code_id: int,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with service_errors():
        qr_code = service.get_owned(db, user.user_id, qr_code_id)
    return service.get_scan_analytics(db, qr_code, date_from=date_from, date_to=date_to)


@router.get("/{qr_code_id}/image")
async def get_qr_code_image(qr_code_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with service_errors():
        qr_code = service.get_owned(db, user.user_id, qr_code_id)
    if not qr_code.qr_code_image or not os.path.isfile(qr_code.qr_code_image):
        raise HTTPException(status_code=404, detail="QR image not found")
    return FileResponse(qr_code.qr_code_image, media_type="image/png", filename=os.path.basename(qr_code.qr_code_image))


@router.put("/{qr_code_id}", response_model=QRCodeOut)
async def update_qr_code(
    qr_code_id: int,
    payload: QRCodeUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True, mode="json")
    if "expires_at" in changes:
        changes["expires_at"] = payload.expires_at
    with service_errors():
        qr_code = service.get_owned(db, user.user_id, qr_code_id)
        qr_code = service.update_qr_code(db, qr_code, changes)
    return qr_code.to_summary()


@router.delete("/{qr_code_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_qr_code(qr_code_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with service_errors():
        qr_code = service.get_owned(db, user.user_id, qr_code_id)
    service.delete_qr_code(db, qr_code)


@router.post("/{qr_code_id}/scan", response_model=ScanOut)
async def track_scan(qr_code_id: int, request: Request, db: Session = Depends(get_db)):
    """Record a scan from a customer's device.

    Errors:
        404: Unknown, deleted or deactivated QR code.
        410: The QR code has expired.
    """
    fingerprint = device_fingerprint(request.headers, request.client.host if request.client else None)
    with service_errors():
        result = scan_tracker.track_scan(db, qr_code_id, fingerprint)
    return result.to_dict()


@router.post("/{qr_code_id}/logo", response_model=QRCodeOut)
async def upload_logo(
    qr_code_id: int,
    logo: UploadFile = File(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Overlay an uploaded logo in the middle of the QR image.

    Errors:
        400: Not an image.
        413: Larger than 2 MB.
    """
    content = await logo.read()
    if len(content) > MAX_LOGO_BYTES:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="Logo must be at most 2 MB")
    with service_errors():
        qr_code = service.get_owned(db, user.user_id, qr_code_id)
        qr_code = service.attach_logo(db, qr_code, content)
    return qr_code.to_summary()


@router.delete("/{qr_code_id}/logo", response_model=QRCodeOut)
async def delete_logo(qr_code_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with service_errors():
        qr_code = service.get_owned(db, user.user_id, qr_code_id)
        qr_code = service.remove_logo(db, qr_code)
    return qr_code.to_summary()
