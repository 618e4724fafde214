"""QR code lifecycle: creation, scan counters, expiry and statistics."""
# app/services/qr_codes.py
from datetime import datetime

from sqlalchemy import select, update, func, or_, and_
from sqlalchemy.orm import Session

from ulasis.db import utcnow, as_utc, to_utc
from ulasis.db.models import QRCode, Questionnaire, Review
from ulasis.analytics.utils import round_half_up, round_half_up_to
from ulasis.app.services import qr_images
from ulasis.app.core.logging import get_logs_writer_logger

logger = get_logs_writer_logger()


def increment_scan(db: Session, qr_code: QRCode, is_unique: bool = False) -> QRCode:
    """Count one scan.

    Issued as a single UPDATE so concurrent scans of the same code do not
    overwrite each other's increments.
    """
    values = {"scan_count": QRCode.scan_count + 1, "last_scan_at": utcnow()}
    if is_unique:
        values["unique_scans"] = QRCode.unique_scans + 1
    db.execute(update(QRCode).where(QRCode.qr_code_id == qr_code.qr_code_id).values(**values))
    db.commit()
    db.refresh(qr_code)
    return qr_code


def cleanup_expired(db: Session, now: datetime | None = None) -> int:
    now = to_utc(now) or utcnow()
    result = db.execute(
        update(QRCode)
        .where(
            QRCode.is_active.is_(True),
            QRCode.not_deleted(),
            QRCode.expires_at.is_not(None),
            QRCode.expires_at < now,
        )
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    if result.rowcount:
        logger.info("Deactivated %d expired QR code(s)", result.rowcount)
    return result.rowcount


def _valid_clause(now: datetime):
    return and_(QRCode.is_active.is_(True), or_(QRCode.expires_at.is_(None), QRCode.expires_at > now))


def get_scan_statistics(db: Session, questionnaire_id: int | None = None, user_id: int | None = None) -> dict:
    conditions = [QRCode.not_deleted()]
    if questionnaire_id is not None:
        conditions.append(QRCode.questionnaire_id == questionnaire_id)
    if user_id is not None:
        conditions.append(QRCode.questionnaire_id.in_(
            select(Questionnaire.questionnaire_id).where(Questionnaire.user_id == user_id)
        ))

    total_scans, unique_scans, total_qrs = db.execute(
        select(
            func.coalesce(func.sum(QRCode.scan_count), 0),
            func.coalesce(func.sum(QRCode.unique_scans), 0),
            func.count(QRCode.qr_code_id),
        ).where(*conditions)
    ).one()
    active_qrs = db.execute(
        select(func.count(QRCode.qr_code_id)).where(*conditions, _valid_clause(utcnow()))
    ).scalar_one()

    return {
        "total_scans": int(total_scans),
        "unique_scans": int(unique_scans),
        "total_qr_codes": total_qrs,
        "active_qr_codes": active_qrs,
        "average_scans_per_qr": round_half_up(total_scans / total_qrs) if total_qrs else 0,
    }


def find_by_questionnaire(
    db: Session,
    questionnaire_id: int,
    include_inactive: bool = False,
    location_tag: str | None = None,
    only_valid: bool = False,
) -> list[QRCode]:
    conditions = [QRCode.questionnaire_id == questionnaire_id, QRCode.not_deleted()]
    if not include_inactive:
        conditions.append(QRCode.is_active.is_(True))
    if location_tag:
        conditions.append(QRCode.location_tag == location_tag)
    if only_valid:
        conditions.append(_valid_clause(utcnow()))
    return list(db.execute(
        select(QRCode).where(*conditions).order_by(QRCode.created_at.desc(), QRCode.qr_code_id.desc())
    ).scalars())


def find_by_location(db: Session, location_tag: str, include_inactive: bool = False, user_id: int | None = None) -> list[QRCode]:
    conditions = [QRCode.location_tag == location_tag, QRCode.not_deleted()]
    if not include_inactive:
        conditions.append(QRCode.is_active.is_(True))
    if user_id is not None:
        conditions.append(QRCode.questionnaire_id.in_(
            select(Questionnaire.questionnaire_id).where(Questionnaire.user_id == user_id)
        ))
    return list(db.execute(
        select(QRCode).where(*conditions).order_by(QRCode.created_at.desc(), QRCode.qr_code_id.desc())
    ).scalars())


def list_for_user(db: Session, user_id: int, include_inactive: bool = False) -> list[QRCode]:
    conditions = [
        QRCode.not_deleted(),
        QRCode.questionnaire_id.in_(select(Questionnaire.questionnaire_id).where(Questionnaire.user_id == user_id)),
    ]
    if not include_inactive:
        conditions.append(QRCode.is_active.is_(True))
    return list(db.execute(
        select(QRCode).where(*conditions).order_by(QRCode.created_at.desc(), QRCode.qr_code_id.desc())
    ).scalars())


def _owned_by(user_id: int):
    return QRCode.questionnaire_id.in_(
        select(Questionnaire.questionnaire_id).where(Questionnaire.user_id == user_id, Questionnaire.not_deleted())
    )


def _review_window(date_from: datetime | None, date_to: datetime | None) -> list:
    conditions = [Review.not_deleted()]
    if date_from is not None:
        conditions.append(Review.created_at >= to_utc(date_from))
    if date_to is not None:
        conditions.append(Review.created_at <= to_utc(date_to))
    return conditions


def _conversion_rate(responses: int, scans: int) -> float:
    """Responses per hundred scans, two decimals."""
    return round_half_up_to(responses / scans * 100, 2) if scans else 0


def get_response_stats(
    db: Session, qr_code_id: int, date_from: datetime | None = None, date_to: datetime | None = None
) -> dict:
    """Reviews left through one QR code, with an hour-of-day histogram (UTC)."""
    rows = db.execute(
        select(Review.created_at, Review.rating)
        .where(Review.qr_code_id == qr_code_id, *_review_window(date_from, date_to))
    ).all()
    by_hour = [0] * 24
    for created_at, _ in rows:
        by_hour[as_utc(created_at).hour] += 1
    ratings = [rating for _, rating in rows]
    return {
        "total_responses": len(rows),
        "average_rating": round_half_up_to(sum(ratings) / len(ratings), 1) if ratings else 0,
        "responses_by_hour": [{"hour": hour, "count": count} for hour, count in enumerate(by_hour)],
    }


def get_location_performance(
    db: Session,
    location_tag: str,
    user_id: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> dict | None:
    """Scans and responses summed over every code tagged `location_tag`.

    Returns None when no code carries the tag.
    """
    conditions = [QRCode.location_tag == location_tag, QRCode.not_deleted()]
    if user_id is not None:
        conditions.append(_owned_by(user_id))
    codes = db.execute(select(QRCode.qr_code_id, QRCode.scan_count, QRCode.unique_scans).where(*conditions)).all()
    if not codes:
        return None

    total_scans = sum(row.scan_count for row in codes)
    total_responses = db.execute(
        select(func.count(Review.review_id))
        .where(Review.qr_code_id.in_([row.qr_code_id for row in codes]), *_review_window(date_from, date_to))
    ).scalar_one()
    return {
        "location_tag": location_tag,
        "qr_code_count": len(codes),
        "total_scans": total_scans,
        "total_unique_scans": sum(row.unique_scans for row in codes),
        "total_responses": total_responses,
        "conversion_rate": _conversion_rate(total_responses, total_scans),
        "average_scans_per_qr": round_half_up(total_scans / len(codes)),
    }


def get_top_locations(
    db: Session,
    user_id: int | None = None,
    limit: int = 10,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> list[dict]:
    """Location performance for every tag, busiest (by total scans) first."""
    if limit < 1:
        raise ValueError("limit must be positive")
    conditions = [QRCode.location_tag.is_not(None), QRCode.not_deleted()]
    if user_id is not None:
        conditions.append(_owned_by(user_id))
    tags = db.execute(select(QRCode.location_tag).where(*conditions).distinct()).scalars().all()
    performance = [
        get_location_performance(db, tag, user_id=user_id, date_from=date_from, date_to=date_to)
        for tag in tags
    ]
    performance.sort(key=lambda item: (-item["total_scans"], item["location_tag"]))
    return performance[:limit]


def get_scan_analytics(
    db: Session, qr_code: QRCode, date_from: datetime | None = None, date_to: datetime | None = None
) -> dict:
    response_stats = get_response_stats(db, qr_code.qr_code_id, date_from, date_to)
    location = None
    if qr_code.location_tag:
        location = get_location_performance(
            db, qr_code.location_tag, user_id=qr_code.questionnaire.user_id, date_from=date_from, date_to=date_to
        )
    return {
        "qr_code": {
            "id": qr_code.qr_code_id,
            "location_tag": qr_code.location_tag,
            "scan_count": qr_code.scan_count,
            "unique_scans": qr_code.unique_scans,
            "last_scan_at": qr_code.last_scan_at,
            "created_at": qr_code.created_at,
        },
        "questionnaire": {
            "id": qr_code.questionnaire.questionnaire_id,
            "title": qr_code.questionnaire.title,
        },
        "analytics": {
            "response_stats": response_stats,
            "location_performance": location,
            "conversion_rate": _conversion_rate(response_stats["total_responses"], qr_code.scan_count),
        },
    }


def get_owned(db: Session, user_id: int, qr_code_id: int) -> QRCode:
    qr_code = db.get(QRCode, qr_code_id)
    if not qr_code or qr_code.is_deleted:
        raise LookupError("QR code not found")
    questionnaire = qr_code.questionnaire
    if questionnaire is None or questionnaire.is_deleted or questionnaire.user_id != user_id:
        raise LookupError("QR code not found")
    return qr_code


def create_qr_code(db: Session, questionnaire: Questionnaire, options: dict) -> QRCode:
    """Render the image for `questionnaire` and store a new QR code row."""
    errors = qr_images.validate_options(options)
    if errors:
        raise ValueError("; ".join(errors))

    generated = qr_images.generate_qr_code(questionnaire.questionnaire_id, options)
    qr_code = QRCode(
        questionnaire_id=questionnaire.questionnaire_id,
        qr_code_data=generated["data"],
        qr_code_image=generated["image_path"],
        location_tag=options.get("location_tag"),
        logo_url=options.get("logo_url"),
        custom_colors=options.get("custom_colors"),
        size=options.get("size"),
        error_correction_level=options.get("error_correction_level"),
        expires_at=options.get("expires_at"),
        settings=options.get("settings") or {},
    )
    db.add(qr_code)
    db.commit()
    db.refresh(qr_code)
    logger.info("Created QR code %s for questionnaire %s", qr_code.qr_code_id, questionnaire.questionnaire_id)
    return qr_code


# changing any of these means the stored image no longer matches the row
_IMAGE_FIELDS = ("size", "error_correction_level", "custom_colors")


def update_qr_code(db: Session, qr_code: QRCode, changes: dict) -> QRCode:
    merged = {
        "size": qr_code.size,
        "error_correction_level": qr_code.error_correction_level,
        "custom_colors": qr_code.custom_colors,
    } | {k: v for k, v in changes.items() if k in _IMAGE_FIELDS}
    errors = qr_images.validate_options(merged)
    if errors:
        raise ValueError("; ".join(errors))

    for field, value in changes.items():
        setattr(qr_code, field, value)

    if any(field in changes for field in _IMAGE_FIELDS):
        old_image = qr_code.qr_code_image
        generated = qr_images.generate_qr_code(qr_code.questionnaire_id, merged, data=qr_code.qr_code_data)
        qr_code.qr_code_image = generated["image_path"]
        qr_images.delete_qr_code_image(old_image)

    db.commit()
    db.refresh(qr_code)
    return qr_code


def delete_qr_code(db: Session, qr_code: QRCode) -> None:
    qr_code.soft_delete()
    qr_code.is_active = False
    db.commit()
    qr_images.delete_qr_code_image(qr_code.qr_code_image)


def cleanup_orphaned_images(db: Session) -> int:
    paths = db.execute(
        select(QRCode.qr_code_image).where(QRCode.not_deleted(), QRCode.qr_code_image.is_not(None))
    ).scalars().all()
    return qr_images.cleanup_orphaned_images(set(paths))


def create_batch(db: Session, questionnaire: Questionnaire, locations: list[str], options: dict) -> list[dict]:
    """One QR code per location tag; failed locations are reported, not raised."""
    results = qr_images.batch_generate_qr_codes(questionnaire.questionnaire_id, locations, options)
    created = []
    for result in results:
        if not result["success"]:
            created.append({"location_tag": result["location_tag"], "success": False, "error": result["error"]})
            continue
        qr_code = QRCode(
            questionnaire_id=questionnaire.questionnaire_id,
            qr_code_data=result["data"],
            qr_code_image=result["image_path"],
            location_tag=result["location_tag"],
            custom_colors=options.get("custom_colors"),
            size=options.get("size"),
            error_correction_level=options.get("error_correction_level"),
            expires_at=options.get("expires_at"),
        )
        db.add(qr_code)
        created.append({"location_tag": result["location_tag"], "success": True, "qr_code": qr_code})
    db.commit()
    for item in created:
        if item["success"]:
            db.refresh(item["qr_code"])
    return created


def attach_logo(db: Session, qr_code: QRCode, content: bytes) -> QRCode:
    logo_path = qr_images.save_logo(content, qr_code.qr_code_id)
    old_logo, old_image = qr_code.logo_url, qr_code.qr_code_image
    options = {
        "size": qr_code.size,
        "error_correction_level": qr_code.error_correction_level,
        "custom_colors": qr_code.custom_colors,
    }
    generated = qr_images.generate_qr_code_with_logo(qr_code.questionnaire_id, logo_path, options, data=qr_code.qr_code_data)
    qr_code.logo_url = logo_path
    qr_code.qr_code_image = generated["image_path"]
    db.commit()
    db.refresh(qr_code)
    qr_images.delete_qr_code_image(old_image)
    qr_images.delete_qr_code_image(old_logo)
    return qr_code


def remove_logo(db: Session, qr_code: QRCode) -> QRCode:
    if not qr_code.logo_url:
        return qr_code
    old_logo, old_image = qr_code.logo_url, qr_code.qr_code_image
    options = {
        "size": qr_code.size,
        "error_correction_level": qr_code.error_correction_level,
        "custom_colors": qr_code.custom_colors,
    }
    generated = qr_images.generate_qr_code(qr_code.questionnaire_id, options, data=qr_code.qr_code_data)
    qr_code.logo_url = None
    qr_code.qr_code_image = generated["image_path"]
    db.commit()
    db.refresh(qr_code)
    qr_images.delete_qr_code_image(old_image)
    qr_images.delete_qr_code_image(old_logo)
    return qr_code
