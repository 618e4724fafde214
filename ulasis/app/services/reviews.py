"""Review intake, listing and status changes."""
# app/services/reviews.py
import math
from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ulasis.db import utcnow, to_utc
from ulasis.db.models import Review, ReviewStatus, Sentiment, Questionnaire, QRCode
from ulasis.app.services import usage
from ulasis.app.core.logging import get_logs_writer_logger

logger = get_logs_writer_logger()


def review_to_dict(review: Review) -> dict:
    return {
        "id": review.review_id,
        "questionnaire_id": review.questionnaire_id,
        "qr_code_id": review.qr_code_id,
        "rating": review.rating,
        "comment": review.comment,
        "sentiment": review.sentiment.value,
        "topics": review.topics or [],
        "tags": review.tags or [],
        "status": review.status.value,
        "source": review.source,
        "customer_name": review.customer_name,
        "created_at": review.created_at,
    }


def get_public_questionnaire(db: Session, questionnaire_id: int) -> Questionnaire:
    questionnaire = db.get(Questionnaire, questionnaire_id)
    if not questionnaire or questionnaire.is_deleted or not questionnaire.is_active:
        raise LookupError("Questionnaire not found")
    return questionnaire


async def submit_review(
    db: Session,
    questionnaire_id: int,
    data: dict,
    classifier,
    fingerprint: str | None = None,
) -> Review:
    """Store a customer review for an active questionnaire.

    Sentiment and topics come from `classifier`. The questionnaire's
    `response_count` is bumped afterwards in its own statement, so the two
    writes are not atomic.
    """
    questionnaire = get_public_questionnaire(db, questionnaire_id)
    usage.ensure_response_quota(db, questionnaire.user)

    qr_code_id = data.get("qr_code_id")
    source = data.get("source") or "web"
    if qr_code_id is not None:
        qr_code = db.get(QRCode, qr_code_id)
        if not qr_code or qr_code.is_deleted or qr_code.questionnaire_id != questionnaire_id:
            raise ValueError("QR code does not belong to this questionnaire")
        source = data.get("source") or "qr_scan"

    labels = await classifier.classify(data.get("comment"), data["rating"])
    review = Review(
        user_id=questionnaire.user_id,
        questionnaire_id=questionnaire_id,
        qr_code_id=qr_code_id,
        rating=data["rating"],
        comment=data.get("comment"),
        customer_name=data.get("customer_name"),
        answers=data.get("answers"),
        sentiment=Sentiment(labels.sentiment),
        topics=list(labels.topics),
        tags=list(labels.topics[:1]),
        source=source,
        device_fingerprint=fingerprint,
    )
    db.add(review)
    db.commit()
    db.refresh(review)

    questionnaire.response_count = Questionnaire.response_count + 1
    questionnaire.last_response_at = utcnow()
    db.commit()

    logger.info("Review %s stored for questionnaire %s (%s)", review.review_id, questionnaire_id, review.sentiment.value)
    return review


def list_reviews(
    db: Session,
    user_id: int,
    page: int = 1,
    limit: int = 20,
    status: ReviewStatus | None = None,
    sentiment: str | None = None,
    source: str | None = None,
    questionnaire_id: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> dict:
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be positive")
    conditions = [Review.user_id == user_id, Review.not_deleted()]
    if status is not None:
        conditions.append(Review.status == status)
    if sentiment is not None:
        conditions.append(Review.sentiment == sentiment)
    if source is not None:
        conditions.append(Review.source == source)
    if questionnaire_id is not None:
        conditions.append(Review.questionnaire_id == questionnaire_id)
    if date_from is not None:
        conditions.append(Review.created_at >= to_utc(date_from))
    if date_to is not None:
        conditions.append(Review.created_at <= to_utc(date_to))

    total = db.execute(select(func.count()).select_from(Review).where(*conditions)).scalar_one()
    rows = db.execute(
        select(Review)
        .where(*conditions)
        .order_by(Review.created_at.desc(), Review.review_id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()
    return {
        "reviews": [review_to_dict(r) for r in rows],
        "pagination": {"page": page, "limit": limit, "total": total, "total_pages": math.ceil(total / limit)},
    }


def all_review_dicts(db: Session, user_id: int) -> list[dict]:
    rows = db.execute(
        select(Review).where(Review.user_id == user_id, Review.not_deleted())
    ).scalars().all()
    return [review_to_dict(r) for r in rows]


def update_review(db: Session, user_id: int, review_id: int, changes: dict) -> Review:
    review = db.get(Review, review_id)
    if not review or review.is_deleted or review.user_id != user_id:
        raise LookupError("Review not found")
    for field, value in changes.items():
        setattr(review, field, value)
    db.commit()
    db.refresh(review)
    return review
