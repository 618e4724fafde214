"""Monthly usage counters for the plan limits on responses and exports.

Months are calendar months in UTC. Reviews count toward the questionnaire
owner's usage even after they are soft-deleted.
"""
# app/services/usage.py
from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ulasis.db import utcnow, to_utc
from ulasis.db.models import Review, ExportRecord, User
from ulasis.app.services import subscription
from ulasis.app.core.logging import get_logs_writer_logger

logger = get_logs_writer_logger()


def month_start(now: datetime | None = None) -> datetime:
    now = to_utc(now) or utcnow()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def responses_this_month(db: Session, user_id: int, now: datetime | None = None) -> int:
    return db.execute(
        select(func.count(Review.review_id))
        .where(Review.user_id == user_id, Review.created_at >= month_start(now))
    ).scalar_one()


def exports_this_month(db: Session, user_id: int, now: datetime | None = None) -> int:
    return db.execute(
        select(func.count(ExportRecord.export_id))
        .where(ExportRecord.user_id == user_id, ExportRecord.created_at >= month_start(now))
    ).scalar_one()


def ensure_response_quota(db: Session, owner: User) -> None:
    used = responses_this_month(db, owner.user_id)
    try:
        subscription.check_usage_limit(owner.subscription_plan, "responses", used)
    except PermissionError:
        logger.warning("User %s is over the monthly response limit (%d used)", owner.user_id, used)
        raise


def record_export(db: Session, user: User, format: str) -> ExportRecord:
    """Check the monthly export limit, then count this export."""
    subscription.check_usage_limit(user.subscription_plan, "exports", exports_this_month(db, user.user_id))
    record = ExportRecord(user_id=user.user_id, format=format)
    db.add(record)
    db.commit()
    return record


def usage_summary(db: Session, user: User) -> dict:
    limits = subscription.PLAN_LIMITS[subscription.normalize_plan(user.subscription_plan)]
    used = {
        "responses": responses_this_month(db, user.user_id),
        "exports": exports_this_month(db, user.user_id),
    }
    return {
        resource: {
            "used": count,
            "limit": None if subscription.is_unlimited(limits[resource]) else limits[resource],
        }
        for resource, count in used.items()
    }
