"""Questionnaire queries: pagination, quota checks and ownership lookups."""
# app/services/questionnaires.py
import json
import math
from datetime import datetime

from sqlalchemy import select, func, String, cast
from sqlalchemy.orm import Session

from ulasis.db import utcnow, to_utc
from ulasis.db.models import Questionnaire, Question, QuestionType, QRCode, Review, CHOICE_TYPES
from ulasis.app.services.subscription import normalize_plan
from ulasis.analytics.utils import round_half_up_to

# questionnaires a plan may create, None is unlimited
QUOTA_LIMITS = {"free": 1, "starter": 5, "business": None, "admin": None}


def find_by_user_paginated(
    db: Session,
    user_id: int,
    page: int = 1,
    limit: int = 10,
    include_inactive: bool = False,
    category: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> dict:
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be positive")

    conditions = [Questionnaire.user_id == user_id, Questionnaire.not_deleted()]
    if not include_inactive:
        conditions.append(Questionnaire.is_active.is_(True))
    if category:
        # substring match on the serialized mapping, not a structured query;
        # autoescape keeps % and _ in the category literal
        conditions.append(cast(Questionnaire.category_mapping, String).contains(json.dumps(category), autoescape=True))
    if date_from is not None:
        conditions.append(Questionnaire.created_at >= to_utc(date_from))
    if date_to is not None:
        conditions.append(Questionnaire.created_at <= to_utc(date_to))

    total = db.execute(select(func.count()).select_from(Questionnaire).where(*conditions)).scalar_one()
    rows = db.execute(
        select(Questionnaire)
        .where(*conditions)
        .order_by(Questionnaire.created_at.desc(), Questionnaire.questionnaire_id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()

    return {
        "questionnaires": [q.to_summary() for q in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    }


def check_user_quota(db: Session, user_id: int, plan="free") -> dict:
    plan = normalize_plan(plan)
    limit = QUOTA_LIMITS.get(plan, QUOTA_LIMITS["free"])
    if limit is None:
        return {"can_create": True, "used": 0, "limit": "unlimited", "plan": plan}

    # soft-deleted rows still count against the quota
    used = db.execute(
        select(func.count()).select_from(Questionnaire).where(Questionnaire.user_id == user_id)
    ).scalar_one()
    return {"can_create": used < limit, "used": used, "limit": limit, "plan": plan}


def get_owned(db: Session, user_id: int, questionnaire_id: int) -> Questionnaire:
    questionnaire = db.get(Questionnaire, questionnaire_id)
    if not questionnaire or questionnaire.is_deleted or questionnaire.user_id != user_id:
        raise LookupError("Questionnaire not found")
    return questionnaire


def create_questionnaire(db: Session, user, data: dict, questions: list[dict] | None = None) -> Questionnaire:
    quota = check_user_quota(db, user.user_id, user.subscription_plan)
    if not quota["can_create"]:
        raise PermissionError(
            f"Questionnaire limit reached for the {quota['plan']} plan ({quota['used']}/{quota['limit']})"
        )
    questionnaire = Questionnaire(user_id=user.user_id, **data)
    db.add(questionnaire)
    for index, q in enumerate(questions or []):
        questionnaire.questions.append(build_question(q, default_order=index))
    db.commit()
    db.refresh(questionnaire)
    return questionnaire


def build_question(data: dict, default_order: int = 0) -> Question:
    data = dict(data)
    data["question_type"] = QuestionType(data["question_type"])
    if data["question_type"] in CHOICE_TYPES and not data.get("options"):
        raise ValueError(f"{data['question_type'].value} questions need at least one option")
    if data.get("order_index") is None:
        data["order_index"] = default_order
    return Question(**data)


def add_question(db: Session, questionnaire: Questionnaire, data: dict) -> Question:
    question = build_question(data, default_order=len(questionnaire.questions))
    questionnaire.questions.append(question)
    db.commit()
    db.refresh(question)
    return question


def update_questionnaire(db: Session, questionnaire: Questionnaire, changes: dict) -> Questionnaire:
    for field, value in changes.items():
        setattr(questionnaire, field, value)
    db.commit()
    db.refresh(questionnaire)
    return questionnaire


def delete_questionnaire(db: Session, questionnaire: Questionnaire) -> None:
    questionnaire.soft_delete()
    questionnaire.is_active = False
    db.commit()


def questionnaire_statistics(db: Session, questionnaire: Questionnaire) -> dict:
    qid = questionnaire.questionnaire_id
    reviews = db.execute(
        select(func.count(Review.review_id), func.avg(Review.rating))
        .where(Review.questionnaire_id == qid, Review.not_deleted())
    ).one()
    by_sentiment = dict(db.execute(
        select(Review.sentiment, func.count())
        .where(Review.questionnaire_id == qid, Review.not_deleted())
        .group_by(Review.sentiment)
    ).all())
    qr_codes = db.execute(
        select(func.count(QRCode.qr_code_id), func.coalesce(func.sum(QRCode.scan_count), 0))
        .where(QRCode.questionnaire_id == qid, QRCode.not_deleted())
    ).one()
    return {
        "questionnaire_id": qid,
        "response_count": questionnaire.response_count,
        "review_count": reviews[0],
        "average_rating": round_half_up_to(float(reviews[1]), 1) if reviews[1] is not None else 0,
        "sentiment_counts": {s.value: n for s, n in by_sentiment.items()},
        "qr_code_count": qr_codes[0],
        "total_scans": int(qr_codes[1]),
        "last_response_at": questionnaire.last_response_at,
        "generated_at": utcnow(),
    }
