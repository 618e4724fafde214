"""Questionnaire CRUD for the dashboard.

Listing is paginated and filterable; creation is refused once the plan's
questionnaire quota is used up.
"""
# app/routers/questionnaires.py
from datetime import datetime
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ulasis.app.core.config import settings
from ulasis.app.core.errors import service_errors
from ulasis.app.core.security import get_current_user
from ulasis.app.services import questionnaires as service
from ulasis.app.services.qr_codes import get_scan_statistics
from ulasis.app.schemas.questionnaire import (
    QuestionnaireCreate, QuestionnaireUpdate, QuestionnaireDetailOut,
    QuestionnairePage, QuotaOut, QuestionIn, QuestionOut,
)
from ulasis.db.session import get_db
from ulasis.db.models import User

router = APIRouter(prefix=f"{settings.API_PREFIX}/questionnaires", tags=["questionnaires"])


def _detail(questionnaire) -> dict:
    return questionnaire.to_summary() | {
        "welcome_message": questionnaire.welcome_message,
        "thank_you_message": questionnaire.thank_you_message,
        "questions": [QuestionOut.model_validate(q) for q in questionnaire.questions if q.is_active],
    }


@router.get("", response_model=QuestionnairePage)
async def list_questionnaires(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    include_inactive: bool = False,
    category: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return service.find_by_user_paginated(
        db, user.user_id,
        page=page, limit=limit,
        include_inactive=include_inactive,
        category=category,
        date_from=date_from, date_to=date_to,
    )


@router.get("/quota", response_model=QuotaOut)
async def get_quota(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return service.check_user_quota(db, user.user_id, user.subscription_plan)


@router.post("", response_model=QuestionnaireDetailOut, status_code=status.HTTP_201_CREATED)
async def create_questionnaire(
    payload: QuestionnaireCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a questionnaire with its questions.

    Errors:
        403: The plan's questionnaire limit is reached.
        400: A choice question without options.
    """
    data = payload.model_dump(exclude={"questions"})
    questions = [q.model_dump() for q in payload.questions]
    with service_errors():
        questionnaire = service.create_questionnaire(db, user, data, questions)
    return _detail(questionnaire)


@router.get("/{questionnaire_id}", response_model=QuestionnaireDetailOut)
async def get_questionnaire(questionnaire_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with service_errors():
        questionnaire = service.get_owned(db, user.user_id, questionnaire_id)
    return _detail(questionnaire)


@router.put("/{questionnaire_id}", response_model=QuestionnaireDetailOut)
async def update_questionnaire(
    questionnaire_id: int,
    payload: QuestionnaireUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with service_errors():
        questionnaire = service.get_owned(db, user.user_id, questionnaire_id)
        questionnaire = service.update_questionnaire(db, questionnaire, payload.model_dump(exclude_unset=True))
    return _detail(questionnaire)


@router.delete("/{questionnaire_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_questionnaire(questionnaire_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with service_errors():
        questionnaire = service.get_owned(db, user.user_id, questionnaire_id)
    service.delete_questionnaire(db, questionnaire)


@router.post("/{questionnaire_id}/questions", response_model=QuestionOut, status_code=status.HTTP_201_CREATED)
async def add_question(
    questionnaire_id: int,
    payload: QuestionIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with service_errors():
        questionnaire = service.get_owned(db, user.user_id, questionnaire_id)
        return service.add_question(db, questionnaire, payload.model_dump())


@router.get("/{questionnaire_id}/statistics")
async def questionnaire_statistics(questionnaire_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Review counts, average rating and scan totals of one questionnaire."""
    with service_errors():
        questionnaire = service.get_owned(db, user.user_id, questionnaire_id)
    stats = service.questionnaire_statistics(db, questionnaire)
    stats["scans"] = get_scan_statistics(db, questionnaire_id=questionnaire_id)
    return stats
