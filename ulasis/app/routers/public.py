"""Customer-facing endpoints: the QR landing page and review submission.

No authentication; a questionnaire is reachable as long as it is active.
"""
# app/routers/public.py
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from ulasis.analytics.classifier import get_classifier
from ulasis.app.core.config import settings
from ulasis.app.core.errors import service_errors
from ulasis.app.services import reviews as review_service
from ulasis.app.services.scan_tracking import scan_tracker, device_fingerprint, QRCodeExpired
from ulasis.app.schemas.review import ReviewSubmit, ReviewOut
from ulasis.app.schemas.questionnaire import QuestionOut
from ulasis.db.session import get_db

router = APIRouter(tags=["public"])
templates = Jinja2Templates(directory=settings.JINJA2_TEMPLATES)


def _fingerprint(request: Request) -> str:
    return device_fingerprint(request.headers, request.client.host if request.client else None)


def _public_view(questionnaire) -> dict:
    return {
        "id": questionnaire.questionnaire_id,
        "title": questionnaire.title,
        "description": questionnaire.description,
        "welcome_message": questionnaire.welcome_message,
        "thank_you_message": questionnaire.thank_you_message,
        "questions": [
            QuestionOut.model_validate(q).model_dump(mode="json")
            for q in questionnaire.questions if q.is_active
        ],
    }


@router.get(f"{settings.API_PREFIX}/public/questionnaires/{{questionnaire_id}}")
async def public_questionnaire(questionnaire_id: int, db: Session = Depends(get_db)):
    with service_errors():
        questionnaire = review_service.get_public_questionnaire(db, questionnaire_id)
    return _public_view(questionnaire)


@router.post(
    f"{settings.API_PREFIX}/public/questionnaires/{{questionnaire_id}}/reviews",
    response_model=ReviewOut,
    status_code=status.HTTP_201_CREATED,
)
async def submit_review(questionnaire_id: int, payload: ReviewSubmit, request: Request, db: Session = Depends(get_db)):
    """Store a customer's review.

    Errors:
        404: The questionnaire is unknown or inactive.
        400: The QR code belongs to another questionnaire.
        403: The owner has used up the monthly responses of their plan.
    """
    with service_errors():
        review = await review_service.submit_review(
            db, questionnaire_id, payload.model_dump(),
            classifier=get_classifier(),
            fingerprint=_fingerprint(request),
        )
    return review_service.review_to_dict(review)


@router.get("/q/{qr_code_id}", response_class=HTMLResponse)
async def qr_landing(qr_code_id: int, request: Request, db: Session = Depends(get_db)):
    """Page a scanned QR code opens; counts the scan and shows the form."""
    try:
        scan = scan_tracker.track_scan(db, qr_code_id, _fingerprint(request))
    except QRCodeExpired:
        return templates.TemplateResponse(
            request,
            "unavailable.html",
            {"title": settings.APP_NAME, "message": "This QR code has expired."},
            status_code=status.HTTP_410_GONE,
        )
    except LookupError:
        raise HTTPException(status_code=404, detail="QR code not found")

    with service_errors():
        questionnaire = review_service.get_public_questionnaire(db, scan.qr_code.questionnaire_id)

    return templates.TemplateResponse(
        request,
        "questionnaire.html",
        {
            "title": questionnaire.title,
            "app_name": settings.APP_NAME,
            "questionnaire": _public_view(questionnaire),
            "qr_code_id": qr_code_id,
            "submit_url": f"{settings.API_PREFIX}/public/questionnaires/{questionnaire.questionnaire_id}/reviews",
        },
    )
