"""Review inbox for the dashboard: listing with filters and status changes."""
# app/routers/reviews.py
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ulasis.app.core.config import settings
from ulasis.app.core.errors import service_errors
from ulasis.app.core.security import get_current_user
from ulasis.app.services import reviews as service
from ulasis.app.schemas.review import ReviewOut, ReviewUpdate, ReviewPage
from ulasis.db.session import get_db
from ulasis.db.models import User, ReviewStatus, Sentiment

router = APIRouter(prefix=f"{settings.API_PREFIX}/reviews", tags=["reviews"])


@router.get("", response_model=ReviewPage)
async def list_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: ReviewStatus | None = None,
    sentiment: Sentiment | None = None,
    source: str | None = None,
    questionnaire_id: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with service_errors():
        return service.list_reviews(
            db, user.user_id,
            page=page, limit=limit,
            status=status, sentiment=sentiment, source=source,
            questionnaire_id=questionnaire_id,
            date_from=date_from, date_to=date_to,
        )


@router.patch("/{review_id}", response_model=ReviewOut)
async def update_review(
    review_id: int,
    payload: ReviewUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Move a review through new / in_progress / resolved or retag it."""
    with service_errors():
        review = service.update_review(db, user.user_id, review_id, payload.model_dump(exclude_unset=True, exclude_none=True))
    return service.review_to_dict(review)
