"""Dashboard analytics over stored reviews, plus the demo dashboard.

Sections a plan does not include are replaced with an upgrade message
instead of numbers.
"""
# app/routers/analytics.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ulasis.analytics import rollups
from ulasis.analytics.demo import demo_reviews_for_plan, DEMO_QUESTIONNAIRES
from ulasis.analytics.methodology import methodology
from ulasis.app.core.config import settings
from ulasis.app.core.errors import service_errors
from ulasis.app.core.security import get_current_user
from ulasis.app.services import subscription
from ulasis.app.services.reviews import all_review_dicts
from ulasis.db.session import get_db
from ulasis.db.models import User

router = APIRouter(prefix=f"{settings.API_PREFIX}/analytics", tags=["analytics"])

# dashboard section -> feature that unlocks it
GATED_SECTIONS = {
    "sentiment_distribution": "sentiment_analysis",
    "sentiment_trend": "real_time_analytics",
    "topic_analysis": "actionable_insights",
}


def _gate(data: dict, plan) -> dict:
    locked = {}
    for section, feature in GATED_SECTIONS.items():
        message = subscription.get_upgrade_message(plan, feature)
        if message:
            data[section] = None
            locked[section] = message
    data["locked"] = locked
    return data


@router.get("/dashboard")
async def dashboard(
    range_: str = Query("week", alias="range"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """KPIs, sentiment, topics, sources and trend for the selected range.

    Errors:
        400: Unknown range.
    """
    with service_errors():
        data = rollups.dashboard(all_review_dicts(db, user.user_id), range_)
    data["plan"] = subscription.normalize_plan(user.subscription_plan)
    return _gate(data, user.subscription_plan)


@router.get("/methodology")
async def get_methodology():
    return methodology()


@router.get("/demo")
async def demo_dashboard(
    plan: str = Query("bisnis"),
    range_: str = Query("month", alias="range"),
    seed: int | None = None,
):
    """Dashboard built from synthetic reviews; no login needed."""
    with service_errors():
        reviews = demo_reviews_for_plan(plan, seed=seed)
        data = rollups.dashboard(reviews, range_)
    data["plan"] = plan
    data["questionnaires"] = DEMO_QUESTIONNAIRES
    data["reviews"] = reviews
    return _gate(data, plan)
