"""Subscription status and data export for the signed-in user."""
# app/routers/account.py
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ulasis.app.core.config import settings
from ulasis.app.core.errors import service_errors
from ulasis.app.core.security import get_current_user
from ulasis.app.services import subscription, usage
from ulasis.app.services.export import export_user_data_to_json, export_user_data_to_zip
from ulasis.app.services.questionnaires import check_user_quota
from ulasis.db import utcnow
from ulasis.db.session import get_db
from ulasis.db.models import User

router = APIRouter(prefix=settings.API_PREFIX, tags=["account"])


@router.get("/subscription/status")
async def subscription_status(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    status = subscription.plan_status(user.subscription_plan)
    status["quota"] = check_user_quota(db, user.user_id, user.subscription_plan)
    status["usage"] = usage.usage_summary(db, user)
    return status


@router.get("/export")
async def export_data(
    format: str = Query("json", pattern="^(json|csv)$"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Download all questionnaires, QR codes and reviews.

    `csv` returns a zip with one file per table.

    Errors:
        403: The plan has no data export, or its monthly exports are used up.
    """
    with service_errors():
        subscription.require_feature(user.subscription_plan, "csv_export")
        usage.record_export(db, user, format)

    stamp = utcnow().strftime("%Y%m%d_%H%M%S")
    if format == "csv":
        return Response(
            content=export_user_data_to_zip(db, user.user_id),
            media_type="application/zip",
            headers={"Content-Disposition": f'attachment; filename="ulasis_export_{stamp}.zip"'},
        )
    return Response(
        content=export_user_data_to_json(db, user.user_id),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="ulasis_export_{stamp}.json"'},
    )
