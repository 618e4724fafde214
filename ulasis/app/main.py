# app/main.py
import asyncio
import logging
from fastapi import FastAPI
from ulasis.app.core.config import settings
from ulasis.db.session import engine
from ulasis.db import Base
from ulasis.app.routers import auth, questionnaires, qr_codes, reviews, analytics, account, public
from ulasis.app.services.cleanup_manager import run_cleanup_loop

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)

app.include_router(auth.router)
app.include_router(questionnaires.router)
app.include_router(qr_codes.router)
app.include_router(reviews.router)
app.include_router(analytics.router)
app.include_router(account.router)
app.include_router(public.router)


@app.on_event("startup")
async def on_startup():
    Base.metadata.create_all(bind=engine)

    # expired QR codes and orphaned images are cleaned in the background
    if settings.CLEANUP_INTERVAL > 0:
        asyncio.create_task(run_cleanup_loop())
    logger.info("%s started", settings.APP_NAME)


@app.get("/health")
def health():
    return {"status": "ok"}
