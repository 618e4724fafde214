"""Pydantic schemes for customer reviews.
"""
# app/schemas/review.py
from pydantic import BaseModel, Field
from typing import Optional, Any
from datetime import datetime
from ulasis.db.models import ReviewStatus


class ReviewSubmit(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=5000)
    customer_name: Optional[str] = Field(None, max_length=255)
    qr_code_id: Optional[int] = None
    source: Optional[str] = Field(None, max_length=50)
    answers: Optional[dict[str, Any]] = None


class ReviewOut(BaseModel):
    id: int
    questionnaire_id: int | None = None
    qr_code_id: int | None = None
    rating: int
    comment: str | None = None
    sentiment: str
    topics: list[str] = []
    tags: list[str] = []
    status: str
    source: str
    customer_name: str | None = None
    created_at: datetime | None = None


class ReviewUpdate(BaseModel):
    status: ReviewStatus | None = None
    tags: list[str] | None = None


class ReviewPage(BaseModel):
    reviews: list[ReviewOut]
    pagination: dict[str, int]
