"""Pydantic schemes for questionnaires and their questions.
"""
# app/schemas/questionnaire.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Any
from datetime import datetime
from ulasis.db.models import QuestionType


class QuestionIn(BaseModel):
    question_text: str = Field(min_length=1)
    question_type: QuestionType
    options: Optional[list[str]] = None
    category: Optional[str] = Field(None, max_length=100)
    is_required: bool = False
    order_index: Optional[int] = Field(None, ge=0)


class QuestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_id: int
    question_text: str
    question_type: QuestionType
    options: list[str] | None = None
    category: str | None = None
    is_required: bool
    order_index: int


class QuestionnaireCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    category_mapping: Optional[dict[str, Any]] = None
    is_active: bool = True
    is_public: bool = False
    welcome_message: Optional[str] = None
    thank_you_message: Optional[str] = None
    settings: Optional[dict[str, Any]] = None
    questions: list[QuestionIn] = []


class QuestionnaireUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    category_mapping: dict[str, Any] | None = None
    is_active: bool | None = None
    is_public: bool | None = None
    welcome_message: str | None = None
    thank_you_message: str | None = None
    settings: dict[str, Any] | None = None


class QuestionnaireOut(BaseModel):
    id: int
    user_id: int
    title: str
    description: str | None = None
    category_mapping: dict[str, Any] = {}
    is_active: bool
    is_public: bool
    response_count: int
    last_response_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class QuestionnaireDetailOut(QuestionnaireOut):
    welcome_message: str | None = None
    thank_you_message: str | None = None
    questions: list[QuestionOut] = []


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class QuestionnairePage(BaseModel):
    questionnaires: list[QuestionnaireOut]
    pagination: Pagination


class QuotaOut(BaseModel):
    can_create: bool
    used: int
    limit: int | str
    plan: str
