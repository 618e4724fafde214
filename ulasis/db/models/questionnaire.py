# db/models/questionnaire.py
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from sqlalchemy import String, Text, Boolean, Integer, DateTime, JSON, ForeignKey, Index
from ulasis.db import Base
from ulasis.db.mixins import TimestampMixin, SoftDeleteMixin


def _lists_to_index_maps(mapping: dict | None) -> dict:
    """Turn list values into {"0": ..., "1": ...} objects, leave the rest alone."""
    converted = {}
    for key, value in (mapping or {}).items():
        if isinstance(value, list):
            converted[key] = {str(i): item for i, item in enumerate(value)}
        else:
            converted[key] = value
    return converted


class Questionnaire(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "questionnaires"

    questionnaire_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_mapping: Mapped[dict | None] = mapped_column(JSON, default=dict, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    welcome_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    thank_you_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    settings: Mapped[dict | None] = mapped_column(JSON, default=dict, nullable=True)
    # bumped by review intake, can drift from the real number of reviews
    response_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_response_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="questionnaires")
    questions = relationship("Question", back_populates="questionnaire", cascade="all, delete-orphan", order_by="Question.order_index")
    qr_codes = relationship("QRCode", back_populates="questionnaire")
    reviews = relationship("Review", back_populates="questionnaire")

    __table_args__ = (
        Index("idx_questionnaires_user_active", "user_id", "is_active", "deleted_at"),
    )

    @validates("title")
    def _validate_title(self, key, value):
        if value is None or not value.strip() or len(value) > 255:
            raise ValueError("title must be between 1 and 255 characters")
        return value

    def to_summary(self) -> dict:
        return {
            "id": self.questionnaire_id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "category_mapping": _lists_to_index_maps(self.category_mapping),
            "is_active": self.is_active,
            "is_public": self.is_public,
            "response_count": self.response_count,
            "last_response_at": self.last_response_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
