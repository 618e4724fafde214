# db/models/review.py
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from sqlalchemy import String, Text, Integer, Enum, JSON, ForeignKey
from ulasis.db import Base
from ulasis.db.mixins import TimestampMixin, SoftDeleteMixin
import enum


class Sentiment(str, enum.Enum):
    positive = "positive"
    neutral = "neutral"
    negative = "negative"


class ReviewStatus(str, enum.Enum):
    new = "new"
    in_progress = "in_progress"
    resolved = "resolved"


class Review(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "reviews"

    review_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    questionnaire_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("questionnaires.questionnaire_id"), nullable=True, index=True)
    qr_code_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("qr_codes.qr_code_id"), nullable=True, index=True)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    sentiment: Mapped[Sentiment] = mapped_column(Enum(Sentiment), default=Sentiment.neutral, nullable=False)
    topics: Mapped[list | None] = mapped_column(JSON, default=list, nullable=True)
    tags: Mapped[list | None] = mapped_column(JSON, default=list, nullable=True)
    status: Mapped[ReviewStatus] = mapped_column(Enum(ReviewStatus), default=ReviewStatus.new, nullable=False)
    source: Mapped[str] = mapped_column(String(50), default="qr_scan", nullable=False)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    answers: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    device_fingerprint: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    questionnaire = relationship("Questionnaire", back_populates="reviews")
    qr_code = relationship("QRCode", back_populates="reviews")

    @validates("rating")
    def _validate_rating(self, key, value):
        if value is None or not 1 <= int(value) <= 5:
            raise ValueError("rating must be between 1 and 5")
        return int(value)
