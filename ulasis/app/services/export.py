# app/services/export.py
import csv
import json
import zipfile
import io
from datetime import datetime
from typing import Dict, Any, List
from sqlalchemy.orm import Session
from sqlalchemy import select
from ulasis.db import utcnow
from ulasis.db.models import Questionnaire, Question, QRCode, Review


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class DataExporter:
    """Exports one user's questionnaires, questions, QR codes and reviews."""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def export_to_json(self) -> Dict[str, Any]:
        """
        Export everything as one JSON-ready dict.

        :return: table name -> list of rows, plus the export timestamp
        """
        return {
            "export_timestamp": utcnow().isoformat(),
            "questionnaires": self._export_questionnaires(),
            "questions": self._export_questions(),
            "qr_codes": self._export_qr_codes(),
            "reviews": self._export_reviews(),
        }

    def export_to_csv(self) -> Dict[str, str]:
        """
        Export every table as CSV text.

        :return: file name -> CSV content
        """
        return {
            "questionnaires.csv": self._export_table_to_csv(self._export_questionnaires()),
            "questions.csv": self._export_table_to_csv(self._export_questions()),
            "qr_codes.csv": self._export_table_to_csv(self._export_qr_codes()),
            "reviews.csv": self._export_table_to_csv(self._export_reviews()),
        }

    def _owned_questionnaire_ids(self):
        return select(Questionnaire.questionnaire_id).where(Questionnaire.user_id == self.user_id)

    def _export_questionnaires(self) -> List[Dict[str, Any]]:
        rows = self.db.execute(
            select(Questionnaire)
            .where(Questionnaire.user_id == self.user_id, Questionnaire.not_deleted())
            .order_by(Questionnaire.questionnaire_id)
        ).scalars().all()
        return [
            {
                "questionnaire_id": q.questionnaire_id,
                "title": q.title,
                "description": q.description,
                "is_active": q.is_active,
                "is_public": q.is_public,
                "response_count": q.response_count,
                "last_response_at": _iso(q.last_response_at),
                "created_at": _iso(q.created_at),
            }
            for q in rows
        ]

    def _export_questions(self) -> List[Dict[str, Any]]:
        rows = self.db.execute(
            select(Question)
            .where(Question.questionnaire_id.in_(self._owned_questionnaire_ids()))
            .order_by(Question.questionnaire_id, Question.order_index)
        ).scalars().all()
        return [
            {
                "question_id": q.question_id,
                "questionnaire_id": q.questionnaire_id,
                "question_text": q.question_text,
                "question_type": q.question_type.value,
                "options": "|".join(q.options or []),
                "category": q.category,
                "is_required": q.is_required,
                "order_index": q.order_index,
            }
            for q in rows
        ]

    def _export_qr_codes(self) -> List[Dict[str, Any]]:
        rows = self.db.execute(
            select(QRCode)
            .where(QRCode.questionnaire_id.in_(self._owned_questionnaire_ids()), QRCode.not_deleted())
            .order_by(QRCode.qr_code_id)
        ).scalars().all()
        return [
            {
                "qr_code_id": qr.qr_code_id,
                "questionnaire_id": qr.questionnaire_id,
                "location_tag": qr.location_tag,
                "qr_code_data": qr.qr_code_data,
                "scan_count": qr.scan_count,
                "unique_scans": qr.unique_scans,
                "is_active": qr.is_active,
                "expires_at": _iso(qr.expires_at),
                "created_at": _iso(qr.created_at),
            }
            for qr in rows
        ]

    def _export_reviews(self) -> List[Dict[str, Any]]:
        rows = self.db.execute(
            select(Review)
            .where(Review.user_id == self.user_id, Review.not_deleted())
            .order_by(Review.review_id)
        ).scalars().all()
        return [
            {
                "review_id": r.review_id,
                "questionnaire_id": r.questionnaire_id,
                "qr_code_id": r.qr_code_id,
                "rating": r.rating,
                "comment": r.comment,
                "sentiment": r.sentiment.value,
                "topics": "|".join(r.topics or []),
                "status": r.status.value,
                "source": r.source,
                "created_at": _iso(r.created_at),
            }
            for r in rows
        ]

    def _export_table_to_csv(self, data: List[Dict[str, Any]]) -> str:
        """
        Render a list of rows as CSV, header taken from the first row.

        :return: CSV text, empty string for an empty table
        """
        if not data:
            return ""
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=list(data[0].keys()))
        writer.writeheader()
        writer.writerows(data)
        return output.getvalue()


def export_user_data_to_json(db: Session, user_id: int) -> str:
    """Export a user's data as a JSON string."""
    data = DataExporter(db, user_id).export_to_json()
    return json.dumps(data, ensure_ascii=False, indent=2)


def export_user_data_to_zip(db: Session, user_id: int) -> bytes:
    """Export a user's data as a zip archive with one CSV per table."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, content in DataExporter(db, user_id).export_to_csv().items():
            archive.writestr(name, content)
    return buffer.getvalue()
