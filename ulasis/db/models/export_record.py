# db/models/export_record.py
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, ForeignKey
from ulasis.db import Base
from ulasis.db.mixins import TimestampMixin


class ExportRecord(TimestampMixin, Base):
    """One data export download, counted against the plan's monthly exports."""
    __tablename__ = "export_records"

    export_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    format: Mapped[str] = mapped_column(String(10), nullable=False)
