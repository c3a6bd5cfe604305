from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.class_code import ClassCode
from app.models.exam import ExamTable

# Each row fills exactly one target column; the other is NULL. A plain unique
# constraint over all three columns never fires because NULLs compare distinct,
# so uniqueness is enforced per target with partial indexes instead.
_EXAM_TARGET = text("exam_id IS NOT NULL")
_CLASS_CODE_TARGET = text("class_code_id IS NOT NULL")


class UserClass(Base):
    """One saved entry of a student's personal timetable: a single exam or a whole class code."""

    __tablename__ = "user_classes"
    __table_args__ = (
        Index(
            "uq_user_classes_user_exam",
            "user_id",
            "exam_id",
            unique=True,
            sqlite_where=_EXAM_TARGET,
            postgresql_where=_EXAM_TARGET,
        ),
        Index(
            "uq_user_classes_user_class_code",
            "user_id",
            "class_code_id",
            unique=True,
            sqlite_where=_CLASS_CODE_TARGET,
            postgresql_where=_CLASS_CODE_TARGET,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    exam_id: Mapped[int | None] = mapped_column(ForeignKey("exam_tables.id", ondelete="CASCADE"), nullable=True)
    class_code_id: Mapped[int | None] = mapped_column(
        ForeignKey("class_codes.id", ondelete="CASCADE"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    exam: Mapped[ExamTable | None] = relationship()
    class_code: Mapped[ClassCode | None] = relationship()
