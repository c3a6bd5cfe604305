from sqlalchemy import Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.user import User

class_code_students = Table(
    "class_code_students",
    Base.metadata,
    Column("class_code_id", ForeignKey("class_codes.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class ClassCode(Base):
    """A course offering. Exams reference a class code rather than a course."""

    __tablename__ = "class_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    teacher_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    teacher: Mapped[User | None] = relationship(foreign_keys=[teacher_id], lazy="raise")
    students: Mapped[list[User]] = relationship(secondary=class_code_students, lazy="raise")
