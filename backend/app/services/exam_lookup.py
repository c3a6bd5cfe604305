from __future__ import annotations

import datetime as dt

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.models.class_code import ClassCode
from app.models.exam import ExamTable
from app.services.clash_detection import ClassCodeMembers, ScheduledExam

_CLASS_CODE_MEMBERS = (selectinload(ClassCode.teacher), selectinload(ClassCode.students))
# Class codes may already sit in the session with their members unloaded.
_REFRESH = {"populate_existing": True}


def class_code_members(class_code: ClassCode) -> ClassCodeMembers:
    return ClassCodeMembers(
        id=class_code.id,
        code=class_code.code,
        teacher_id=class_code.teacher_id,
        teacher_name=class_code.teacher.name if class_code.teacher else None,
        students={student.id: student.name for student in class_code.students},
    )


class SqlExamLookup:
    """Reads the rows the clash detector needs, with associations loaded up front."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def exams_on_date(self, exam_date: dt.date, *, exclude_exam_id: int | None = None) -> list[ScheduledExam]:
        statement = (
            select(ExamTable)
            .where(ExamTable.date == exam_date)
            .options(
                selectinload(ExamTable.room),
                selectinload(ExamTable.class_code).options(*_CLASS_CODE_MEMBERS),
            )
            .execution_options(**_REFRESH)
        )
        if exclude_exam_id is not None:
            statement = statement.where(ExamTable.id != exclude_exam_id)

        return [
            ScheduledExam(
                id=exam.id,
                title=exam.title,
                date=exam.date,
                start_time=exam.start_time,
                end_time=exam.end_time,
                room_id=exam.room_id,
                room_name=exam.room.name if exam.room else None,
                class_code_id=exam.class_code_id,
                class_code=class_code_members(exam.class_code) if exam.class_code else None,
            )
            for exam in self.db.execute(statement).scalars()
        ]

    def class_code(self, class_code_id: int) -> ClassCodeMembers | None:
        statement = (
            select(ClassCode)
            .where(ClassCode.id == class_code_id)
            .options(*_CLASS_CODE_MEMBERS)
            .execution_options(**_REFRESH)
        )
        class_code = self.db.execute(statement).scalar_one_or_none()
        if class_code is None:
            return None
        return class_code_members(class_code)
